from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    to_http_exception,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...engine.errors import DecodeError, IllegalMoveError
from ...engine.game import Game
from ...engine.perft import perft as perft_nodes
from ...engine.position import Position
from ...engine.rules import MoveResult
from ...engine.san import san_to_move
from ...session.clock import TimeControl
from ...session.session import GameSession, SessionError
from ...session.store import InMemorySessionStore


logger = logging.getLogger(__name__)


class TimeControlModel(BaseModel):
    base_ms: int = Field(..., ge=1000, description="Initial time per side in milliseconds")
    increment_ms: int = Field(default=0, ge=0, description="Fischer increment per move")


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Starting FEN (default: startpos)")
    time_control: Optional[TimeControlModel] = None


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class JoinRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    color: Optional[str] = Field(default=None, pattern="^[wb]$")


class JoinResponse(BaseModel):
    player_id: str
    name: str
    color: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI (e2e4) or SAN (e4, Nf3, O-O) move")
    player_id: Optional[str] = None


class UndoRequest(BaseModel):
    player_id: Optional[str] = None


class ResignRequest(BaseModel):
    player_id: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern="^[wb]$")


class SanRequest(BaseModel):
    san: str


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=5)


class GameState(BaseModel):
    game_id: str
    fen: str
    turn: str
    legal_moves: list[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    draw: bool
    result: Optional[str]
    end_reason: Optional[str]
    winner: Optional[str]
    last_move: Optional[str]
    move_history: list[str]
    san_history: list[str]
    players: Dict[str, str]
    clocks: Optional[Dict[str, int]]


class MoveResponse(GameState):
    san: str
    check: bool
    terminal: Optional[str]


def create_app(log_level: int | str = logging.INFO) -> FastAPI:
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    logging.basicConfig(level=log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        req = req or CreateGameRequest()
        try:
            game = Game.from_fen(req.fen) if req.fen else Game.new()
        except DecodeError as e:
            raise to_http_exception(e)
        tc = (
            TimeControl(req.time_control.base_ms, req.time_control.increment_ms)
            if req.time_control
            else None
        )
        session = store.create(game, time_control=tc)
        logger.info("game created", extra={"game_id": session.game_id})
        return CreateGameResponse(game_id=session.game_id, fen=game.to_fen())

    @app.get("/api/games")
    async def list_games() -> Dict[str, Any]:
        sessions = store.list()
        for s in sessions:
            s.check_flag()
        return {
            "count": len(sessions),
            "games": [
                {
                    "game_id": s.game_id,
                    "players": {c: p.name for c, p in s.players.items()},
                    "turn": s.game.turn,
                    "move_count": len(s.game.moves),
                    "result": s.game.outcome.result() if s.game.outcome else None,
                }
                for s in sessions
            ],
        }

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        with session.lock:
            session.check_flag()
            return _state(session)

    @app.post("/api/games/{game_id}/join", response_model=JoinResponse)
    async def join(game_id: str, req: JoinRequest) -> JoinResponse:
        session = _require_session(store, game_id)
        try:
            player = session.join(req.name, req.color)
        except (SessionError, ValueError) as e:
            raise to_http_exception(e)
        return JoinResponse(player_id=player.player_id, name=player.name, color=player.color)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            game = Game.from_fen(req.fen)
        except DecodeError as e:
            raise to_http_exception(e)
        session.reset(game)
        with session.lock:
            return _state(session)

    @app.post("/api/games/{game_id}/move", response_model=MoveResponse)
    async def make_move(game_id: str, req: MoveRequest) -> MoveResponse:
        session = _require_session(store, game_id)
        try:
            result = session.move(req.move, player_id=req.player_id)
        except (IllegalMoveError, SessionError) as e:
            raise to_http_exception(e)
        with session.lock:
            return _move_response(session, result)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str, req: Optional[UndoRequest] = None) -> GameState:
        session = _require_session(store, game_id)
        req = req or UndoRequest()
        try:
            session.undo(player_id=req.player_id)
        except (SessionError, ValueError) as e:
            raise to_http_exception(e)
        with session.lock:
            return _state(session)

    @app.post("/api/games/{game_id}/resign", response_model=GameState)
    async def resign(game_id: str, req: ResignRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            session.resign(player_id=req.player_id, color=req.color)
        except (SessionError, ValueError) as e:
            raise to_http_exception(e)
        with session.lock:
            return _state(session)

    @app.post("/api/games/{game_id}/san")
    async def resolve_san(game_id: str, req: SanRequest) -> Dict[str, str]:
        session = _require_session(store, game_id)
        with session.lock:
            move = san_to_move(session.game.position, req.san)
        if move is None:
            raise HTTPException(status_code=400, detail=f"no unique legal move for {req.san!r}")
        return {"move": move.to_uci()}

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_session(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.post("/api/perft")
    async def perft(req: PerftRequest) -> Dict[str, Any]:
        try:
            pos = Position.from_fen(req.fen)
        except DecodeError as e:
            raise to_http_exception(e)
        return {"nodes": perft_nodes(pos, req.depth)}

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _state(session: GameSession) -> GameState:
    game = session.game
    history = game.move_history_uci()
    outcome = game.outcome
    return GameState(
        game_id=session.game_id,
        fen=game.to_fen(),
        turn=game.turn,
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        in_check=game.in_check(),
        checkmate=game.checkmate(),
        stalemate=game.stalemate(),
        draw=game.is_draw(),
        result=outcome.result() if outcome else None,
        end_reason=outcome.reason.value if outcome else None,
        winner=outcome.winner if outcome else None,
        last_move=history[-1] if history else None,
        move_history=history,
        san_history=game.move_history_san(),
        players={c: p.name for c, p in session.players.items()},
        clocks=session.clock.as_dict() if session.clock else None,
    )


def _move_response(session: GameSession, result: MoveResult) -> MoveResponse:
    return MoveResponse(
        **_state(session).model_dump(),
        san=result.san,
        check=result.check,
        terminal=result.terminal.value if result.terminal else None,
    )


# Default app for non-factory servers
app = create_app()
