from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..engine.errors import IllegalMoveError
from ..engine.game import Game
from ..engine.outcome import GameEndReason, Outcome
from ..engine.piece import COLORS, opposite
from ..engine.rules import Candidate, MoveResult
from .clock import GameClock


logger = logging.getLogger(__name__)

# Results an undo must not reopen
FINAL_REASONS = (GameEndReason.RESIGNATION, GameEndReason.TIME_FORFEIT)


class SessionError(Exception):
    """Base class for rejected session-level requests."""


class SeatTakenError(SessionError):
    pass


class UnknownPlayerError(SessionError):
    pass


class NotYourTurnError(SessionError):
    pass


class GameOverError(SessionError):
    pass


@dataclass(frozen=True)
class Player:
    player_id: str
    name: str
    color: str


@dataclass
class GameSession:
    """One game plus the people and the clock around it.

    All mutation goes through methods that hold ``lock``, so a game sees a
    single ordered stream of moves even when requests arrive concurrently.
    The rules engine itself is not safe for concurrent use of one Position.
    """

    game_id: str
    game: Game
    clock: Optional[GameClock] = None
    players: Dict[str, Player] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def seated(self) -> bool:
        return all(c in self.players for c in COLORS)

    def join(self, name: str, color: Optional[str] = None) -> Player:
        """Seat ``name`` at ``color`` (or the first free seat)."""
        with self.lock:
            if color is None:
                color = next((c for c in COLORS if c not in self.players), None)
                if color is None:
                    raise SeatTakenError("game is full")
            elif color not in COLORS:
                raise ValueError("color must be 'w' or 'b'")
            elif color in self.players:
                raise SeatTakenError(f"{color} is already taken")
            player = Player(player_id=str(uuid.uuid4()), name=name, color=color)
            self.players[color] = player
            logger.info("player joined", extra={"game_id": self.game_id, "color": color})
            if self.seated and self.clock is not None:
                self.clock.start(self.game.turn)
            return player

    def player(self, player_id: str) -> Player:
        for p in self.players.values():
            if p.player_id == player_id:
                return p
        raise UnknownPlayerError("unknown player")

    def check_flag(self) -> Optional[Outcome]:
        """Declare a time forfeit if the side to move has run out of time.

        Called on every request that touches the game, so a player who stops
        moving still loses once their time is gone.
        """
        with self.lock:
            clock = self.clock
            if clock is None or not clock.running or self.game.is_over:
                return None
            loser = self.game.turn
            if not clock.flag_fallen(loser):
                return None
            clock.stop()
            outcome = self.game.forfeit_on_time(loser)
            logger.info("time forfeit", extra={"game_id": self.game_id, "color": loser})
            return outcome

    def move(self, candidate: Candidate, player_id: Optional[str] = None) -> MoveResult:
        """Play ``candidate`` for the side to move.

        When both seats are taken, ``player_id`` must belong to the side to
        move. Raises ``IllegalMoveError`` for illegal moves and a
        ``SessionError`` for requests the session refuses.
        """
        with self.lock:
            forfeit = self.check_flag()
            if forfeit is not None:
                loser = opposite(forfeit.winner)
                raise GameOverError(f"{loser} ran out of time ({forfeit.result()})")
            if self.game.is_over:
                raise GameOverError("game is over")
            mover = self.game.turn
            self._authorize(player_id, mover, "it's not your turn")
            result = self.game.apply(candidate)
            if self.clock is not None:
                if self.game.is_over:
                    self.clock.stop()
                else:
                    self.clock.punch(mover)
            return result

    def resign(self, player_id: Optional[str] = None, color: Optional[str] = None) -> Outcome:
        with self.lock:
            self.check_flag()
            if player_id is not None:
                color = self.player(player_id).color
            if color is None:
                raise ValueError("player_id or color is required")
            try:
                outcome = self.game.resign(color)
            except IllegalMoveError as e:
                raise GameOverError(str(e)) from e
            if self.clock is not None:
                self.clock.stop()
            return outcome

    def undo(self, player_id: Optional[str] = None) -> MoveResult:
        """Take back the last move.

        Once both seats are taken only the player who made that move may take
        it back. Results decided off the board (resignation, time) are final.
        """
        with self.lock:
            self.check_flag()
            outcome = self.game.outcome
            if outcome is not None and outcome.reason in FINAL_REASONS:
                raise GameOverError(f"game ended by {outcome.reason.value}")
            if not self.game.moves:
                raise ValueError("no moves to undo")
            self._authorize(
                player_id,
                opposite(self.game.turn),
                "only the player who made the last move can take it back",
            )
            result = self.game.undo()
            self._restart_clock()
            return result

    def reset(self, game: Game) -> None:
        with self.lock:
            self.game = game
            if self.clock is not None:
                self.clock.reset()
                self._restart_clock()

    def _authorize(self, player_id: Optional[str], color: str, refusal: str) -> None:
        if player_id is None and not self.seated:
            return
        if player_id is None:
            raise UnknownPlayerError("player_id is required once both seats are taken")
        if self.player(player_id).color != color:
            raise NotYourTurnError(refusal)

    def _restart_clock(self) -> None:
        # Running again for the side to move, as long as the game is live
        if self.clock is None:
            return
        self.clock.stop()
        if not self.game.is_over and (self.seated or self.game.moves):
            self.clock.start(self.game.turn)
