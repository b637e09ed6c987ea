"""Entry points the session layer calls; every call takes the Position explicitly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from .attacks import is_king_attacked
from .errors import DecodeError, IllegalMoveError
from .move import Move, UciMove, parse_uci
from .movegen import generate_legal_moves
from .outcome import GameEndReason, Outcome, evaluate
from .position import Position
from .san import format_san, move_to_san, san_to_move


Candidate = Union[Move, UciMove, str]

__all__ = [
    "Candidate",
    "DecodeError",
    "IllegalMoveError",
    "MoveResult",
    "export_position",
    "legal_moves",
    "load_position",
    "move_to_san",
    "new_game",
    "san_to_move",
    "try_move",
]


@dataclass(frozen=True)
class MoveResult:
    """What a successfully applied move produced."""

    move: Move
    san: str
    check: bool
    outcome: Optional[Outcome] = None

    @property
    def terminal(self) -> Optional[GameEndReason]:
        return self.outcome.reason if self.outcome is not None else None


def new_game() -> Position:
    return Position.startpos()


def load_position(fen: str) -> Position:
    """Decode ``fen``; raises ``DecodeError`` on malformed input."""
    return Position.from_fen(fen)


def export_position(pos: Position) -> str:
    return pos.to_fen()


def legal_moves(pos: Position) -> List[Move]:
    return generate_legal_moves(pos)


def try_move(pos: Position, candidate: Candidate) -> MoveResult:
    """Validate ``candidate`` against the legal moves of ``pos`` and apply it.

    Args:
        pos (Position): Position to move in; mutated only on success.
        candidate (Candidate): A ``Move``, a ``UciMove``, or a string in UCI
            (``"e7e8q"``) or SAN (``"exd8=Q+"``) form.

    Returns:
        MoveResult: The applied move, its SAN, whether it gives check, and
            the terminal outcome if the game ended.

    Raises:
        IllegalMoveError: If the candidate cannot be parsed or is not legal.
            ``pos`` is left untouched.
    """
    legal = generate_legal_moves(pos)
    move = _resolve(pos, candidate, legal)
    if move is None:
        raise IllegalMoveError(f"illegal move: {_describe(candidate)}")
    san = format_san(pos, move, legal)
    pos.make_move(move)
    return MoveResult(
        move=move,
        san=san,
        check=is_king_attacked(pos, pos.turn),
        outcome=evaluate(pos),
    )


def _resolve(pos: Position, candidate: Candidate, legal: List[Move]) -> Optional[Move]:
    if isinstance(candidate, str):
        try:
            request = parse_uci(candidate.strip())
        except ValueError:
            return san_to_move(pos, candidate)
    elif isinstance(candidate, Move):
        request = UciMove(candidate.from_sq, candidate.to_sq, candidate.promotion)
    else:
        request = candidate
    return next((m for m in legal if m.matches(request)), None)


def _describe(candidate: Candidate) -> str:
    if isinstance(candidate, str):
        return repr(candidate)
    return candidate.to_uci() if isinstance(candidate, Move) else repr(candidate)
