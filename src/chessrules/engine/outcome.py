from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, TYPE_CHECKING

from .attacks import is_king_attacked
from .movegen import has_legal_moves
from .piece import BISHOP, BLACK, KING, KNIGHT, WHITE, opposite
from .square import square_color

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


class GameEndReason(str, Enum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    FIFTY_MOVE_RULE = "fifty_move_rule"
    THREEFOLD_REPETITION = "threefold_repetition"
    # Decided outside the rules engine by the session layer
    RESIGNATION = "resignation"
    TIME_FORFEIT = "time_forfeit"


@dataclass(frozen=True)
class Outcome:
    """Terminal result. ``winner`` is ``None`` for draws."""

    reason: GameEndReason
    winner: Optional[str] = None

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    def result(self) -> str:
        """PGN-style result string."""
        if self.winner == WHITE:
            return "1-0"
        if self.winner == BLACK:
            return "0-1"
        return "1/2-1/2"


def evaluate(pos: "Position") -> Optional[Outcome]:
    """Classify ``pos``; return ``None`` while the game continues.

    Checked in order: no legal moves (checkmate or stalemate), insufficient
    material, the fifty-move rule, threefold repetition.
    """
    if not has_legal_moves(pos):
        if is_king_attacked(pos, pos.turn):
            return Outcome(GameEndReason.CHECKMATE, winner=opposite(pos.turn))
        return Outcome(GameEndReason.STALEMATE)
    if is_insufficient_material(pos):
        return Outcome(GameEndReason.INSUFFICIENT_MATERIAL)
    if pos.halfmove_clock >= 100:
        return Outcome(GameEndReason.FIFTY_MOVE_RULE)
    if repetition_count(pos) >= 3:
        return Outcome(GameEndReason.THREEFOLD_REPETITION)
    return None


def is_insufficient_material(pos: "Position") -> bool:
    """Return True for K v K, K+minor v K and K+B v K+B on same-colored squares."""
    counts: Dict[str, Dict[str, int]] = {WHITE: {}, BLACK: {}}
    bishop_square_colors: Dict[str, Set[int]] = {WHITE: set(), BLACK: set()}
    for sq, piece in pos.pieces():
        if piece.kind == KING:
            continue
        side = counts[piece.color]
        side[piece.kind] = side.get(piece.kind, 0) + 1
        if piece.kind == BISHOP:
            bishop_square_colors[piece.color].add(square_color(sq))

    white, black = counts[WHITE], counts[BLACK]
    if not white and not black:
        return True
    for lone, other in ((white, black), (black, white)):
        if not lone and other in ({KNIGHT: 1}, {BISHOP: 1}):
            return True
    if white == {BISHOP: 1} and black == {BISHOP: 1}:
        return bishop_square_colors[WHITE] == bishop_square_colors[BLACK]
    return False


def repetition_count(pos: "Position") -> int:
    """How many times the current position has occurred in this game.

    Positions are compared by Zobrist hash over the position's own history,
    which covers side to move, castling rights and the en passant file.
    """
    current = pos.zobrist_hash
    return 1 + sum(1 for snap in pos.history if snap.zobrist_hash == current)
