from __future__ import annotations

from typing import TYPE_CHECKING

from .piece import BISHOP, BLACK, KING, KNIGHT, PAWN, QUEEN, ROOK, WHITE, opposite
from .square import on_board

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


# 0x88 offsets; one rank up is +16
KNIGHT_OFFSETS = (33, 31, 18, 14, -14, -18, -31, -33)
KING_OFFSETS = (1, 15, 16, 17, -1, -15, -16, -17)
BISHOP_DIRECTIONS = (15, 17, -15, -17)
ROOK_DIRECTIONS = (1, -1, 16, -16)
QUEEN_DIRECTIONS = BISHOP_DIRECTIONS + ROOK_DIRECTIONS

# Diagonal steps a pawn of the given color captures along
PAWN_CAPTURE_OFFSETS = {WHITE: (15, 17), BLACK: (-15, -17)}


def is_attacked(pos: "Position", sq: int, by_color: str) -> bool:
    """Return True if ``sq`` is attacked by any piece of ``by_color``.

    Attack is not the same as a legal move: pawns attack diagonally whether or
    not the target is occupied, and sliders are stopped by the first piece on
    the ray whatever its color.
    """
    board = pos.board

    # Pawns: look back along the attacker's capture diagonals
    for off in PAWN_CAPTURE_OFFSETS[by_color]:
        src = sq - off
        if on_board(src):
            p = board[src]
            if p is not None and p.color == by_color and p.kind == PAWN:
                return True

    for off in KNIGHT_OFFSETS:
        src = sq + off
        if on_board(src):
            p = board[src]
            if p is not None and p.color == by_color and p.kind == KNIGHT:
                return True

    for off in KING_OFFSETS:
        src = sq + off
        if on_board(src):
            p = board[src]
            if p is not None and p.color == by_color and p.kind == KING:
                return True

    for directions, kinds in ((BISHOP_DIRECTIONS, (BISHOP, QUEEN)), (ROOK_DIRECTIONS, (ROOK, QUEEN))):
        for d in directions:
            src = sq + d
            while on_board(src):
                p = board[src]
                if p is not None:
                    if p.color == by_color and p.kind in kinds:
                        return True
                    break
                src += d

    return False


def is_king_attacked(pos: "Position", color: str) -> bool:
    """Return True if the king of ``color`` is in check."""
    return is_attacked(pos, pos.king_square(color), opposite(color))
