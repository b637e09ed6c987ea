from __future__ import annotations

from typing import Dict, List, TYPE_CHECKING

from .piece import BLACK, PAWN, PIECE_KINDS, WHITE, Piece
from .square import SQUARES, file_of, on_board

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


MASK64 = 0xFFFFFFFFFFFFFFFF
CASTLING_ORDER = "KQkq"


class _SplitMix64:
    def __init__(self, seed: int) -> None:
        self.state = seed & MASK64

    def next(self) -> int:
        # Deterministic 64-bit SplitMix64
        self.state = (self.state + 0x9E3779B97F4A7C15) & MASK64
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & MASK64
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & MASK64
        z = z ^ (z >> 31)
        return z & MASK64


class Zobrist:
    """Zobrist hashing keys.

    Table layout:
    - piece_square[piece][sq]: one key per (Piece, 0x88 square) pair
    - side_to_move: toggle for black side to move
    - castling: one key per right letter in ``KQkq``
    - ep_file[8]: files a..h
    """

    piece_square: Dict[Piece, Dict[int, int]]
    side_to_move: int
    castling: Dict[str, int]
    ep_file: List[int]

    def __init__(self, seed: int = 0xC0FFEE_F00D_DEAD) -> None:
        prng = _SplitMix64(seed)
        self.piece_square = {}
        for color in (WHITE, BLACK):
            for kind in PIECE_KINDS:
                self.piece_square[Piece(kind, color)] = {sq: prng.next() for sq in SQUARES}
        self.side_to_move = prng.next()
        self.castling = {ch: prng.next() for ch in CASTLING_ORDER}
        self.ep_file = [prng.next() for _ in range(8)]

    def castling_key(self, rights: str) -> int:
        h = 0
        for ch in rights:
            h ^= self.castling[ch]
        return h


# Global deterministic table
ZOBRIST = Zobrist()


def compute_hash_from_scratch(pos: "Position") -> int:
    """Compute the 64-bit Zobrist hash of ``pos``.

    Must agree with the incremental value maintained by ``Position``.
    """
    h = 0
    for sq in SQUARES:
        piece = pos.board[sq]
        if piece is not None:
            h ^= ZOBRIST.piece_square[piece][sq]
    if pos.turn == BLACK:
        h ^= ZOBRIST.side_to_move
    h ^= ZOBRIST.castling_key(pos.castling)
    h ^= ep_key(pos)
    return h & MASK64


def ep_key(pos: "Position") -> int:
    """En passant file key, or 0 unless a pawn of the side to move stands beside
    the pawn that just advanced two squares.

    Positions whose recorded target cannot be used hash the same as if no
    target had been recorded.
    """
    ep = pos.ep_square
    if ep is None:
        return 0
    pushed = ep - 16 if pos.turn == WHITE else ep + 16
    capturer = Piece(PAWN, pos.turn)
    for sq in (pushed - 1, pushed + 1):
        if on_board(sq) and pos.board[sq] == capturer:
            return ZOBRIST.ep_file[file_of(ep)]
    return 0

