from __future__ import annotations

from typing import List


# 0x88 layout: sq = rank * 16 + file, a1 = 0x00, h8 = 0x77.
# Any index with a bit of 0x88 set lies off the board.
OFFBOARD_MASK = 0x88

FILES = "abcdefgh"
RANKS = "12345678"


def on_board(sq: int) -> bool:
    return sq >= 0 and (sq & OFFBOARD_MASK) == 0


def make_square(file: int, rank: int) -> int:
    return rank * 16 + file


def file_of(sq: int) -> int:
    return sq & 7


def rank_of(sq: int) -> int:
    return sq >> 4


def square_color(sq: int) -> int:
    """Return 0 for dark squares and 1 for light squares (a1 is dark)."""
    return (file_of(sq) + rank_of(sq)) & 1


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0x88 square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: 0x88 square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] not in FILES or s[1] not in RANKS:
        raise ValueError(f"invalid square: {s!r}")
    return make_square(FILES.index(s[0]), RANKS.index(s[1]))


def square_to_str(sq: int) -> str:
    """Convert a 0x88 square index into algebraic notation.

    Raises:
        ValueError: If ``sq`` is off the board.
    """
    if not on_board(sq):
        raise ValueError(f"invalid square index: {sq}")
    return FILES[file_of(sq)] + RANKS[rank_of(sq)]


# All 64 playable squares, a1..h1, a2..h2, ..., a8..h8
SQUARES: List[int] = [make_square(f, r) for r in range(8) for f in range(8)]
