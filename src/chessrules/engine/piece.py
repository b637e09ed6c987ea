from __future__ import annotations

from dataclasses import dataclass


WHITE = "w"
BLACK = "b"
COLORS = (WHITE, BLACK)

PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = "p", "n", "b", "r", "q", "k"
PIECE_KINDS = (PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING)
PROMOTION_KINDS = (QUEEN, ROOK, BISHOP, KNIGHT)


def opposite(color: str) -> str:
    return BLACK if color == WHITE else WHITE


@dataclass(frozen=True)
class Piece:
    """Immutable piece value.

    Attributes:
        kind (str): One of ``p n b r q k``.
        color (str): ``"w"`` or ``"b"``.
    """

    kind: str
    color: str

    @property
    def symbol(self) -> str:
        """FEN letter: upper case for white, lower case for black."""
        return self.kind.upper() if self.color == WHITE else self.kind

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """Parse a FEN piece letter.

        Raises:
            ValueError: If ``ch`` is not one of ``PNBRQKpnbrqk``.
        """
        kind = ch.lower()
        if len(ch) != 1 or kind not in PIECE_KINDS:
            raise ValueError(f"invalid piece: {ch!r}")
        return cls(kind, WHITE if ch.isupper() else BLACK)
