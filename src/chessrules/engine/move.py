from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .piece import PROMOTION_KINDS
from .square import square_to_str, str_to_square


class MoveSpecial(str, Enum):
    """Tag for moves whose side effects go beyond moving one piece."""

    KINGSIDE_CASTLE = "kingside_castle"
    QUEENSIDE_CASTLE = "queenside_castle"
    EN_PASSANT = "en_passant"


@dataclass(frozen=True)
class Move:
    """Fully described move as produced by the move generator.

    Attributes:
        from_sq (int): Origin square (0x88 index).
        to_sq (int): Destination square (0x88 index).
        piece (str): Kind of the moving piece.
        captured (Optional[str]): Kind of the captured piece, if any. For en
            passant this is the pawn taken beside the destination.
        promotion (Optional[str]): Promotion kind (``q r b n``), if any.
        special (Optional[MoveSpecial]): Castling or en passant tag.
    """

    from_sq: int
    to_sq: int
    piece: str
    captured: Optional[str] = None
    promotion: Optional[str] = None
    special: Optional[MoveSpecial] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def is_castle(self) -> bool:
        return self.special in (MoveSpecial.KINGSIDE_CASTLE, MoveSpecial.QUEENSIDE_CASTLE)

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + (self.promotion or "")

    def matches(self, request: "UciMove") -> bool:
        return (
            self.from_sq == request.from_sq
            and self.to_sq == request.to_sq
            and self.promotion == request.promotion
        )


@dataclass(frozen=True)
class UciMove:
    """Bare move request (origin, destination, promotion) awaiting validation."""

    from_sq: int
    to_sq: int
    promotion: Optional[str] = None


def parse_uci(uci: str) -> UciMove:
    """Parse a UCI move string.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        UciMove: Parsed request; legality is not checked here.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[str] = None
    if len(uci) == 5:
        promo = uci[4].lower()
        if promo not in PROMOTION_KINDS:
            raise ValueError(f"invalid promotion piece: {promo!r}")
    return UciMove(from_sq, to_sq, promo)
