from __future__ import annotations

import re
from typing import List, Optional, TYPE_CHECKING

from .attacks import is_king_attacked
from .errors import IllegalMoveError
from .move import Move, MoveSpecial
from .movegen import generate_legal_moves, has_legal_moves
from .piece import PAWN
from .square import file_of, rank_of, square_to_str, str_to_square

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


SAN_RE = re.compile(r"^([NBRQK])?([a-h])?([1-8])?(x)?([a-h][1-8])(?:=?([NBRQ]))?$")
CASTLE_SAN = {
    "O-O": MoveSpecial.KINGSIDE_CASTLE,
    "0-0": MoveSpecial.KINGSIDE_CASTLE,
    "O-O-O": MoveSpecial.QUEENSIDE_CASTLE,
    "0-0-0": MoveSpecial.QUEENSIDE_CASTLE,
}


def move_to_san(pos: "Position", move: Move) -> str:
    """Render a legal move in Standard Algebraic Notation.

    Args:
        pos (Position): Position the move is played from (left unchanged).
        move (Move): A move from ``generate_legal_moves(pos)``.

    Returns:
        str: SAN such as ``"Nbd7"``, ``"exd6"``, ``"e8=Q+"`` or ``"O-O-O#"``.

    Raises:
        IllegalMoveError: If ``move`` is not legal in ``pos``.
    """
    legal = generate_legal_moves(pos)
    if move not in legal:
        raise IllegalMoveError(f"illegal move: {move.to_uci()}")
    return format_san(pos, move, legal)


def format_san(pos: "Position", move: Move, legal: List[Move]) -> str:
    """SAN for a move already known to be in ``legal`` (the caller's legal list)."""
    if move.special is MoveSpecial.KINGSIDE_CASTLE:
        san = "O-O"
    elif move.special is MoveSpecial.QUEENSIDE_CASTLE:
        san = "O-O-O"
    else:
        parts: List[str] = []
        if move.piece == PAWN:
            if move.is_capture:
                parts.append(square_to_str(move.from_sq)[0])
        else:
            parts.append(move.piece.upper())
            parts.append(_disambiguation(move, legal))
        if move.is_capture:
            parts.append("x")
        parts.append(square_to_str(move.to_sq))
        if move.promotion:
            parts.append("=" + move.promotion.upper())
        san = "".join(parts)

    snapshot = pos.make_move(move)
    try:
        if is_king_attacked(pos, pos.turn):
            san += "+" if has_legal_moves(pos) else "#"
    finally:
        pos.unmake_move(snapshot)
    return san


def _disambiguation(move: Move, legal: List[Move]) -> str:
    rivals = {
        m.from_sq
        for m in legal
        if m.piece == move.piece and m.to_sq == move.to_sq and m.from_sq != move.from_sq
    }
    if not rivals:
        return ""
    origin = square_to_str(move.from_sq)
    if all(file_of(sq) != file_of(move.from_sq) for sq in rivals):
        return origin[0]
    if all(rank_of(sq) != rank_of(move.from_sq) for sq in rivals):
        return origin[1]
    return origin


def san_to_move(pos: "Position", san: str) -> Optional[Move]:
    """Find the legal move written as ``san``.

    ``!``/``?`` annotations are ignored and zero-style castling (``0-0``) is
    accepted. A check mark may be omitted, but one that is given must be true:
    ``+`` needs the move to give check and ``#`` needs it to mate.
    Over-specified disambiguation (``Ngf3`` where ``Nf3`` suffices) still
    matches.

    Returns:
        Optional[Move]: The move, or ``None`` when the text is malformed or
        does not match exactly one legal move.
    """
    text = san.strip().rstrip("!?")
    mark = ""
    if text[-1:] in ("+", "#"):
        text, mark = text[:-1], text[-1]
    legal = generate_legal_moves(pos)

    if text in CASTLE_SAN:
        special = CASTLE_SAN[text]
        move = _unique([m for m in legal if m.special is special])
        return _check_mark(pos, move, legal, mark)

    match = SAN_RE.match(text)
    if match is None:
        return None
    letter, file_hint, rank_hint, capture, dest, promo = match.groups()
    kind = letter.lower() if letter else PAWN
    to_sq = str_to_square(dest)
    promotion = promo.lower() if promo else None

    candidates = [
        m
        for m in legal
        if m.piece == kind
        and m.to_sq == to_sq
        and m.promotion == promotion
        and m.is_capture == bool(capture)
        and not m.is_castle
        and (file_hint is None or square_to_str(m.from_sq)[0] == file_hint)
        and (rank_hint is None or square_to_str(m.from_sq)[1] == rank_hint)
    ]
    return _check_mark(pos, _unique(candidates), legal, mark)


def _check_mark(
    pos: "Position", move: Optional[Move], legal: List[Move], mark: str
) -> Optional[Move]:
    if move is None or not mark:
        return move
    actual = format_san(pos, move, legal)[-1]
    if mark == "#" and actual != "#":
        return None
    if mark == "+" and actual not in ("+", "#"):
        return None
    return move


def _unique(moves: List[Move]) -> Optional[Move]:
    return moves[0] if len(moves) == 1 else None
