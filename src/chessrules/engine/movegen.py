from __future__ import annotations

from typing import List, TYPE_CHECKING

from .attacks import (
    BISHOP_DIRECTIONS,
    KING_OFFSETS,
    KNIGHT_OFFSETS,
    PAWN_CAPTURE_OFFSETS,
    QUEEN_DIRECTIONS,
    ROOK_DIRECTIONS,
    is_attacked,
    is_king_attacked,
)
from .move import Move, MoveSpecial
from .piece import (
    BISHOP,
    KING,
    KNIGHT,
    PAWN,
    PROMOTION_KINDS,
    QUEEN,
    ROOK,
    WHITE,
    Piece,
    opposite,
)
from .square import file_of, make_square, on_board, rank_of

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


SLIDER_DIRECTIONS = {BISHOP: BISHOP_DIRECTIONS, ROOK: ROOK_DIRECTIONS, QUEEN: QUEEN_DIRECTIONS}

# right letter -> (special, king home, squares that must be empty,
#                  squares the king crosses or lands on, rook home)
CASTLING_RULES = {
    "K": (MoveSpecial.KINGSIDE_CASTLE, 0x04, (0x05, 0x06), (0x05, 0x06), 0x07),
    "Q": (MoveSpecial.QUEENSIDE_CASTLE, 0x04, (0x03, 0x02, 0x01), (0x03, 0x02), 0x00),
    "k": (MoveSpecial.KINGSIDE_CASTLE, 0x74, (0x75, 0x76), (0x75, 0x76), 0x77),
    "q": (MoveSpecial.QUEENSIDE_CASTLE, 0x74, (0x73, 0x72, 0x71), (0x73, 0x72), 0x70),
}


def generate_pseudo_moves(pos: "Position") -> List[Move]:
    """Return every geometrically valid move for the side to move.

    Moves that leave the mover's own king in check are included; castling is
    the exception and is only produced when the king does not start in,
    pass through or land on an attacked square.
    """
    moves: List[Move] = []
    us = pos.turn
    for sq, piece in pos.pieces(us):
        if piece.kind == PAWN:
            _pawn_moves(pos, sq, moves)
        elif piece.kind == KNIGHT:
            _step_moves(pos, sq, piece, KNIGHT_OFFSETS, moves)
        elif piece.kind == KING:
            _step_moves(pos, sq, piece, KING_OFFSETS, moves)
            _castling_moves(pos, sq, moves)
        else:
            _slider_moves(pos, sq, piece, SLIDER_DIRECTIONS[piece.kind], moves)
    return moves


def generate_legal_moves(pos: "Position") -> List[Move]:
    """Return the legal moves for the side to move.

    Each pseudo-legal move is made, the mover's king is tested, and the move
    is unmade. This is the only pin and check-exposure detection there is.
    """
    us = pos.turn
    legal: List[Move] = []
    for move in generate_pseudo_moves(pos):
        snapshot = pos.make_move(move)
        try:
            if not is_king_attacked(pos, us):
                legal.append(move)
        finally:
            pos.unmake_move(snapshot)
    return legal


def has_legal_moves(pos: "Position") -> bool:
    """Return True if the side to move has at least one legal move."""
    us = pos.turn
    for move in generate_pseudo_moves(pos):
        snapshot = pos.make_move(move)
        try:
            if not is_king_attacked(pos, us):
                return True
        finally:
            pos.unmake_move(snapshot)
    return False


def _pawn_moves(pos: "Position", sq: int, moves: List[Move]) -> None:
    board = pos.board
    us = pos.turn
    forward = 16 if us == WHITE else -16
    start_rank = 1 if us == WHITE else 6
    last_rank = 7 if us == WHITE else 0

    def add(to_sq: int, captured=None, special=None) -> None:
        if rank_of(to_sq) == last_rank:
            for promo in PROMOTION_KINDS:
                moves.append(Move(sq, to_sq, PAWN, captured, promo, special))
        else:
            moves.append(Move(sq, to_sq, PAWN, captured, None, special))

    # Pushes
    one = sq + forward
    if on_board(one) and board[one] is None:
        add(one)
        two = one + forward
        if rank_of(sq) == start_rank and board[two] is None:
            add(two)

    # Captures, including en passant onto the skipped square
    for off in PAWN_CAPTURE_OFFSETS[us]:
        to_sq = sq + off
        if not on_board(to_sq):
            continue
        target = board[to_sq]
        if target is not None:
            if target.color != us:
                add(to_sq, target.kind)
        elif to_sq == pos.ep_square and board[make_square(file_of(to_sq), rank_of(sq))] == Piece(
            PAWN, opposite(us)
        ):
            add(to_sq, PAWN, MoveSpecial.EN_PASSANT)


def _step_moves(pos: "Position", sq: int, piece: Piece, offsets, moves: List[Move]) -> None:
    board = pos.board
    for off in offsets:
        to_sq = sq + off
        if not on_board(to_sq):
            continue
        target = board[to_sq]
        if target is None:
            moves.append(Move(sq, to_sq, piece.kind))
        elif target.color != piece.color:
            moves.append(Move(sq, to_sq, piece.kind, target.kind))


def _slider_moves(pos: "Position", sq: int, piece: Piece, directions, moves: List[Move]) -> None:
    board = pos.board
    for d in directions:
        to_sq = sq + d
        while on_board(to_sq):
            target = board[to_sq]
            if target is None:
                moves.append(Move(sq, to_sq, piece.kind))
            else:
                if target.color != piece.color:
                    moves.append(Move(sq, to_sq, piece.kind, target.kind))
                break
            to_sq += d


def _castling_moves(pos: "Position", sq: int, moves: List[Move]) -> None:
    us = pos.turn
    them = opposite(us)
    board = pos.board
    own_rights = [ch for ch in pos.castling if ch in ("KQ" if us == WHITE else "kq")]
    if not own_rights or is_attacked(pos, sq, them):
        return
    for ch in own_rights:
        special, king_home, empty, crossed, rook_home = CASTLING_RULES[ch]
        if sq != king_home or board[rook_home] != Piece(ROOK, us):
            continue
        if any(board[s] is not None for s in empty):
            continue
        if any(is_attacked(pos, s, them) for s in crossed):
            continue
        moves.append(Move(sq, crossed[-1], KING, None, None, special))
