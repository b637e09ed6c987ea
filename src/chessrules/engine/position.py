from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .attacks import is_king_attacked
from .errors import DecodeError
from .move import Move, MoveSpecial
from .piece import BLACK, KING, PAWN, WHITE, Piece, opposite
from .square import (
    SQUARES,
    file_of,
    make_square,
    rank_of,
    square_to_str,
    str_to_square,
)
from .zobrist import CASTLING_ORDER, MASK64, ZOBRIST, compute_hash_from_scratch, ep_key


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Castling rights lost when a move starts or ends on the square.
CASTLING_REVOKE = {
    0x00: "Q",  # a1
    0x07: "K",  # h1
    0x04: "KQ",  # e1
    0x70: "q",  # a8
    0x77: "k",  # h8
    0x74: "kq",  # e8
}

# (king from, king to, rook from, rook to) keyed by (color, special)
CASTLING_SQUARES = {
    (WHITE, MoveSpecial.KINGSIDE_CASTLE): (0x04, 0x06, 0x07, 0x05),
    (WHITE, MoveSpecial.QUEENSIDE_CASTLE): (0x04, 0x02, 0x00, 0x03),
    (BLACK, MoveSpecial.KINGSIDE_CASTLE): (0x74, 0x76, 0x77, 0x75),
    (BLACK, MoveSpecial.QUEENSIDE_CASTLE): (0x74, 0x72, 0x70, 0x73),
}


def _normalize_castling(rights: str) -> str:
    return "".join(c for c in CASTLING_ORDER if c in rights)


@dataclass(frozen=True)
class Snapshot:
    """Complete state of a Position before ``move`` was applied."""

    move: Move
    board: Tuple[Optional[Piece], ...]
    turn: str
    castling: str
    ep_square: Optional[int]
    halfmove_clock: int
    fullmove_number: int
    king_squares: Tuple[Tuple[str, int], ...]
    zobrist_hash: int


@dataclass
class Position:
    """Board plus side-to-move, castling, en passant and move counters.

    Notes:
    - Squares use the 0x88 layout (a1=0x00 .. h8=0x77), see ``square.py``.
    - ``king_squares`` and ``zobrist_hash`` are caches kept in sync by
      ``put``/``remove``; never assign ``board`` entries directly.
    - ``history`` holds one Snapshot per applied move and takes no part in
      equality, so a FEN round trip compares field for field.
    """

    board: List[Optional[Piece]] = field(default_factory=lambda: [None] * 128)
    turn: str = WHITE
    castling: str = ""
    ep_square: Optional[int] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    king_squares: Dict[str, int] = field(default_factory=dict)
    zobrist_hash: int = 0
    history: List[Snapshot] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def startpos(cls) -> "Position":
        """Create a position set up with the standard starting layout."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """Create a position from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Position: Position initialized with state encoded in ``fen``.

        Raises:
            DecodeError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square or move counters, or describes an impossible position
                (king count, pawns on a back rank, side not to move in check).

        Notes:
            The castling field is normalized to ``KQkq`` order and the
            Zobrist hash is computed from scratch.
        """
        if not fen or not isinstance(fen, str):
            raise DecodeError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise DecodeError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        pos = cls()

        # Parse piece placement, rank 8 first
        ranks = placement.split("/")
        if len(ranks) != 8:
            raise DecodeError("FEN board must have 8 ranks")
        for rank_idx, rank in zip(range(7, -1, -1), ranks):
            file_idx = 0
            for ch in rank:
                if ch in "12345678":
                    file_idx += int(ch)
                else:
                    try:
                        piece = Piece.from_symbol(ch)
                    except ValueError as e:
                        raise DecodeError(f"invalid piece in FEN: {ch!r}") from e
                    if file_idx >= 8:
                        raise DecodeError("too many squares in FEN rank")
                    if piece.kind == KING and piece.color in pos.king_squares:
                        raise DecodeError("more than one king per side in FEN")
                    if piece.kind == PAWN and rank_idx in (0, 7):
                        raise DecodeError("pawn on first or last rank in FEN")
                    pos.put(make_square(file_idx, rank_idx), piece)
                    file_idx += 1
            if file_idx != 8:
                raise DecodeError("rank does not sum to 8 squares in FEN")
        if WHITE not in pos.king_squares or BLACK not in pos.king_squares:
            raise DecodeError("FEN must contain one king per side")

        # Side to move
        if stm not in (WHITE, BLACK):
            raise DecodeError("side to move must be 'w' or 'b'")
        pos.turn = stm

        # Castling rights
        if castling != "-":
            if any(ch not in CASTLING_ORDER for ch in castling) or len(set(castling)) != len(
                castling
            ):
                raise DecodeError("invalid castling rights")
            pos.castling = _normalize_castling(castling)

        # En passant square; a pawn of the side not to move just skipped it
        if ep != "-":
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise DecodeError("invalid en passant square") from e
            if rank_of(ep_square) != (5 if stm == WHITE else 2):
                raise DecodeError("invalid en passant square rank")
            pos.ep_square = ep_square

        # Halfmove / fullmove
        if not all(f.isascii() and f.isdigit() for f in (halfmove, fullmove)):
            raise DecodeError("invalid move counters in FEN")
        pos.halfmove_clock = int(halfmove)
        pos.fullmove_number = int(fullmove)
        if pos.fullmove_number <= 0:
            raise DecodeError("invalid move counters in FEN")

        if is_king_attacked(pos, opposite(pos.turn)):
            raise DecodeError("side not to move is in check")

        pos.zobrist_hash = compute_hash_from_scratch(pos)
        return pos

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):
            run = 0
            row = []
            for file_idx in range(8):
                piece = self.board[make_square(file_idx, rank_idx)]
                if piece is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(piece.symbol)
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)

        castling = self.castling if self.castling else "-"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return f"{placement} {self.turn} {castling} {ep} {self.halfmove_clock} {self.fullmove_number}"

    def copy(self) -> "Position":
        """Return an independent copy, history included."""
        return Position(
            board=list(self.board),
            turn=self.turn,
            castling=self.castling,
            ep_square=self.ep_square,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            king_squares=dict(self.king_squares),
            zobrist_hash=self.zobrist_hash,
            history=list(self.history),
        )

    # --- Board access ---
    def piece_at(self, sq: int) -> Optional[Piece]:
        return self.board[sq]

    def pieces(self, color: Optional[str] = None) -> Iterator[Tuple[int, Piece]]:
        """Yield ``(square, piece)`` for occupied squares, optionally by color."""
        for sq in SQUARES:
            piece = self.board[sq]
            if piece is not None and (color is None or piece.color == color):
                yield sq, piece

    def put(self, sq: int, piece: Piece) -> None:
        """Place ``piece`` on ``sq``, replacing whatever stood there."""
        if self.board[sq] is not None:
            self.remove(sq)
        self.board[sq] = piece
        self.zobrist_hash ^= ZOBRIST.piece_square[piece][sq]
        if piece.kind == KING:
            self.king_squares[piece.color] = sq

    def remove(self, sq: int) -> Optional[Piece]:
        """Clear ``sq`` and return the piece that stood there, if any."""
        piece = self.board[sq]
        if piece is None:
            return None
        self.board[sq] = None
        self.zobrist_hash ^= ZOBRIST.piece_square[piece][sq]
        if piece.kind == KING and self.king_squares.get(piece.color) == sq:
            del self.king_squares[piece.color]
        return piece

    def king_square(self, color: str) -> int:
        try:
            return self.king_squares[color]
        except KeyError:
            raise AssertionError(f"no {color} king on the board") from None

    # --- Move execution ---
    def make_move(self, move: Move) -> Snapshot:
        """Apply ``move`` in place and return the snapshot that undoes it.

        The move is trusted to be pseudo-legal (see ``movegen``); callers that
        accept outside input validate it first (``rules.try_move``).

        Raises:
            ValueError: If no piece of the side to move stands on ``from_sq``.
        """
        mover = self.board[move.from_sq]
        if mover is None or mover.color != self.turn:
            raise ValueError("no piece of the side to move on from_sq")
        color = self.turn

        snapshot = Snapshot(
            move=move,
            board=tuple(self.board),
            turn=self.turn,
            castling=self.castling,
            ep_square=self.ep_square,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            king_squares=tuple(self.king_squares.items()),
            zobrist_hash=self.zobrist_hash,
        )

        old_ep_key = ep_key(self)

        # Piece placement
        self.remove(move.from_sq)
        if move.special is MoveSpecial.EN_PASSANT:
            captured = self.remove(make_square(file_of(move.to_sq), rank_of(move.from_sq)))
        else:
            captured = self.remove(move.to_sq)
        placed = Piece(move.promotion, color) if move.promotion else mover
        self.put(move.to_sq, placed)
        if move.is_castle:
            _, _, rook_from, rook_to = CASTLING_SQUARES[(color, move.special)]
            rook = self.remove(rook_from)
            if rook is not None:
                self.put(rook_to, rook)

        h = self.zobrist_hash

        # Castling rights never come back once lost
        prev_castling = self.castling
        lost = CASTLING_REVOKE.get(move.from_sq, "") + CASTLING_REVOKE.get(move.to_sq, "")
        if lost:
            self.castling = "".join(c for c in self.castling if c not in lost)
        h ^= ZOBRIST.castling_key(prev_castling) ^ ZOBRIST.castling_key(self.castling)

        # En passant target lives for exactly one ply
        h ^= old_ep_key
        self.ep_square = None
        if mover.kind == PAWN and abs(move.to_sq - move.from_sq) == 32:
            self.ep_square = (move.from_sq + move.to_sq) // 2

        # Counters
        if mover.kind == PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if color == BLACK:
            self.fullmove_number += 1

        self.turn = opposite(color)
        h ^= ZOBRIST.side_to_move ^ ep_key(self)
        self.zobrist_hash = h & MASK64

        self.history.append(snapshot)
        return snapshot

    def unmake_move(self, snapshot: Optional[Snapshot] = None) -> Move:
        """Restore the state from before the most recent ``make_move``.

        Args:
            snapshot (Optional[Snapshot]): The snapshot returned by the
                matching ``make_move``. When given it must be the most recent
                one.

        Returns:
            Move: The move that was taken back.

        Raises:
            ValueError: If there is nothing to unmake or ``snapshot`` is not
                the most recent one.
        """
        if not self.history:
            raise ValueError("no move to unmake")
        if snapshot is not None and self.history[-1] is not snapshot:
            raise ValueError("snapshot is not the most recent move")
        last = self.history.pop()
        self.board = list(last.board)
        self.turn = last.turn
        self.castling = last.castling
        self.ep_square = last.ep_square
        self.halfmove_clock = last.halfmove_clock
        self.fullmove_number = last.fullmove_number
        self.king_squares = dict(last.king_squares)
        self.zobrist_hash = last.zobrist_hash
        return last.move

    def ascii(self) -> str:
        """Render the board as text, rank 8 at the top."""
        lines = ["  +------------------------+"]
        for rank_idx in range(7, -1, -1):
            row = []
            for file_idx in range(8):
                piece = self.board[make_square(file_idx, rank_idx)]
                row.append(piece.symbol if piece is not None else ".")
            lines.append(f"{rank_idx + 1} | " + "  ".join(row) + " |")
        lines.append("  +------------------------+")
        lines.append("    a  b  c  d  e  f  g  h")
        return "\n".join(lines)
