"""Chess rules engine: positions, legal moves, game end, FEN and SAN."""

from .errors import DecodeError, IllegalMoveError
from .move import Move, MoveSpecial, UciMove, parse_uci
from .outcome import GameEndReason, Outcome, evaluate
from .piece import BLACK, WHITE, Piece
from .position import STARTPOS_FEN, Position, Snapshot
from .rules import (
    MoveResult,
    export_position,
    legal_moves,
    load_position,
    move_to_san,
    new_game,
    san_to_move,
    try_move,
)

__all__ = [
    "BLACK",
    "DecodeError",
    "GameEndReason",
    "IllegalMoveError",
    "Move",
    "MoveResult",
    "MoveSpecial",
    "Outcome",
    "Piece",
    "Position",
    "STARTPOS_FEN",
    "Snapshot",
    "UciMove",
    "WHITE",
    "evaluate",
    "export_position",
    "legal_moves",
    "load_position",
    "move_to_san",
    "new_game",
    "parse_uci",
    "san_to_move",
    "try_move",
]
