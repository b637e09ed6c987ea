from __future__ import annotations

from typing import Dict, TYPE_CHECKING

from .movegen import generate_legal_moves

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


def perft(pos: "Position", depth: int) -> int:
    """Compute perft node count for ``pos`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    The position is walked with make/unmake and is unchanged on return.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    moves = generate_legal_moves(pos)
    if depth == 1:
        return len(moves)
    nodes = 0
    for move in moves:
        snapshot = pos.make_move(move)
        try:
            nodes += perft(pos, depth - 1)
        finally:
            pos.unmake_move(snapshot)
    return nodes


def perft_divide(pos: "Position", depth: int) -> Dict[str, int]:
    """Per-root-move node counts keyed by UCI, for diffing against other engines."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    counts: Dict[str, int] = {}
    for move in generate_legal_moves(pos):
        snapshot = pos.make_move(move)
        try:
            counts[move.to_uci()] = perft(pos, depth - 1)
        finally:
            pos.unmake_move(snapshot)
    return counts
