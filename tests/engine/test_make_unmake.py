from __future__ import annotations

import pytest

from chessrules.engine.movegen import generate_legal_moves
from chessrules.engine.position import Position, STARTPOS_FEN
from chessrules.engine.square import str_to_square
from chessrules.engine.zobrist import compute_hash_from_scratch


POSITIONS = [
    STARTPOS_FEN,
    "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    "rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq f6 0 3",
    "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1",
]


@pytest.mark.parametrize("fen", POSITIONS)
def test_make_unmake_restores_position_for_every_legal_move(fen: str) -> None:
    p = Position.from_fen(fen)
    before = p.copy()
    for mv in generate_legal_moves(p):
        snap = p.make_move(mv)
        # Incremental hash must agree with a from-scratch recompute
        assert p.zobrist_hash == compute_hash_from_scratch(p)
        assert p.history[-1] is snap
        p.unmake_move(snap)
        assert p == before
        assert p.to_fen() == fen
        assert p.history == []


def test_unmake_returns_the_move_and_nests() -> None:
    p = Position.startpos()
    first = next(m for m in generate_legal_moves(p) if m.to_uci() == "e2e4")
    s1 = p.make_move(first)
    second = next(m for m in generate_legal_moves(p) if m.to_uci() == "e7e5")
    s2 = p.make_move(second)
    assert p.king_square("w") == str_to_square("e1")

    with pytest.raises(ValueError):
        p.unmake_move(s1)  # not the most recent snapshot

    assert p.unmake_move(s2) == second
    assert p.unmake_move() == first
    assert p == Position.startpos()


def test_unmake_with_empty_history_raises() -> None:
    with pytest.raises(ValueError):
        Position.startpos().unmake_move()


def test_make_move_rejects_wrong_side_piece() -> None:
    black_to_move = Position.from_fen("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR b KQkq - 0 1")
    black_move = generate_legal_moves(black_to_move)[0]
    p = Position.startpos()
    with pytest.raises(ValueError):
        p.make_move(black_move)


def test_king_square_cache_follows_king_and_castling() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    castle = next(m for m in generate_legal_moves(p) if m.to_uci() == "e1c1")
    p.make_move(castle)
    assert p.king_square("w") == str_to_square("c1")
    p.unmake_move()
    assert p.king_square("w") == str_to_square("e1")
