from __future__ import annotations

import pytest

from chessrules.engine import (
    DecodeError,
    GameEndReason,
    IllegalMoveError,
    UciMove,
    export_position,
    legal_moves,
    load_position,
    new_game,
    try_move,
)
from chessrules.engine.position import STARTPOS_FEN
from chessrules.engine.square import str_to_square


def test_new_game_is_startpos() -> None:
    pos = new_game()
    assert export_position(pos) == STARTPOS_FEN
    assert len(legal_moves(pos)) == 20


def test_load_position_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        load_position("not a fen")


def test_try_move_accepts_uci_san_and_move_objects() -> None:
    pos = new_game()
    r1 = try_move(pos, "e2e4")
    assert r1.san == "e4"
    r2 = try_move(pos, "Nc6")
    assert r2.move.to_uci() == "b8c6"
    r3 = try_move(pos, UciMove(str_to_square("g1"), str_to_square("f3")))
    assert r3.san == "Nf3"
    knight = next(m for m in legal_moves(pos) if m.to_uci() == "g8f6")
    r4 = try_move(pos, knight)
    assert r4.san == "Nf6"
    assert not any(r.check for r in (r1, r2, r3, r4))
    assert export_position(pos) == (
        "r1bqkb1r/pppppppp/2n2n2/8/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 3 3"
    )


@pytest.mark.parametrize("candidate", ["e2e5", "e7e5", "Nf6", "zz", "a1a1", "e2e4q"])
def test_illegal_candidates_leave_position_untouched(candidate: str) -> None:
    pos = new_game()
    with pytest.raises(IllegalMoveError):
        try_move(pos, candidate)
    assert export_position(pos) == STARTPOS_FEN
    assert pos.history == []


def test_illegal_move_error_is_value_error() -> None:
    assert issubclass(IllegalMoveError, ValueError)


def test_moving_into_check_is_rejected() -> None:
    pos = load_position("4k3/8/8/8/8/8/3r4/4K3 w - - 0 1")
    with pytest.raises(IllegalMoveError):
        try_move(pos, "e1d1")
    assert try_move(pos, "e1d2").move.captured == "r"


def test_fools_mate_via_san() -> None:
    pos = new_game()
    for san in ("f3", "e5", "g4"):
        assert try_move(pos, san).outcome is None
    result = try_move(pos, "Qh4#")
    assert result.san == "Qh4#"
    assert result.check is True
    assert result.terminal is GameEndReason.CHECKMATE
    assert result.outcome is not None and result.outcome.winner == "b"
    assert legal_moves(pos) == []


def test_check_flag_without_mate() -> None:
    pos = load_position("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")
    result = try_move(pos, "Ra8")
    assert result.san == "Ra8+"
    assert result.check is True
    assert result.terminal is None
