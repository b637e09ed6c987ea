from __future__ import annotations

import pytest

from chessrules.engine.outcome import (
    GameEndReason,
    evaluate,
    is_insufficient_material,
    repetition_count,
)
from chessrules.engine.position import Position
from chessrules.engine.rules import try_move


def test_checkmate_is_decisive() -> None:
    p = Position.from_fen("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3")
    outcome = evaluate(p)
    assert outcome is not None
    assert outcome.reason is GameEndReason.CHECKMATE
    assert outcome.winner == "b"
    assert outcome.result() == "0-1"
    assert not outcome.is_draw


def test_stalemate_is_a_draw() -> None:
    p = Position.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    outcome = evaluate(p)
    assert outcome is not None
    assert outcome.reason is GameEndReason.STALEMATE
    assert outcome.is_draw
    assert outcome.result() == "1/2-1/2"


@pytest.mark.parametrize(
    "fen,expected",
    [
        ("4k3/8/8/8/8/8/8/4K3 w - - 0 1", True),
        ("4k3/8/8/8/8/8/8/1N2K3 w - - 0 1", True),
        ("4k3/8/8/8/8/8/8/2B1K3 w - - 0 1", True),
        ("1n2k3/8/8/8/8/8/8/4K3 w - - 0 1", True),
        # Bishops on same-colored squares (f8 and c1 are both dark)
        ("4kb2/8/8/8/8/8/8/2B1K3 w - - 0 1", True),
        # Bishops on opposite colors (c8 light, c1 dark)
        ("2b1k3/8/8/8/8/8/8/2B1K3 w - - 0 1", False),
        ("4k3/8/8/8/8/8/8/1NN1K3 w - - 0 1", False),
        ("4k3/8/8/8/8/8/8/1N2K1n1 w - - 0 1", False),
        ("4k3/8/8/8/8/8/4P3/4K3 w - - 0 1", False),
        ("4k3/8/8/8/8/8/8/R3K3 w - - 0 1", False),
    ],
)
def test_insufficient_material(fen: str, expected: bool) -> None:
    assert is_insufficient_material(Position.from_fen(fen)) is expected


def test_insufficient_material_outcome() -> None:
    outcome = evaluate(Position.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 0 1"))
    assert outcome is not None
    assert outcome.reason is GameEndReason.INSUFFICIENT_MATERIAL


def test_fifty_move_rule_at_one_hundred_halfmoves() -> None:
    assert evaluate(Position.from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 99 80")) is None
    outcome = evaluate(Position.from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 100 80"))
    assert outcome is not None
    assert outcome.reason is GameEndReason.FIFTY_MOVE_RULE


def test_checkmate_takes_precedence_over_fifty_move_rule() -> None:
    # Back-rank mate delivered on the hundredth halfmove
    p = Position.from_fen("6k1/5ppp/8/8/8/8/8/R5K1 w - - 99 80")
    result = try_move(p, "a1a8")
    assert result.terminal is GameEndReason.CHECKMATE


def test_threefold_repetition() -> None:
    p = Position.startpos()
    shuffle = ["g1f3", "g8f6", "f3g1", "f6g8"]
    for mv in shuffle:
        assert try_move(p, mv).outcome is None
    assert repetition_count(p) == 2
    for mv in shuffle[:-1]:
        assert try_move(p, mv).outcome is None
    result = try_move(p, shuffle[-1])
    assert result.terminal is GameEndReason.THREEFOLD_REPETITION
    assert repetition_count(p) == 3


def test_repetition_distinguishes_castling_rights() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    for mv in ("e1f1", "e8f8", "f1e1", "f8e8"):
        try_move(p, mv)
    # Same placement, but the rights are gone
    assert repetition_count(p) == 1


def test_ongoing_game_has_no_outcome() -> None:
    assert evaluate(Position.startpos()) is None
