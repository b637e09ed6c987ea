from __future__ import annotations

import pytest

from chessrules.engine.errors import IllegalMoveError
from chessrules.engine.game import Game
from chessrules.engine.outcome import GameEndReason
from chessrules.session.clock import GameClock, TimeControl
from chessrules.session.session import (
    GameOverError,
    GameSession,
    NotYourTurnError,
    SeatTakenError,
    UnknownPlayerError,
)
from chessrules.session.store import InMemorySessionStore


class FakeTime:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def _session(clock: GameClock | None = None) -> GameSession:
    return GameSession(game_id="g1", game=Game.new(), clock=clock)


def test_join_fills_free_seats_in_order() -> None:
    s = _session()
    alice = s.join("alice")
    bob = s.join("bob")
    assert (alice.color, bob.color) == ("w", "b")
    assert alice.player_id != bob.player_id
    assert s.seated
    with pytest.raises(SeatTakenError):
        s.join("carol")


def test_join_requested_color() -> None:
    s = _session()
    assert s.join("bob", "b").color == "b"
    with pytest.raises(SeatTakenError):
        s.join("carol", "b")
    with pytest.raises(ValueError):
        s.join("dave", "x")
    assert s.join("alice").color == "w"


def test_unseated_game_accepts_anonymous_moves() -> None:
    s = _session()
    assert s.move("e4").san == "e4"
    assert s.move("e5").san == "e5"


def test_turn_enforcement_once_seated() -> None:
    s = _session()
    white = s.join("alice")
    black = s.join("bob")
    with pytest.raises(UnknownPlayerError):
        s.move("e4")
    with pytest.raises(NotYourTurnError):
        s.move("e4", player_id=black.player_id)
    with pytest.raises(UnknownPlayerError):
        s.move("e4", player_id="nobody")
    s.move("e4", player_id=white.player_id)
    with pytest.raises(NotYourTurnError):
        s.move("d4", player_id=white.player_id)
    s.move("c5", player_id=black.player_id)
    assert s.game.move_history_uci() == ["e2e4", "c7c5"]


def test_illegal_move_propagates_engine_error() -> None:
    s = _session()
    with pytest.raises(IllegalMoveError):
        s.move("e2e5")
    assert s.game.moves == []


def test_resign_by_player_and_moves_after() -> None:
    s = _session()
    s.join("alice")
    black = s.join("bob")
    outcome = s.resign(player_id=black.player_id)
    assert outcome.reason is GameEndReason.RESIGNATION
    assert outcome.winner == "w"
    with pytest.raises(GameOverError):
        s.resign(color="w")
    with pytest.raises(GameOverError):
        s.move("e4")


def test_resign_needs_a_side() -> None:
    with pytest.raises(ValueError):
        _session().resign()


def test_clock_starts_when_seated_and_forfeits_on_time() -> None:
    now = FakeTime()
    s = _session(GameClock(TimeControl(1000), now=now))
    white = s.join("alice")
    assert s.clock is not None and not s.clock.running
    black = s.join("bob")
    assert s.clock.running and s.clock.active_color == "w"

    now.t = 0.5
    s.move("e4", player_id=white.player_id)
    assert s.clock.remaining_ms("w") == 500

    now.t = 2.0
    with pytest.raises(GameOverError):
        s.move("e5", player_id=black.player_id)
    assert s.game.outcome is not None
    assert s.game.outcome.reason is GameEndReason.TIME_FORFEIT
    assert s.game.outcome.result() == "1-0"
    assert not s.clock.running


def test_clock_stops_on_checkmate() -> None:
    now = FakeTime()
    s = _session(GameClock(TimeControl(60000), now=now))
    for mv in ("f3", "e5", "g4", "Qh4#"):
        now.t += 1.0
        s.move(mv)
    assert s.game.checkmate()
    assert s.clock is not None and not s.clock.running


def test_undo_and_reset() -> None:
    s = _session()
    s.move("e4")
    assert s.undo().san == "e4"
    s.reset(Game.from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 0 1"))
    assert s.game.to_fen() == "4k3/8/8/8/8/8/8/R3K3 w - - 0 1"


def test_store_create_get_list_delete() -> None:
    store = InMemorySessionStore()
    a = store.create()
    b = store.create(Game.new(), time_control=TimeControl(60000, 0))
    assert a.game_id != b.game_id
    assert a.clock is None and b.clock is not None
    assert store.get(a.game_id) is a
    assert {s.game_id for s in store.list()} == {a.game_id, b.game_id}
    store.delete(a.game_id)
    assert store.get(a.game_id) is None
    store.delete("missing")
    assert len(store.list()) == 1


def _seated(clock: GameClock | None = None):
    s = _session(clock)
    white = s.join("alice")
    black = s.join("bob")
    return s, white, black


def test_undo_hands_the_clock_back_to_the_mover() -> None:
    now = FakeTime()
    s, white, _ = _seated(GameClock(TimeControl(60000), now=now))
    now.t = 1.0
    s.move("e4", player_id=white.player_id)
    assert s.clock is not None and s.clock.active_color == "b"

    now.t = 11.0
    s.undo(player_id=white.player_id)
    assert s.game.turn == "w"
    assert s.clock.active_color == "w"
    # Black's ten seconds are charged to black, white resumes from 59s
    assert s.clock.as_dict() == {"w": 59000, "b": 50000}
    now.t = 12.0
    assert s.clock.remaining_ms("w") == 58000


def test_reset_restarts_the_clock_for_the_new_position() -> None:
    now = FakeTime()
    s, white, _ = _seated(GameClock(TimeControl(60000), now=now))
    now.t = 5.0
    s.move("e4", player_id=white.player_id)
    now.t = 9.0
    s.reset(Game.from_fen("4k3/8/8/8/8/8/8/R3K3 b - - 0 1"))
    assert s.clock is not None
    assert s.clock.active_color == "b"
    assert s.clock.as_dict() == {"w": 60000, "b": 60000}


def test_reset_of_unseated_game_leaves_clock_idle() -> None:
    now = FakeTime()
    s = _session(GameClock(TimeControl(60000), now=now))
    s.move("e4")
    s.reset(Game.new())
    assert s.clock is not None and not s.clock.running


def test_undo_is_reserved_for_the_last_mover_once_seated() -> None:
    s, white, black = _seated()
    s.move("e4", player_id=white.player_id)
    with pytest.raises(UnknownPlayerError):
        s.undo()
    with pytest.raises(NotYourTurnError):
        s.undo(player_id=black.player_id)
    assert s.game.move_history_uci() == ["e2e4"]
    s.undo(player_id=white.player_id)
    assert s.game.moves == []


def test_undo_cannot_reopen_resignation() -> None:
    s = _session()
    s.move("e4")
    s.resign(color="b")
    with pytest.raises(GameOverError):
        s.undo()
    assert s.game.move_history_uci() == ["e2e4"]


def test_flag_is_declared_without_the_flagged_player_acting() -> None:
    now = FakeTime()
    s, _, black = _seated(GameClock(TimeControl(1000), now=now))
    now.t = 100.0
    outcome = s.check_flag()
    assert outcome is not None
    assert outcome.reason is GameEndReason.TIME_FORFEIT
    assert outcome.winner == "b"
    assert s.clock is not None and not s.clock.running
    # Already decided: a second check changes nothing
    assert s.check_flag() is None
    with pytest.raises(GameOverError):
        s.move("e5", player_id=black.player_id)


def test_opponent_request_declares_the_forfeit() -> None:
    now = FakeTime()
    s, _, black = _seated(GameClock(TimeControl(1000), now=now))
    now.t = 5.0
    with pytest.raises(GameOverError):
        s.move("e5", player_id=black.player_id)
    assert s.game.outcome is not None
    assert s.game.outcome.result() == "0-1"


def test_resign_after_flag_fell_is_refused() -> None:
    now = FakeTime()
    s, white, _ = _seated(GameClock(TimeControl(1000), now=now))
    now.t = 2.0
    with pytest.raises(GameOverError):
        s.resign(player_id=white.player_id)
    assert s.game.outcome is not None
    assert s.game.outcome.reason is GameEndReason.TIME_FORFEIT
