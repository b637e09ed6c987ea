from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..engine.piece import BLACK, WHITE, opposite


@dataclass(frozen=True)
class TimeControl:
    """Base time per side plus Fischer increment, both in milliseconds."""

    base_ms: int
    increment_ms: int = 0


class GameClock:
    """Two-sided chess clock for one game.

    The clock runs for the side to move from ``start`` onwards. ``punch`` is
    called after a move has been accepted: it debits the time used, adds the
    increment (except for the first move of the game) and hands the clock to
    the opponent. The rules engine knows nothing about time; this lives in the
    session layer only.
    """

    def __init__(
        self, time_control: TimeControl, now: Callable[[], float] = time.monotonic
    ) -> None:
        self.time_control = time_control
        self._now = now
        self._remaining: Dict[str, float] = {}
        self._active: Optional[str] = None
        self._last_tick = 0.0
        self._moves = 0
        self.reset()

    def reset(self) -> None:
        """Stop the clock and give both sides their full base time again."""
        base = float(self.time_control.base_ms)
        self._remaining = {WHITE: base, BLACK: base}
        self._active = None
        self._last_tick = 0.0
        self._moves = 0

    @property
    def running(self) -> bool:
        return self._active is not None

    @property
    def active_color(self) -> Optional[str]:
        return self._active

    def start(self, color: str) -> None:
        if self._active is None:
            self._active = color
            self._last_tick = self._now()

    def stop(self) -> None:
        if self._active is not None:
            self._remaining[self._active] -= self._elapsed_ms()
            self._active = None

    def remaining_ms(self, color: str) -> int:
        left = self._remaining[color]
        if self._active == color:
            left -= self._elapsed_ms()
        return max(0, int(left))

    def flag_fallen(self, color: str) -> bool:
        return self.remaining_ms(color) <= 0

    def punch(self, color: str) -> None:
        """Charge ``color`` for the move just accepted and start the opponent."""
        if self._active is None:
            self.start(color)
        now = self._now()
        self._remaining[color] -= (now - self._last_tick) * 1000.0
        if self._moves > 0:
            self._remaining[color] += self.time_control.increment_ms
        self._moves += 1
        self._active = opposite(color)
        self._last_tick = now

    def as_dict(self) -> Dict[str, int]:
        return {WHITE: self.remaining_ms(WHITE), BLACK: self.remaining_ms(BLACK)}

    def _elapsed_ms(self) -> float:
        return (self._now() - self._last_tick) * 1000.0
