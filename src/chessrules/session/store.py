from __future__ import annotations

import threading
import uuid
from typing import Dict, List, Optional

from ..engine.game import Game
from .clock import GameClock, TimeControl
from .session import GameSession


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - List and delete sessions

    The store lock only guards the mapping; each session carries its own lock
    for moves, so different games never wait on each other.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def create(
        self, game: Optional[Game] = None, time_control: Optional[TimeControl] = None
    ) -> GameSession:
        """Create a new game session and return it."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        clock = GameClock(time_control) if time_control is not None else None
        session = GameSession(game_id=gid, game=game, clock=clock)
        with self._lock:
            self._sessions[gid] = session
        return session

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def list(self) -> List[GameSession]:
        with self._lock:
            return list(self._sessions.values())

    def delete(self, game_id: str) -> None:
        with self._lock:
            if game_id in self._sessions:
                del self._sessions[game_id]
