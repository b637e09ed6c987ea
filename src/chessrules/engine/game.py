from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .attacks import is_king_attacked
from .errors import IllegalMoveError
from .move import Move
from .movegen import generate_legal_moves
from .outcome import GameEndReason, Outcome, evaluate
from .piece import COLORS, opposite
from .position import Position
from .rules import Candidate, MoveResult, try_move


logger = logging.getLogger(__name__)


@dataclass
class Game:
    """Game wrapper around a position with helper operations.

    Responsibility: own one Position, accept moves through ``rules.try_move``,
    keep the move log, undo, and the final result (including results decided
    outside the rules such as resignation or time forfeit).
    """

    position: Position
    moves: List[MoveResult] = field(default_factory=list)
    outcome: Optional[Outcome] = None

    @classmethod
    def new(cls) -> "Game":
        return cls(position=Position.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        game = cls(position=Position.from_fen(fen))
        game.outcome = evaluate(game.position)
        return game

    def to_fen(self) -> str:
        return self.position.to_fen()

    @property
    def turn(self) -> str:
        return self.position.turn

    @property
    def is_over(self) -> bool:
        return self.outcome is not None

    def legal_moves(self) -> List[Move]:
        if self.is_over:
            return []
        return generate_legal_moves(self.position)

    def apply(self, candidate: Candidate) -> MoveResult:
        """Validate and play ``candidate``; raise ``IllegalMoveError`` otherwise."""
        if self.is_over:
            raise IllegalMoveError("game is over")
        result = try_move(self.position, candidate)
        self.moves.append(result)
        self.outcome = result.outcome
        logger.debug("move %s (%s)", result.san, result.move.to_uci())
        if self.outcome is not None:
            logger.info("game over: %s %s", self.outcome.reason.value, self.outcome.result())
        return result

    def undo(self) -> MoveResult:
        if not self.moves:
            raise ValueError("no moves to undo")
        last = self.moves.pop()
        self.position.unmake_move()
        self.outcome = evaluate(self.position)
        return last

    def resign(self, color: str) -> Outcome:
        if color not in COLORS:
            raise ValueError("color must be 'w' or 'b'")
        if self.is_over:
            raise IllegalMoveError("game is over")
        self.outcome = Outcome(GameEndReason.RESIGNATION, winner=opposite(color))
        return self.outcome

    def forfeit_on_time(self, color: str) -> Outcome:
        self.outcome = Outcome(GameEndReason.TIME_FORFEIT, winner=opposite(color))
        return self.outcome

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return is_king_attacked(self.position, self.position.turn)

    def checkmate(self) -> bool:
        return self.outcome is not None and self.outcome.reason is GameEndReason.CHECKMATE

    def stalemate(self) -> bool:
        return self.outcome is not None and self.outcome.reason is GameEndReason.STALEMATE

    def is_draw(self) -> bool:
        return self.outcome is not None and self.outcome.is_draw

    def move_history_uci(self) -> List[str]:
        return [r.move.to_uci() for r in self.moves]

    def move_history_san(self) -> List[str]:
        return [r.san for r in self.moves]
