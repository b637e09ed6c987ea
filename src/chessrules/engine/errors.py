from __future__ import annotations


class DecodeError(ValueError):
    """Malformed FEN input. No position is created or mutated."""


class IllegalMoveError(ValueError):
    """A proposed move is not legal in the current position."""
