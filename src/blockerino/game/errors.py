from __future__ import annotations


class GameError(Exception):
    """Base class for recoverable engine failures."""


class InvalidPlacement(GameError):
    """Placement violates bounds or collides with occupied cells."""


class CorruptedSnapshot(GameError):
    """Persisted session data is malformed or does not match the mode."""


class PowerUpUnavailable(GameError):
    """No inventory left, power-ups disabled, or nothing to target."""


class BagStateInconsistent(GameError):
    """Restored bag cursor points past the end of its queue."""
