# cric_api/errors.py
from __future__ import annotations


class ScoringError(Exception):
    """Base class for every failure raised by the scoring engine."""
    pass


class NotFoundError(ScoringError):
    """Raised when a match/player/team/tournament/ball does not exist."""
    pass


class ValidationFailure(ScoringError):
    """Raised for malformed input (self-play, bad delivery payload, too few qualified teams)."""
    pass


class StateConflict(ScoringError):
    """Raised when mutating a match that is already completed or cancelled."""
    pass
