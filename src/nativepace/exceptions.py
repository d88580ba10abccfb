"""Exceptions raised by the learning engine."""


class NativePaceError(Exception):
    """Base class for all learning engine errors."""


class InvalidTransitionError(NativePaceError, ValueError):
    """An event is not accepted by the session's current step."""


class SessionNotCompleteError(NativePaceError, ValueError):
    """A summary was requested before the session reached its summary step."""


class EmptyReviewQueueError(NativePaceError, ValueError):
    """A review session was requested with nothing due."""


class PatternNotFoundError(NativePaceError, LookupError):
    """The referenced pattern does not exist."""


class ProgressConflictError(NativePaceError, ValueError):
    """Two writers raced to create the same progress record."""


class UserNotFoundError(NativePaceError, LookupError):
    """The referenced learner does not exist."""
