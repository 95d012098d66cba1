"""Exceptions raised by workflow operations."""

from typing import Optional


class ValidationError(ValueError):
    """A required field is missing or invalid; nothing was written."""


class NotFoundError(Exception):
    """An operation was performed on/for a paper that does not exist."""


class PermissionDenied(Exception):
    """The actor is not allowed to operate on this paper."""


class InvalidTransitionError(ValueError):
    """
    Raised when an action is not allowed for the current status and role.

    Carries the offending status and role so that the caller can work out
    what went wrong.
    """

    def __init__(self, status: Optional[str], role: Optional[str],
                 message: str = '') -> None:
        """Build a message from the status/role pair."""
        self.status = status
        self.role = role
        self.message = message or 'Invalid approval workflow'
        r = f"{self.message} (status: {status}, role: {role})"
        super(InvalidTransitionError, self).__init__(r)


class ConcurrentTransitionError(InvalidTransitionError):
    """The paper changed status between read and write."""


class PersistenceFailure(RuntimeError):
    """Failed to persist workflow state."""
