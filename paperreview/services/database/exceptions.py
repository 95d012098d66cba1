"""Exceptions raised by :mod:`paperreview.services.database`."""


class DatabaseBaseException(RuntimeError):
    """Base for paper store exceptions."""


class NoSuchPaper(DatabaseBaseException):
    """A request was made for a paper that does not exist."""


class NoSuchNotification(DatabaseBaseException):
    """A request was made for a notification that does not exist."""


class TransactionFailed(DatabaseBaseException):
    """Raised when there was a problem committing changes to the database."""


class Unavailable(DatabaseBaseException):
    """The paper store is not available."""


class ConsistencyError(DatabaseBaseException):
    """Attempted to persist stale state; the row changed under us."""
