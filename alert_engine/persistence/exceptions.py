"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
catch every storage problem with one clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Database initialization failed, or the database is not initialized."""

    pass


class DataIntegrityError(PersistenceError):
    """A constraint was violated while writing."""

    pass


class AuditWriteFailure(PersistenceError):
    """An audit event could not be written.

    Raised by the SQL audit sink; callers log it and carry on, since auditing
    must never abort matching or dispatch.
    """

    def __init__(self, message: str, action: str = ""):
        super().__init__(message)
        self.action = action
