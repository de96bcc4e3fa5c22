"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers such as
the approval workflow can handle every store failure in one place.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialized or reached.

    Examples:
    - Empty or malformed database URL
    - SQLite file not writable
    - Postgres server unreachable
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an update targets a profile, need or notification that does not exist.

    Lookups that may legitimately miss return None instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a write violates a table constraint (duplicate id, missing column value)."""

    pass
