"""Persistence layer for profiles, needs and in-app notifications.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - ProfileRepository: profile upserts and the matchable-profile query
    - NeedRepository: need lookups and approval
    - NotificationRepository: in-app inbox rows

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from engage.persistence import init_database, get_session, NeedRepository
    >>>
    >>> init_database("sqlite:///./data/engage.db")
    >>>
    >>> with get_session() as session:
    ...     need = NeedRepository(session).get_for_org("need-42", "org-1")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import NeedRepository, NotificationRepository, ProfileRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "ProfileRepository",
    "NeedRepository",
    "NotificationRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
