"""Request-scoped memoizing repository.

Loads each object at most once per repository lifetime, through handlers
registered per type.
"""

from memokit.repository.exceptions import (
    HandlerNotRegisteredError,
    InvalidIdentifierError,
    ReadHandlerNotRegisteredError,
    RepositoryError,
    WriteHandlerNotRegisteredError,
)
from memokit.repository.memory import InMemoryStorage
from memokit.repository.protocols import (
    HandlerKind,
    Identifier,
    ReadHandler,
    Storage,
    WriteHandler,
)
from memokit.repository.repository import Repository, normalize_identifier
from memokit.repository.sqlalchemy import SqlAlchemyHandlers

__all__ = [  # noqa: RUF022
    # Core
    "Repository",
    "normalize_identifier",
    # Contracts
    "HandlerKind",
    "Identifier",
    "ReadHandler",
    "Storage",
    "WriteHandler",
    # Exceptions
    "HandlerNotRegisteredError",
    "InvalidIdentifierError",
    "ReadHandlerNotRegisteredError",
    "RepositoryError",
    "WriteHandlerNotRegisteredError",
    # Implementations
    "InMemoryStorage",
    "SqlAlchemyHandlers",
]
