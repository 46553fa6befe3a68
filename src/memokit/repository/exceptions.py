"""Repository-specific exceptions."""

from memokit.repository.protocols import HandlerKind


class RepositoryError(Exception):
    """Base exception for all repository-related errors."""


class HandlerNotRegisteredError(RepositoryError, LookupError):
    """Raised when an operation needs a handler that was never registered for a type."""

    def __init__(self, entity_type: str, kind: HandlerKind) -> None:
        self.entity_type = entity_type
        self.kind = kind
        super().__init__(f"There is no repository {kind} handler for `{entity_type}`")


class ReadHandlerNotRegisteredError(HandlerNotRegisteredError):
    """Raised when a lookup misses the cache and no read handler exists."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(entity_type, HandlerKind.READ)


class WriteHandlerNotRegisteredError(HandlerNotRegisteredError):
    """Raised when saving a value for a type without a write handler."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(entity_type, HandlerKind.WRITE)


class InvalidIdentifierError(RepositoryError, ValueError):
    """Raised when a write handler reports a null or empty identifier."""

    def __init__(self, entity_type: str, identifier: object) -> None:
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(
            f"Write handler for `{entity_type}` returned an invalid identifier: {identifier!r}"
        )
