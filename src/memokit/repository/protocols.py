"""Handler contracts and storage interface."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any, Literal, Protocol, TypeAlias

Identifier: TypeAlias = str | int


class HandlerKind(StrEnum):
    """Kind of callback a type can be registered with."""

    READ = "read"
    WRITE = "write"


class ReadHandler(Protocol):
    """Resolve a batch of identifiers to the values that exist.

    Identifiers that cannot be resolved are simply left out of the result.
    Returning anything other than a non-empty mapping (``False``, ``None``,
    ``{}``) means nothing was found.
    """

    def __call__(self, identifiers: Sequence[Identifier], /) -> Mapping[Identifier, Any] | Any: ...


class WriteHandler(Protocol):
    """Persist one value and report where it was stored.

    Returns a single-entry mapping ``{identifier: persisted_value}`` on success,
    or ``False`` when the value could not be saved.
    """

    def __call__(self, value: Any, /) -> Mapping[Identifier, Any] | Literal[False]: ...


class Storage(ABC):
    """Abstract base class for the typed key-value store behind a Repository.

    Values are grouped in partitions, one per type. Keys are the normalized
    (string) form of identifiers.
    """

    @abstractmethod
    def contains(self, entity_type: str, key: str) -> bool:
        """Check whether a value is stored for the key.

        Args:
            entity_type: The partition to look in.
            key: The normalized identifier.

        Returns:
            True if the partition holds the key, False otherwise.
        """

    @abstractmethod
    def get(self, entity_type: str, key: str) -> Any:
        """Return the value stored for the key.

        Args:
            entity_type: The partition to look in.
            key: The normalized identifier.

        Raises:
            KeyError: If nothing is stored for the key.
        """

    @abstractmethod
    def set(self, entity_type: str, key: str, value: Any) -> bool:
        """Store a value, replacing any previous one.

        Args:
            entity_type: The partition to write to. Created if missing.
            key: The normalized identifier.
            value: The value to store.

        Returns:
            True if the value was stored, False if the backend failed.
        """

    @abstractmethod
    def partition(self, entity_type: str) -> Mapping[str, Any]:
        """Return a read-only view of every value stored for a type."""
