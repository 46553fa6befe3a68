"""In-memory storage for memoized values."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from typing_extensions import override

from memokit.repository.protocols import Storage


class InMemoryStorage(Storage):
    """Stores memoized values in nested dictionaries.

    The layout is ``{entity_type: {key: value}}``. A partition is created the
    first time a value is written for its type; reading from a type that was
    never written behaves like reading from an empty partition.

    Nothing is ever evicted: the storage only grows, and entries change only
    when they are overwritten.

    Example:
        >>> storage = InMemoryStorage()
        >>> storage.set("user", "1", {"id": 1, "name": "Alice"})
        True
        >>> storage.contains("user", "1")
        True
        >>> dict(storage.partition("order"))
        {}
    """

    def __init__(self) -> None:
        """Initialize the storage with no partitions."""
        self._storage: dict[str, dict[str, Any]] = {}

    @property
    def types(self) -> list[str]:
        """Types that have at least one stored value, in first-write order."""
        return list(self._storage)

    @override
    def contains(self, entity_type: str, key: str) -> bool:
        partition = self._storage.get(entity_type)
        return partition is not None and key in partition

    @override
    def get(self, entity_type: str, key: str) -> Any:
        return self._storage[entity_type][key]

    @override
    def set(self, entity_type: str, key: str, value: Any) -> bool:
        """Store a value, creating the partition on first use.

        Returns:
            Always True; an in-memory write cannot fail.
        """
        self._storage.setdefault(entity_type, {})[key] = value
        return True

    @override
    def partition(self, entity_type: str) -> Mapping[str, Any]:
        """Get read-only access to a type's stored values.

        Note:
            This does not create the partition. Direct modification is not
            possible; go through set() instead.
        """
        return MappingProxyType(self._storage.get(entity_type, {}))
