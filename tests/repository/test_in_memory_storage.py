"""Tests for InMemoryStorage.

This module tests the nested-dict storage behind a Repository:
- Lazy creation of partitions
- Overwriting entries
- Read-only partition views
"""

from dataclasses import dataclass

import pytest

from memokit.repository.memory import InMemoryStorage


@dataclass
class User:
    """Test value."""

    id: str
    name: str


class TestInMemoryStorage:
    def test_new_storage_is_empty(self) -> None:
        storage = InMemoryStorage()

        assert storage.types == []
        assert not storage.contains("user", "1")
        assert dict(storage.partition("user")) == {}

    def test_set_creates_partition(self) -> None:
        storage = InMemoryStorage()

        assert storage.set("user", "1", User(id="1", name="Alice"))

        # Verify directly in _storage
        assert storage._storage == {"user": {"1": User(id="1", name="Alice")}}  # noqa: SLF001
        assert storage.types == ["user"]

    def test_partition_does_not_create_type(self) -> None:
        storage = InMemoryStorage()
        storage.partition("user")
        assert "user" not in storage._storage  # noqa: SLF001

    def test_get_returns_stored_value(self) -> None:
        storage = InMemoryStorage()
        storage._storage["user"] = {"1": User(id="1", name="Alice")}  # noqa: SLF001

        assert storage.contains("user", "1")
        assert storage.get("user", "1").name == "Alice"

    def test_get_missing_raises_key_error(self) -> None:
        storage = InMemoryStorage()
        storage.set("user", "1", User(id="1", name="Alice"))

        with pytest.raises(KeyError):
            storage.get("user", "2")
        with pytest.raises(KeyError):
            storage.get("order", "1")

    def test_set_overwrites(self) -> None:
        storage = InMemoryStorage()
        storage.set("user", "1", User(id="1", name="Alice"))
        storage.set("user", "1", User(id="1", name="Bob"))

        assert storage.get("user", "1").name == "Bob"
        assert len(storage.partition("user")) == 1

    def test_none_is_stored(self) -> None:
        storage = InMemoryStorage()
        storage.set("user", "1", None)

        assert storage.contains("user", "1")
        assert storage.get("user", "1") is None

    def test_partitions_are_isolated(self) -> None:
        storage = InMemoryStorage()
        storage.set("user", "1", "a user")
        storage.set("order", "1", "an order")

        assert storage.get("user", "1") == "a user"
        assert storage.get("order", "1") == "an order"
        assert storage.types == ["user", "order"]

    def test_partition_is_read_only(self) -> None:
        storage = InMemoryStorage()
        storage.set("user", "1", "a user")

        partition = storage.partition("user")
        with pytest.raises(TypeError):
            partition["2"] = "another user"  # type: ignore[index]

    def test_partition_reflects_later_writes(self) -> None:
        storage = InMemoryStorage()
        storage.set("user", "1", "a user")
        partition = storage.partition("user")

        storage.set("user", "2", "another user")

        assert dict(partition) == {"1": "a user", "2": "another user"}
