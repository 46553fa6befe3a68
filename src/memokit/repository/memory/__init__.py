"""In-memory storage implementation."""

from memokit.repository.memory.storage import InMemoryStorage

__all__ = ["InMemoryStorage"]
