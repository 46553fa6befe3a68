"""Memoizing repository fronting pluggable read/write handlers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Final, Literal

from memokit.repository.exceptions import (
    InvalidIdentifierError,
    ReadHandlerNotRegisteredError,
    WriteHandlerNotRegisteredError,
)
from memokit.repository.memory.storage import InMemoryStorage
from memokit.repository.protocols import (
    HandlerKind,
    Identifier,
    ReadHandler,
    Storage,
    WriteHandler,
)

logger = logging.getLogger(__name__)


def normalize_identifier(identifier: Identifier) -> str:
    """Return the storage key for an identifier.

    Integers and strings share one key space: ``1`` and ``"1"`` name the same
    cached object.
    """
    return str(identifier)


class Repository:
    """Loads data only once during a request or process.

    Each type is registered with a read handler (and optionally a write
    handler). Lookups are served from storage when possible; misses are
    resolved by the read handler and cached for the lifetime of the
    repository. Saved values are cached as soon as the write handler reports
    success.

    Attributes:
        HANDLE_READ: Callback kind for read handlers.
        HANDLE_WRITE: Callback kind for write handlers.
        storage: The Storage holding the memoized values.

    Example:
        >>> repo = Repository()
        >>> repo.register("user", lambda ids: {i: f"User {i}" for i in ids})
        >>> repo.get("user", [3, 1])
        {3: 'User 3', 1: 'User 1'}
        >>> repo.get_one("user", 2)
        'User 2'

    Note:
        A repository is meant for one execution context (one request, one
        worker task). Pass thread_safe=True when several threads share an
        instance; every operation then runs under a single re-entrant lock,
        handler calls included.
    """

    HANDLE_READ: Final = HandlerKind.READ
    HANDLE_WRITE: Final = HandlerKind.WRITE

    def __init__(self, storage: Storage | None = None, *, thread_safe: bool = False) -> None:
        """Initialize an empty repository.

        Args:
            storage: Where memoized values are kept. A new InMemoryStorage is
                     created when None.
            thread_safe: Whether to serialize operations with a lock.
        """
        self.storage = storage if storage is not None else InMemoryStorage()
        self._read_handlers: dict[str, ReadHandler] = {}
        self._write_handlers: dict[str, WriteHandler] = {}
        self._lock: AbstractContextManager[Any] = threading.RLock() if thread_safe else nullcontext()

    def register(
        self,
        entity_type: str,
        read_handler: ReadHandler,
        write_handler: WriteHandler | None = None,
    ) -> None:
        """Register the handlers used to load and persist a type.

        Registering a type again replaces both of its handlers. Passing no
        write handler leaves the type read-only, even if it had one before.

        Args:
            entity_type: Name of the type, also the cache partition.
            read_handler: Called with the list of requested identifiers. Must
                          return a mapping of identifier to value for those
                          that exist.
            write_handler: Called with a single value to persist. Must return
                           False on failure, or a one-entry mapping of
                           identifier to persisted value on success.

        Raises:
            TypeError: If a handler is not callable.
        """
        if not callable(read_handler):
            msg = f"read handler for `{entity_type}` must be callable"
            raise TypeError(msg)
        if write_handler is not None and not callable(write_handler):
            msg = f"write handler for `{entity_type}` must be callable"
            raise TypeError(msg)

        with self._lock:
            self._read_handlers[entity_type] = read_handler
            if write_handler is None:
                self._write_handlers.pop(entity_type, None)
            else:
                self._write_handlers[entity_type] = write_handler
        logger.debug(
            "Registered `%s` handlers (write=%s)", entity_type, write_handler is not None
        )

    def responds_for_type(
        self, entity_type: str, callback_kind: HandlerKind | str = HandlerKind.READ
    ) -> bool:
        """Check whether a handler of the given kind is registered for a type.

        Args:
            entity_type: A type as used in register().
            callback_kind: HANDLE_READ or HANDLE_WRITE (or their string values).

        Returns:
            True if such a handler is registered. Unknown kinds return False.
        """
        with self._lock:
            if callback_kind == HandlerKind.READ:
                return entity_type in self._read_handlers
            if callback_kind == HandlerKind.WRITE:
                return entity_type in self._write_handlers
        return False

    def get(
        self,
        entity_type: str,
        identifiers: Sequence[Identifier],
        *,
        use_cache: bool = True,
    ) -> dict[Identifier, Any]:
        """Load the values for a batch of identifiers.

        When any identifier is missing from storage, the read handler is called
        once with the complete list of identifiers (not only the missing ones)
        and everything it returns is cached, replacing older entries.

        The result is keyed by the identifiers as given and follows their
        order. Identifiers without a value are left out. Identifiers naming the
        same cached object, such as ``1`` and ``"1"``, collapse into a single
        entry keyed by the first form given.

        Args:
            entity_type: Name of a registered type.
            identifiers: Identifiers to load.
            use_cache: When False, every identifier counts as missing so the
                       read handler is called and its result refreshes the
                       cache.

        Returns:
            A mapping of identifier to value, possibly empty.

        Raises:
            ReadHandlerNotRegisteredError: If something has to be loaded and
                no read handler is registered for the type.
        """
        identifiers = list(identifiers)
        with self._lock:
            if use_cache:
                fetch = [
                    identifier
                    for identifier in identifiers
                    if not self.storage.contains(entity_type, normalize_identifier(identifier))
                ]
            else:
                fetch = identifiers

            if fetch:
                read_handler = self._read_handlers.get(entity_type)
                if read_handler is None:
                    raise ReadHandlerNotRegisteredError(entity_type)
                logger.debug(
                    "Loading `%s`: %d of %d identifiers not cached",
                    entity_type,
                    len(fetch),
                    len(identifiers),
                )
                data = read_handler(identifiers)
                if isinstance(data, Mapping) and data:
                    self.set_multi(entity_type, data)

            values: dict[Identifier, Any] = {}
            emitted: set[str] = set()
            for identifier in identifiers:
                key = normalize_identifier(identifier)
                if key in emitted or not self.storage.contains(entity_type, key):
                    continue
                emitted.add(key)
                values[identifier] = self.storage.get(entity_type, key)
            return values

    def get_one(
        self, entity_type: str, identifier: Identifier, *, use_cache: bool = True
    ) -> Any | None:
        """Load a single value.

        Args:
            entity_type: Name of a registered type.
            identifier: Identifier of the value to load.
            use_cache: When False, the value is reloaded through the read handler.

        Returns:
            The value, or None if it was not found.

        Raises:
            ReadHandlerNotRegisteredError: If the value is not cached and no
                read handler is registered for the type.
        """
        return self.get(entity_type, [identifier], use_cache=use_cache).get(identifier)

    def set(self, entity_type: str, identifier: Identifier, value: Any) -> bool:
        """Store a value in the repository without calling any handler.

        Args:
            entity_type: Name of the type.
            identifier: Identifier of the value.
            value: The value to store.

        Returns:
            True if the value was stored.
        """
        with self._lock:
            return self.storage.set(entity_type, normalize_identifier(identifier), value)

    def set_multi(self, entity_type: str, data: Mapping[Identifier, Any]) -> bool:
        """Store several values in the repository.

        Stops at the first value the storage refuses. Values stored before
        the failure are kept.

        Args:
            entity_type: Name of the type.
            data: Mapping of identifier to value.

        Returns:
            True if every value was stored, False otherwise.
        """
        with self._lock:
            for identifier, value in data.items():
                if not self.set(entity_type, identifier, value):
                    logger.debug("Storage refused `%s` %r", entity_type, identifier)
                    return False
        return True

    def save(self, entity_type: str, value: Any) -> Any | Literal[False]:
        """Persist a value through the write handler and cache the result.

        Args:
            entity_type: Name of a registered type.
            value: The value to persist.

        Returns:
            The persisted value as returned by the write handler, or False if
            the write handler failed or the result could not be cached.

        Raises:
            WriteHandlerNotRegisteredError: If no write handler is registered
                for the type.
            InvalidIdentifierError: If the write handler reported a None or
                empty identifier.
        """
        with self._lock:
            write_handler = self._write_handlers.get(entity_type)
            if write_handler is None:
                raise WriteHandlerNotRegisteredError(entity_type)

            data = write_handler(value)
            if not isinstance(data, Mapping):
                logger.warning("Write handler for `%s` reported a failure", entity_type)
                return False
            if len(data) != 1:
                logger.warning(
                    "Write handler for `%s` returned %d entries instead of one",
                    entity_type,
                    len(data),
                )
                return False

            ((identifier, persisted),) = data.items()
            if identifier is None or identifier == "":
                raise InvalidIdentifierError(entity_type, identifier)
            if not self.set(entity_type, identifier, persisted):
                return False
            return persisted

    def save_multi(self, entity_type: str, values: Iterable[Any]) -> list[Any]:
        """Persist several values, one write handler call each.

        Args:
            entity_type: Name of a registered type.
            values: The values to persist.

        Returns:
            One result per value, in order: the persisted value or False.

        Raises:
            WriteHandlerNotRegisteredError: If no write handler is registered
                for the type.
        """
        return [self.save(entity_type, value) for value in values]
