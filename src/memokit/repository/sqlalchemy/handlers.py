"""Read/write handlers backed by a SQLAlchemy session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, Literal, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session

    from memokit.repository.protocols import Identifier
    from memokit.repository.repository import Repository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlAlchemyHandlers(Generic[T]):
    """Adapts a mapped model to the Repository handler contracts.

    read() loads a batch of rows in one SELECT; write() merges an entity into
    the session and reports its primary key, including keys generated by the
    database on insert.

    Type Parameters:
        T: The mapped entity class.

    Attributes:
        session: The SQLAlchemy session used for database operations.
        entity_model: The mapped class for the entity type.
        auto_commit: Whether write() commits after each successful flush.

    Example:
        session = session_factory()
        widgets = SqlAlchemyHandlers(session, Widget)
        repo = Repository()
        widgets.register(repo, "widget")
        repo.save("widget", Widget(name="Sprocket"))  # {1: <Widget 1>} cached

    Note:
        Sessions that expire on commit will reload cached entities on their
        next attribute access. Use create_session_factory(), which disables
        expiry and makes SAVEPOINTs work on SQLite, to keep cached values stable.
    """

    def __init__(self, session: Session, entity_model: type[T], *, auto_commit: bool = True) -> None:
        """Initialize the handlers.

        Args:
            session: A Session instance for database operations.
            entity_model: The mapped class for the entity type.
            auto_commit: Whether write() commits after each successful flush.

        Raises:
            ValueError: If the model does not have exactly one primary key column.
        """
        mapper = inspect(entity_model)
        primary_key = mapper.primary_key
        if len(primary_key) != 1:
            msg = f"{entity_model.__name__} must have a single-column primary key"
            raise ValueError(msg)

        self.session = session
        self.entity_model = entity_model
        self.auto_commit = auto_commit
        self._primary_key = primary_key[0]
        self._id_attribute = mapper.get_property_by_column(self._primary_key).key

    def _identifier_of(self, entity: T) -> Identifier:
        return getattr(entity, self._id_attribute)

    def read(self, identifiers: Sequence[Identifier]) -> dict[Identifier, T]:
        """Load every existing entity among the identifiers.

        Rows already present in the session are refreshed from the database.

        Args:
            identifiers: Primary keys to load. Duplicates are allowed.

        Returns:
            A mapping of primary key to entity. Missing keys are absent.
        """
        stmt = (
            select(self.entity_model)
            .where(self._primary_key.in_(list(dict.fromkeys(identifiers))))
            .execution_options(populate_existing=True)
        )
        return {self._identifier_of(entity): entity for entity in self.session.scalars(stmt)}

    def write(self, entity: T) -> dict[Identifier, T] | Literal[False]:
        """Insert or update an entity.

        Each write runs in its own SAVEPOINT. A rejected entity only rolls
        back that savepoint, so earlier writes of an open transaction (and the
        values a Repository cached for them) stay valid.

        Args:
            entity: The entity to persist. A missing primary key is generated
                    by the database.

        Returns:
            ``{primary_key: persisted_entity}``, or False if the database
            rejected the entity.
        """
        try:
            with self.session.begin_nested():
                persisted = self.session.merge(entity)
                self.session.flush()
        except IntegrityError:
            if self.auto_commit:
                self.session.rollback()
            logger.warning(
                "Could not persist %s, rolled back.", self.entity_model.__name__, exc_info=True
            )
            return False

        identifier = self._identifier_of(persisted)
        if self.auto_commit:
            self.session.commit()
        return {identifier: persisted}

    def register(self, repository: Repository, entity_type: str) -> None:
        """Register read() and write() on a repository for a type.

        Args:
            repository: The repository to register with.
            entity_type: Name of the type in that repository.
        """
        repository.register(entity_type, self.read, self.write)
