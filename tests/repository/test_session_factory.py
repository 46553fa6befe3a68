"""
Tests for create_session_factory function.

This module tests:
1. The configuration of the returned session factory
2. SAVEPOINT behavior on SQLite engines
"""

from collections.abc import Generator

import pytest
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from memokit.repository.sqlalchemy import create_session_factory
from memokit.repository.sqlalchemy.session_factory import _emit_begin


@pytest.fixture(name="engine")
def create_test_engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


class TestCreateSessionFactoryConfiguration:
    """Tests on the factory settings."""

    def test_session_keeps_state_after_commit(self, engine: Engine) -> None:
        """Sessions should neither autoflush nor expire entities on commit."""
        session_factory = create_session_factory(engine)

        with session_factory() as session:
            assert isinstance(session, Session)
            assert session.autoflush is False
            assert session.expire_on_commit is False

    def test_binds_given_engine(self, engine: Engine) -> None:
        session_factory = create_session_factory(engine)

        with session_factory() as session:
            assert session.get_bind() is engine

    def test_accepts_url(self) -> None:
        session_factory = create_session_factory("sqlite://")

        assert isinstance(session_factory, sessionmaker)
        with session_factory() as session:
            assert session.execute(text("SELECT 1")).scalar() == 1

    def test_listeners_registered_once(self, engine: Engine) -> None:
        create_session_factory(engine)
        create_session_factory(engine)

        assert event.contains(engine, "begin", _emit_begin)
        with engine.begin() as connection:
            # A second BEGIN would fail inside the open transaction
            assert connection.execute(text("SELECT 1")).scalar() == 1


class TestCreateSessionFactorySavepoints:
    """SAVEPOINT rollbacks must keep the enclosing transaction on SQLite."""

    def test_nested_rollback_keeps_outer_writes(self, engine: Engine) -> None:
        session_factory = create_session_factory(engine)
        with engine.begin() as connection:
            connection.execute(text("CREATE TABLE items (value INTEGER)"))

        with session_factory() as session:
            session.execute(text("INSERT INTO items VALUES (1)"))
            nested = session.begin_nested()
            session.execute(text("INSERT INTO items VALUES (2)"))
            nested.rollback()
            session.commit()

        with engine.connect() as connection:
            values = connection.execute(text("SELECT value FROM items")).scalars().all()
        assert values == [1]

    def test_released_savepoint_is_still_rolled_back_with_outer(self, engine: Engine) -> None:
        session_factory = create_session_factory(engine)
        with engine.begin() as connection:
            connection.execute(text("CREATE TABLE items (value INTEGER)"))

        with session_factory() as session:
            with session.begin_nested():
                session.execute(text("INSERT INTO items VALUES (1)"))
            session.rollback()

        with engine.connect() as connection:
            count = connection.execute(text("SELECT COUNT(*) FROM items")).scalar_one()
        assert count == 0
