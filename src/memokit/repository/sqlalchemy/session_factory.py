"""Session factory suited to SqlAlchemyHandlers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Connection, Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker


def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
    dbapi_connection.isolation_level = None


def _emit_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy, not pysqlite, emit BEGIN so SAVEPOINTs nest properly."""
    if event.contains(engine, "begin", _emit_begin):
        return
    event.listen(engine, "connect", _disable_driver_transactions)
    event.listen(engine, "begin", _emit_begin)


def create_session_factory(bind: Engine | str) -> sessionmaker[Session]:
    """Create a session factory for sessions handed to SqlAlchemyHandlers.

    Configuration:
        - autoflush=False
        - expire_on_commit=False, so entities cached by a Repository keep
          their loaded state after each commit
        - on pysqlite engines, transactions are begun by SQLAlchemy so the
          per-write SAVEPOINTs of SqlAlchemyHandlers.write() can be rolled
          back without losing the enclosing transaction

    Args:
        bind: An Engine, or a database URL to create one from. For SQLite,
              pass the engine before it opens its first connection.

    Returns:
        The session factory bound to the engine.
    """
    engine = create_engine(bind) if isinstance(bind, str) else bind
    if engine.dialect.name == "sqlite" and engine.dialect.driver == "pysqlite":
        _enable_sqlite_savepoints(engine)

    return sessionmaker(
        engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )
