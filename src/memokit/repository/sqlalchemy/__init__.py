"""SQLAlchemy handler implementation."""

from memokit.repository.sqlalchemy.handlers import SqlAlchemyHandlers
from memokit.repository.sqlalchemy.session_factory import create_session_factory

__all__ = ["SqlAlchemyHandlers", "create_session_factory"]
