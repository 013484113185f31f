# persistence/db.py
"""
SQLAlchemy database connection and schema management.

Defaults to a file-based SQLite database; any SQLAlchemy URL works.
On Railway, use a persistent volume (or a Postgres URL) to survive restarts.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as OrmSession, sessionmaker
from sqlalchemy.pool import StaticPool

from auth.errors import StoreUnavailableError
from persistence.models import Base

_logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./data/auth.db"


def create_db_engine(url: str = DEFAULT_DATABASE_URL) -> Engine:
    """
    Create an engine for url.

    SQLite connections may be used from FastAPI's worker threads, and
    in-memory SQLite needs a single shared connection or every
    checkout would see an empty database.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if parsed.database in (None, "", ":memory:"):
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)

    # Ensure directory exists
    Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args=connect_args)


class Database:
    """
    Engine + session factory shared by the SQL-backed stores.

    Usage:
        db = Database("sqlite:///:memory:")
        db.init()
        with db.session() as s:
            s.add(...)
    """

    def __init__(self, url: str = DEFAULT_DATABASE_URL):
        self.url = url
        self.engine = create_db_engine(url)
        self._factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[OrmSession]:
        """
        Transactional session scope.

        Commits on success, rolls back and re-raises on any error.
        """
        session = self._factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init(self) -> None:
        """
        Initialize database schema.

        Creates tables if they don't exist.
        Safe to call multiple times (idempotent).
        """
        Base.metadata.create_all(bind=self.engine)
        _logger.info(f"Database initialized ({self.engine.url.get_backend_name()})")

    def reset(self) -> None:
        """Reset database (for testing). Drops all tables."""
        Base.metadata.drop_all(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise database failures as StoreUnavailableError."""
    try:
        yield
    except SQLAlchemyError as e:
        _logger.error(f"Database error during {operation}: {e.__class__.__name__}")
        raise StoreUnavailableError(f"{operation} failed") from e
