"""
Database session management for MatTrack.

Provides the SQLAlchemy engine and session factory. Uses the settings
from config.py.

Usage:
    from mattrack.db import get_session

    with get_session() as session:
        gyms = GymStore(session).list_all_gyms("JJWL")
        # Commits on exit, rolls back on exception
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from mattrack.config import settings


def get_engine() -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Pool sizing is skipped for SQLite, which uses its own pool class.
    """
    options = {
        "pool_pre_ping": True,  # Verify connection is alive before using
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow

    return create_engine(settings.database_url, **options)


_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Bound lazily in get_session() so importing models never opens a connection
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal(bind=_get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
