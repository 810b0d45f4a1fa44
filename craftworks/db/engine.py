# craftworks/db/engine.py
"""
Database engine and session management.

Only used when STORAGE_BACKEND=sql. Defaults to a local SQLite file;
any SQLAlchemy URL works (e.g. PostgreSQL in production).
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..settings import settings

# Base class for ORM models
Base = declarative_base()


def build_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create an engine for the given URL (settings.database_url by default).

    In-memory SQLite shares one connection so every session sees the
    same database.
    """
    url = make_url(database_url or settings.database_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(
            url,
            pool_pre_ping=True,  # Check connection health
            pool_size=10,
            max_overflow=20,
        )

    database = url.database
    if not database or database == ":memory:":
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    directory = os.path.dirname(database)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    from . import tables  # noqa: F401  registers models on Base

    Base.metadata.create_all(engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with session_scope(factory) as session:
            session.add(row)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_connection(session_factory: sessionmaker) -> bool:
    """
    Check database connection.

    Returns:
        True if connection successful
    """
    try:
        with session_scope(session_factory) as session:
            session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
