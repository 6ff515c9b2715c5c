"""
Database connection and session management for the Fund Launch Tracker.

Uses a synchronous SQLAlchemy 2.0 engine; every core operation runs to
completion before returning, so there is nothing to await. SQLite is the
default backend.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from flt.models import Base
from flt.settings import get_settings

# Global engine and session factory
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for a database URL.

    In-memory SQLite gets a single shared connection, otherwise every
    new connection would see an empty database.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def get_engine() -> Engine:
    """
    Get or create the global database engine.

    Returns:
        Engine configured from FLT_DATABASE_URL
    """
    global _engine

    if _engine is None:
        settings = get_settings()
        _engine = create_db_engine(settings.database_url, echo=settings.sql_echo)

    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the global session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(get_engine(), expire_on_commit=False)

    return _session_factory


@contextmanager
def get_session(factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    """
    Session scope that commits on success and rolls back on error.

    Args:
        factory: Session factory to open the session from (default: the
            global factory)

    Usage:
        with get_session() as session:
            session.add(...)
    """
    if factory is None:
        factory = get_session_factory()
    with factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def init_db(engine: Engine | None = None) -> None:
    """Create all tables that don't exist yet."""
    Base.metadata.create_all(engine or get_engine())


def close_engine() -> None:
    """
    Dispose the engine and release all connections.

    Call this during shutdown, and between tests that change settings.
    """
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
