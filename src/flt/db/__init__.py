from .connection import (
    close_engine,
    create_db_engine,
    get_engine,
    get_session,
    get_session_factory,
    init_db,
)

__all__ = [
    "close_engine",
    "create_db_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
