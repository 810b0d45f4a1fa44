# Database module
from .engine import Base, build_engine, init_db, make_session_factory, session_scope
from .repositories import SqlDialStore, SqlHandoffStore

__all__ = [
    "Base",
    "build_engine",
    "init_db",
    "make_session_factory",
    "session_scope",
    "SqlDialStore",
    "SqlHandoffStore",
]
