"""Database layer: declarative base and engine/session management."""

from routing_kernel.db.base import Base, UUIDString
from routing_kernel.db.engine import (
    async_session_scope,
    create_tables,
    create_tables_async,
    dispose_async_engine,
    drop_tables,
    get_async_engine,
    get_async_session_factory,
    get_engine,
    get_session,
    get_session_factory,
    init_async_engine_from_url,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "UUIDString",
    "async_session_scope",
    "create_tables",
    "create_tables_async",
    "dispose_async_engine",
    "drop_tables",
    "get_async_engine",
    "get_async_session_factory",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_async_engine_from_url",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
