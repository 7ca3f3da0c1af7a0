"""
Database layer for the marketplace admin API.

- SQLAlchemy ORM model for users
- Async engine and session management
- User repository
"""

from .models import Base, UserRecord
from .async_engine import (
    close_database,
    check_database_connection,
    create_engine,
    get_async_engine,
    get_async_session,
    get_async_session_factory,
    get_db_session,
    get_session_factory,
    init_database,
)
from .repositories import UserFilters, UserRepository

__all__ = [
    "Base",
    "UserRecord",
    "close_database",
    "check_database_connection",
    "create_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_factory",
    "get_db_session",
    "get_session_factory",
    "init_database",
    "UserFilters",
    "UserRepository",
]
