"""
Database connection, session management and column types.

This module provides async SQLAlchemy engine configuration, session
management, and database-agnostic column types for petshop-core.
"""

from .connection import (
    DatabaseConfig,
    check_connection,
    close_engine,
    create_engine,
    get_database_url,
)
from .session import SessionManager
from .types import JSONType, UTCDateTime, value_enum

__all__ = [
    # Connection utilities
    "DatabaseConfig",
    "create_engine",
    "get_database_url",
    "check_connection",
    "close_engine",
    # Session management
    "SessionManager",
    # Column types
    "JSONType",
    "UTCDateTime",
    "value_enum",
]
