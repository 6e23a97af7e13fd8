"""
Database-agnostic column types for petshop-core.

This module provides column types that behave the same on PostgreSQL and
SQLite: JSON documents for appointment checklists, timestamps that always
come back as timezone-aware UTC instants, and enum columns stored by value.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Optional, Type

from sqlalchemy import JSON, DateTime, Enum, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.type_api import TypeEngine


class JSONType(TypeDecorator):
    """
    Database-agnostic JSON column type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        """Load the appropriate JSON type based on the database dialect."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp column normalized to UTC.

    Values are converted to UTC before they are bound, so SQLite (which keeps
    no zone information) orders and compares them the same way PostgreSQL
    does. Values read back are always aware UTC datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        """Convert aware datetimes to UTC; naive values are taken as UTC."""
        if value is None:
            return None
        if value.tzinfo is None or value.utcoffset() is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        """Attach UTC to values returned without zone information."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def value_enum(enum_class: Type[enum.Enum], name: str) -> Enum:
    """
    Build an Enum column type that stores member values instead of names.

    Check constraints and raw SQL can then refer to the lowercase values
    (``status = 'done'``).
    """
    return Enum(
        enum_class,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
