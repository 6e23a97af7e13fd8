"""
Utility functions and helper modules.

This module provides datetime handling, interval overlap checks and
configuration management shared by the scheduling engine.
"""

from .config import (
    ConfigError,
    EnvironmentConfig,
    LoggingConfigurator,
    LogLevel,
    PetShopSettings,
)
from .datetime_utils import (
    DEFAULT_UTC_OFFSET,
    appointment_window,
    boarding_scheduled_at,
    ensure_aware,
    find_overlapping,
    get_current_utc,
    has_explicit_offset,
    intervals_overlap,
    is_within_working_hours,
    normalize_timestamp,
    parse_timestamp,
    parse_utc_offset,
)

__all__ = [
    # DateTime utilities
    "DEFAULT_UTC_OFFSET",
    "get_current_utc",
    "parse_utc_offset",
    "has_explicit_offset",
    "ensure_aware",
    "parse_timestamp",
    "normalize_timestamp",
    "intervals_overlap",
    "find_overlapping",
    "appointment_window",
    "boarding_scheduled_at",
    "is_within_working_hours",
    # Configuration utilities
    "ConfigError",
    "LogLevel",
    "EnvironmentConfig",
    "PetShopSettings",
    "LoggingConfigurator",
]
