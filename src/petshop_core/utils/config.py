"""
Configuration management utilities.

This module provides environment variable handling with type conversion,
the deployment settings of the scheduling engine, and logging
configuration utilities.
"""

import logging
import logging.config
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .datetime_utils import DEFAULT_UTC_OFFSET, parse_utc_offset


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


class LogLevel(Enum):
    """Enumeration for log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentConfig:
    """Utility class for handling environment variables with type conversion."""

    @staticmethod
    def get_str(
        key: str, default: Optional[str] = None, required: bool = False
    ) -> Optional[str]:
        """
        Get a string environment variable.

        Args:
            key: Environment variable key
            default: Default value if not found
            required: Whether the variable is required

        Returns:
            String value or default

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key, default)

        if required and value is None:
            raise ConfigError(f"Required environment variable '{key}' is not set")

        return value

    @staticmethod
    def get_int(
        key: str, default: Optional[int] = None, required: bool = False
    ) -> Optional[int]:
        """
        Get an integer environment variable.

        Raises:
            ConfigError: If required variable is missing or invalid
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigError(f"Required environment variable '{key}' is not set")
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigError(
                f"Environment variable '{key}' must be an integer, got: {value}"
            )

    @staticmethod
    def get_bool(
        key: str, default: Optional[bool] = None, required: bool = False
    ) -> Optional[bool]:
        """
        Get a boolean environment variable.

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigError(f"Required environment variable '{key}' is not set")
            return default

        return value.lower() in ("true", "1", "yes", "on", "enabled")


@dataclass
class PetShopSettings:
    """Deployment-wide settings of the scheduling engine."""

    database_url: Optional[str] = None
    default_utc_offset: str = DEFAULT_UTC_OFFSET
    default_service_duration: int = 60
    compensation_retries: int = 3
    compensation_retry_delay: float = 0.5
    log_level: LogLevel = LogLevel.INFO

    def __post_init__(self) -> None:
        try:
            parse_utc_offset(self.default_utc_offset)
        except ValueError as e:
            raise ConfigError(str(e))

        if self.default_service_duration <= 0:
            raise ConfigError("Default service duration must be positive")
        if self.compensation_retries < 0:
            raise ConfigError("Compensation retries cannot be negative")

    @classmethod
    def from_env(cls) -> "PetShopSettings":
        """Load settings from ``PETSHOP_*`` environment variables."""
        level_name = EnvironmentConfig.get_str("PETSHOP_LOG_LEVEL", "INFO")
        try:
            log_level = LogLevel(level_name.upper())
        except ValueError:
            raise ConfigError(f"Invalid log level '{level_name}'")

        return cls(
            database_url=EnvironmentConfig.get_str("DATABASE_URL"),
            default_utc_offset=EnvironmentConfig.get_str(
                "PETSHOP_DEFAULT_UTC_OFFSET", DEFAULT_UTC_OFFSET
            ),
            default_service_duration=EnvironmentConfig.get_int(
                "PETSHOP_DEFAULT_SERVICE_DURATION", 60
            ),
            compensation_retries=EnvironmentConfig.get_int(
                "PETSHOP_COMPENSATION_RETRIES", 3
            ),
            log_level=log_level,
        )


class LoggingConfigurator:
    """Utility class for configuring logging."""

    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @staticmethod
    def configure_basic_logging(
        level: Union[str, LogLevel] = LogLevel.INFO,
        format_string: Optional[str] = None,
        log_file: Optional[str] = None,
    ) -> None:
        """
        Configure basic logging for the application.

        Args:
            level: Logging level
            format_string: Custom format string
            log_file: Optional log file path
        """
        if isinstance(level, LogLevel):
            level = level.value

        basic_config_args: Dict[str, Any] = {
            "level": level,
            "format": format_string or LoggingConfigurator.DEFAULT_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
        if log_file:
            basic_config_args["filename"] = log_file
            basic_config_args["filemode"] = "a"

        logging.basicConfig(**basic_config_args)

    @staticmethod
    def configure_structured_logging(
        config_dict: Optional[Dict[str, Any]] = None,
        config_file: Optional[str] = None,
        level: Union[str, LogLevel] = LogLevel.INFO,
    ) -> None:
        """
        Configure structured logging using a dictionary or file.

        Args:
            config_dict: Logging configuration dictionary
            config_file: Path to logging configuration file
            level: Level of the ``petshop_core`` logger in the default setup
        """
        if isinstance(level, LogLevel):
            level = level.value

        if config_file and Path(config_file).exists():
            logging.config.fileConfig(config_file)
        elif config_dict:
            logging.config.dictConfig(config_dict)
        else:
            default_config = {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "standard": {"format": LoggingConfigurator.DEFAULT_FORMAT},
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level,
                        "formatter": "standard",
                        "stream": "ext://sys.stdout",
                    }
                },
                "loggers": {
                    "petshop_core": {
                        "level": level,
                        "handlers": ["console"],
                        "propagate": False,
                    }
                },
                "root": {"level": "WARNING", "handlers": ["console"]},
            }
            logging.config.dictConfig(default_config)
