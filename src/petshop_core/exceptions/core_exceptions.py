"""
Core exceptions for the petshop-core package.

This module defines the exception hierarchy used by the appointment
lifecycle and schedule-conflict engine, together with helpers for
formatting and logging errors.
"""

import asyncio
import functools
import logging
import time
import traceback
from typing import Any, Awaitable, Callable, Dict, List, Optional


class PetShopCoreException(Exception):
    """
    Base exception class for all petshop-core exceptions.

    Provides a consistent interface for error handling across the package.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary format.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": time.time(),
        }

    def get_debug_info(self) -> Dict[str, Any]:
        """Get debug information for the exception, including the traceback."""
        debug_info = self.to_dict()
        formatted = traceback.format_exc()
        debug_info.update(
            {
                "traceback": (
                    formatted if formatted.strip() != "NoneType: None" else None
                ),
                "module": self.__class__.__module__,
                "class_name": self.__class__.__name__,
            }
        )
        return debug_info

    def log_error(
        self, logger: Optional[logging.Logger] = None, level: int = logging.ERROR
    ) -> None:
        """
        Log the exception with appropriate level and context.

        Args:
            logger: Logger instance to use (creates default if None)
            level: Logging level to use
        """
        if logger is None:
            logger = logging.getLogger(__name__)

        log_data = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

        logger.log(
            level,
            f"Exception occurred: {self.message}",
            extra={"exception_data": log_data},
        )

    def __str__(self) -> str:
        """String representation of the exception."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


# Authentication and authorization


class UnauthenticatedException(PetShopCoreException):
    """Raised when an operation is attempted without a principal."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, error_code="UNAUTHENTICATED")


class ProfileNotFoundException(PetShopCoreException):
    """Raised when a principal has no profile or no organization mapping."""

    def __init__(
        self,
        message: str = "Profile or organization not found",
        principal_id: Optional[Any] = None,
    ):
        details = {}
        if principal_id is not None:
            details["principal_id"] = str(principal_id)

        super().__init__(
            message=message,
            error_code="PROFILE_NOT_FOUND",
            details=details,
        )


class ForbiddenException(PetShopCoreException):
    """Raised when the role or the organization of a principal does not allow an operation."""

    def __init__(
        self,
        message: str = "Permission denied",
        operation: Optional[str] = None,
        role: Optional[str] = None,
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if role:
            details["role"] = role

        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            details=details,
        )


# Data validation


class ValidationException(PetShopCoreException):
    """Base exception for data validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        validation_errors: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: Field that failed validation
            value: Value that failed validation
            validation_errors: Detailed validation errors
        """
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class SchemaValidationException(ValidationException):
    """Exception raised when Pydantic schema validation fails."""

    def __init__(
        self,
        message: str = "Schema validation failed",
        schema_name: Optional[str] = None,
        validation_errors: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            validation_errors=validation_errors,
        )
        self.error_code = "SCHEMA_VALIDATION_ERROR"
        if schema_name:
            self.details["schema_name"] = schema_name


class InvalidRangeException(ValidationException):
    """Raised when an interval does not start strictly before it ends."""

    def __init__(
        self,
        message: str = "Start must be before end",
        start: Optional[Any] = None,
        end: Optional[Any] = None,
    ):
        super().__init__(message=message)
        self.error_code = "INVALID_RANGE"
        if start is not None:
            self.details["start"] = str(start)
        if end is not None:
            self.details["end"] = str(end)


class BusinessRuleException(ValidationException):
    """Exception raised when business rule validation fails."""

    def __init__(
        self,
        message: str = "Business rule validation failed",
        rule_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message)
        self.error_code = "BUSINESS_RULE_ERROR"
        if rule_name:
            self.details["rule_name"] = rule_name
        if context:
            self.details["context"] = context


class SchedulingConflictException(BusinessRuleException):
    """Raised when a requested time window intersects a schedule block."""

    def __init__(
        self,
        message: str = "This time slot is blocked on the schedule",
        block_ids: Optional[List[Any]] = None,
    ):
        context = {"block_ids": [str(b) for b in block_ids]} if block_ids else None
        super().__init__(
            message=message, rule_name="schedule_block_conflict", context=context
        )
        self.error_code = "SCHEDULING_CONFLICT"


# Lookups


class NotFoundException(PetShopCoreException):
    """Raised when a referenced entity does not exist for the caller."""

    def __init__(
        self,
        message: str = "Resource not found",
        resource: Optional[str] = None,
        resource_id: Optional[Any] = None,
    ):
        details = {}
        if resource:
            details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)

        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            details=details,
        )


# Persistence


class StorageException(PetShopCoreException):
    """Exception raised when the persistence layer fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize storage exception.

        Args:
            message: Human-readable error message
            operation: Description of the failed operation
            original_error: Original exception that caused this error
            details: Additional error details
        """
        super().__init__(message, "STORAGE_ERROR", details)
        self.original_error = original_error

        if operation:
            self.details["operation"] = operation
        if original_error and "original_error" not in self.details:
            self.details["original_error"] = str(original_error)


# Utility functions for exception handling and error formatting


def format_validation_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Format Pydantic validation errors into a user-friendly structure.

    Args:
        errors: List of Pydantic validation errors

    Returns:
        Dictionary mapping field names to lists of error messages
    """
    formatted_errors: Dict[str, List[str]] = {}

    for error in errors:
        field_path = ".".join(str(loc) for loc in error.get("loc", []))
        if not field_path:
            field_path = "root"

        message = error.get("msg", "Validation error")
        error_type = error.get("type", "unknown")

        if error_type == "value_error":
            formatted_message = message
        elif error_type == "missing":
            formatted_message = "This field is required"
        else:
            formatted_message = f"{message} (type: {error_type})"

        formatted_errors.setdefault(field_path, []).append(formatted_message)

    return formatted_errors


def create_error_response(
    exception: PetShopCoreException,
    include_debug: bool = False,
) -> Dict[str, Any]:
    """
    Create a standardized error response from an exception.

    Args:
        exception: The exception to format
        include_debug: Whether to include debug information

    Returns:
        Standardized error response dictionary
    """
    response: Dict[str, Any] = {
        "success": False,
        "error": {
            "type": exception.__class__.__name__,
            "code": exception.error_code,
            "message": exception.message,
        },
    }

    if exception.details:
        response["error"]["details"] = exception.details

    if include_debug:
        debug_info = exception.get_debug_info()
        response["debug"] = {
            "timestamp": debug_info["timestamp"],
            "module": debug_info["module"],
            "class_name": debug_info["class_name"],
        }

    return response


def handle_database_retry(
    operation_name: str,
    max_retries: int = 3,
    base_delay: float = 1.0,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
):
    """
    Decorator for retrying async storage operations that raise StorageException.

    The delay before retry ``n`` (counting from zero) is ``base_delay * 2**n``.
    The final failure is re-raised with ``details["attempts"]`` set.

    Args:
        operation_name: Name of the operation for logging
        max_retries: Maximum number of retry attempts
        base_delay: Base delay for exponential backoff
        logger: Logger instance to use
        sleep: Coroutine used to wait between attempts

    Returns:
        Decorator function
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            operation_logger = logger or logging.getLogger(__name__)

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except StorageException as e:
                    if attempt == max_retries:
                        e.details["attempts"] = attempt + 1
                        operation_logger.error(
                            f"Storage operation '{operation_name}' failed after {attempt + 1} attempts",
                            extra={"exception_data": e.to_dict()},
                        )
                        raise

                    delay = base_delay * (2**attempt)
                    operation_logger.warning(
                        f"Storage operation '{operation_name}' failed (attempt {attempt + 1}/{max_retries + 1}), "
                        f"retrying in {delay}s",
                        extra={"exception_data": e.to_dict()},
                    )
                    await sleep(delay)

        return wrapper

    return decorator
