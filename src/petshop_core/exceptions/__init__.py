"""
Custom exceptions for the petshop-core package.

This module defines the exception hierarchy and custom exceptions
used throughout the appointment lifecycle engine.
"""

from .core_exceptions import (  # Utility functions
    BusinessRuleException,
    ForbiddenException,
    InvalidRangeException,
    NotFoundException,
    PetShopCoreException,
    ProfileNotFoundException,
    SchedulingConflictException,
    SchemaValidationException,
    StorageException,
    UnauthenticatedException,
    ValidationException,
    create_error_response,
    format_validation_errors,
    handle_database_retry,
)

__all__ = [
    # Exception classes
    "PetShopCoreException",
    "UnauthenticatedException",
    "ProfileNotFoundException",
    "ForbiddenException",
    "ValidationException",
    "SchemaValidationException",
    "InvalidRangeException",
    "BusinessRuleException",
    "SchedulingConflictException",
    "NotFoundException",
    "StorageException",
    # Utility functions
    "format_validation_errors",
    "create_error_response",
    "handle_database_retry",
]
