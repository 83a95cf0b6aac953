"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- SecurityConfigError hierarchy for typed exceptions
- Classification and exit code utilities
"""

from core.errors.exceptions import (
    # Exit codes
    EXIT_BAD_CONFIGURATION,
    EXIT_BAD_STATE,
    EXIT_CANNOT_CREATE,
    EXIT_IO_ERROR,
    EXIT_SUCCESS,
    EXIT_UNKNOWN,
    # Typed errors
    BadConfigurationError,
    BadStateError,
    # Enums
    ErrorCategory,
    # Base classes
    SecurityConfigError,
    StagingError,
    # Classification utilities
    classify_exception,
    exit_code_for,
    is_configuration_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "SecurityConfigError",
    # Typed errors
    "BadConfigurationError",
    "BadStateError",
    "StagingError",
    # Classification utilities
    "classify_exception",
    "exit_code_for",
    "is_configuration_error",
    # Exit codes
    "EXIT_SUCCESS",
    "EXIT_BAD_CONFIGURATION",
    "EXIT_BAD_STATE",
    "EXIT_CANNOT_CREATE",
    "EXIT_IO_ERROR",
    "EXIT_UNKNOWN",
]
