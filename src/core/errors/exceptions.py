"""
Unified exception hierarchy for application master security setup.

Provides typed exceptions with a closed error category so startup can report
an actionable message and exit with a distinct code per failure kind.
"""


# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory

# Process exit codes (sysexits.h values)
EXIT_SUCCESS = 0
EXIT_BAD_STATE = 70  # EX_SOFTWARE
EXIT_CANNOT_CREATE = 73  # EX_CANTCREAT
EXIT_IO_ERROR = 74  # EX_IOERR
EXIT_BAD_CONFIGURATION = 78  # EX_CONFIG
EXIT_UNKNOWN = 1


class SecurityConfigError(Exception):
    """
    Base exception for all security setup errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for reporting
        cause: Original exception if wrapping
        context: Additional context dict (config keys, paths) for operators
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN
    exit_code: int = EXIT_UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Configuration Errors
# =============================================================================


class BadConfigurationError(SecurityConfigError):
    """Settings are missing, ambiguous or otherwise structurally invalid."""

    category = ErrorCategory.BAD_CONFIGURATION
    exit_code = EXIT_BAD_CONFIGURATION


# =============================================================================
# Environment Errors
# =============================================================================


class BadStateError(SecurityConfigError):
    """The environment failed while resolving an otherwise valid setup."""

    category = ErrorCategory.BAD_STATE
    exit_code = EXIT_BAD_STATE


# =============================================================================
# Keytab Staging Errors
# =============================================================================


class StagingError(SecurityConfigError):
    """Local keytab directory creation or permission change failed."""

    category = ErrorCategory.STAGING
    exit_code = EXIT_CANNOT_CREATE

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        context = dict(context or {})
        if path is not None:
            context.setdefault("path", path)
        super().__init__(message, cause, context)
        self.path = path


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify an exception into error category."""
    # Already classified
    if isinstance(exc, SecurityConfigError):
        return exc.category

    if isinstance(exc, OSError):
        return ErrorCategory.IO

    return ErrorCategory.UNKNOWN


_EXIT_CODES = {
    ErrorCategory.BAD_CONFIGURATION: EXIT_BAD_CONFIGURATION,
    ErrorCategory.BAD_STATE: EXIT_BAD_STATE,
    ErrorCategory.STAGING: EXIT_CANNOT_CREATE,
    ErrorCategory.IO: EXIT_IO_ERROR,
    ErrorCategory.UNKNOWN: EXIT_UNKNOWN,
}


def exit_code_for(exc: BaseException) -> int:
    """Map an exception to the process exit code startup should use."""
    if isinstance(exc, SecurityConfigError):
        return exc.exit_code
    return _EXIT_CODES[classify_exception(exc)]


def is_configuration_error(exc: BaseException) -> bool:
    """
    Check if exception points at the deployment's configuration.

    Returns True when fixing configuration keys will resolve the failure.
    """
    return classify_exception(exc) == ErrorCategory.BAD_CONFIGURATION
