"""
Exception hierarchy and error handling for the orchestrator.

Errors raised synchronously from start/stop (validation, build, launch,
concurrency) and errors that only ever surface as events (health, shutdown)
share a common base so callers can catch them together.
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationReason(Enum):
    """Why a value was rejected."""
    NOT_EXIST = "not_exist"
    WRONG_EXTENSION = "wrong_extension"
    INVALID_VALUE = "invalid_value"


class ConcurrencyReason(Enum):
    """Why a lifecycle operation was rejected."""
    ALREADY_RUNNING = "already_running"
    NOT_RUNNING = "not_running"
    BUSY = "busy"


class BurrowError(Exception):
    """Base class for all orchestrator errors."""


class ValidationError(BurrowError):
    """
    Exception raised when validation fails.

    Used both for source paths handed to the orchestrator and for
    configuration values.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR,
                 reason: ValidationReason = ValidationReason.INVALID_VALUE):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity
        self.reason = reason


class BuildError(BurrowError):
    """The build toolchain failed to produce a binary."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class LaunchError(BurrowError):
    """The built binary could not be started."""


class HealthError(BurrowError):
    """A health probe failed. Reported as an event, never raised to callers."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ShutdownError(BurrowError):
    """Waiting for or killing the server failed. Reported as an event only."""


class ConcurrencyError(BurrowError):
    """Start while a session exists, or stop while there is nothing to stop."""

    def __init__(self, message: str, reason: ConcurrencyReason):
        super().__init__(message)
        self.reason = reason


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI error and exit the interpreter."""
    exit_code = kwargs.pop('exit_code', 1)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    import sys
    sys.exit(exit_code)
