"""
Validation and error handling for the burrow package.

This module provides the orchestrator's exception hierarchy, input validation
and consistent error reporting across the application.
"""

from .exceptions import (
    BuildError,
    BurrowError,
    ConcurrencyError,
    ConcurrencyReason,
    ErrorSeverity,
    HealthError,
    LaunchError,
    ShutdownError,
    ValidationError,
    ValidationReason,
    handle_cli_error,
    handle_config_error,
    handle_error,
)
from .validators import (
    validate_command_template,
    validate_enum_choice,
    validate_path_exists,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Exceptions
    "BurrowError",
    "ValidationError",
    "ValidationReason",
    "BuildError",
    "LaunchError",
    "HealthError",
    "ShutdownError",
    "ConcurrencyError",
    "ConcurrencyReason",
    # Error handling
    "ErrorSeverity",
    "handle_error",
    "handle_config_error",
    "handle_cli_error",
    # Validators
    "validate_command_template",
    "validate_enum_choice",
    "validate_path_exists",
    "validate_port",
    "validate_positive_float",
    "validate_positive_integer",
]
