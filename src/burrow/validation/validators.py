"""
Validation functions for configuration values and user input.
"""

from pathlib import Path
from typing import Any, List, Optional, Union

from .exceptions import ValidationError, ValidationReason


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a float within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value"
) -> str:
    """
    Validate that a value is one of the allowed choices (case-insensitive).

    Returns:
        The matching choice as spelled in valid_choices

    Raises:
        ValidationError: If value is not a valid choice
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    for choice in valid_choices:
        if value.lower() == choice.lower():
            return choice
    raise ValidationError(
        f"{field_name} must be one of {valid_choices}, got '{value}'",
        field_name=field_name,
        value=value
    )


def validate_port(port: Any, field_name: str = "port") -> str:
    """
    Validate a TCP port given as a string or integer.

    Returns:
        The port as a string of digits

    Raises:
        ValidationError: If the port is empty, not numeric or out of range
    """
    port_str = str(port).strip() if port is not None else ""
    if not port_str.isdigit():
        raise ValidationError(
            f"{field_name} must be numeric, got '{port}'",
            field_name=field_name,
            value=port
        )
    validate_positive_integer(port_str, min_value=1, max_value=65535, field_name=field_name)
    return str(int(port_str))


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> Path:
    """
    Validate that a path exists.

    Raises:
        ValidationError: If path doesn't exist
    """
    path_obj = Path(path)
    if not path_obj.exists():
        raise ValidationError(
            f"{field_name} does not exist: {path_obj}",
            field_name=field_name,
            value=str(path),
            reason=ValidationReason.NOT_EXIST,
        )
    return path_obj


def validate_command_template(command: Any, field_name: str = "command") -> List[str]:
    """
    Validate an argv template for the build toolchain.

    The template must be a non-empty list of strings containing both the
    ``{source}`` and ``{output}`` placeholders.

    Raises:
        ValidationError: If the template is malformed
    """
    if not isinstance(command, list) or not command:
        raise ValidationError(
            f"{field_name} must be a non-empty list of strings",
            field_name=field_name,
            value=command
        )
    if not all(isinstance(part, str) and part for part in command):
        raise ValidationError(
            f"{field_name} must only contain non-empty strings",
            field_name=field_name,
            value=command
        )
    joined = " ".join(command)
    for placeholder in ("{source}", "{output}"):
        if placeholder not in joined:
            raise ValidationError(
                f"{field_name} must contain the {placeholder} placeholder",
                field_name=field_name,
                value=command
            )
    return list(command)
