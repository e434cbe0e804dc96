"""
Configuration validation utilities.

Each section of the raw TOML data is validated into its dataclass;
any bad value raises ValidationError naming the offending key.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import AppConfig, LoggingConfig, ServerConfig, TimingConfig
from ..validation import (
    ValidationError,
    validate_command_template,
    validate_enum_choice,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
)
from .paths import get_server_cache_path

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def validate_server_config(server_data: Dict[str, Any]) -> ServerConfig:
    """
    Validate and create a ServerConfig from raw `[server]` data.

    Raises:
        ValidationError: If validation fails
    """
    defaults = ServerConfig()

    default_port = validate_port(
        server_data.get("default_port", defaults.default_port),
        field_name="server.default_port",
    )

    source_suffix = server_data.get("source_suffix", defaults.source_suffix)
    if not isinstance(source_suffix, str) or not source_suffix.startswith("."):
        raise ValidationError(
            "server.source_suffix must be a string starting with '.'",
            field_name="server.source_suffix",
            value=source_suffix,
        )

    build_command = validate_command_template(
        server_data.get("build_command", defaults.build_command),
        field_name="server.build_command",
    )

    binary_prefix = server_data.get("binary_prefix", defaults.binary_prefix)
    if not isinstance(binary_prefix, str) or not binary_prefix.strip() or "/" in binary_prefix:
        raise ValidationError(
            "server.binary_prefix must be a non-empty file name prefix",
            field_name="server.binary_prefix",
            value=binary_prefix,
        )

    cache_dir_value = server_data.get("cache_dir")
    if cache_dir_value in (None, ""):
        cache_dir = get_server_cache_path()
    elif isinstance(cache_dir_value, str):
        cache_dir = Path(cache_dir_value).expanduser()
    else:
        raise ValidationError(
            "server.cache_dir must be a string path",
            field_name="server.cache_dir",
            value=cache_dir_value,
        )

    return ServerConfig(
        default_port=default_port,
        source_suffix=source_suffix,
        build_command=build_command,
        binary_prefix=binary_prefix,
        cache_dir=cache_dir,
    )


def validate_timing_config(timing_data: Dict[str, Any]) -> TimingConfig:
    """
    Validate and create a TimingConfig from raw `[timing]` data.

    Raises:
        ValidationError: If validation fails
    """
    defaults = TimingConfig()

    warmup_delay = validate_positive_float(
        timing_data.get("warmup_delay", defaults.warmup_delay),
        min_value=0.0,
        max_value=60.0,
        field_name="timing.warmup_delay",
    )
    health_interval = validate_positive_float(
        timing_data.get("health_interval", defaults.health_interval),
        min_value=0.01,
        max_value=3600.0,
        field_name="timing.health_interval",
    )
    probe_timeout = validate_positive_float(
        timing_data.get("probe_timeout", defaults.probe_timeout),
        min_value=0.01,
        max_value=300.0,
        field_name="timing.probe_timeout",
    )
    grace_period = validate_positive_float(
        timing_data.get("grace_period", defaults.grace_period),
        min_value=0.01,
        max_value=300.0,
        field_name="timing.grace_period",
    )
    max_session_seconds = validate_positive_float(
        timing_data.get("max_session_seconds", defaults.max_session_seconds),
        min_value=1.0,
        field_name="timing.max_session_seconds",
    )
    watch_interval = validate_positive_float(
        timing_data.get("watch_interval", defaults.watch_interval),
        min_value=0.01,
        max_value=60.0,
        field_name="timing.watch_interval",
    )

    return TimingConfig(
        warmup_delay=warmup_delay,
        health_interval=health_interval,
        probe_timeout=probe_timeout,
        grace_period=grace_period,
        max_session_seconds=max_session_seconds,
        watch_interval=watch_interval,
    )


def validate_logging_config(logging_data: Dict[str, Any]) -> LoggingConfig:
    """
    Validate and create a LoggingConfig from raw `[logging]` data.

    Raises:
        ValidationError: If validation fails
    """
    level = validate_enum_choice(
        logging_data.get("level", "INFO"),
        valid_choices=LOG_LEVELS,
        field_name="logging.level",
    )

    file_value = logging_data.get("file")
    if file_value in (None, ""):
        log_file = None
    elif isinstance(file_value, str):
        log_file = Path(file_value).expanduser()
    else:
        raise ValidationError(
            "logging.file must be a string path",
            field_name="logging.file",
            value=file_value,
        )

    return LoggingConfig(level=level, file=log_file)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate the complete raw configuration.

    Raises:
        ValidationError: If any section fails validation
    """
    events = config_data.get("events", {})
    queue_size = validate_positive_integer(
        events.get("queue_size", 30),
        min_value=1,
        max_value=10000,
        field_name="events.queue_size",
    )

    return AppConfig(
        server=validate_server_config(config_data.get("server", {})),
        timing=validate_timing_config(config_data.get("timing", {})),
        logging=validate_logging_config(config_data.get("logging", {})),
        event_queue_size=queue_size,
    )
