"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import apply_env_overrides, load_main_config
from .paths import get_config_path
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Overridden by set_config_path (tests, or --config on the command line).
_CONFIG_FILE_PATH: Optional[Path] = None


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop any cached configuration.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = config_path
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def get_config_file_path() -> Path:
    return _CONFIG_FILE_PATH or get_config_path()


def load_config(config_path: Path) -> AppConfig:
    """
    Load the application configuration from a TOML file plus environment.

    Args:
        config_path: Path to config.toml; a missing file yields defaults

    Returns:
        Fully validated AppConfig instance

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    try:
        config_data = load_main_config(config_path)
        apply_env_overrides(config_data)
        app_config = validate_app_config(config_data)
        logger.info(
            f"Configuration loaded: default port {app_config.server.default_port}, "
            f"cache dir {app_config.server.cache_dir}"
        )
        return app_config
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(get_config_file_path())
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None
