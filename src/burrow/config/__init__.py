"""
Configuration management for the burrow package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    get_config_file_path,
    is_config_loaded,
    load_config,
    set_config_path,
)

# For advanced usage - direct access to loaders, paths and validators
from .loader import apply_env_overrides, load_main_config, load_toml_file
from .paths import (
    ensure_directories,
    get_cache_path,
    get_config_path,
    get_log_path,
    get_server_cache_path,
)
from .validators import (
    validate_app_config,
    validate_logging_config,
    validate_server_config,
    validate_timing_config,
)

__all__ = [
    # Main interface
    "get_config",
    "load_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_file_path",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "apply_env_overrides",
    "ensure_directories",
    "get_cache_path",
    "get_config_path",
    "get_log_path",
    "get_server_cache_path",
    "validate_app_config",
    "validate_logging_config",
    "validate_server_config",
    "validate_timing_config",
]
