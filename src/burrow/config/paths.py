"""
Filesystem locations following the XDG base directory layout.
"""

import logging
import os
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

APP_NAME = "burrow"


def _xdg_home(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    if value and os.path.isabs(value):
        return Path(value)
    return Path.home() / fallback


def get_config_path() -> Path:
    return _xdg_home("XDG_CONFIG_HOME", ".config") / APP_NAME / "config.toml"


def get_log_path() -> Path:
    return _xdg_home("XDG_STATE_HOME", ".local/state") / APP_NAME / "burrow.log"


def get_cache_path() -> Path:
    return _xdg_home("XDG_CACHE_HOME", ".cache") / APP_NAME


def get_server_cache_path() -> Path:
    """Directory holding built server binaries."""
    override = os.environ.get("BURROW_CACHE_DIR")
    if override:
        return Path(override)
    return get_cache_path() / "servers"


def ensure_directories(directories: List[Path]) -> None:
    """
    Create each directory (and parents) if missing.

    Raises:
        OSError: If a directory cannot be created
    """
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {directory}")
