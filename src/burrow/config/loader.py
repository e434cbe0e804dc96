"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the TOML
configuration file and the environment overrides applied on top of it.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Load the main configuration file, falling back to an empty mapping.

    A missing file is not an error: every setting has a default.
    """
    try:
        return load_toml_file(config_path, "main configuration file")
    except FileNotFoundError:
        logger.info(f"No configuration file at {config_path}, using defaults")
        return {}


def apply_env_overrides(config_data: Dict[str, Any],
                        environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Overlay supported environment variables onto raw configuration data.

    Supported variables: ``DEFAULT_PORT`` and ``BURROW_CACHE_DIR``.

    Returns:
        The same dictionary, updated in place
    """
    env = os.environ if environ is None else environ
    server = config_data.setdefault("server", {})

    port = env.get("DEFAULT_PORT")
    if port:
        logger.debug(f"Overriding server.default_port from environment: {port}")
        server["default_port"] = port

    cache_dir = env.get("BURROW_CACHE_DIR")
    if cache_dir:
        logger.debug(f"Overriding server.cache_dir from environment: {cache_dir}")
        server["cache_dir"] = cache_dir

    return config_data
