"""
Configuration data models.

This module contains the configuration structures for the server
orchestrator, its timing knobs, event delivery and logging.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_BUILD_COMMAND = ["go", "build", "-trimpath", "-o", "{output}", "{source}"]


@dataclass
class ServerConfig:
    """
    How source files are validated, built and cached, loaded from `[server]`.
    """

    default_port: str = "8080"
    # Suffix a source path must carry to be buildable
    source_suffix: str = ".go"
    # argv template; {source} and {output} are substituted at build time
    build_command: List[str] = field(default_factory=lambda: list(DEFAULT_BUILD_COMMAND))
    binary_prefix: str = "burrow-server-"
    cache_dir: Optional[Path] = None


@dataclass
class TimingConfig:
    """
    Intervals and timeouts in seconds, loaded from `[timing]`.
    """

    warmup_delay: float = 1.0
    health_interval: float = 5.0
    probe_timeout: float = 5.0
    grace_period: float = 5.0
    # Upper bound on an unattended session
    max_session_seconds: float = 15 * 60.0
    watch_interval: float = 0.5


@dataclass
class LoggingConfig:
    """Log level and optional log file, loaded from `[logging]`."""

    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class AppConfig:
    """
    The complete, validated application configuration.
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    event_queue_size: int = 30
