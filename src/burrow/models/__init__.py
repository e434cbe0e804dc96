"""
Data models for the orchestrator.

Configuration Models:
- Application-wide configuration settings
- Server build and cache settings
- Timing (warm-up, probe interval, grace period, session lifetime)

Session Models:
- Server description and status snapshot
- Events delivered to the front end
- Session state machine states
"""

# Configuration models
from .config import AppConfig, LoggingConfig, ServerConfig, TimingConfig

# Session models
from .server import (
    IDLE_STATUS_TEXT,
    Event,
    EventKind,
    ServerSpec,
    ServerStatus,
    SessionState,
    health_url_for,
)

__all__ = [
    # Configuration
    "AppConfig",
    "LoggingConfig",
    "ServerConfig",
    "TimingConfig",
    # Session
    "IDLE_STATUS_TEXT",
    "Event",
    "EventKind",
    "ServerSpec",
    "ServerStatus",
    "SessionState",
    "health_url_for",
]
