"""
Burrow: build, run and health-check a local HTTP server.

The package is organized into specialized modules:
- config: Configuration loading, XDG paths and validation
- models: Data structures and type definitions
- validation: Exception hierarchy, input validation and error handling
- orchestration: Build, launch, health monitoring and shutdown of the server
- cli: Command-line interface

Usage:
    From command line:
        burrow serve path/to/server.go --port 8080

    Programmatically:
        from burrow import Orchestrator, create_event_queue, get_config
        orchestrator = Orchestrator.from_config(get_config())
        events = create_event_queue()
        orchestrator.start_server("server.go", "8080", events)
        ...
        orchestrator.stop_server()
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .orchestration import (
    Orchestrator,
    ServerService,
    SimulatedServerService,
    create_event_queue,
    create_server_service,
)
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    Event,
    EventKind,
    ServerConfig,
    ServerSpec,
    ServerStatus,
    SessionState,
    TimingConfig,
)

# Errors
from .validation import (
    BuildError,
    BurrowError,
    ConcurrencyError,
    HealthError,
    LaunchError,
    ShutdownError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "Orchestrator",
    "ServerService",
    "SimulatedServerService",
    "create_event_queue",
    "create_server_service",
    "main_cli",
    # Models
    "AppConfig",
    "Event",
    "EventKind",
    "ServerConfig",
    "ServerSpec",
    "ServerStatus",
    "SessionState",
    "TimingConfig",
    # Errors
    "BurrowError",
    "BuildError",
    "ConcurrencyError",
    "HealthError",
    "LaunchError",
    "ShutdownError",
    "ValidationError",
]
