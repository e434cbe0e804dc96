"""
Orchestration of a locally built, supervised server process.

Components:
- PathValidator: Source path resolution and checks
- ArtifactBuilder: Build toolchain invocation and binary cache
- ProcessLauncher: Subprocess start-up
- HealthMonitor: Periodic HTTP health probing
- ShutdownCoordinator: Terminate, wait, kill escalation
- EventBus: Bounded non-blocking event delivery
- Orchestrator: Session state machine composing the above
"""

from .artifact_builder import ArtifactBuilder
from .event_bus import DEFAULT_QUEUE_SIZE, EventBus, create_event_queue
from .factory import create_server_service
from .health_monitor import HealthMonitor, HttpHealthProbe
from .orchestrator import Orchestrator
from .path_validator import PathValidator
from .process_launcher import ProcessHandle, ProcessLauncher
from .service import ServerService, SimulatedServerService
from .shared_state import CancellationToken, SessionHandle
from .shutdown_coordinator import ShutdownCoordinator

__all__ = [
    "ArtifactBuilder",
    "CancellationToken",
    "DEFAULT_QUEUE_SIZE",
    "EventBus",
    "HealthMonitor",
    "HttpHealthProbe",
    "Orchestrator",
    "PathValidator",
    "ProcessHandle",
    "ProcessLauncher",
    "ServerService",
    "SessionHandle",
    "ShutdownCoordinator",
    "SimulatedServerService",
    "create_event_queue",
    "create_server_service",
]
