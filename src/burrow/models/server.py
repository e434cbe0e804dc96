"""
Server session data models.

The description of a launched server, the status snapshot exposed to front ends,
the events delivered through the event queue and the session state machine.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

IDLE_STATUS_TEXT = "Server not running"


def health_url_for(port: str) -> str:
    """Derive the health endpoint probed for a server listening on `port`."""
    return f"http://localhost:{port}/health"


class SessionState(Enum):
    """Lifecycle states of an orchestrator session."""
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    CRASHED = "crashed"
    STOPPING = "stopping"


class EventKind(Enum):
    """Kinds of events delivered to the front end."""
    UPDATE = "update"
    ERROR = "error"


@dataclass(frozen=True)
class Event:
    """A single status or error notification."""

    kind: EventKind
    message: str

    @property
    def is_error(self) -> bool:
        return self.kind is EventKind.ERROR


@dataclass(frozen=True)
class ServerSpec:
    """
    Immutable description of one running session, created on a successful start.
    """

    source_path: Path
    port: str
    health_url: str
    binary_path: Path

    @classmethod
    def create(cls, source_path: Path, port: str, binary_path: Path) -> "ServerSpec":
        return cls(
            source_path=source_path,
            port=port,
            health_url=health_url_for(port),
            binary_path=binary_path,
        )


@dataclass
class ServerStatus:
    """
    The view of session state shared with front ends.

    Only the orchestrator writes it; readers get copies.
    """

    running: bool = False
    path: str = ""
    status_text: str = IDLE_STATUS_TEXT
