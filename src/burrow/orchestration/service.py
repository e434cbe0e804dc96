"""
The server capability boundary consumed by front ends.

Two variants implement it: the subprocess-backed Orchestrator and
SimulatedServerService, which walks the same state machine and emits the
same event sequence without building or running anything.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from ..models.server import Event, ServerStatus
from ..validation import ConcurrencyError, ConcurrencyReason, ValidationError, validate_port
from .event_bus import EventBus
from .path_validator import PathValidator

logger = logging.getLogger(__name__)


class ServerService(ABC):
    """Start, stop and inspect one local server session."""

    @abstractmethod
    def start_server(self, path: Union[str, Path], port: str,
                     events: "Optional[queue.Queue[Event]]" = None) -> None:
        ...

    @abstractmethod
    def stop_server(self) -> None:
        ...

    @abstractmethod
    def get_status(self) -> ServerStatus:
        ...

    def close(self) -> None:
        """Release resources held between sessions. Does not stop a running server."""


class SimulatedServerService(ServerService):
    """
    In-memory stand-in used for front-end development and tests.

    Paths and ports are validated exactly like the real service.
    """

    def __init__(self, validator: Optional[PathValidator] = None,
                 events: Optional[EventBus] = None):
        self.validator = validator or PathValidator()
        self.events = events or EventBus()
        self._lock = threading.Lock()
        self._status = ServerStatus()

    def start_server(self, path: Union[str, Path], port: str,
                     events: "Optional[queue.Queue[Event]]" = None) -> None:
        with self._lock:
            if self._status.running:
                raise ConcurrencyError("server already running",
                                       reason=ConcurrencyReason.ALREADY_RUNNING)

        self.events.attach(events)
        self.events.update("starting server...")
        try:
            source_path = self.validator.validate(path)
            port = validate_port(port)
        except ValidationError as e:
            self.events.error(f"failed to start server: {e}")
            self.events.detach()
            raise
        self.events.update("valid path")
        self.events.update("server launched (simulated)")

        with self._lock:
            self._status = ServerStatus(
                running=True,
                path=str(source_path),
                status_text=f"Server running on port {port}",
            )
        logger.info(f"Simulated server session started for {source_path}")

    def stop_server(self) -> None:
        with self._lock:
            if not self._status.running:
                raise ConcurrencyError("server not running",
                                       reason=ConcurrencyReason.NOT_RUNNING)
            self._status = ServerStatus()

        self.events.update("server process shut down gracefully")
        self.events.update("server not running...ready")
        self.events.detach()

    def get_status(self) -> ServerStatus:
        with self._lock:
            return replace(self._status)
