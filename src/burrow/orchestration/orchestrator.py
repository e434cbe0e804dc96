"""
The server session state machine.

Orchestrator owns the lifecycle of one supervised subprocess at a time:
validate, build, launch, health-monitor, and an ordered stop. All shared
state lives behind one lock that is only held for reads and updates, never
across a build, a probe, a wait or a queue send.
"""

import logging
import queue
import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from ..models.config import AppConfig
from ..models.server import (
    IDLE_STATUS_TEXT,
    Event,
    ServerSpec,
    ServerStatus,
    SessionState,
)
from ..validation import (
    ConcurrencyError,
    ConcurrencyReason,
    ErrorSeverity,
    handle_error,
    validate_port,
)
from .artifact_builder import ArtifactBuilder
from .event_bus import EventBus
from .health_monitor import HealthMonitor, HttpHealthProbe
from .path_validator import PathValidator
from .process_launcher import ProcessLauncher
from .service import ServerService
from .shared_state import SessionHandle
from .shutdown_coordinator import ShutdownCoordinator

logger = logging.getLogger(__name__)

ACTIVE_STATES = (SessionState.STARTING, SessionState.RUNNING,
                 SessionState.CRASHED, SessionState.STOPPING)


class _StatusTrackingSink:
    """Forwards health notifications and mirrors them into the status text."""

    def __init__(self, orchestrator: "Orchestrator", handle: SessionHandle):
        self._orchestrator = orchestrator
        self._handle = handle

    def update(self, message: str) -> bool:
        self._orchestrator._set_status_text(self._handle, f"Server running: {message}")
        return self._orchestrator.events.update(message)

    def error(self, message: str) -> bool:
        self._orchestrator._set_status_text(self._handle, f"Server unhealthy: {message}")
        return self._orchestrator.events.error(message)


class Orchestrator(ServerService):
    """
    Subprocess-backed server service.

    Collaborators are injected so tests can swap any of them for fakes.
    """

    def __init__(
        self,
        builder: ArtifactBuilder,
        launcher: Optional[ProcessLauncher] = None,
        health_monitor: Optional[HealthMonitor] = None,
        validator: Optional[PathValidator] = None,
        events: Optional[EventBus] = None,
        shutdown_coordinator: Optional[ShutdownCoordinator] = None,
        max_session_seconds: float = 15 * 60.0,
        watch_interval: float = 0.5,
    ):
        self.builder = builder
        self.launcher = launcher or ProcessLauncher()
        self.health_monitor = health_monitor or HealthMonitor()
        self.validator = validator or PathValidator()
        self.events = events or EventBus()
        self.shutdown_coordinator = shutdown_coordinator or ShutdownCoordinator(self.events)
        self.max_session_seconds = max_session_seconds
        self.watch_interval = watch_interval

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._status = ServerStatus()
        self._handle: Optional[SessionHandle] = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "Orchestrator":
        """Build an orchestrator wired from application configuration."""
        events = EventBus()
        timing = config.timing
        return cls(
            builder=ArtifactBuilder(
                cache_dir=config.server.cache_dir,
                build_command=config.server.build_command,
                binary_prefix=config.server.binary_prefix,
            ),
            launcher=ProcessLauncher(),
            health_monitor=HealthMonitor(
                probe=HttpHealthProbe(timeout=timing.probe_timeout),
                warmup_delay=timing.warmup_delay,
                interval=timing.health_interval,
            ),
            validator=PathValidator(config.server.source_suffix),
            events=events,
            shutdown_coordinator=ShutdownCoordinator(events, grace_period=timing.grace_period),
            max_session_seconds=timing.max_session_seconds,
            watch_interval=timing.watch_interval,
        )

    # --- Public contract ---

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def get_status(self) -> ServerStatus:
        with self._lock:
            return replace(self._status)

    def close(self) -> None:
        """Close the health probe's HTTP client; a later session reopens it."""
        self.health_monitor.close()

    def start_server(self, path: Union[str, Path], port: str,
                     events: "Optional[queue.Queue[Event]]" = None) -> None:
        """
        Validate, build and launch the server at `path`, then start monitoring.

        Returns once the process is launched; health results arrive later as
        events.

        Args:
            path: Source file to build
            port: Port the server listens on; also passed as $PORT
            events: Bounded queue receiving session events

        Raises:
            ConcurrencyError: If a session already exists
            ValidationError: If the path or port is invalid
            BuildError: If the build fails
            LaunchError: If the binary cannot be started
        """
        with self._lock:
            if self._state in ACTIVE_STATES:
                raise ConcurrencyError(
                    f"server already running ({self._state.value})",
                    reason=ConcurrencyReason.ALREADY_RUNNING,
                )
            self._state = SessionState.STARTING
            self._status = ServerStatus(running=False, path=str(path),
                                        status_text="Starting server...")

        self.events.attach(events)
        try:
            handle = self._launch_session(path, port)
        except Exception as e:
            handle_error(
                error=e,
                context=f"starting server from {path}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger
            )
            self.events.error(f"failed to start server: {e}")
            self.events.detach()
            with self._lock:
                self._state = SessionState.IDLE
                self._status = ServerStatus()
            raise

        handle.health_thread = threading.Thread(
            target=self.health_monitor.run,
            args=(handle.health_token, handle.spec.health_url,
                  _StatusTrackingSink(self, handle)),
            name="health-monitor",
            daemon=True,
        )
        handle.watch_thread = threading.Thread(
            target=self._watch_session,
            args=(handle,),
            name="session-watch",
            daemon=True,
        )

        with self._lock:
            self._handle = handle

        # Threads are started before RUNNING so a stop can always join them.
        handle.health_thread.start()
        handle.watch_thread.start()

        with self._lock:
            self._state = SessionState.RUNNING
            self._status = ServerStatus(
                running=True,
                path=str(handle.spec.source_path),
                status_text=f"Server running on port {handle.spec.port}",
            )
        logger.info(f"Server session started for {handle.spec.source_path} on port {handle.spec.port}")

    def stop_server(self) -> None:
        """
        Stop the running session and block until it is fully torn down.

        Raises:
            ConcurrencyError: If there is no session, or it is still starting
                or already stopping
        """
        with self._lock:
            if self._state is SessionState.IDLE:
                raise ConcurrencyError("server not running",
                                       reason=ConcurrencyReason.NOT_RUNNING)
            if self._state in (SessionState.STARTING, SessionState.STOPPING):
                raise ConcurrencyError(f"server is {self._state.value}",
                                       reason=ConcurrencyReason.BUSY)
            handle = self._handle
            self._state = SessionState.STOPPING
            self._status = replace(self._status, status_text="Stopping server...")

        self._teardown(handle)

    # --- Session internals ---

    def _launch_session(self, path: Union[str, Path], port: str) -> SessionHandle:
        self.events.update("starting server...")

        source_path = self.validator.validate(path)
        port = validate_port(port)
        self.events.update("valid path")

        self.events.update("building binary...")
        binary_path = self.builder.build(source_path)
        self.events.update("binary built")

        handle = SessionHandle(spec=ServerSpec.create(source_path, port, binary_path))
        handle.process = self.launcher.launch(
            handle.session_token, binary_path, env={"PORT": port}
        )
        self.events.update(f"server launched (pid {handle.process.pid})")
        return handle

    def _set_status_text(self, handle: SessionHandle, text: str) -> None:
        with self._lock:
            if self._handle is handle and self._state is SessionState.RUNNING:
                self._status = replace(self._status, status_text=text)

    def _teardown(self, handle: SessionHandle) -> None:
        """Ordered stop; the caller must already have moved the state to STOPPING."""
        handle.health_token.cancel()
        if handle.health_thread is not None and handle.health_thread is not threading.current_thread():
            handle.health_thread.join()

        self.shutdown_coordinator.shutdown(
            handle.process,
            cleanup=lambda: self.builder.cleanup(handle.spec.binary_path, self.events),
        )

        handle.session_token.cancel()
        handle.join_threads()
        # The sink must be gone before IDLE lets a new session attach its own.
        self.events.detach()

        with self._lock:
            self._state = SessionState.IDLE
            self._status = ServerStatus(status_text=IDLE_STATUS_TEXT)
            self._handle = None

        logger.info(f"Server session for {handle.spec.source_path} torn down")

    def _watch_session(self, handle: SessionHandle) -> None:
        """
        Lifetime watch: flags crashes and stops sessions that outlive the limit.
        """
        while not handle.session_token.wait(self.watch_interval):
            if handle.uptime >= self.max_session_seconds:
                with self._lock:
                    if self._handle is not handle or self._state is SessionState.STOPPING:
                        return
                    expired = self._state in (SessionState.RUNNING, SessionState.CRASHED)
                    if expired:
                        self._state = SessionState.STOPPING
                        self._status = replace(self._status, status_text="Stopping server...")
                if not expired:
                    continue
                self.events.error(
                    f"server exceeded maximum session time of "
                    f"{self.max_session_seconds:g}s, stopping"
                )
                self._teardown(handle)
                return

            returncode = handle.process.poll() if handle.process else None
            if returncode is not None:
                self._mark_crashed(handle, returncode)

    def _mark_crashed(self, handle: SessionHandle, returncode: int) -> None:
        with self._lock:
            if self._handle is not handle or self._state is not SessionState.RUNNING:
                return
            self._state = SessionState.CRASHED
            self._status = ServerStatus(
                running=True,
                path=str(handle.spec.source_path),
                status_text=f"Server crashed (exit code {returncode})",
            )

        logger.error(f"Server process {handle.process.pid} exited unexpectedly with code {returncode}")
        handle.health_token.cancel()
        if handle.health_thread is not None:
            handle.health_thread.join()
        self.events.error(f"server crashed: process exited with code {returncode}")
