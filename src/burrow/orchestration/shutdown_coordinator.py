"""
Ordered, escalating termination of the server process.

SIGTERM first, then a grace period raced against a waiter thread, then
SIGKILL of the process and anything it left behind. Every failure is reported
as an event; nothing is raised to the caller.
"""

import logging
import signal
import threading
from typing import Callable, List, Optional

import psutil

from ..validation import ErrorSeverity, ShutdownError, handle_error
from .event_bus import EventBus
from .process_launcher import ProcessHandle

logger = logging.getLogger(__name__)


class _ExitWaiter:
    """Waits for process exit on a transient thread."""

    def __init__(self, process: ProcessHandle):
        self.process = process
        self.exited = threading.Event()
        self.returncode: Optional[int] = None
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._wait, name=f"exit-waiter-{process.pid}", daemon=True
        )

    def start(self) -> "_ExitWaiter":
        self._thread.start()
        return self

    def _wait(self) -> None:
        try:
            self.returncode = self.process.wait()
        except Exception as e:
            self.error = e
        finally:
            self.exited.set()

    def join(self) -> None:
        self._thread.join()


class ShutdownCoordinator:
    """
    Runs the terminate, wait, kill escalation against one process.
    """

    def __init__(self, events: EventBus, grace_period: float = 5.0):
        self.events = events
        self.grace_period = grace_period

    def _report(self, error: Exception, context: str) -> None:
        handle_error(
            error=ShutdownError(f"{context}: {error}"),
            context="server shutdown",
            severity=ErrorSeverity.WARNING,
            reraise=False,
            logger=logger
        )
        self.events.error(f"{context}: {error}")

    def _report_exit(self, waiter: _ExitWaiter) -> None:
        if waiter.error is not None:
            self._report(waiter.error, "failed waiting for server process")
            return

        returncode = waiter.returncode
        if returncode in (0, -signal.SIGTERM):
            logger.info(f"Server process exited with code {returncode} after SIGTERM")
            self.events.update("server process shut down gracefully")
        else:
            self.events.error(f"server process exited with error: exit status {returncode}")

    def _force_kill(self, process: ProcessHandle, waiter: _ExitWaiter) -> None:
        self.events.error("server didn't shutdown gracefully, force killing")
        leftovers: List[psutil.Process] = process.children()

        try:
            process.kill()
        except OSError as e:
            self._report(e, f"failed to kill process {process.pid}")
        else:
            self.events.update("server process force killed")

        # Nothing may outlive the server, whatever happened to the kill.
        waiter.join()
        process.kill_process_group()
        for child in leftovers:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied as e:
                self._report(e, f"failed to kill child process {child.pid}")
        if leftovers:
            psutil.wait_procs(leftovers, timeout=self.grace_period)

    def shutdown(self, process: Optional[ProcessHandle],
                 cleanup: Callable[[], None]) -> None:
        """
        Stop `process` and then always run `cleanup`.

        Args:
            process: Live server process, or None if none was started
            cleanup: Artifact cleanup, run on every path
        """
        try:
            if process is None:
                self.events.update("no server process to stop")
                return

            self.events.update("stopping server")
            logger.info(f"Stopping server process (PID: {process.pid})")

            try:
                process.terminate()
            except OSError as e:
                self._report(e, "failed to terminate process")

            waiter = _ExitWaiter(process).start()
            if waiter.exited.wait(self.grace_period):
                self._report_exit(waiter)
            else:
                logger.warning(
                    f"Server process {process.pid} still running after "
                    f"{self.grace_period}s grace period"
                )
                self._force_kill(process, waiter)
        finally:
            cleanup()

        self.events.update("server not running...ready")
