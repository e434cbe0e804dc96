"""
Starting built binaries as supervised subprocesses.
"""

import logging
import os
import signal
import subprocess
import time
from pathlib import Path
from typing import Dict, List, Optional

import psutil

from ..validation import LaunchError
from .shared_state import CancellationToken

logger = logging.getLogger(__name__)


class ProcessHandle:
    """
    A launched server process bound to its session's cancellation token.

    Cancelling the token only detaches the handle from the session; signals
    are sent explicitly by the shutdown coordinator.
    """

    def __init__(self, process: subprocess.Popen, cancel_token: CancellationToken,
                 binary_path: Path):
        self.process = process
        self.cancel_token = cancel_token
        self.binary_path = binary_path
        self.started_at = time.monotonic()

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_detached(self) -> bool:
        return self.cancel_token.is_cancelled

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    def poll(self) -> Optional[int]:
        return self.process.poll()

    def is_alive(self) -> bool:
        return self.process.poll() is None

    def wait(self, timeout: Optional[float] = None) -> int:
        return self.process.wait(timeout=timeout)

    def terminate(self) -> None:
        self.process.terminate()

    def kill(self) -> None:
        self.process.kill()

    def children(self) -> List[psutil.Process]:
        """Live descendants of the server process."""
        try:
            return psutil.Process(self.pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return []

    def kill_process_group(self) -> None:
        """SIGKILL the process group the server leads, if any is left."""
        try:
            os.killpg(self.pid, signal.SIGKILL)
            logger.debug(f"Sent SIGKILL to process group {self.pid}")
        except ProcessLookupError:
            pass
        except PermissionError:
            logger.debug(f"No permission to kill process group {self.pid}")


class ProcessLauncher:
    """
    Starts binaries in their own session, inheriting this process's output.
    """

    def __init__(self, cwd: Optional[Path] = None):
        self.cwd = cwd

    def launch(self, cancel_token: CancellationToken, binary_path: Path,
               env: Optional[Dict[str, str]] = None) -> ProcessHandle:
        """
        Start `binary_path` bound to `cancel_token`.

        Args:
            cancel_token: Session token the process is associated with
            binary_path: Executable to run
            env: Extra environment variables for the child

        Returns:
            Handle to the running process

        Raises:
            LaunchError: If the token is already cancelled or the process cannot start
        """
        if cancel_token.is_cancelled:
            raise LaunchError("launch cancelled before the server started")

        child_env = os.environ.copy()
        if env:
            child_env.update(env)

        try:
            process = subprocess.Popen(
                [str(binary_path)],
                cwd=self.cwd,
                env=child_env,
                start_new_session=True,
            )
        except OSError as e:
            raise LaunchError(f"couldn't run file: {e}") from e

        logger.info(f"Server process started with PID: {process.pid} from {binary_path}")
        return ProcessHandle(process, cancel_token, Path(binary_path))
