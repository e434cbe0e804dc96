"""
Unit tests for process launching and the shutdown escalation.

These start real Python child processes.
"""

import signal
import subprocess
import sys
from pathlib import Path

import psutil
import pytest

from burrow.orchestration import (
    CancellationToken,
    EventBus,
    ProcessHandle,
    ProcessLauncher,
    ShutdownCoordinator,
    create_event_queue,
)
from burrow.validation import LaunchError

SLEEPER = "import time\nwhile True:\n    time.sleep(0.1)\n"


def _is_gone(pid: int) -> bool:
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


def _spawn(script: str) -> ProcessHandle:
    process = subprocess.Popen([sys.executable, "-c", script], start_new_session=True)
    return ProcessHandle(process, CancellationToken(), Path(sys.executable))


def _stubborn_script(ready_file: Path) -> str:
    return (
        "import pathlib, signal, time\n"
        "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
        f"pathlib.Path({str(ready_file)!r}).write_text('ready')\n"
        "while True:\n"
        "    time.sleep(0.1)\n"
    )


@pytest.fixture
def bus_and_queue():
    bus = EventBus()
    events = create_event_queue(maxsize=100)
    bus.attach(events)
    return bus, events


@pytest.mark.unit
class TestProcessLauncher:
    """Test cases for ProcessLauncher."""

    def test_launch_passes_environment(self, temp_dir):
        marker = temp_dir / "port.txt"
        script = temp_dir / "server"
        script.write_text(
            f"#!{sys.executable}\n"
            "import os, pathlib\n"
            f"pathlib.Path({str(marker)!r}).write_text(os.environ['PORT'])\n"
        )
        script.chmod(0o755)

        handle = ProcessLauncher().launch(CancellationToken(), script, env={"PORT": "4242"})

        assert handle.wait(timeout=10) == 0
        assert marker.read_text() == "4242"
        assert handle.binary_path == script

    def test_cancelled_token_refuses_launch(self, temp_dir):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(LaunchError, match="cancelled"):
            ProcessLauncher().launch(token, Path(sys.executable))

    def test_unrunnable_file(self, temp_dir):
        not_executable = temp_dir / "server"
        not_executable.write_text("plain text")

        with pytest.raises(LaunchError, match="couldn't run file"):
            ProcessLauncher().launch(CancellationToken(), not_executable)

    def test_handle_detaches_with_token(self):
        handle = _spawn(SLEEPER)
        try:
            assert handle.is_alive()
            handle.cancel_token.cancel()
            assert handle.is_detached
            assert handle.is_alive()
        finally:
            handle.kill()
            handle.wait(timeout=10)


@pytest.mark.unit
class TestShutdownCoordinator:
    """Test cases for ShutdownCoordinator."""

    def test_no_process(self, bus_and_queue, event_helpers):
        bus, events = bus_and_queue
        cleaned = []

        ShutdownCoordinator(bus, grace_period=0.1).shutdown(None, lambda: cleaned.append(True))

        assert cleaned == [True]
        assert [e.message for e in event_helpers["drain"](events)] == ["no server process to stop"]

    def test_graceful_shutdown(self, bus_and_queue, event_helpers):
        bus, events = bus_and_queue
        handle = _spawn(SLEEPER)
        cleaned = []

        ShutdownCoordinator(bus, grace_period=5.0).shutdown(handle, lambda: cleaned.append(True))

        assert not handle.is_alive()
        assert cleaned == [True]
        messages = [e.message for e in event_helpers["drain"](events)]
        assert messages == [
            "stopping server",
            "server process shut down gracefully",
            "server not running...ready",
        ]

    def test_non_zero_exit_is_reported(self, bus_and_queue, event_helpers):
        bus, events = bus_and_queue
        handle = _spawn("import sys\nsys.exit(3)\n")
        handle.wait(timeout=10)

        ShutdownCoordinator(bus, grace_period=1.0).shutdown(handle, lambda: None)

        drained = event_helpers["drain"](events)
        assert drained[1].is_error
        assert drained[1].message == "server process exited with error: exit status 3"
        assert drained[-1].message == "server not running...ready"

    @pytest.mark.slow
    def test_force_kill_after_grace_period(self, bus_and_queue, event_helpers, temp_dir):
        bus, events = bus_and_queue
        ready = temp_dir / "ready"
        handle = _spawn(_stubborn_script(ready))
        event_helpers["wait_until"](ready.exists, timeout=10)
        cleaned = []

        ShutdownCoordinator(bus, grace_period=0.3).shutdown(handle, lambda: cleaned.append(True))

        assert not handle.is_alive()
        assert handle.returncode == -signal.SIGKILL
        assert cleaned == [True]
        drained = event_helpers["drain"](events)
        assert [(e.kind.value, e.message) for e in drained] == [
            ("update", "stopping server"),
            ("error", "server didn't shutdown gracefully, force killing"),
            ("update", "server process force killed"),
            ("update", "server not running...ready"),
        ]

    @pytest.mark.slow
    def test_force_kill_reaches_grandchildren(self, bus_and_queue, temp_dir, event_helpers):
        bus, _ = bus_and_queue
        ready = temp_dir / "ready"
        pid_file = temp_dir / "child.pid"
        parent_script = (
            "import pathlib, signal, subprocess, sys, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            f"child = subprocess.Popen([sys.executable, '-c', {_stubborn_script(temp_dir / 'child-ready')!r}])\n"
            f"pathlib.Path({str(pid_file)!r}).write_text(str(child.pid))\n"
            f"pathlib.Path({str(ready)!r}).write_text('ready')\n"
            "while True:\n"
            "    time.sleep(0.1)\n"
        )
        handle = _spawn(parent_script)
        event_helpers["wait_until"](ready.exists, timeout=10)
        event_helpers["wait_until"]((temp_dir / "child-ready").exists, timeout=10)
        child_pid = int(pid_file.read_text())

        ShutdownCoordinator(bus, grace_period=0.3).shutdown(handle, lambda: None)

        event_helpers["wait_until"](lambda: _is_gone(child_pid), timeout=5)

    def test_cleanup_runs_when_terminate_fails(self, bus_and_queue, event_helpers):
        bus, events = bus_and_queue
        handle = _spawn(SLEEPER)
        cleaned = []

        def failing_terminate():
            raise PermissionError("operation not permitted")

        original_terminate = handle.terminate
        handle.terminate = failing_terminate
        try:
            ShutdownCoordinator(bus, grace_period=0.2).shutdown(handle, lambda: cleaned.append(True))
        finally:
            handle.terminate = original_terminate

        assert cleaned == [True]
        assert not handle.is_alive()
        messages = [e.message for e in event_helpers["drain"](events)]
        assert "failed to terminate process: operation not permitted" in messages
        assert "server process force killed" in messages
