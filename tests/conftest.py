"""
Pytest configuration and shared fixtures for the burrow test suite.

Real subprocess tests use Python scripts as "server sources": a Python
build command prepends a shebang for the running interpreter and marks the
result executable, so no Go toolchain is needed.
"""

import queue
import shutil
import socket
import sys
import tempfile
import time
from pathlib import Path
from typing import Callable, List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from burrow.models import Event  # noqa: E402
from burrow.orchestration import (  # noqa: E402
    ArtifactBuilder,
    EventBus,
    HealthMonitor,
    Orchestrator,
    PathValidator,
    ProcessLauncher,
    ShutdownCoordinator,
)
from burrow.validation import HealthError  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


PYTHON_BUILD_SCRIPT = (
    "import os, sys\n"
    "source, output = sys.argv[1], sys.argv[2]\n"
    "with open(source) as f:\n"
    "    body = f.read()\n"
    "with open(output, 'w') as f:\n"
    "    f.write('#!' + sys.executable + '\\n' + body)\n"
    "os.chmod(output, 0o755)\n"
)

PYTHON_BUILD_COMMAND = [sys.executable, "-c", PYTHON_BUILD_SCRIPT, "{source}", "{output}"]


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def cache_dir(temp_dir):
    return temp_dir / "cache" / "servers"


@pytest.fixture
def write_source(temp_dir):
    """Write a server source file into the temp dir and return its path."""
    def _write(name: str, body: str) -> Path:
        path = temp_dir / name
        path.write_text(body)
        return path
    return _write


@pytest.fixture
def free_port():
    """A TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return str(sock.getsockname()[1])


@pytest.fixture
def python_builder(cache_dir):
    return ArtifactBuilder(cache_dir=cache_dir, build_command=PYTHON_BUILD_COMMAND)


# ============================================================================
# Fakes
# ============================================================================


class FakeProbe:
    """Health probe returning scripted results; records every URL probed."""

    def __init__(self, failures: List[bool] = None):
        self.failures = list(failures or [])
        self.urls: List[str] = []

    def check(self, url: str) -> None:
        self.urls.append(url)
        fail = self.failures.pop(0) if self.failures else False
        if fail:
            raise HealthError("cant reach server: connection refused")


class RecordingSink:
    """Collects health monitor notifications."""

    def __init__(self):
        self.messages: List[tuple] = []

    def update(self, message: str) -> bool:
        self.messages.append(("update", message))
        return True

    def error(self, message: str) -> bool:
        self.messages.append(("error", message))
        return True


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest.fixture
def scripted_probe():
    """Factory for probes that fail on the listed attempts."""
    return FakeProbe


@pytest.fixture
def recording_sink():
    return RecordingSink()


# ============================================================================
# Orchestrator Fixtures
# ============================================================================


@pytest.fixture
def make_orchestrator(python_builder):
    """
    Build an orchestrator with fast timings, Python "binaries" and an
    injectable probe. Every orchestrator created is stopped at teardown.
    """
    created: List[Orchestrator] = []

    def _make(probe=None, grace_period: float = 0.5, warmup_delay: float = 0.05,
              health_interval: float = 0.1, max_session_seconds: float = 60.0,
              watch_interval: float = 0.05, launcher=None) -> Orchestrator:
        events = EventBus()
        orchestrator = Orchestrator(
            builder=python_builder,
            launcher=launcher or ProcessLauncher(),
            health_monitor=HealthMonitor(
                probe=probe or FakeProbe(),
                warmup_delay=warmup_delay,
                interval=health_interval,
            ),
            validator=PathValidator(".py"),
            events=events,
            shutdown_coordinator=ShutdownCoordinator(events, grace_period=grace_period),
            max_session_seconds=max_session_seconds,
            watch_interval=watch_interval,
        )
        created.append(orchestrator)
        return orchestrator

    yield _make

    for orchestrator in created:
        if orchestrator.get_status().running:
            orchestrator.stop_server()


# ============================================================================
# Test Utilities
# ============================================================================


def drain(events: "queue.Queue[Event]") -> List[Event]:
    """Everything currently in the queue."""
    items = []
    while True:
        try:
            items.append(events.get_nowait())
        except queue.Empty:
            return items


def wait_for_event(events: "queue.Queue[Event]", predicate: Callable[[Event], bool],
                   timeout: float = 5.0, seen: List[Event] = None) -> Event:
    """Consume events until one matches; everything consumed goes into `seen`."""
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AssertionError(f"no matching event within {timeout}s; saw {seen}")
        try:
            event = events.get(timeout=remaining)
        except queue.Empty:
            continue
        if seen is not None:
            seen.append(event)
        if predicate(event):
            return event


def wait_until(condition: Callable[[], bool], timeout: float = 5.0,
               interval: float = 0.02) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError(f"condition not met within {timeout}s")
        time.sleep(interval)


@pytest.fixture
def event_helpers():
    """Provide event queue helpers to tests."""
    return {"drain": drain, "wait_for_event": wait_for_event, "wait_until": wait_until}


@pytest.fixture(autouse=True)
def clear_config_after_test(monkeypatch, temp_dir):
    """Isolate XDG locations and reset the configuration singleton after each test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "xdg_config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(temp_dir / "xdg_cache"))
    monkeypatch.setenv("XDG_STATE_HOME", str(temp_dir / "xdg_state"))
    monkeypatch.delenv("DEFAULT_PORT", raising=False)
    monkeypatch.delenv("BURROW_CACHE_DIR", raising=False)

    yield

    from burrow.config import manager

    manager.clear_config_cache()
    manager._CONFIG_FILE_PATH = None
