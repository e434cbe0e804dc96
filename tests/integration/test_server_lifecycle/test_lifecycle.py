"""
Integration tests: a real HTTP server built, launched, probed over the
network and stopped.
"""

from pathlib import Path

import pytest

from burrow.models import SessionState
from burrow.orchestration import HttpHealthProbe, create_event_queue

HEALTHY_SERVER = """\
import http.server
import os


class Handler(http.server.BaseHTTPRequestHandler):
    def do_GET(self):
        self.send_response(200 if self.path == "/health" else 404)
        self.end_headers()
        self.wfile.write(b"OK")

    def log_message(self, *args):
        pass


http.server.HTTPServer(("127.0.0.1", int(os.environ["PORT"])), Handler).serve_forever()
"""

UNHEALTHY_SERVER = HEALTHY_SERVER.replace('200 if self.path == "/health" else 404', "503")

SILENT_SERVER = """\
import time

while True:
    time.sleep(0.1)
"""

# Touches "<binary>.ready" once SIGTERM is being ignored.
STUBBORN_SERVER = """\
import pathlib
import signal
import sys
import time

signal.signal(signal.SIGTERM, signal.SIG_IGN)
pathlib.Path(sys.argv[0] + ".ready").touch()
while True:
    time.sleep(0.1)
"""


@pytest.fixture
def http_probe():
    probe = HttpHealthProbe(timeout=1.0)
    yield probe
    probe.close()


@pytest.mark.integration
class TestServerLifecycle:
    """End-to-end lifecycle against real processes and HTTP."""

    def test_healthy_server(self, make_orchestrator, http_probe, write_source, free_port,
                            event_helpers):
        orchestrator = make_orchestrator(probe=http_probe, warmup_delay=0.5, health_interval=0.2)
        events = create_event_queue(maxsize=100)
        source = write_source("server.py", HEALTHY_SERVER)

        orchestrator.start_server(source, free_port, events)
        seen = []
        event_helpers["wait_for_event"](events, lambda e: e.message == "server healthy",
                                        timeout=10, seen=seen)
        orchestrator.stop_server()

        messages = [e.message for e in seen + event_helpers["drain"](events)]
        assert "server reached, starting health checker" in messages
        assert messages[-3:] == [
            "server process shut down gracefully",
            "cleanup successful",
            "server not running...ready",
        ]
        assert not any(e.is_error for e in seen)
        assert orchestrator.state is SessionState.IDLE

    def test_unhealthy_status_code(self, make_orchestrator, http_probe, write_source, free_port,
                                   event_helpers):
        orchestrator = make_orchestrator(probe=http_probe, warmup_delay=0.5, health_interval=0.2)
        events = create_event_queue(maxsize=100)

        orchestrator.start_server(write_source("server.py", UNHEALTHY_SERVER), free_port, events)
        event = event_helpers["wait_for_event"](
            events, lambda e: e.is_error and "status 503" in e.message, timeout=10
        )
        orchestrator.stop_server()

        assert event.message == "server returned status 503 (expected 200)"

    def test_unreachable_server(self, make_orchestrator, http_probe, write_source, free_port,
                                event_helpers):
        # Never binds the port.
        orchestrator = make_orchestrator(probe=http_probe, health_interval=0.2)
        events = create_event_queue(maxsize=100)

        orchestrator.start_server(write_source("server.py", SILENT_SERVER), free_port, events)
        event = event_helpers["wait_for_event"](events, lambda e: e.is_error, timeout=10)
        orchestrator.stop_server()

        assert event.message.startswith("cant reach server")

    @pytest.mark.slow
    def test_stubborn_server_is_force_killed(self, make_orchestrator, write_source, free_port,
                                             event_helpers):
        orchestrator = make_orchestrator(grace_period=0.5)
        events = create_event_queue(maxsize=100)
        source = write_source("server.py", STUBBORN_SERVER)

        orchestrator.start_server(source, free_port, events)
        process = orchestrator._handle.process
        ready = Path(f"{process.binary_path}.ready")
        event_helpers["wait_until"](ready.exists, timeout=10)
        orchestrator.stop_server()

        messages = [e.message for e in event_helpers["drain"](events)]
        stop_index = messages.index("stopping server")
        assert messages[stop_index:] == [
            "stopping server",
            "server didn't shutdown gracefully, force killing",
            "server process force killed",
            "cleanup successful",
            "server not running...ready",
        ]
        assert not process.is_alive()
        assert not orchestrator.builder.binary_path_for(source.resolve()).exists()
