"""
Command-line interface for burrow.

`burrow serve PATH` builds and launches the server at PATH, prints the
session's events to the console until interrupted, and then stops it.
"""

import argparse
import logging
import queue
import signal
import sys
import threading
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import (
    ensure_directories,
    get_config,
    get_log_path,
    set_config_path,
)
from ..models.server import Event
from ..orchestration import create_event_queue, create_server_service
from ..orchestration.service import ServerService
from ..validation import (
    BurrowError,
    ConcurrencyError,
    ConcurrencyReason,
    ErrorSeverity,
    ValidationError,
    handle_cli_error,
    handle_error,
)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def setup_logging(level: str, log_file: Optional[Path], verbose: bool = False) -> None:
    """
    Configure root logging.

    The console only shows warnings unless `verbose`, since session events are
    already printed; the log file, when available, receives everything at `level`.
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level if verbose else max(logging.WARNING, logging.getLevelName(level)))

    if log_file is None:
        return
    try:
        ensure_directories([log_file.parent])
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        handle_error(
            error=e,
            context=f"opening log file {log_file}",
            severity=ErrorSeverity.WARNING,
            reraise=False,
            logger=logger
        )
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(file_handler)


def format_event(event: Event) -> str:
    return f"[{event.kind.value}] {event.message}"


def drain_events(events: "queue.Queue[Event]") -> None:
    while True:
        try:
            event = events.get_nowait()
        except queue.Empty:
            return
        print(format_event(event), flush=True)


def run_session(service: ServerService, path: str, port: str,
                events: "queue.Queue[Event]", stop_requested: threading.Event,
                poll_interval: float = 0.25) -> int:
    """
    Drive one session: start, print events until stopped, then stop.

    Returns:
        Process exit code
    """
    try:
        service.start_server(path, port, events)
    except BurrowError as e:
        drain_events(events)
        print(f"Failed to start server: {e}", file=sys.stderr)
        return 1

    while not stop_requested.is_set():
        try:
            event = events.get(timeout=poll_interval)
            print(format_event(event), flush=True)
        except queue.Empty:
            pass
        if not service.get_status().running:
            logger.info("Session ended without a stop request")
            break

    if service.get_status().running:
        try:
            service.stop_server()
        except ConcurrencyError as e:
            if e.reason is not ConcurrencyReason.BUSY:
                logger.warning(f"Could not stop server: {e}")
            else:
                # Another thread owns the stop; return only once it has finished.
                logger.info("Server is already stopping, waiting for it to finish")
                while service.get_status().running:
                    try:
                        print(format_event(events.get(timeout=poll_interval)), flush=True)
                    except queue.Empty:
                        pass

    drain_events(events)
    print(service.get_status().status_text, flush=True)
    return 0


def build_parser(default_port: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="burrow",
        description="Build, run and health-check a local HTTP server.",
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml.")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level.",
    )
    parser.add_argument("--log-file", type=Path, help="Write logs to this file.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Also show informational logs on the console.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    serve = subparsers.add_parser("serve", help="Build and supervise a server.")
    serve.add_argument("path", help="Server source file to build.")
    serve.add_argument(
        "-p",
        "--port",
        default=None,
        help=f"Port the server listens on (default from config, currently {default_port}).",
    )
    serve.add_argument("--simulate", action="store_true",
                       help="Walk through the lifecycle without building or running anything.")
    return parser


def _pre_parse_config(argv: Optional[List[str]]) -> Optional[Path]:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path)
    known, _ = pre.parse_known_args(argv)
    return known.config


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Main command-line entry point.

    Raises:
        SystemExit: On configuration errors
    """
    config_path = _pre_parse_config(argv)
    if config_path is not None:
        set_config_path(config_path)

    try:
        app_config = get_config()
    except (ValidationError, tomllib.TOMLDecodeError, OSError) as e:
        logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, stream=sys.stderr)
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    parser = build_parser(app_config.server.default_port)
    args = parser.parse_args(argv)

    log_file = args.log_file or app_config.logging.file or get_log_path()
    setup_logging(args.log_level or app_config.logging.level, log_file, verbose=args.verbose)

    stop_requested = threading.Event()

    def global_signal_handler(signum, frame):
        """Ask the session loop to stop the server and exit."""
        if stop_requested.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        logger.info(f"Signal {signal.strsignal(signum)} received. Stopping server...")
        stop_requested.set()

    signal.signal(signal.SIGINT, global_signal_handler)
    signal.signal(signal.SIGTERM, global_signal_handler)

    service = create_server_service(app_config, simulate=args.simulate)
    events = create_event_queue(app_config.event_queue_size)
    port = args.port or app_config.server.default_port
    try:
        return run_session(service, args.path, port, events, stop_requested)
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main_cli())
