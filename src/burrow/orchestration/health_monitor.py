"""
Periodic HTTP health probing of a running server.

Failures are reported as error events and never stop the session: the
monitor only observes, it does not enforce.
"""

import logging
from typing import Optional, Protocol

import httpx

from ..validation import HealthError
from .shared_state import CancellationToken

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def update(self, message: str) -> bool: ...

    def error(self, message: str) -> bool: ...


class HttpHealthProbe:
    """
    One bounded-timeout GET against a health endpoint.

    The response is streamed and closed as soon as the status line is in,
    so no body is read or kept open between probes.
    """

    def __init__(self, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            # Probes target localhost; proxy settings from the environment must not apply.
            self._client = httpx.Client(timeout=self.timeout, trust_env=False)
        return self._client

    def check(self, url: str) -> None:
        """
        Probe `url`.

        Raises:
            HealthError: On a network error or any status other than 200
        """
        try:
            with self.client.stream("GET", url) as response:
                status_code = response.status_code
        except httpx.HTTPError as e:
            raise HealthError(f"cant reach server: {e}") from e

        if status_code != 200:
            raise HealthError(
                f"server returned status {status_code} (expected 200)",
                status_code=status_code,
            )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


class HealthMonitor:
    """
    Probes a server after a warm-up delay and then on a fixed interval.
    """

    def __init__(self, probe: Optional[HttpHealthProbe] = None,
                 warmup_delay: float = 1.0, interval: float = 5.0):
        self.probe = probe or HttpHealthProbe()
        self.warmup_delay = warmup_delay
        self.interval = interval

    def _probe_once(self, cancel_token: CancellationToken, health_url: str,
                    sink: EventSink, success_message: str) -> None:
        try:
            self.probe.check(health_url)
        except HealthError as e:
            if not cancel_token.is_cancelled:
                logger.debug(f"Health probe of {health_url} failed: {e}")
                sink.error(str(e))
            return

        if not cancel_token.is_cancelled:
            sink.update(success_message)

    def run(self, cancel_token: CancellationToken, health_url: str, sink: EventSink) -> None:
        """
        Probe `health_url` until `cancel_token` fires.

        Args:
            cancel_token: Token that ends the loop
            health_url: Endpoint expected to answer 200
            sink: Receives update/error notifications
        """
        logger.info(f"Health monitor started for {health_url}")

        if cancel_token.wait(self.warmup_delay):
            logger.info("Health monitor cancelled during warm-up")
            return

        sink.update("trying to reach server")
        self._probe_once(cancel_token, health_url, sink,
                         "server reached, starting health checker")

        while not cancel_token.wait(self.interval):
            self._probe_once(cancel_token, health_url, sink, "server healthy")

        logger.info(f"Health monitor stopped for {health_url}")

    def close(self) -> None:
        close_probe = getattr(self.probe, "close", None)
        if close_probe is not None:
            close_probe()
