"""
Bounded, non-blocking event delivery to the front end.

Events are pushed with put_nowait; when the consumer falls behind and the
queue is full the new event is dropped instead of blocking the producer.
"""

import logging
import queue
import threading
from typing import Optional

from ..models.server import Event, EventKind

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 30


def create_event_queue(maxsize: int = DEFAULT_QUEUE_SIZE) -> "queue.Queue[Event]":
    """Create a bounded queue suitable for passing to start_server."""
    if maxsize <= 0:
        raise ValueError("event queue must be bounded")
    return queue.Queue(maxsize=maxsize)


class EventBus:
    """
    Publishes events onto whichever queue is currently attached.

    The sink reference is swapped under a lock and copied out before the
    send, so the lock is never held while touching the queue.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sink: Optional["queue.Queue[Event]"] = None
        self.dropped = 0

    def attach(self, sink: Optional["queue.Queue[Event]"]) -> None:
        with self._lock:
            self._sink = sink

    def detach(self) -> None:
        self.attach(None)

    @property
    def attached(self) -> bool:
        with self._lock:
            return self._sink is not None

    def publish(self, kind: EventKind, message: str) -> bool:
        """
        Send an event without blocking.

        Returns:
            True if the event was queued, False if there was no sink or it was full
        """
        with self._lock:
            sink = self._sink

        if kind is EventKind.ERROR:
            logger.warning(f"Server event: {message}")
        else:
            logger.info(f"Server event: {message}")

        if sink is None:
            return False

        try:
            sink.put_nowait(Event(kind=kind, message=message))
            return True
        except queue.Full:
            with self._lock:
                self.dropped += 1
            logger.debug(f"Event queue full, dropped event: {message}")
            return False

    def update(self, message: str) -> bool:
        return self.publish(EventKind.UPDATE, message)

    def error(self, message: str) -> bool:
        return self.publish(EventKind.ERROR, message)
