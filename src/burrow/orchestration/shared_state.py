"""
Shared data structures for the orchestration module.

This module defines the cancellation tokens and the per-session bookkeeping
handed between the orchestrator and its background threads.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ..models.server import ServerSpec

if TYPE_CHECKING:
    from .process_launcher import ProcessHandle


class CancellationToken:
    """
    A cancellable flag that background threads can wait on.

    Tokens form a tree: cancelling a token cancels every child created from
    it, while a child can be cancelled on its own without touching its parent.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._event = threading.Event()
        self._children: List["CancellationToken"] = []
        self._lock = threading.Lock()
        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: "CancellationToken") -> None:
        with self._lock:
            self._children.append(child)
            cancelled = self._event.is_set()
        if cancelled:
            child.cancel()

    def child(self) -> "CancellationToken":
        """Create a token that is cancelled whenever this one is."""
        return CancellationToken(parent=self)

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until cancelled or until `timeout` elapses.

        Returns:
            True if the token was cancelled, False on timeout
        """
        return self._event.wait(timeout)


@dataclass
class SessionHandle:
    """
    Bookkeeping for a single supervised session.

    Created on every start and discarded on stop; never reused.
    """
    spec: ServerSpec
    session_token: CancellationToken = field(default_factory=CancellationToken)
    health_token: Optional[CancellationToken] = None
    process: Optional["ProcessHandle"] = None
    health_thread: Optional[threading.Thread] = None
    watch_thread: Optional[threading.Thread] = None
    started_at: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        if self.health_token is None:
            self.health_token = self.session_token.child()

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def join_threads(self) -> None:
        """Join every outstanding background thread except the calling one."""
        current = threading.current_thread()
        for thread in (self.health_thread, self.watch_thread):
            if thread is not None and thread is not current:
                thread.join()
