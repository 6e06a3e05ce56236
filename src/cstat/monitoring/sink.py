"""One-shot error notification for the background discovery thread.

The sink resolves at most once. An error offered while nobody is waiting
is dropped, never queued, so a consumer that is not blocked in ``wait()``
at that instant misses it. ``state`` tells which of the two happened.
"""

from __future__ import annotations

import threading
from enum import Enum


class SinkState(str, Enum):
    """Resolution state of an ErrorSink."""

    OPEN = "open"
    DELIVERED = "delivered"  # A waiting consumer received the error
    DROPPED = "dropped"  # Offered while nobody was waiting
    CLOSED = "closed"  # Resolved without an error


class ErrorSink:
    """Single-resolution, non-blocking error channel."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._state = SinkState.OPEN
        self._error: BaseException | None = None
        self._waiters = 0

    @property
    def state(self) -> SinkState:
        with self._cond:
            return self._state

    @property
    def resolved(self) -> bool:
        return self.state is not SinkState.OPEN

    def offer(self, error: BaseException) -> bool:
        """Hand ``error`` to a waiting consumer without blocking, then resolve.

        Returns:
            True if a consumer was waiting and received the error
        """
        with self._cond:
            if self._state is not SinkState.OPEN:
                return False
            if self._waiters > 0:
                self._error = error
                self._state = SinkState.DELIVERED
            else:
                self._state = SinkState.DROPPED
            self._cond.notify_all()
            return self._state is SinkState.DELIVERED

    def close(self) -> None:
        """Resolve without an error. No-op if already resolved."""
        with self._cond:
            if self._state is SinkState.OPEN:
                self._state = SinkState.CLOSED
                self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> BaseException | None:
        """Block until the sink resolves.

        Args:
            timeout: Maximum seconds to wait (None waits forever)

        Returns:
            The delivered error, or None if the sink was closed, the error
            was dropped before this call, or the timeout expired
        """
        with self._cond:
            if self._state is not SinkState.OPEN:
                return None
            self._waiters += 1
            try:
                self._cond.wait_for(lambda: self._state is not SinkState.OPEN, timeout)
            finally:
                self._waiters -= 1
            return self._error if self._state is SinkState.DELIVERED else None
