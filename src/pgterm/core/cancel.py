"""Cancellation and deadlines for blocking queries.

A `CancelToken` is created by whoever owns the user interaction and passed to
query-issuing core calls. The core checks it before and after each statement;
while a statement is running, the connection registers an abort callback so a
`cancel()` from another thread interrupts the server-side query.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from pgterm.core.errors import Cancelled


class CancelToken:
    """Thread-safe cancel flag with an optional deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def cancel(self) -> None:
        """Mark the token cancelled and abort any registered in-flight work."""
        with self._lock:
            self._event.set()
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb()

    def raise_if_cancelled(self, operation: str) -> None:
        if self.cancelled:
            raise Cancelled(f"{operation} cancelled")

    def register(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
