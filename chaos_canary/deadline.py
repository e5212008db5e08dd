"""
Deadline and cancellation token for blocking waits.

A Deadline bounds one wait by a monotonic expiry time and a cancellation
flag. Children created from a parent never outlive the parent's expiry, and
cancelling a parent cancels its children.
"""

import threading
import time
from typing import Callable, List, Optional


class Deadline:
    """
    Expiry time plus cooperative cancellation.

    Args:
        timeout: Seconds from now until expiry
        parent: Optional enclosing deadline (e.g. the host invocation's)
        clock: Monotonic clock, injectable for tests

    Examples:
        >>> invocation = Deadline(600)
        >>> watch_deadline = Deadline(300, parent=invocation)
        >>> invocation.cancel()
        >>> watch_deadline.cancelled
        True
    """

    def __init__(
        self,
        timeout: float,
        parent: Optional["Deadline"] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        if timeout < 0:
            raise ValueError(f"timeout must not be negative, got {timeout}")

        self._clock = clock
        self.timeout = timeout
        self._expires_at = clock() + timeout
        self._cancelled = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()
        self.parent = parent

        if parent is not None:
            self._expires_at = min(self._expires_at, parent.expires_at)
            parent.add_callback(self.cancel)

    @property
    def expires_at(self) -> float:
        return self._expires_at

    def remaining(self) -> float:
        """Seconds left before expiry, never negative."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def cancel(self) -> None:
        """Cancel this deadline and every child; runs registered callbacks once."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on cancellation, immediately if already cancelled."""
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def close(self) -> None:
        """Stop following the parent's cancellation."""
        if self.parent is not None:
            self.parent.remove_callback(self.cancel)

    def __enter__(self) -> "Deadline":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return (
            f"Deadline(remaining={self.remaining():.1f}s, "
            f"cancelled={self.cancelled})"
        )
