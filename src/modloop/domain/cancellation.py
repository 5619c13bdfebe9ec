"""
Cooperative cancellation shared by every suspension point of a run.

A single CancellationToken is threaded through the orchestrator, the pause
gate, guardrails, drift checks, model calls and confirmation prompts.
"""

import threading
from collections.abc import Callable

from modloop.domain.exceptions import OperationCancelled


class CancellationToken:
    """
    Thread-safe, one-way cancellation signal.

    cancel() may be called from any thread. Blocked waiters register a
    callback to be woken promptly instead of polling is_cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation and run registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run callback on cancellation (immediately if already cancelled).

        Returns:
            A function that unregisters the callback
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout; True if cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled")
