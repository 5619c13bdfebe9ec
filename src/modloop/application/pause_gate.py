"""
PauseGate: cooperative pause/resume between the loop and an outside actor.

Written from two threads (the control loop and e.g. an input handler), so all
state changes happen under one condition variable.
"""

import threading

from modloop.domain.cancellation import CancellationToken


class PauseGate:
    """Binary paused/running signal the control loop waits on."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._paused = False

    @property
    def is_paused(self) -> bool:
        with self._condition:
            return self._paused

    def pause(self) -> None:
        """Pause. No-op when already paused."""
        with self._condition:
            self._paused = True

    def resume(self) -> None:
        """Resume and release every waiter. No-op when running."""
        with self._condition:
            if not self._paused:
                return
            self._paused = False
            self._condition.notify_all()

    def toggle(self) -> bool:
        """Flip the state; returns True when now paused."""
        with self._condition:
            self._paused = not self._paused
            if not self._paused:
                self._condition.notify_all()
            return self._paused

    def wait_if_paused(self, cancel: CancellationToken | None = None) -> None:
        """
        Return immediately when running; otherwise block until resume() or
        cancellation. The gate stays usable for the next pause.

        The paused flag is checked under the same lock resume() takes, so a
        resume that lands just before the wait is never missed.
        """
        with self._condition:
            if not self._paused:
                return

        unregister = cancel.register(self._wake) if cancel is not None else None
        try:
            with self._condition:
                self._condition.wait_for(
                    lambda: not self._paused
                    or (cancel is not None and cancel.is_cancelled)
                )
        finally:
            if unregister is not None:
                unregister()

    def _wake(self) -> None:
        with self._condition:
            self._condition.notify_all()
