"""Tests for PauseGate - cooperative pause across threads."""

import threading
import time

from modloop.application.pause_gate import PauseGate
from modloop.domain.cancellation import CancellationToken


def wait_in_thread(gate: PauseGate, cancel: CancellationToken | None = None):
    """Start a waiter; returns (thread, event set once wait_if_paused returns)."""
    returned = threading.Event()

    def waiter() -> None:
        gate.wait_if_paused(cancel)
        returned.set()

    thread = threading.Thread(target=waiter, daemon=True)
    thread.start()
    return thread, returned


class TestPauseState:
    def test_starts_running(self) -> None:
        assert not PauseGate().is_paused

    def test_pause_and_resume(self) -> None:
        gate = PauseGate()

        gate.pause()
        gate.pause()
        assert gate.is_paused

        gate.resume()
        gate.resume()
        assert not gate.is_paused

    def test_toggle_returns_new_state(self) -> None:
        gate = PauseGate()

        assert gate.toggle() is True
        assert gate.toggle() is False


class TestWaitIfPaused:
    def test_returns_immediately_when_running(self) -> None:
        gate = PauseGate()

        _, returned = wait_in_thread(gate)

        assert returned.wait(timeout=2)

    def test_blocks_until_resume(self) -> None:
        gate = PauseGate()
        gate.pause()

        thread, returned = wait_in_thread(gate)
        assert not returned.wait(timeout=0.1)

        gate.resume()

        assert returned.wait(timeout=2)
        thread.join(timeout=2)

    def test_resume_releases_every_waiter(self) -> None:
        gate = PauseGate()
        gate.pause()
        waiters = [wait_in_thread(gate) for _ in range(3)]
        time.sleep(0.05)

        gate.resume()

        assert all(returned.wait(timeout=2) for _, returned in waiters)

    def test_cancellation_releases_waiter(self) -> None:
        """A paused waiter wakes promptly when the token fires."""
        gate = PauseGate()
        gate.pause()
        cancel = CancellationToken()

        _, returned = wait_in_thread(gate, cancel)
        assert not returned.wait(timeout=0.1)

        cancel.cancel()

        assert returned.wait(timeout=2)
        assert gate.is_paused

    def test_already_cancelled_token_does_not_block(self) -> None:
        gate = PauseGate()
        gate.pause()
        cancel = CancellationToken()
        cancel.cancel()

        _, returned = wait_in_thread(gate, cancel)

        assert returned.wait(timeout=2)

    def test_gate_is_reusable(self) -> None:
        """After a resume the gate can pause and block again."""
        gate = PauseGate()
        gate.pause()
        _, first = wait_in_thread(gate)
        gate.resume()
        assert first.wait(timeout=2)

        gate.pause()
        _, second = wait_in_thread(gate)
        assert not second.wait(timeout=0.1)
        gate.resume()
        assert second.wait(timeout=2)
