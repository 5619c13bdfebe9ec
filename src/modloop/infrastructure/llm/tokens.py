"""
Token usage tracking across model invocations.
"""

import threading

from modloop.domain.interfaces import TokenTrackerInterface
from modloop.domain.models import SessionTokenMetrics, TokenUsage


class InMemoryTokenTracker(TokenTrackerInterface):
    """Accumulates usage in memory. Safe to read from another thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._iterations: list[TokenUsage] = []
        self._input = 0
        self._output = 0
        self._premium = 0

    def record_usage(self, usage: TokenUsage) -> None:
        with self._lock:
            self._iterations.append(usage)
            self._input += usage.input_tokens
            self._output += usage.output_tokens
            if usage.is_premium:
                self._premium += 1

    def session_metrics(self) -> SessionTokenMetrics:
        with self._lock:
            return SessionTokenMetrics(
                cumulative_input_tokens=self._input,
                cumulative_output_tokens=self._output,
                premium_request_count=self._premium,
                per_iteration=tuple(self._iterations),
            )

    def restore(
        self, cumulative_input: int, cumulative_output: int, premium_count: int
    ) -> None:
        if min(cumulative_input, cumulative_output, premium_count) < 0:
            raise ValueError("restored metrics must be non-negative")
        with self._lock:
            self._input = cumulative_input
            self._output = cumulative_output
            self._premium = premium_count

    def reset(self) -> None:
        with self._lock:
            self._iterations.clear()
            self._input = 0
            self._output = 0
            self._premium = 0
