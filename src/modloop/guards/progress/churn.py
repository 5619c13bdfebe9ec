"""
Churn detection guardrail.

Detects when the same task keeps failing and asks for escalation before the
next attempt.
"""

from modloop.domain.interfaces import GuardrailInterface
from modloop.domain.models import GuardrailContext, GuardrailResult

DEFAULT_FAILURE_THRESHOLD = 3


class ChurnDetectionGuardrail(GuardrailInterface):
    """Blocks once retry_count reaches the threshold, warns one retry earlier."""

    def __init__(self, failure_threshold: int = DEFAULT_FAILURE_THRESHOLD):
        if failure_threshold <= 0:
            raise ValueError("failure_threshold must be positive")
        self._threshold = failure_threshold

    @property
    def order(self) -> int:
        return 200

    @property
    def short_circuit(self) -> bool:
        return False

    def evaluate(self, context: GuardrailContext) -> GuardrailResult:
        task = context.task_id or "unknown"
        retries = context.retry_count

        if retries >= self._threshold:
            return GuardrailResult.block(
                f"Task '{task}' has been attempted {retries} times "
                f"(threshold: {self._threshold}). User intervention recommended."
            )
        if retries == self._threshold - 1 and retries > 0:
            return GuardrailResult.warn(
                f"Task '{task}' approaching failure threshold "
                f"({retries}/{self._threshold})."
            )
        return GuardrailResult.passed()
