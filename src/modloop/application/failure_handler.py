"""
FailureHandler: per-task consecutive failure counters and escalation verdicts.

- Single failure: self-correct inline
- Repeated failure (count >= threshold): prompt the user
- Critical system error: block, regardless of counters
- Warning: informational only

Only the orchestrator's loop thread touches the counters, so they are not
locked. Sharing one handler across concurrent module runs would need per-key
synchronisation.
"""

import logging

from modloop.domain.models import (
    FailureAction,
    FailureClassification,
    FailureSeverity,
)

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 3


def _require_text(value: str, name: str) -> None:
    if not value or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")


class FailureHandler:
    """Classifies failures by how often the same task has failed in a row."""

    def __init__(self, failure_threshold: int = DEFAULT_FAILURE_THRESHOLD):
        """
        Args:
            failure_threshold: Consecutive failures before the user is asked
                to intervene. Must be positive.
        """
        if failure_threshold <= 0:
            raise ValueError("failure_threshold must be positive")
        self._threshold = failure_threshold
        self._failure_counts: dict[str, int] = {}

    @property
    def failure_threshold(self) -> int:
        return self._threshold

    def record_failure(self, task_id: str, message: str) -> FailureClassification:
        """Increment the task's counter and classify the failure."""
        _require_text(task_id, "task_id")
        _require_text(message, "message")

        count = self._failure_counts.get(task_id, 0) + 1
        self._failure_counts[task_id] = count

        if count >= self._threshold:
            logger.warning(
                "Task %s has failed %d times (threshold: %d) - user intervention needed",
                task_id,
                count,
                self._threshold,
            )
            return FailureClassification(
                severity=FailureSeverity.REPEATED_FAILURE,
                action=FailureAction.PROMPT_USER,
                message=(
                    f"Task '{task_id}' has failed {count} consecutive times. "
                    "User intervention recommended."
                ),
                task_id=task_id,
                consecutive_failures=count,
            )

        logger.info(
            "Task %s failed (%d/%d) - self-correcting inline",
            task_id,
            count,
            self._threshold,
        )
        return FailureClassification(
            severity=FailureSeverity.TASK_FAILURE,
            action=FailureAction.SELF_CORRECT,
            message=f"Task '{task_id}' failed (attempt {count}/{self._threshold}). Self-correcting.",
            task_id=task_id,
            consecutive_failures=count,
        )

    def record_critical_error(self, message: str) -> FailureClassification:
        """Critical errors block on first occurrence."""
        _require_text(message, "message")
        logger.error("Critical error - blocking: %s", message)
        return FailureClassification(
            severity=FailureSeverity.CRITICAL,
            action=FailureAction.BLOCK,
            message=message,
        )

    def record_warning(self, message: str) -> FailureClassification:
        _require_text(message, "message")
        logger.warning("Warning: %s", message)
        return FailureClassification(
            severity=FailureSeverity.WARNING,
            action=FailureAction.SELF_CORRECT,
            message=message,
        )

    def reset_failure_count(self, task_id: str) -> None:
        _require_text(task_id, "task_id")
        self._failure_counts.pop(task_id, None)

    def get_failure_count(self, task_id: str) -> int:
        _require_text(task_id, "task_id")
        return self._failure_counts.get(task_id, 0)
