"""
Resource limit guardrail.

Reads premium request usage from a token tracker and compares it against the
configured premium request budget.
"""

import logging

from modloop.domain.interfaces import GuardrailInterface, TokenTrackerInterface
from modloop.domain.models import GuardrailContext, GuardrailResult

logger = logging.getLogger(__name__)

DEFAULT_WARN_THRESHOLD = 0.80
DEFAULT_BLOCK_THRESHOLD = 0.90


class ResourceLimitGuardrail(GuardrailInterface):
    """Warns at the warn threshold and blocks at the block threshold."""

    def __init__(
        self,
        token_tracker: TokenTrackerInterface,
        premium_request_budget: int,
        warn_threshold: float = DEFAULT_WARN_THRESHOLD,
        block_threshold: float = DEFAULT_BLOCK_THRESHOLD,
    ):
        """
        Args:
            token_tracker: Source of the premium request count
            premium_request_budget: Premium requests allowed; must be positive
            warn_threshold: Fraction of budget that triggers a Warn, in (0, 1]
            block_threshold: Fraction of budget that triggers a Block, in (0, 1]
                and above warn_threshold

        Raises:
            ValueError: If the budget or thresholds are out of range
        """
        if premium_request_budget <= 0:
            raise ValueError("premium_request_budget must be positive")
        if not 0 < warn_threshold <= 1:
            raise ValueError("warn_threshold must be between 0 and 1")
        if not 0 < block_threshold <= 1:
            raise ValueError("block_threshold must be between 0 and 1")
        if block_threshold <= warn_threshold:
            raise ValueError("block_threshold must be greater than warn_threshold")

        self._token_tracker = token_tracker
        self._budget = premium_request_budget
        self._warn_threshold = warn_threshold
        self._block_threshold = block_threshold

    @property
    def order(self) -> int:
        return 100

    @property
    def short_circuit(self) -> bool:
        return True

    def evaluate(self, context: GuardrailContext) -> GuardrailResult:
        used = self._token_tracker.session_metrics().premium_request_count
        ratio = used / self._budget

        if ratio >= self._block_threshold:
            logger.warning(
                "Premium request budget at %.0f%% (%d/%d) - blocking",
                ratio * 100,
                used,
                self._budget,
            )
            return GuardrailResult.block(
                f"Premium request budget exceeded ({used}/{self._budget}). "
                "User confirmation required to continue."
            )
        if ratio >= self._warn_threshold:
            logger.warning(
                "Premium request budget at %.0f%% (%d/%d) - warning",
                ratio * 100,
                used,
                self._budget,
            )
            return GuardrailResult.warn(
                f"Approaching premium request budget ({used}/{self._budget})."
            )
        return GuardrailResult.passed()
