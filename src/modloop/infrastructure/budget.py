"""
Budget enforcement over token and premium request usage.
"""

from modloop.domain.interfaces import BudgetEnforcerInterface
from modloop.domain.models import BudgetStatus, BudgetVerdict

DEFAULT_WARNING_THRESHOLD = 0.8
DEFAULT_CONFIRMATION_THRESHOLD = 0.9


class BudgetEnforcer(BudgetEnforcerInterface):
    """
    Checks cumulative usage against per-module budgets.

    A limit <= 0 disables that budget. The worse of the token and request
    statuses is reported.
    """

    def __init__(
        self,
        token_budget: int = 0,
        premium_request_budget: int = 0,
        warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
        confirmation_threshold: float = DEFAULT_CONFIRMATION_THRESHOLD,
    ):
        if not 0 < warning_threshold <= confirmation_threshold <= 1:
            raise ValueError(
                "thresholds must satisfy 0 < warning_threshold <= confirmation_threshold <= 1"
            )
        self._token_budget = token_budget
        self._request_budget = premium_request_budget
        self._warning_threshold = warning_threshold
        self._confirmation_threshold = confirmation_threshold

    def check(self, cumulative_tokens: int, premium_requests: int) -> BudgetVerdict:
        """
        Raises:
            ValueError: If either usage figure is negative
        """
        if cumulative_tokens < 0 or premium_requests < 0:
            raise ValueError("usage must be non-negative")

        token_status, token_fraction = self._check_single(cumulative_tokens, self._token_budget)
        request_status, request_fraction = self._check_single(
            premium_requests, self._request_budget
        )
        overall = max(token_status, request_status)

        return BudgetVerdict(
            status=overall,
            message=self._message(overall, token_status, token_fraction, request_fraction),
            token_usage_fraction=token_fraction,
            request_usage_fraction=request_fraction,
        )

    def _check_single(self, used: int, limit: int) -> tuple[BudgetStatus, float | None]:
        if limit <= 0:
            return BudgetStatus.OK, None

        fraction = used / limit
        if fraction >= 1.0:
            return BudgetStatus.EXCEEDED, fraction
        if fraction >= self._confirmation_threshold:
            return BudgetStatus.CONFIRMATION_REQUIRED, fraction
        if fraction >= self._warning_threshold:
            return BudgetStatus.WARNING, fraction
        return BudgetStatus.OK, fraction

    @staticmethod
    def _message(
        overall: BudgetStatus,
        token_status: BudgetStatus,
        token_fraction: float | None,
        request_fraction: float | None,
    ) -> str:
        if overall is BudgetStatus.OK:
            return "Budget usage is within limits."

        # The token budget is named when it is the one at the worst status.
        if token_status is overall:
            subject, fraction = "Token", token_fraction or 0.0
        else:
            subject, fraction = "Premium request", request_fraction or 0.0

        if overall is BudgetStatus.EXCEEDED:
            return f"{subject} budget exceeded ({fraction:.0%} used)."
        if overall is BudgetStatus.CONFIRMATION_REQUIRED:
            return f"{subject} usage at {fraction:.0%} - confirmation required to continue."
        return f"{subject} usage at {fraction:.0%} - approaching budget limit."


class NullBudgetEnforcer(BudgetEnforcerInterface):
    """Always within budget."""

    def check(self, cumulative_tokens: int, premium_requests: int) -> BudgetVerdict:
        return BudgetVerdict(BudgetStatus.OK, "Budget enforcement disabled.")
