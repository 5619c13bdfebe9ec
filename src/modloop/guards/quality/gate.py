"""
Quality gate guardrail.

Enforces verification at completion boundaries. Both predicates are supplied
by the caller, so the guardrail itself does no I/O.
"""

from collections.abc import Callable

from modloop.domain.interfaces import GuardrailInterface
from modloop.domain.models import GuardrailContext, GuardrailResult

ContextPredicate = Callable[[GuardrailContext], bool]


class QualityGateGuardrail(GuardrailInterface):
    """
    Blocks completion of a task or module until verification has passed.

    Outside a completion boundary it always passes.
    """

    def __init__(
        self,
        is_completion_boundary: ContextPredicate,
        has_passing_verification: ContextPredicate,
    ):
        """
        Args:
            is_completion_boundary: True when the context marks a completion
            has_passing_verification: True when verification passed for the scope
        """
        self._is_completion_boundary = is_completion_boundary
        self._has_passing_verification = has_passing_verification

    @property
    def order(self) -> int:
        return 300

    @property
    def short_circuit(self) -> bool:
        return True

    def evaluate(self, context: GuardrailContext) -> GuardrailResult:
        if not self._is_completion_boundary(context):
            return GuardrailResult.passed()
        if self._has_passing_verification(context):
            return GuardrailResult.passed()
        return GuardrailResult.block(
            f"Quality gate: completion of '{context.task_id or context.module_name}' "
            "requires passing verification first."
        )
