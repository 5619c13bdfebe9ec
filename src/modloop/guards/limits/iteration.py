"""
Iteration limit guardrail.

Pure guardrail - looks only at the iteration counter in the context.
"""

from modloop.domain.interfaces import GuardrailInterface
from modloop.domain.models import GuardrailContext, GuardrailResult

DEFAULT_MAX_ITERATIONS = 100
WARN_FRACTION = 0.9


class IterationLimitGuardrail(GuardrailInterface):
    """
    Stops a run that keeps looping without completing.

    Warns from 90% of the limit, blocks once the limit is passed.
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        self._max_iterations = max_iterations

    @property
    def order(self) -> int:
        return 50

    @property
    def short_circuit(self) -> bool:
        return True

    def evaluate(self, context: GuardrailContext) -> GuardrailResult:
        count = context.iteration_count
        if count > self._max_iterations:
            return GuardrailResult.block(
                f"Iteration limit reached ({count}/{self._max_iterations}) "
                f"for module '{context.module_name}'."
            )
        if count >= self._max_iterations * WARN_FRACTION:
            return GuardrailResult.warn(
                f"Approaching iteration limit ({count}/{self._max_iterations})."
            )
        return GuardrailResult.passed()
