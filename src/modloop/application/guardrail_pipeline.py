"""
GuardrailPipeline: ordered back-pressure checks run before every model call.

Composition mirrors CompositeGuard: guardrails run in order, and a Block from a
short-circuiting guardrail stops evaluation. Policy (what a Warn or Block
means for the run) belongs to the orchestrator.
"""

import logging
from collections.abc import Iterable

from modloop.domain.cancellation import CancellationToken
from modloop.domain.interfaces import GuardrailInterface
from modloop.domain.models import GuardrailContext, GuardrailResult

logger = logging.getLogger(__name__)


class GuardrailPipeline:
    """Evaluates guardrails in ascending order and collects every result."""

    def __init__(self, guardrails: Iterable[GuardrailInterface] = ()):
        """
        Args:
            guardrails: Guardrails in any order; sorted by their order value.
                Ties keep registration order.
        """
        self._guardrails = sorted(guardrails, key=lambda g: g.order)

    @property
    def guardrails(self) -> tuple[GuardrailInterface, ...]:
        return tuple(self._guardrails)

    def evaluate(
        self, context: GuardrailContext, cancel: CancellationToken | None = None
    ) -> tuple[GuardrailResult, ...]:
        """
        Run the guardrails for one iteration.

        Returns:
            Results in evaluation order, ending at the first short-circuiting
            Block when there is one

        Raises:
            OperationCancelled: When cancel fires between guardrails
        """
        results: list[GuardrailResult] = []
        for guardrail in self._guardrails:
            if cancel is not None:
                cancel.raise_if_cancelled()

            result = guardrail.evaluate(context)
            results.append(result)

            if result.is_block and guardrail.short_circuit:
                logger.debug(
                    "%s blocked with short-circuit; skipping %d remaining guardrail(s)",
                    type(guardrail).__name__,
                    len(self._guardrails) - len(results),
                )
                break

        return tuple(results)
