"""
ResilientModelInvoker: model invocation with a per-phase fallback chain.

Retries exist for availability only. A ModelError flagged model_unavailable
moves on to the next model in the chain; any other error propagates at once.
"""

import logging

from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import ModelError
from modloop.domain.interfaces import ModelClientInterface, ModelSelectorInterface
from modloop.domain.models import ModelInvocation, ToolDefinition, WorkflowPhase

logger = logging.getLogger(__name__)


class ResilientModelInvoker:
    """Wraps a ModelClient with the selector's fallback chain."""

    def __init__(self, client: ModelClientInterface, selector: ModelSelectorInterface):
        self._client = client
        self._selector = selector

    def build_chain(self, phase: WorkflowPhase) -> tuple[str, ...]:
        """Primary model first, then the fallback chain without repeats."""
        primary = self._selector.select_model(phase).model
        chain = [primary]
        for model in self._selector.fallback_chain(phase):
            if model and model not in chain:
                chain.append(model)
        return tuple(chain)

    def invoke(
        self,
        phase: WorkflowPhase,
        prompt: str,
        tools: tuple[ToolDefinition, ...] = (),
        cancel: CancellationToken | None = None,
    ) -> ModelInvocation:
        """
        Invoke the phase's model, falling back while models are unavailable.

        Returns:
            The first successful invocation with the models attempted

        Raises:
            ModelError: The last unavailability error once the chain is
                exhausted, or any non-availability error immediately
            OperationCancelled: When cancel fires
        """
        chain = self.build_chain(phase)
        attempted: list[str] = []
        last_error: ModelError | None = None

        for model in chain:
            if cancel is not None:
                cancel.raise_if_cancelled()
            if attempted:
                logger.warning(
                    "Model %s unavailable, trying fallback %s", attempted[-1], model
                )
            attempted.append(model)

            try:
                response = self._client.invoke(prompt, model, tools, cancel)
            except ModelError as e:
                if not e.model_unavailable:
                    raise
                logger.warning("Model %s unavailable: %s", model, e)
                last_error = e
                continue

            logger.info(
                "Model invocation complete on %s: %d tokens, %d tool calls",
                model,
                response.token_usage.total_tokens,
                response.tool_calls_made,
            )
            return ModelInvocation(
                response=response, model=model, attempted_models=tuple(attempted)
            )

        if last_error is None:
            raise RuntimeError(f"No model configured for phase {phase.value}")
        logger.error("All models unavailable. Tried: %s", ", ".join(attempted))
        raise last_error
