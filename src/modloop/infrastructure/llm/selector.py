"""
Per-phase model selection with fallback chains.
"""

import logging
from collections.abc import Iterable, Mapping

from modloop.domain.interfaces import ModelSelectorInterface
from modloop.domain.models import ModelSelection, WorkflowPhase

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "qwen2.5-coder:7b"


class DefaultModelSelector(ModelSelectorInterface):
    """
    Selects configured models per phase.

    A phase without a configured model uses the global fallback model.
    """

    def __init__(
        self,
        phase_models: Mapping[WorkflowPhase, str] | None = None,
        phase_fallbacks: Mapping[WorkflowPhase, Iterable[str]] | None = None,
        global_fallback: str = DEFAULT_MODEL,
    ):
        if not global_fallback or not global_fallback.strip():
            raise ValueError("global_fallback must be a non-empty string")
        self._phase_models = dict(phase_models or {})
        self._phase_fallbacks = {
            phase: tuple(models) for phase, models in (phase_fallbacks or {}).items()
        }
        self._global_fallback = global_fallback

    def select_model(self, phase: WorkflowPhase) -> ModelSelection:
        configured = self._phase_models.get(phase)
        if configured and configured.strip():
            return ModelSelection(model=configured)

        logger.warning(
            "No model configured for phase %s, falling back to %s",
            phase.value,
            self._global_fallback,
        )
        return ModelSelection(
            model=self._global_fallback, was_fallback=True, original_model=configured
        )

    def fallback_chain(self, phase: WorkflowPhase) -> tuple[str, ...]:
        """[primary] + phase fallbacks + global fallback, blanks and duplicates removed."""
        chain = [self.select_model(phase).model]
        seen = {chain[0].lower()}
        for model in (*self._phase_fallbacks.get(phase, ()), self._global_fallback):
            if model and model.strip() and model.lower() not in seen:
                chain.append(model)
                seen.add(model.lower())
        return tuple(chain)
