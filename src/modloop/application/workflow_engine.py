"""
WorkflowEngine: explicit state machine over the seven workflow steps.

Transitions only via the declared table in modloop.domain.workflow.
"""

import logging

from modloop.domain.interfaces import StateAssessorInterface
from modloop.domain.models import WorkflowPhase, WorkflowStep, WorkflowTrigger
from modloop.domain.workflow import (
    COMPLETING_TRIGGER,
    next_step,
    permitted_triggers,
    phase_for_step,
)

logger = logging.getLogger(__name__)


class WorkflowEngine:
    """
    Tracks the current step of one module run.

    The step is seeded from the StateAssessor on every initialize(), so a
    restarted run re-derives its position from the environment.
    """

    def __init__(
        self,
        assessor: StateAssessorInterface,
        initial_step: WorkflowStep = WorkflowStep.DRAFT_SPECIFICATION,
    ):
        """
        Args:
            assessor: Source of the actual current step
            initial_step: Step before the first initialize()
        """
        self._assessor = assessor
        self._current_step = initial_step
        self._is_complete = False

    @property
    def current_step(self) -> WorkflowStep:
        return self._current_step

    @property
    def current_phase(self) -> WorkflowPhase:
        return phase_for_step(self._current_step)

    @property
    def is_complete(self) -> bool:
        return self._is_complete

    def initialize(self, module: str) -> None:
        """Seed the current step from the assessor and clear completion."""
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")

        self._current_step = self._assessor.get_current_step(module)
        self._is_complete = False
        logger.info(
            "Workflow initialized for module %s at step %s (phase: %s)",
            module,
            self._current_step.value,
            self.current_phase.value,
        )

    def fire(self, trigger: WorkflowTrigger) -> bool:
        """
        Attempt a transition.

        Returns:
            False, leaving state unchanged, when (current step, trigger) is
            not declared; True otherwise
        """
        target = next_step(self._current_step, trigger)
        if target is None:
            logger.warning(
                "Cannot fire trigger %s from step %s",
                trigger.value,
                self._current_step.value,
            )
            return False

        previous = self._current_step
        self._current_step = target
        if trigger is COMPLETING_TRIGGER:
            self._is_complete = True
            logger.info("Workflow complete - all components done")

        logger.info(
            "Workflow transitioned from %s to %s via %s",
            previous.value,
            target.value,
            trigger.value,
        )
        return True

    def can_fire(self, trigger: WorkflowTrigger) -> bool:
        return next_step(self._current_step, trigger) is not None

    def get_permitted_triggers(self) -> tuple[WorkflowTrigger, ...]:
        """Triggers valid from the current step."""
        return permitted_triggers(self._current_step)
