"""
PhaseTransitionController: the human gate and two advisory auto-transitions.

- RequirementGathering -> Planning: human gated (approve_specification)
- Planning -> Building: when the plan is structurally complete
- Building -> Complete: when everything is built and all criteria pass
"""

import logging

logger = logging.getLogger(__name__)


class PhaseTransitionController:
    def __init__(self, spec_approved: bool = False):
        self._spec_approved = spec_approved

    @property
    def is_specification_approved(self) -> bool:
        return self._spec_approved

    def approve_specification(self) -> None:
        self._spec_approved = True
        logger.info("Specification approved - human gate passed")

    def reset_approval(self) -> None:
        self._spec_approved = False
        logger.debug("Specification approval reset")

    def can_auto_transition_to_building(
        self, has_components: bool, has_tasks: bool
    ) -> bool:
        can_transition = has_components and has_tasks
        if can_transition:
            logger.info("Auto-transition: Planning -> Building (plan structurally complete)")
        return can_transition

    def can_auto_transition_to_complete(
        self, all_built: bool, all_acceptance_criteria_passed: bool
    ) -> bool:
        can_transition = all_built and all_acceptance_criteria_passed
        if can_transition:
            logger.info("Auto-transition: Building -> Complete (all components + criteria pass)")
        return can_transition
