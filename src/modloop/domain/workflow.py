"""
Static shape of the module development loop.

The transition table is the single source of truth for which (step, trigger)
pairs are legal. Anything absent from it is rejected by the engine.
"""

from types import MappingProxyType

from modloop.domain.models import WorkflowPhase, WorkflowStep, WorkflowTrigger

Step = WorkflowStep
Trigger = WorkflowTrigger

TRANSITIONS: MappingProxyType[tuple[WorkflowStep, WorkflowTrigger], WorkflowStep] = (
    MappingProxyType(
        {
            # Requirement gathering (human gated)
            (Step.DRAFT_SPECIFICATION, Trigger.SPEC_APPROVED): Step.DETERMINE_DEPENDENCIES,
            # Planning
            (Step.DETERMINE_DEPENDENCIES, Trigger.DEPENDENCIES_DETERMINED): Step.IDENTIFY_COMPONENTS,
            (Step.IDENTIFY_COMPONENTS, Trigger.COMPONENTS_IDENTIFIED): Step.SELECT_NEXT_COMPONENT,
            (Step.SELECT_NEXT_COMPONENT, Trigger.COMPONENT_SELECTED): Step.BREAK_INTO_TASKS,
            (Step.SELECT_NEXT_COMPONENT, Trigger.MODULE_COMPLETE): Step.REPEAT,
            (Step.BREAK_INTO_TASKS, Trigger.TASKS_BROKEN_DOWN): Step.ITERATE_THROUGH_TASKS,
            # Building
            (Step.ITERATE_THROUGH_TASKS, Trigger.COMPONENT_COMPLETE): Step.REPEAT,
            (Step.ITERATE_THROUGH_TASKS, Trigger.TASK_ITERATION_COMPLETE): Step.ITERATE_THROUGH_TASKS,
            (Step.REPEAT, Trigger.ASSESS): Step.SELECT_NEXT_COMPONENT,
        }
    )
)

# Firing this trigger marks the workflow complete.
COMPLETING_TRIGGER = Trigger.MODULE_COMPLETE

_PHASES: MappingProxyType[WorkflowStep, WorkflowPhase] = MappingProxyType(
    {
        Step.DRAFT_SPECIFICATION: WorkflowPhase.REQUIREMENT_GATHERING,
        Step.DETERMINE_DEPENDENCIES: WorkflowPhase.PLANNING,
        Step.IDENTIFY_COMPONENTS: WorkflowPhase.PLANNING,
        Step.SELECT_NEXT_COMPONENT: WorkflowPhase.PLANNING,
        Step.BREAK_INTO_TASKS: WorkflowPhase.PLANNING,
        Step.ITERATE_THROUGH_TASKS: WorkflowPhase.BUILDING,
        Step.REPEAT: WorkflowPhase.BUILDING,
    }
)

# Default trigger each step resolves to after a successful invocation.
DEFAULT_TRIGGERS: MappingProxyType[WorkflowStep, WorkflowTrigger] = MappingProxyType(
    {
        Step.DRAFT_SPECIFICATION: Trigger.SPEC_APPROVED,
        Step.DETERMINE_DEPENDENCIES: Trigger.DEPENDENCIES_DETERMINED,
        Step.IDENTIFY_COMPONENTS: Trigger.COMPONENTS_IDENTIFIED,
        Step.SELECT_NEXT_COMPONENT: Trigger.COMPONENT_SELECTED,
        Step.BREAK_INTO_TASKS: Trigger.TASKS_BROKEN_DOWN,
        Step.ITERATE_THROUGH_TASKS: Trigger.TASK_ITERATION_COMPLETE,
        Step.REPEAT: Trigger.ASSESS,
    }
)

# Rough position within the loop, for progress rendering.
STEP_PROGRESS: MappingProxyType[WorkflowStep, float] = MappingProxyType(
    {
        Step.DRAFT_SPECIFICATION: 0.05,
        Step.DETERMINE_DEPENDENCIES: 0.15,
        Step.IDENTIFY_COMPONENTS: 0.25,
        Step.SELECT_NEXT_COMPONENT: 0.35,
        Step.BREAK_INTO_TASKS: 0.45,
        Step.ITERATE_THROUGH_TASKS: 0.70,
        Step.REPEAT: 0.90,
    }
)


def phase_for_step(step: WorkflowStep) -> WorkflowPhase:
    """Map a step to its phase."""
    return _PHASES[step]


def next_step(step: WorkflowStep, trigger: WorkflowTrigger) -> WorkflowStep | None:
    """Target of (step, trigger), or None when the pair is not declared."""
    return TRANSITIONS.get((step, trigger))


def permitted_triggers(step: WorkflowStep) -> tuple[WorkflowTrigger, ...]:
    """Triggers declared from step, in enum order."""
    return tuple(t for t in WorkflowTrigger if (step, t) in TRANSITIONS)
