"""
Domain models for the module development loop.

These are pure data structures describing workflow position, guardrail and
failure verdicts, and the results the orchestrator hands back to callers.
All models are immutable (frozen dataclasses) except where noted.
"""

import json
from dataclasses import dataclass, field
from enum import Enum

# =============================================================================
# WORKFLOW POSITION
# =============================================================================


class WorkflowStep(str, Enum):
    """The seven steps of the module development loop."""

    DRAFT_SPECIFICATION = "DraftSpecification"
    DETERMINE_DEPENDENCIES = "DetermineDependencies"
    IDENTIFY_COMPONENTS = "IdentifyComponents"
    SELECT_NEXT_COMPONENT = "SelectNextComponent"
    BREAK_INTO_TASKS = "BreakIntoTasks"
    ITERATE_THROUGH_TASKS = "IterateThroughTasks"
    REPEAT = "Repeat"


class WorkflowTrigger(str, Enum):
    """Events that attempt a step transition."""

    ASSESS = "Assess"
    SPEC_APPROVED = "SpecApproved"
    DEPENDENCIES_DETERMINED = "DependenciesDetermined"
    COMPONENTS_IDENTIFIED = "ComponentsIdentified"
    COMPONENT_SELECTED = "ComponentSelected"
    TASKS_BROKEN_DOWN = "TasksBrokenDown"
    TASK_ITERATION_COMPLETE = "TaskIterationComplete"
    COMPONENT_COMPLETE = "ComponentComplete"
    MODULE_COMPLETE = "ModuleComplete"


class WorkflowPhase(str, Enum):
    """Coarse grouping of steps. Always derived from the step, never stored."""

    REQUIREMENT_GATHERING = "RequirementGathering"
    PLANNING = "Planning"
    BUILDING = "Building"


# =============================================================================
# GUARDRAILS
# =============================================================================


class GuardrailVerdict(str, Enum):
    """Tag of a GuardrailResult."""

    PASS = "pass"
    WARN = "warn"
    BLOCK = "block"


@dataclass(frozen=True)
class GuardrailResult:
    """Outcome of one guardrail: Pass | Warn(message) | Block(message)."""

    verdict: GuardrailVerdict
    message: str = ""

    @classmethod
    def passed(cls) -> "GuardrailResult":
        return cls(GuardrailVerdict.PASS)

    @classmethod
    def warn(cls, message: str) -> "GuardrailResult":
        return cls(GuardrailVerdict.WARN, message)

    @classmethod
    def block(cls, message: str) -> "GuardrailResult":
        return cls(GuardrailVerdict.BLOCK, message)

    @property
    def is_pass(self) -> bool:
        return self.verdict is GuardrailVerdict.PASS

    @property
    def is_warn(self) -> bool:
        return self.verdict is GuardrailVerdict.WARN

    @property
    def is_block(self) -> bool:
        return self.verdict is GuardrailVerdict.BLOCK


@dataclass(frozen=True)
class GuardrailContext:
    """Everything a guardrail may look at, without orchestrator internals."""

    module_name: str
    task_id: str | None = None
    iteration_count: int = 0
    retry_count: int = 0
    tool_call_count: int = 0
    file_read_counts: tuple[tuple[str, int], ...] = ()  # (path, reads)
    command_retry_counts: tuple[tuple[str, int], ...] = ()  # (command, retries)


# =============================================================================
# FAILURE CLASSIFICATION
# =============================================================================


class FailureSeverity(str, Enum):
    WARNING = "Warning"
    TASK_FAILURE = "TaskFailure"
    REPEATED_FAILURE = "RepeatedFailure"
    CRITICAL = "Critical"


class FailureAction(str, Enum):
    SELF_CORRECT = "SelfCorrect"
    PROMPT_USER = "PromptUser"
    BLOCK = "Block"


@dataclass(frozen=True)
class FailureClassification:
    """Escalation verdict produced by the FailureHandler."""

    severity: FailureSeverity
    action: FailureAction
    message: str
    task_id: str | None = None
    consecutive_failures: int = 0


class CriticalErrorKind(str, Enum):
    """Closed set of error kinds that stop a run on first occurrence."""

    IO = "io"
    PERMISSION = "permission"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    SECURITY = "security"


# =============================================================================
# STEP AND RUN RESULTS
# =============================================================================


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single orchestrator iteration."""

    success: bool
    next_trigger: WorkflowTrigger | None = None
    summary: str | None = None
    requires_user_confirmation: bool = False
    is_critical_error: bool = False

    @classmethod
    def succeeded(
        cls, trigger: WorkflowTrigger | None, summary: str | None = None
    ) -> "StepResult":
        return cls(success=True, next_trigger=trigger, summary=summary)

    @classmethod
    def failed(cls, summary: str, is_critical_error: bool = False) -> "StepResult":
        return cls(success=False, summary=summary, is_critical_error=is_critical_error)

    @classmethod
    def needs_confirmation(cls, summary: str) -> "StepResult":
        return cls(success=True, summary=summary, requires_user_confirmation=True)


@dataclass(frozen=True)
class OrchestrationResult:
    """Terminal result of a run. Callers branch on these fields only."""

    is_complete: bool
    iteration_count: int
    final_step: WorkflowStep
    was_interrupted: bool = False
    interruption_reason: str | None = None
    is_critical_error: bool = False
    summary: str | None = None

    @classmethod
    def completed(
        cls, iterations: int, final_step: WorkflowStep, summary: str | None = None
    ) -> "OrchestrationResult":
        return cls(
            is_complete=True,
            iteration_count=iterations,
            final_step=final_step,
            summary=summary or "Module completed successfully",
        )

    @classmethod
    def interrupted(
        cls, iterations: int, final_step: WorkflowStep, reason: str
    ) -> "OrchestrationResult":
        return cls(
            is_complete=False,
            iteration_count=iterations,
            final_step=final_step,
            was_interrupted=True,
            interruption_reason=reason,
            summary=f"Orchestration interrupted: {reason}",
        )

    @classmethod
    def critical_error(
        cls, iterations: int, final_step: WorkflowStep, reason: str
    ) -> "OrchestrationResult":
        return cls(
            is_complete=False,
            iteration_count=iterations,
            final_step=final_step,
            was_interrupted=True,
            interruption_reason=reason,
            is_critical_error=True,
            summary=f"CRITICAL ERROR - execution blocked: {reason}",
        )


@dataclass(frozen=True)
class RunOptions:
    """Per-run switches supplied by the caller."""

    unattended: bool = False
    failure_threshold: int | None = None  # overrides the FailureHandler threshold
    user_prompt: str | None = None  # free text folded into the system prompt


# =============================================================================
# BUDGET AND TOKEN USAGE
# =============================================================================


class BudgetStatus(int, Enum):
    """Ordered so the worse of two statuses is max()."""

    OK = 0
    WARNING = 1
    CONFIRMATION_REQUIRED = 2
    EXCEEDED = 3


@dataclass(frozen=True)
class BudgetVerdict:
    status: BudgetStatus
    message: str = ""
    token_usage_fraction: float | None = None
    request_usage_fraction: float | None = None


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting for one model invocation."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    context_window: int = 0
    is_premium: bool = False


@dataclass(frozen=True)
class SessionTokenMetrics:
    """Cumulative usage snapshot from a token tracker."""

    cumulative_input_tokens: int = 0
    cumulative_output_tokens: int = 0
    premium_request_count: int = 0
    per_iteration: tuple[TokenUsage, ...] = ()

    @property
    def cumulative_tokens(self) -> int:
        return self.cumulative_input_tokens + self.cumulative_output_tokens


# =============================================================================
# MODEL INVOCATION
# =============================================================================


@dataclass(frozen=True)
class ToolDefinition:
    """A tool the model may call, with the phases it is offered in."""

    name: str
    description: str
    phases: tuple[WorkflowPhase, ...] | None = None  # None = every phase


@dataclass(frozen=True)
class ToolCall:
    """One tool call the model made. arguments is the raw JSON object text."""

    name: str
    arguments: str = "{}"

    def argument(self, key: str) -> str | None:
        """A non-empty string argument, or None when absent or unparseable."""
        try:
            parsed = json.loads(self.arguments or "{}")
        except ValueError:
            return None
        value = parsed.get(key) if isinstance(parsed, dict) else None
        return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class ModelResponse:
    """What a ModelClient returns for one call."""

    text: str
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    tool_calls_made: int = 0
    tool_calls: tuple[ToolCall, ...] = ()


@dataclass(frozen=True)
class ModelInvocation:
    """A successful invocation through the fallback chain."""

    response: ModelResponse
    model: str  # the model that answered
    attempted_models: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return self.response.text

    @property
    def token_usage(self) -> TokenUsage:
        return self.response.token_usage

    @property
    def tool_calls_made(self) -> int:
        return self.response.tool_calls_made

    @property
    def tool_calls(self) -> tuple[ToolCall, ...]:
        return self.response.tool_calls


@dataclass(frozen=True)
class ModelSelection:
    """Model chosen for a phase; was_fallback when the phase had none configured."""

    model: str
    was_fallback: bool = False
    original_model: str | None = None


# =============================================================================
# DRIFT, SESSIONS, CHECKPOINTS
# =============================================================================


@dataclass(frozen=True)
class DriftResult:
    """One specification section that changed since the last check."""

    header: str
    previous_hash: str | None = None
    current_hash: str | None = None
    is_new: bool = False
    is_removed: bool = False

    @property
    def action(self) -> str:
        if self.is_new:
            return "added"
        if self.is_removed:
            return "removed"
        return "changed"


class CheckpointTrigger(str, Enum):
    """Why a checkpoint was written."""

    STEP_COMPLETION = "StepCompletion"
    PHASE_TRANSITION = "PhaseTransition"
    TASK_FAILURE = "TaskFailure"
    USER_PAUSE = "UserPause"


@dataclass(frozen=True)
class SessionState:
    session_id: str
    module: str
    phase: str
    step: str
    is_complete: bool = False
    created_at: str = ""  # ISO 8601
    updated_at: str = ""


@dataclass(frozen=True)
class SessionMetrics:
    session_id: str
    cumulative_input_tokens: int = 0
    cumulative_output_tokens: int = 0
    premium_request_count: int = 0
    iteration_count: int = 0
    updated_at: str = ""


@dataclass(frozen=True)
class BranchResult:
    """Outcome of ensuring a module branch exists."""

    branch: str
    success: bool
    created: bool = False
    message: str = ""
