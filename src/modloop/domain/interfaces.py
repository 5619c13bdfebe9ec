"""
Domain interfaces (Ports) for the module development loop.

These abstract base classes define the contracts the orchestrator consumes.
They have no external dependencies. Optional collaborators are passed as None
when absent; the orchestrator never assumes they exist.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modloop.domain.cancellation import CancellationToken
    from modloop.domain.models import (
        BranchResult,
        BudgetVerdict,
        CheckpointTrigger,
        DriftResult,
        GuardrailContext,
        GuardrailResult,
        ModelResponse,
        ModelSelection,
        SessionMetrics,
        SessionState,
        SessionTokenMetrics,
        TokenUsage,
        ToolDefinition,
        WorkflowPhase,
        WorkflowStep,
    )


class GuardrailInterface(ABC):
    """
    Port for a back-pressure check run before every model call.

    Guardrails are evaluated in ascending order. A Block from a guardrail
    whose short_circuit is True stops evaluation of the rest.
    """

    @property
    @abstractmethod
    def order(self) -> int:
        """Evaluation order; lower runs first."""
        pass

    @property
    @abstractmethod
    def short_circuit(self) -> bool:
        """Whether a Block from this guardrail skips the remaining guardrails."""
        pass

    @abstractmethod
    def evaluate(self, context: "GuardrailContext") -> "GuardrailResult":
        """
        Evaluate the guardrail.

        Args:
            context: Module, task and counters for the current iteration

        Returns:
            Pass, Warn(message) or Block(message)
        """
        pass


class StateAssessorInterface(ABC):
    """
    Port deriving workflow position from artifacts on disk.

    The assessment is ground truth; persisted steps are only hints.
    """

    @abstractmethod
    def get_current_step(self, module: str) -> "WorkflowStep":
        """Actual current step for the module, derived from artifacts."""
        pass

    @abstractmethod
    def persist_step(self, module: str, step: "WorkflowStep") -> None:
        """Record a step hint for the next assessment."""
        pass

    @abstractmethod
    def is_spec_ready(self, module: str) -> bool:
        """Whether the module has a specification document."""
        pass

    @abstractmethod
    def has_more_components(self, module: str) -> bool:
        """Whether incomplete components remain."""
        pass

    @abstractmethod
    def has_more_tasks(self, module: str) -> bool:
        """Whether the component being built still has open tasks."""
        pass


class ModelClientInterface(ABC):
    """
    Port for a single model invocation.

    Implementations raise ModelError(model_unavailable=True) when the
    requested model cannot be reached, so callers may fall back.
    """

    @abstractmethod
    def invoke(
        self,
        prompt: str,
        model: str,
        tools: "tuple[ToolDefinition, ...]",
        cancel: "CancellationToken | None" = None,
    ) -> "ModelResponse":
        """
        Invoke the model once.

        Args:
            prompt: System prompt for this step
            model: Model identifier
            tools: Tools offered to the model
            cancel: Cancellation signal to observe while waiting

        Returns:
            Response text, token usage and tool calls made

        Raises:
            ModelError: On client failure
            OperationCancelled: When cancel fires mid-call
        """
        pass


class ModelSelectorInterface(ABC):
    """Port choosing models per workflow phase."""

    @abstractmethod
    def select_model(self, phase: "WorkflowPhase") -> "ModelSelection":
        pass

    @abstractmethod
    def fallback_chain(self, phase: "WorkflowPhase") -> tuple[str, ...]:
        """Ordered models to try for the phase, primary first."""
        pass


class ToolRegistryInterface(ABC):
    """Port providing the tools offered in each phase."""

    @abstractmethod
    def tools_for_phase(self, phase: "WorkflowPhase") -> "tuple[ToolDefinition, ...]":
        pass


class PromptBuilderInterface(ABC):
    """Port assembling system prompts."""

    @abstractmethod
    def build(
        self,
        phase: "WorkflowPhase",
        module: str,
        component: str | None = None,
        task: str | None = None,
        extra_context: dict[str, str] | None = None,
    ) -> str:
        pass


class OutputRendererInterface(ABC):
    """Port for everything the user sees or answers."""

    @abstractmethod
    def render_progress(self, phase: str, step: str, fraction: float) -> None:
        pass

    @abstractmethod
    def render_error(self, message: str, cause: BaseException | None = None) -> None:
        pass

    @abstractmethod
    def render_result(self, message: str) -> None:
        pass

    @abstractmethod
    def prompt(
        self, message: str, cancel: "CancellationToken | None" = None
    ) -> str | None:
        """Ask the user a question; None when no answer is available."""
        pass


class DriftServiceInterface(ABC):
    """Port reporting specification sections changed since the last check."""

    @abstractmethod
    def check_drift(
        self, module: str, cancel: "CancellationToken | None" = None
    ) -> "tuple[DriftResult, ...]":
        pass


class GitWorkflowInterface(ABC):
    """Port for module-scoped branch management."""

    @abstractmethod
    def ensure_module_branch(self, module: str) -> "BranchResult":
        pass


class SessionManagerInterface(ABC):
    """Port for session lifecycle and persisted state."""

    @abstractmethod
    def create_session(self, module: str) -> str:
        """Create a session and return its id."""
        pass

    @abstractmethod
    def latest_session_id(self) -> str | None:
        pass

    @abstractmethod
    def session_module(self, session_id: str) -> str | None:
        """Module a session belongs to, or None if unknown."""
        pass

    @abstractmethod
    def load_state(self, session_id: str) -> "SessionState | None":
        pass

    @abstractmethod
    def save_state(self, session_id: str, state: "SessionState") -> None:
        pass

    @abstractmethod
    def load_metrics(self, session_id: str) -> "SessionMetrics | None":
        pass

    @abstractmethod
    def save_metrics(self, session_id: str, metrics: "SessionMetrics") -> None:
        pass


class CheckpointSinkInterface(ABC):
    """Port receiving best-effort progress checkpoints."""

    @abstractmethod
    def save(
        self,
        trigger: "CheckpointTrigger",
        session_id: str,
        state: "SessionState",
        metrics: "SessionMetrics | None" = None,
    ) -> None:
        pass


class TokenTrackerInterface(ABC):
    """Port accumulating token usage across invocations."""

    @abstractmethod
    def record_usage(self, usage: "TokenUsage") -> None:
        pass

    @abstractmethod
    def session_metrics(self) -> "SessionTokenMetrics":
        pass

    @abstractmethod
    def restore(
        self, cumulative_input: int, cumulative_output: int, premium_count: int
    ) -> None:
        """Seed cumulative counters from a resumed session."""
        pass


class PlanStoreInterface(ABC):
    """Port for per-module plan text."""

    @abstractmethod
    def read_plan(self, module: str) -> str | None:
        pass

    @abstractmethod
    def append_plan(self, module: str, text: str) -> None:
        pass


class BudgetEnforcerInterface(ABC):
    """Port turning cumulative usage into a budget verdict."""

    @abstractmethod
    def check(self, cumulative_tokens: int, premium_requests: int) -> "BudgetVerdict":
        pass
