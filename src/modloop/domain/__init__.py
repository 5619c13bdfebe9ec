"""
Domain layer for the module development loop.

Contains workflow shape, value models and ports with no external dependencies.
"""

from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import (
    ConfigurationError,
    ModelError,
    OperationCancelled,
    SecurityViolation,
    classify_critical_error,
)
from modloop.domain.interfaces import (
    BudgetEnforcerInterface,
    CheckpointSinkInterface,
    DriftServiceInterface,
    GitWorkflowInterface,
    GuardrailInterface,
    ModelClientInterface,
    ModelSelectorInterface,
    OutputRendererInterface,
    PlanStoreInterface,
    PromptBuilderInterface,
    SessionManagerInterface,
    StateAssessorInterface,
    TokenTrackerInterface,
    ToolRegistryInterface,
)
from modloop.domain.models import (
    BranchResult,
    BudgetStatus,
    BudgetVerdict,
    CheckpointTrigger,
    CriticalErrorKind,
    DriftResult,
    FailureAction,
    FailureClassification,
    FailureSeverity,
    GuardrailContext,
    GuardrailResult,
    GuardrailVerdict,
    ModelInvocation,
    ModelResponse,
    ModelSelection,
    OrchestrationResult,
    RunOptions,
    SessionMetrics,
    SessionState,
    SessionTokenMetrics,
    StepResult,
    TokenUsage,
    ToolCall,
    ToolDefinition,
    WorkflowPhase,
    WorkflowStep,
    WorkflowTrigger,
)
from modloop.domain.workflow import (
    TRANSITIONS,
    next_step,
    permitted_triggers,
    phase_for_step,
)

__all__ = [
    # Workflow shape
    "WorkflowStep",
    "WorkflowTrigger",
    "WorkflowPhase",
    "TRANSITIONS",
    "next_step",
    "permitted_triggers",
    "phase_for_step",
    # Models
    "BranchResult",
    "BudgetStatus",
    "BudgetVerdict",
    "CheckpointTrigger",
    "CriticalErrorKind",
    "DriftResult",
    "FailureAction",
    "FailureClassification",
    "FailureSeverity",
    "GuardrailContext",
    "GuardrailResult",
    "GuardrailVerdict",
    "ModelInvocation",
    "ModelResponse",
    "ModelSelection",
    "OrchestrationResult",
    "RunOptions",
    "SessionMetrics",
    "SessionState",
    "SessionTokenMetrics",
    "StepResult",
    "TokenUsage",
    "ToolCall",
    "ToolDefinition",
    # Cancellation
    "CancellationToken",
    # Interfaces
    "BudgetEnforcerInterface",
    "CheckpointSinkInterface",
    "DriftServiceInterface",
    "GitWorkflowInterface",
    "GuardrailInterface",
    "ModelClientInterface",
    "ModelSelectorInterface",
    "OutputRendererInterface",
    "PlanStoreInterface",
    "PromptBuilderInterface",
    "SessionManagerInterface",
    "StateAssessorInterface",
    "TokenTrackerInterface",
    "ToolRegistryInterface",
    # Exceptions
    "ConfigurationError",
    "ModelError",
    "OperationCancelled",
    "SecurityViolation",
    "classify_critical_error",
]
