"""
modloop: a resumable development loop that drives one module from
specification to completion.

Example:
    from modloop import (
        DefaultModelSelector,
        DefaultPromptBuilder,
        DefaultToolRegistry,
        InMemoryStateAssessor,
        RecordingRenderer,
        ResilientModelInvoker,
        ScriptedModelClient,
        WorkflowOrchestrator,
    )

    tools = DefaultToolRegistry()
    orchestrator = WorkflowOrchestrator(
        assessor=InMemoryStateAssessor(),
        invoker=ResilientModelInvoker(
            ScriptedModelClient(default_response="done"), DefaultModelSelector()
        ),
        prompt_builder=DefaultPromptBuilder(tools),
        tool_registry=tools,
        renderer=RecordingRenderer(),
    )
    result = orchestrator.run("auth")
"""

# Application layer (orchestration)
from modloop.application import (
    FailureHandler,
    GuardrailPipeline,
    PauseGate,
    PhaseTransitionController,
    ResilientModelInvoker,
    WorkflowEngine,
    WorkflowOrchestrator,
)

# Configuration
from modloop.config import ModloopConfig, load_config

# Domain
from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import (
    ConfigurationError,
    ModelError,
    OperationCancelled,
    SecurityViolation,
)
from modloop.domain.models import (
    GuardrailContext,
    GuardrailResult,
    OrchestrationResult,
    RunOptions,
    StepResult,
    WorkflowPhase,
    WorkflowStep,
    WorkflowTrigger,
)

# Guards
from modloop.guards import (
    ChurnDetectionGuardrail,
    IterationLimitGuardrail,
    QualityGateGuardrail,
    ResourceLimitGuardrail,
    ToolDisciplineGuardrail,
)

# Infrastructure (explicit import encouraged for dependency injection)
from modloop.infrastructure import (
    DefaultModelSelector,
    DefaultPromptBuilder,
    DefaultToolRegistry,
    InMemoryStateAssessor,
    OpenAIModelClient,
    RecordingRenderer,
    ScriptedModelClient,
)

__version__ = "0.3.0"

__all__ = [
    # Version
    "__version__",
    # Domain
    "CancellationToken",
    "GuardrailContext",
    "GuardrailResult",
    "OrchestrationResult",
    "RunOptions",
    "StepResult",
    "WorkflowPhase",
    "WorkflowStep",
    "WorkflowTrigger",
    # Domain exceptions
    "ConfigurationError",
    "ModelError",
    "OperationCancelled",
    "SecurityViolation",
    # Application layer
    "FailureHandler",
    "GuardrailPipeline",
    "PauseGate",
    "PhaseTransitionController",
    "ResilientModelInvoker",
    "WorkflowEngine",
    "WorkflowOrchestrator",
    # Configuration
    "ModloopConfig",
    "load_config",
    # Guards
    "ChurnDetectionGuardrail",
    "IterationLimitGuardrail",
    "QualityGateGuardrail",
    "ResourceLimitGuardrail",
    "ToolDisciplineGuardrail",
    # Infrastructure
    "DefaultModelSelector",
    "DefaultPromptBuilder",
    "DefaultToolRegistry",
    "InMemoryStateAssessor",
    "OpenAIModelClient",
    "RecordingRenderer",
    "ScriptedModelClient",
]
