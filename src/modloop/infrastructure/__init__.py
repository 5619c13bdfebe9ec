"""
Infrastructure layer for the module development loop.

Contains adapters for external concerns (model endpoints, persistence,
documents, git, terminal output).
"""

from modloop.infrastructure.budget import BudgetEnforcer, NullBudgetEnforcer
from modloop.infrastructure.documents import (
    InMemoryStateAssessor,
    NullDriftService,
    SpecificationDriftService,
    SpecificationStateAssessor,
)
from modloop.infrastructure.git import GitBranchService
from modloop.infrastructure.llm import (
    DefaultModelSelector,
    DefaultPromptBuilder,
    DefaultToolRegistry,
    InMemoryTokenTracker,
    OpenAIModelClient,
    ScriptedModelClient,
)
from modloop.infrastructure.persistence import (
    FilesystemPlanStore,
    FilesystemSessionManager,
    InMemoryPlanStore,
    InMemorySessionManager,
    NullCheckpointSink,
    SessionCheckpointSink,
)
from modloop.infrastructure.registry import ModelClientRegistry
from modloop.infrastructure.rendering import RecordingRenderer, RichOutputRenderer

__all__ = [
    # Budget
    "BudgetEnforcer",
    "NullBudgetEnforcer",
    # Documents
    "InMemoryStateAssessor",
    "NullDriftService",
    "SpecificationDriftService",
    "SpecificationStateAssessor",
    # Git
    "GitBranchService",
    # LLM
    "DefaultModelSelector",
    "DefaultPromptBuilder",
    "DefaultToolRegistry",
    "InMemoryTokenTracker",
    "OpenAIModelClient",
    "ScriptedModelClient",
    # Persistence
    "FilesystemPlanStore",
    "FilesystemSessionManager",
    "InMemoryPlanStore",
    "InMemorySessionManager",
    "NullCheckpointSink",
    "SessionCheckpointSink",
    # Registry
    "ModelClientRegistry",
    # Rendering
    "RecordingRenderer",
    "RichOutputRenderer",
]
