"""
Application layer for the module development loop.

Contains the state machine, the driving loop and the policies that coordinate
domain objects and ports.
"""

from modloop.application.checkpoint_service import CheckpointService
from modloop.application.failure_handler import FailureHandler
from modloop.application.guardrail_pipeline import GuardrailPipeline
from modloop.application.model_resilience import ResilientModelInvoker
from modloop.application.orchestrator import WorkflowOrchestrator
from modloop.application.pause_gate import PauseGate
from modloop.application.phase_controller import PhaseTransitionController
from modloop.application.tool_usage import ToolUsageTally
from modloop.application.workflow_engine import WorkflowEngine

__all__ = [
    "CheckpointService",
    "FailureHandler",
    "GuardrailPipeline",
    "PauseGate",
    "PhaseTransitionController",
    "ResilientModelInvoker",
    "ToolUsageTally",
    "WorkflowEngine",
    "WorkflowOrchestrator",
]
