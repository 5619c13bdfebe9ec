"""
Back-pressure guardrails for the module development loop.

Guardrails run before every model call and return Pass, Warn or Block.
GuardrailPipeline orders them and honours short-circuiting Blocks.

Organization by back-pressure category:
- limits/: Iteration and premium request limits
- progress/: Churn detection on repeated failures
- quality/: Verification at completion boundaries
- discipline/: Wasteful tool usage hints
"""

from modloop.guards.discipline import ToolDisciplineGuardrail
from modloop.guards.limits import IterationLimitGuardrail, ResourceLimitGuardrail
from modloop.guards.progress import ChurnDetectionGuardrail
from modloop.guards.quality import QualityGateGuardrail

__all__ = [
    # Resource limits (short-circuiting)
    "IterationLimitGuardrail",
    "ResourceLimitGuardrail",
    # Progress integrity
    "ChurnDetectionGuardrail",
    # Quality gates
    "QualityGateGuardrail",
    # Tool discipline (warn only)
    "ToolDisciplineGuardrail",
]
