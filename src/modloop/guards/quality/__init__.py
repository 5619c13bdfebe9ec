"""
Quality gate guardrails - verification before completion.
"""

from modloop.guards.quality.gate import QualityGateGuardrail

__all__ = [
    "QualityGateGuardrail",
]
