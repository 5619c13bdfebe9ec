"""
Progress integrity guardrails - detect work that is going in circles.
"""

from modloop.guards.progress.churn import ChurnDetectionGuardrail

__all__ = [
    "ChurnDetectionGuardrail",
]
