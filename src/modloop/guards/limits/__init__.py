"""
Resource limit guardrails - stop runaway loops and spending.
"""

from modloop.guards.limits.iteration import IterationLimitGuardrail
from modloop.guards.limits.resource import ResourceLimitGuardrail

__all__ = [
    "IterationLimitGuardrail",
    "ResourceLimitGuardrail",
]
