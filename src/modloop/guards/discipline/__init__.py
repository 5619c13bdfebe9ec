"""
Tool discipline guardrails - corrective hints, never blocking.
"""

from modloop.guards.discipline.tools import ToolDisciplineGuardrail

__all__ = [
    "ToolDisciplineGuardrail",
]
