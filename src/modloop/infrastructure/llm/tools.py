"""
Tool registry with per-phase availability.
"""

import logging

from modloop.domain.interfaces import ToolRegistryInterface
from modloop.domain.models import ToolDefinition, WorkflowPhase

logger = logging.getLogger(__name__)

_PLANNING_AND_BUILDING = (WorkflowPhase.PLANNING, WorkflowPhase.BUILDING)
_BUILDING = (WorkflowPhase.BUILDING,)

BUILTIN_TOOLS: tuple[ToolDefinition, ...] = (
    # Orchestration tools
    ToolDefinition("read_spec", "Read a specific section from a specification document"),
    ToolDefinition("read_research", "Read findings from a research document"),
    ToolDefinition("read_plan", "Read the current plan with task statuses", _PLANNING_AND_BUILDING),
    ToolDefinition(
        "update_task_status",
        "Mark a task as pending, in-progress, complete, or failed",
        _BUILDING,
    ),
    ToolDefinition(
        "get_current_context",
        "Retrieve the current workflow step, module, component, and task",
    ),
    ToolDefinition(
        "log_research",
        "Save research findings to the module's research documents",
        (WorkflowPhase.REQUIREMENT_GATHERING,),
    ),
    ToolDefinition("report_progress", "Report what was accomplished in this iteration"),
    # Verification tools
    ToolDefinition("verify_task_completion", "Verify a task is complete", _BUILDING),
    ToolDefinition(
        "verify_component_completion",
        "Verify all tasks in a component are complete",
        _BUILDING,
    ),
    ToolDefinition(
        "verify_module_completion",
        "Verify the module meets all acceptance criteria",
        _BUILDING,
    ),
)


class DefaultToolRegistry(ToolRegistryInterface):
    """Pre-registers the orchestration tools; more can be added."""

    def __init__(self, register_builtins: bool = True):
        self._tools: list[ToolDefinition] = []
        if register_builtins:
            for tool in BUILTIN_TOOLS:
                self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> bool:
        """Add a tool. Returns False, keeping the first, on a duplicate name."""
        if any(t.name == tool.name for t in self._tools):
            logger.warning("Tool '%s' is already registered; skipping duplicate", tool.name)
            return False
        self._tools.append(tool)
        return True

    def tools_for_phase(self, phase: WorkflowPhase) -> tuple[ToolDefinition, ...]:
        return tuple(t for t in self._tools if t.phases is None or phase in t.phases)

    def all_tools(self) -> tuple[ToolDefinition, ...]:
        return tuple(self._tools)
