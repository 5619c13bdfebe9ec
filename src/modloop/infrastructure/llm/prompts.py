"""
System prompt assembly.

Each prompt has labelled sections: Role, Workflow State, Instructions,
Context (optional), Available Tools, Constraints.
"""

from modloop.domain.interfaces import PromptBuilderInterface, ToolRegistryInterface
from modloop.domain.models import WorkflowPhase

ROLE = (
    "You are working within modloop, an orchestrator for module development. "
    "You implement features by following a structured workflow, using the "
    "provided tools for state management and native tools for implementation work."
)

INSTRUCTIONS: dict[WorkflowPhase, str] = {
    WorkflowPhase.REQUIREMENT_GATHERING: (
        "Gather and refine requirements for this module. Read the specification, "
        "identify gaps, and produce a clear, complete spec. Use `read_spec` and "
        "`log_research` to capture findings."
    ),
    WorkflowPhase.PLANNING: (
        "Plan the implementation for this module. Analyze dependencies, define "
        "components, break work into tasks, and select the next component to build. "
        "Use `read_spec` and `read_plan` to inform decisions."
    ),
    WorkflowPhase.BUILDING: (
        "Implement the current task. Write code, tests, and documentation. When "
        "complete, call `verify_task_completion` before marking the task as done "
        "with `update_task_status`."
    ),
}

CONSTRAINTS = (
    "- Use conventional commit messages for all commits",
    "- Write tests for new functionality before marking tasks complete",
    "- Do not modify files outside the current module scope without justification",
    "- Call verification tools before marking work as complete",
)


class DefaultPromptBuilder(PromptBuilderInterface):
    def __init__(self, tool_registry: ToolRegistryInterface):
        self._tool_registry = tool_registry

    def build(
        self,
        phase: WorkflowPhase,
        module: str,
        component: str | None = None,
        task: str | None = None,
        extra_context: dict[str, str] | None = None,
    ) -> str:
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")

        lines = ["# Role", "", ROLE, ""]

        lines += ["# Workflow State", "", f"- **Phase**: {phase.value}", f"- **Module**: {module}"]
        if component and component.strip():
            lines.append(f"- **Component**: {component}")
        if task and task.strip():
            lines.append(f"- **Task**: {task}")
        lines.append("")

        lines += ["# Instructions", "", INSTRUCTIONS[phase], ""]

        if extra_context:
            lines += ["# Context", ""]
            for title, content in extra_context.items():
                lines += [f"## {title}", "", content, ""]

        lines += ["# Available Tools", ""]
        tools = self._tool_registry.tools_for_phase(phase)
        if tools:
            lines += [f"- **{tool.name}**: {tool.description}" for tool in tools]
        else:
            lines.append("No managed tools available for this phase.")
        lines.append("")

        lines += ["# Constraints", "", *CONSTRAINTS]
        return "\n".join(lines) + "\n"
