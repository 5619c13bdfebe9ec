"""
State assessment from specification documents.

The assessment is ground truth; persisted steps are only used when the
document itself shows no progress.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from modloop.domain.interfaces import StateAssessorInterface
from modloop.domain.models import WorkflowStep
from modloop.infrastructure.documents.markdown import count_checkboxes

logger = logging.getLogger(__name__)

SPEC_FILE_NAME = "SPECIFICATION.md"
SUBSTANTIAL_SPEC_CHARS = 100


def _require_module(module: str) -> None:
    if not module or not module.strip():
        raise ValueError("module must be a non-empty string")


class SpecificationStateAssessor(StateAssessorInterface):
    """
    Derives the step from <root>/<module>/SPECIFICATION.md.

    Acceptance criteria are markdown checkboxes. Tasks and components are
    both tracked by the unticked boxes, so work remains while any box is open.
    """

    def __init__(self, requirements_root: str | Path):
        self._root = Path(requirements_root)
        self._persisted: dict[str, WorkflowStep] = {}

    def spec_path(self, module: str) -> Path | None:
        """Path of the module's spec; module directory matched case-insensitively."""
        direct = self._root / module / SPEC_FILE_NAME
        if direct.is_file():
            return direct
        if not self._root.is_dir():
            return None
        for entry in self._root.iterdir():
            if entry.is_dir() and entry.name.lower() == module.lower():
                candidate = entry / SPEC_FILE_NAME
                if candidate.is_file():
                    return candidate
        return None

    def _read_spec(self, module: str) -> str | None:
        path = self.spec_path(module)
        if path is None:
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to read spec for module %s: %s", module, e)
            return None

    def get_current_step(self, module: str) -> WorkflowStep:
        _require_module(module)
        content = self._read_spec(module)
        if content is None:
            logger.info("Module %s: no specification found, at DraftSpecification", module)
            return WorkflowStep.DRAFT_SPECIFICATION

        total, ticked = count_checkboxes(content)
        if total > 0 and ticked == total:
            logger.info("Module %s: all %d acceptance criteria complete", module, total)
            return WorkflowStep.REPEAT
        if ticked > 0:
            logger.info(
                "Module %s: %d/%d acceptance criteria complete, at IterateThroughTasks",
                module,
                ticked,
                total,
            )
            return WorkflowStep.ITERATE_THROUGH_TASKS

        persisted = self._persisted.get(module.lower())
        if persisted is not None:
            logger.info("Module %s: using persisted step %s", module, persisted.value)
            return persisted

        if len(content) > SUBSTANTIAL_SPEC_CHARS:
            logger.info("Module %s: spec has content, at DetermineDependencies", module)
            return WorkflowStep.DETERMINE_DEPENDENCIES
        return WorkflowStep.DRAFT_SPECIFICATION

    def persist_step(self, module: str, step: WorkflowStep) -> None:
        _require_module(module)
        self._persisted[module.lower()] = step
        logger.debug("Persisted step %s for module %s", step.value, module)

    def is_spec_ready(self, module: str) -> bool:
        _require_module(module)
        return self.spec_path(module) is not None

    def _has_open_criteria(self, module: str) -> bool:
        content = self._read_spec(module)
        if content is None:
            return False
        total, ticked = count_checkboxes(content)
        return total > 0 and ticked < total

    def has_more_components(self, module: str) -> bool:
        _require_module(module)
        return self._has_open_criteria(module)

    def has_more_tasks(self, module: str) -> bool:
        _require_module(module)
        return self._has_open_criteria(module)


class InMemoryStateAssessor(StateAssessorInterface):
    """
    Scriptable assessor for tests.

    has_more_components and has_more_tasks answer from the given sequences,
    one item per call, and return False once a sequence runs out.
    """

    def __init__(
        self,
        step: WorkflowStep = WorkflowStep.DRAFT_SPECIFICATION,
        spec_ready: bool = True,
        more_components: Iterable[bool] = (),
        more_tasks: Iterable[bool] = (),
    ):
        self.step = step
        self.spec_ready = spec_ready
        self._more_components = list(more_components)
        self._more_tasks = list(more_tasks)
        self.persisted: list[tuple[str, WorkflowStep]] = []

    def get_current_step(self, module: str) -> WorkflowStep:
        _require_module(module)
        return self.step

    def persist_step(self, module: str, step: WorkflowStep) -> None:
        self.persisted.append((module, step))

    def is_spec_ready(self, module: str) -> bool:
        return self.spec_ready

    def has_more_components(self, module: str) -> bool:
        return self._more_components.pop(0) if self._more_components else False

    def has_more_tasks(self, module: str) -> bool:
        return self._more_tasks.pop(0) if self._more_tasks else False
