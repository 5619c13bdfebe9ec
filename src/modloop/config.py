"""Configuration loading for modloop.

modloop.json is optional. A missing file yields defaults; anything present is
validated against the shipped JSON Schema before it is turned into frozen
option objects.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

from modloop.domain.exceptions import ConfigurationError
from modloop.domain.models import RunOptions, WorkflowPhase
from modloop.schemas import validate_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "modloop.json"


@dataclass(frozen=True)
class ModelOptions:
    phase_models: tuple[tuple[WorkflowPhase, str], ...] = ()
    phase_fallbacks: tuple[tuple[WorkflowPhase, tuple[str, ...]], ...] = ()
    global_fallback: str = "qwen2.5-coder:7b"


@dataclass(frozen=True)
class BudgetOptions:
    token_budget_per_module: int = 0  # 0 = unlimited
    premium_request_budget: int = 0
    warning_threshold: float = 0.8
    confirmation_threshold: float = 0.9


@dataclass(frozen=True)
class WorkflowOptions:
    unattended: bool = False
    max_iterations: int = 100
    failure_threshold: int = 3


@dataclass(frozen=True)
class ToolDisciplineOptions:
    tool_call_threshold: int = 50
    max_file_reads: int = 3
    max_command_retries: int = 3


@dataclass(frozen=True)
class GitOptions:
    enabled: bool = True


@dataclass(frozen=True)
class ModloopConfig:
    """Aggregate of every configuration section."""

    models: ModelOptions = field(default_factory=ModelOptions)
    budget: BudgetOptions = field(default_factory=BudgetOptions)
    workflow: WorkflowOptions = field(default_factory=WorkflowOptions)
    tools: ToolDisciplineOptions = field(default_factory=ToolDisciplineOptions)
    git: GitOptions = field(default_factory=GitOptions)

    def to_run_options(
        self,
        unattended: bool | None = None,
        failure_threshold: int | None = None,
        user_prompt: str | None = None,
    ) -> RunOptions:
        """Derive per-run options, letting explicit arguments win over the file.

        Args:
            unattended: Overrides workflow.unattended when not None
            failure_threshold: Overrides workflow.failure_threshold when not None
            user_prompt: Free text for the system prompt

        Returns:
            RunOptions for WorkflowOrchestrator
        """
        return RunOptions(
            unattended=self.workflow.unattended if unattended is None else unattended,
            failure_threshold=(
                self.workflow.failure_threshold
                if failure_threshold is None
                else failure_threshold
            ),
            user_prompt=user_prompt or None,
        )


def _phase_map(raw: dict[str, Any]) -> dict[WorkflowPhase, Any]:
    return {WorkflowPhase(name): value for name, value in raw.items()}


def parse_config(data: dict[str, Any]) -> ModloopConfig:
    """Build a ModloopConfig from already-parsed JSON.

    Raises:
        ConfigurationError: If the data violates the schema or the budget
            thresholds are inverted
    """
    try:
        validate_config(data)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigurationError(f"Invalid configuration at {location}: {e.message}") from e

    models_raw = data.get("models", {})
    models = ModelOptions(
        phase_models=tuple(_phase_map(models_raw.get("phase_models", {})).items()),
        phase_fallbacks=tuple(
            (phase, tuple(chain))
            for phase, chain in _phase_map(models_raw.get("phase_fallbacks", {})).items()
        ),
        global_fallback=models_raw.get("global_fallback", ModelOptions.global_fallback),
    )

    budget = BudgetOptions(**data.get("budget", {}))
    if budget.warning_threshold > budget.confirmation_threshold:
        raise ConfigurationError(
            "budget.warning_threshold must not exceed budget.confirmation_threshold"
        )

    return ModloopConfig(
        models=models,
        budget=budget,
        workflow=WorkflowOptions(**data.get("workflow", {})),
        tools=ToolDisciplineOptions(**data.get("tools", {})),
        git=GitOptions(**data.get("git", {})),
    )


def load_config(path: str | Path) -> ModloopConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to modloop.json

    Returns:
        Parsed configuration; defaults when the file does not exist

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No configuration at %s, using defaults", path)
        return ModloopConfig()

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")

    config = parse_config(data)
    logger.info("Loaded configuration from %s", path)
    return config


