"""Tests for configuration loading and schema validation."""

import json
import logging

import jsonschema
import pytest

from modloop.config import ModloopConfig, load_config, parse_config
from modloop.domain.exceptions import ConfigurationError
from modloop.domain.models import WorkflowPhase
from modloop.logging_setup import NOISY_LOGGERS, setup_logging
from modloop.schemas import get_config_schema, validate_config

FULL_CONFIG = {
    "models": {
        "phase_models": {"Planning": "gpt-4o", "Building": "gpt-4o-mini"},
        "phase_fallbacks": {"Building": ["llama3", "qwen2.5-coder:7b"]},
        "global_fallback": "llama3",
    },
    "budget": {
        "token_budget_per_module": 500000,
        "premium_request_budget": 40,
        "warning_threshold": 0.7,
        "confirmation_threshold": 0.85,
    },
    "workflow": {"unattended": True, "max_iterations": 30, "failure_threshold": 5},
    "tools": {"tool_call_threshold": 20, "max_file_reads": 2, "max_command_retries": 4},
    "git": {"enabled": False},
}


class TestSchema:
    def test_schema_ships_with_package(self) -> None:
        schema = get_config_schema()
        assert schema["additionalProperties"] is False

    def test_full_config_is_valid(self) -> None:
        validate_config(FULL_CONFIG)

    @pytest.mark.parametrize(
        "data",
        [
            {"unknown": 1},
            {"models": {"phase_models": {"Testing": "gpt-4o"}}},
            {"budget": {"warning_threshold": 0}},
            {"budget": {"confirmation_threshold": 1.5}},
            {"workflow": {"max_iterations": 0}},
            {"git": {"enabled": "yes"}},
        ],
    )
    def test_invalid(self, data: dict) -> None:
        with pytest.raises(jsonschema.ValidationError):
            validate_config(data)


class TestParseConfig:
    def test_defaults(self) -> None:
        assert parse_config({}) == ModloopConfig()

    def test_full(self) -> None:
        config = parse_config(FULL_CONFIG)

        assert dict(config.models.phase_models) == {
            WorkflowPhase.PLANNING: "gpt-4o",
            WorkflowPhase.BUILDING: "gpt-4o-mini",
        }
        assert dict(config.models.phase_fallbacks) == {
            WorkflowPhase.BUILDING: ("llama3", "qwen2.5-coder:7b")
        }
        assert config.models.global_fallback == "llama3"
        assert config.budget.premium_request_budget == 40
        assert config.workflow.max_iterations == 30
        assert config.tools.max_file_reads == 2
        assert config.git.enabled is False

    def test_schema_error_names_location(self) -> None:
        with pytest.raises(ConfigurationError, match="workflow/max_iterations"):
            parse_config({"workflow": {"max_iterations": -1}})

    def test_inverted_budget_thresholds(self) -> None:
        with pytest.raises(ConfigurationError, match="warning_threshold"):
            parse_config({"budget": {"warning_threshold": 0.95, "confirmation_threshold": 0.9}})


class TestRunOptions:
    def test_from_file(self) -> None:
        options = parse_config(FULL_CONFIG).to_run_options()

        assert options.unattended is True
        assert options.failure_threshold == 5
        assert options.user_prompt is None

    def test_explicit_arguments_win(self) -> None:
        options = parse_config(FULL_CONFIG).to_run_options(
            unattended=False, failure_threshold=2, user_prompt="Keep it small"
        )

        assert options.unattended is False
        assert options.failure_threshold == 2
        assert options.user_prompt == "Keep it small"

    def test_blank_prompt_is_none(self) -> None:
        assert ModloopConfig().to_run_options(user_prompt="").user_prompt is None


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        assert load_config(tmp_path / "modloop.json") == ModloopConfig()

    def test_loads_file(self, tmp_path) -> None:
        path = tmp_path / "modloop.json"
        path.write_text(json.dumps(FULL_CONFIG))

        assert load_config(path).workflow.failure_threshold == 5

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "modloop.json"
        path.write_text("{ nope")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config(path)

    def test_not_an_object(self, tmp_path) -> None:
        path = tmp_path / "modloop.json"
        path.write_text("[1, 2]")

        with pytest.raises(ConfigurationError, match="Expected dict"):
            load_config(path)

    def test_unreadable(self, tmp_path) -> None:
        """A directory where the file should be cannot be read."""
        path = tmp_path / "modloop.json"
        path.mkdir()

        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_config(path)


class TestSetupLogging:
    def test_handlers(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "run.log"

        logger = setup_logging("modloop.test_setup", log_file=str(log_file))
        logger.debug("to file only")

        console, file_handler = logger.handlers
        assert console.level == logging.WARNING
        assert file_handler.level == logging.DEBUG
        file_handler.flush()
        assert "to file only" in log_file.read_text()
        assert all(logging.getLogger(name).level == logging.WARNING for name in NOISY_LOGGERS)
        for handler in logger.handlers:
            handler.close()

    def test_verbose_and_rerun(self) -> None:
        setup_logging("modloop.test_rerun")

        logger = setup_logging("modloop.test_rerun", verbose=True)

        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG
