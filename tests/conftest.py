"""Shared pytest fixtures for modloop tests."""

import pytest

from modloop.application import ResilientModelInvoker, WorkflowOrchestrator
from modloop.domain.cancellation import CancellationToken
from modloop.domain.models import GuardrailContext, WorkflowStep
from modloop.infrastructure.documents.assessor import InMemoryStateAssessor
from modloop.infrastructure.llm.mock import ScriptedModelClient
from modloop.infrastructure.llm.prompts import DefaultPromptBuilder
from modloop.infrastructure.llm.selector import DefaultModelSelector
from modloop.infrastructure.llm.tools import DefaultToolRegistry
from modloop.infrastructure.rendering import RecordingRenderer

SPEC_WITH_OPEN_CRITERIA = """# Auth module

## Overview

Handles login and session tokens for the web frontend.
Every request carries a signed token that expires after one hour.

## Acceptance Criteria

- [x] Users can log in
- [ ] Tokens expire after one hour
"""


@pytest.fixture
def cancel() -> CancellationToken:
    """A fresh, uncancelled token."""
    return CancellationToken()


@pytest.fixture
def context() -> GuardrailContext:
    """A neutral guardrail context."""
    return GuardrailContext(module_name="auth", task_id="IterateThroughTasks")


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def scripted_client() -> ScriptedModelClient:
    """Client answering every call with the same text."""
    return ScriptedModelClient(default_response="done")


@pytest.fixture
def tool_registry() -> DefaultToolRegistry:
    return DefaultToolRegistry()


@pytest.fixture
def make_orchestrator(tool_registry: DefaultToolRegistry, renderer: RecordingRenderer):
    """Factory for orchestrators wired with in-memory collaborators.

    Keyword arguments override any constructor argument; `client` replaces
    the scripted model client, `assessor` the in-memory assessor and
    `selector` the default model selector.
    """

    def _make(
        client: ScriptedModelClient | None = None,
        assessor: InMemoryStateAssessor | None = None,
        selector: DefaultModelSelector | None = None,
        **kwargs,
    ) -> WorkflowOrchestrator:
        kwargs.setdefault("renderer", renderer)
        return WorkflowOrchestrator(
            assessor=assessor or InMemoryStateAssessor(step=WorkflowStep.DRAFT_SPECIFICATION),
            invoker=ResilientModelInvoker(
                client or ScriptedModelClient(default_response="done"),
                selector or DefaultModelSelector(),
            ),
            prompt_builder=DefaultPromptBuilder(tool_registry),
            tool_registry=tool_registry,
            **kwargs,
        )

    return _make


@pytest.fixture
def requirements_root(tmp_path):
    """docs/requirements under tmp_path holding one half-done auth spec."""
    root = tmp_path / "docs" / "requirements"
    (root / "auth").mkdir(parents=True)
    (root / "auth" / "SPECIFICATION.md").write_text(SPEC_WITH_OPEN_CRITERIA)
    return root
