"""Tests for ResilientModelInvoker - fallback on model unavailability only."""

import pytest

from modloop.application.model_resilience import ResilientModelInvoker
from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import ModelError, OperationCancelled
from modloop.domain.models import WorkflowPhase
from modloop.infrastructure.llm.mock import ScriptedModelClient
from modloop.infrastructure.llm.selector import DefaultModelSelector

PHASE = WorkflowPhase.BUILDING


def selector() -> DefaultModelSelector:
    return DefaultModelSelector(
        phase_models={PHASE: "primary"},
        phase_fallbacks={PHASE: ["secondary", "primary"]},
        global_fallback="global",
    )


class TestBuildChain:
    def test_primary_then_fallbacks_without_repeats(self) -> None:
        invoker = ResilientModelInvoker(ScriptedModelClient(), selector())

        assert invoker.build_chain(PHASE) == ("primary", "secondary", "global")


class TestInvoke:
    def test_first_model_answers(self) -> None:
        client = ScriptedModelClient(["hello"])
        invoker = ResilientModelInvoker(client, selector())

        invocation = invoker.invoke(PHASE, "prompt")

        assert invocation.text == "hello"
        assert invocation.model == "primary"
        assert invocation.attempted_models == ("primary",)

    def test_falls_back_while_unavailable(self) -> None:
        """Unavailable models are skipped in chain order."""
        client = ScriptedModelClient(["from global"], unavailable_models=["primary", "secondary"])
        invoker = ResilientModelInvoker(client, selector())

        invocation = invoker.invoke(PHASE, "prompt")

        assert invocation.model == "global"
        assert invocation.attempted_models == ("primary", "secondary", "global")
        assert client.models_called == ("primary", "secondary", "global")

    def test_other_errors_are_not_retried(self) -> None:
        """A non-availability error propagates after exactly one attempt."""
        client = ScriptedModelClient([ModelError("bad request", model="primary")])
        invoker = ResilientModelInvoker(client, selector())

        with pytest.raises(ModelError, match="bad request"):
            invoker.invoke(PHASE, "prompt")
        assert client.call_count == 1

    def test_non_model_errors_propagate(self) -> None:
        client = ScriptedModelClient([RuntimeError("socket closed")])
        invoker = ResilientModelInvoker(client, selector())

        with pytest.raises(RuntimeError):
            invoker.invoke(PHASE, "prompt")
        assert client.call_count == 1

    def test_exhausted_chain_raises_last_error(self) -> None:
        client = ScriptedModelClient(unavailable_models=["primary", "secondary", "global"])
        invoker = ResilientModelInvoker(client, selector())

        with pytest.raises(ModelError) as exc_info:
            invoker.invoke(PHASE, "prompt")

        assert exc_info.value.model == "global"
        assert exc_info.value.model_unavailable
        assert client.call_count == 3

    def test_cancelled_before_call(self) -> None:
        client = ScriptedModelClient(["never"])
        invoker = ResilientModelInvoker(client, selector())
        cancel = CancellationToken()
        cancel.cancel()

        with pytest.raises(OperationCancelled):
            invoker.invoke(PHASE, "prompt", cancel=cancel)
        assert client.call_count == 0

    def test_passes_tools_through(self, tool_registry) -> None:
        """Tools reach the client unchanged."""
        seen = []

        class RecordingClient(ScriptedModelClient):
            def invoke(self, prompt, model, tools, cancel=None):
                seen.append(tools)
                return super().invoke(prompt, model, tools, cancel)

        tools = tool_registry.tools_for_phase(PHASE)
        invoker = ResilientModelInvoker(RecordingClient(["ok"]), selector())

        invoker.invoke(PHASE, "prompt", tools)

        assert seen == [tools]
