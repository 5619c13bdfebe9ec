"""Tests for output renderers."""

import io

import pytest
from rich.console import Console

from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import OperationCancelled
from modloop.infrastructure.rendering import RecordingRenderer, RichOutputRenderer


def console() -> Console:
    return Console(file=io.StringIO(), width=100, force_terminal=False, color_system=None)


@pytest.fixture
def rich_renderer() -> RichOutputRenderer:
    return RichOutputRenderer(console=console(), error_console=console())


def output(target: Console) -> str:
    return target.file.getvalue()


class TestRichOutputRenderer:
    def test_progress(self, rich_renderer: RichOutputRenderer) -> None:
        rich_renderer.render_progress("Planning", "BreakIntoTasks", 0.45)

        assert output(rich_renderer.console) == "Planning > BreakIntoTasks (45%)\n"

    def test_warning_is_plain_line(self, rich_renderer: RichOutputRenderer) -> None:
        rich_renderer.render_error("Warning: Approaching iteration limit (90/100).")

        assert output(rich_renderer.error_console) == (
            "Warning: Approaching iteration limit (90/100).\n"
        )
        assert output(rich_renderer.console) == ""

    def test_error_panel_with_cause(self, rich_renderer: RichOutputRenderer) -> None:
        rich_renderer.render_error("Model invocation failed", ValueError("bad request"))

        text = output(rich_renderer.error_console)
        assert "Error" in text
        assert "Model invocation failed" in text
        assert "ValueError: bad request" in text

    def test_result_panel(self, rich_renderer: RichOutputRenderer) -> None:
        rich_renderer.render_result("Module auth completed after 7 iterations")

        assert "Module auth completed after 7 iterations" in output(rich_renderer.console)

    def test_prompt_answer(self, rich_renderer: RichOutputRenderer, monkeypatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("yes\n"))

        assert rich_renderer.prompt("Continue? (yes/no)") == "yes"
        assert not rich_renderer.is_prompting

    def test_prompt_without_input(self, rich_renderer: RichOutputRenderer, monkeypatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(""))

        assert rich_renderer.prompt("Continue? (yes/no)") is None

    def test_interrupted_prompt_cancels(
        self, rich_renderer: RichOutputRenderer, monkeypatch
    ) -> None:
        seen: list[bool] = []

        def interrupted(*args, **kwargs):
            seen.append(rich_renderer.is_prompting)
            raise KeyboardInterrupt

        monkeypatch.setattr("modloop.infrastructure.rendering.Prompt.ask", interrupted)

        with pytest.raises(OperationCancelled):
            rich_renderer.prompt("Continue? (yes/no)")

        assert seen == [True]
        assert not rich_renderer.is_prompting

    def test_prompt_observes_cancellation(self, rich_renderer: RichOutputRenderer) -> None:
        cancel = CancellationToken()
        cancel.cancel()

        with pytest.raises(OperationCancelled):
            rich_renderer.prompt("Continue? (yes/no)", cancel)


class TestRecordingRenderer:
    def test_records(self) -> None:
        renderer = RecordingRenderer()

        renderer.render_progress("Building", "Repeat", 0.9)
        renderer.render_error("boom", RuntimeError("x"))
        renderer.render_result("done")

        assert renderer.progress == [("Building", "Repeat", 0.9)]
        assert renderer.errors == ["boom"]
        assert renderer.results == ["done"]

    def test_scripted_answers_then_none(self) -> None:
        renderer = RecordingRenderer(answers=["yes", "no"])

        answers = [renderer.prompt(f"q{i}") for i in range(3)]

        assert answers == ["yes", "no", None]
        assert renderer.prompts == ["q0", "q1", "q2"]

    def test_cancelled_prompt(self) -> None:
        cancel = CancellationToken()
        cancel.cancel()

        with pytest.raises(OperationCancelled):
            RecordingRenderer(answers=["yes"]).prompt("q", cancel)
