"""
Output renderers.

RichOutputRenderer draws to the terminal with rich. RecordingRenderer keeps
everything in memory and answers prompts from a script, for tests and
unattended runs.
"""

import logging
from collections.abc import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import OperationCancelled
from modloop.domain.interfaces import OutputRendererInterface

logger = logging.getLogger(__name__)


class RichOutputRenderer(OutputRendererInterface):
    """
    Terminal renderer.

    Prompts read from stdin and cannot be interrupted by the cancellation
    token itself; is_prompting lets a signal handler raise KeyboardInterrupt
    into a pending prompt, which surfaces as OperationCancelled.
    """

    def __init__(self, console: Console | None = None, error_console: Console | None = None):
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)
        self._prompting = False

    @property
    def is_prompting(self) -> bool:
        return self._prompting

    def render_progress(self, phase: str, step: str, fraction: float) -> None:
        self.console.print(
            f"[bold blue]{phase}[/bold blue] > {step} [dim]({fraction:.0%})[/dim]"
        )

    def render_error(self, message: str, cause: BaseException | None = None) -> None:
        if message.startswith("Warning:"):
            self.error_console.print(Text(message, style="yellow"))
            return
        content = Text(message, style="bold red")
        if cause is not None:
            content.append(f"\n{type(cause).__name__}: {cause}", style="dim")
        self.error_console.print(Panel(content, title="Error", border_style="red"))

    def render_result(self, message: str) -> None:
        self.console.print(Panel(message, border_style="green"))

    def prompt(self, message: str, cancel: CancellationToken | None = None) -> str | None:
        if cancel is not None:
            cancel.raise_if_cancelled()
        self._prompting = True
        try:
            answer = Prompt.ask(f"[bold]{message}[/bold]", console=self.console)
        except KeyboardInterrupt as e:
            raise OperationCancelled("Prompt interrupted") from e
        except EOFError:
            logger.debug("No input available for prompt: %s", message)
            return None
        finally:
            self._prompting = False
        if cancel is not None:
            cancel.raise_if_cancelled()
        return answer


class RecordingRenderer(OutputRendererInterface):
    """Records every call; prompts answer from a script, then None."""

    def __init__(self, answers: Iterable[str | None] = ()):
        self._answers = list(answers)
        self.progress: list[tuple[str, str, float]] = []
        self.errors: list[str] = []
        self.results: list[str] = []
        self.prompts: list[str] = []

    def render_progress(self, phase: str, step: str, fraction: float) -> None:
        self.progress.append((phase, step, fraction))

    def render_error(self, message: str, cause: BaseException | None = None) -> None:
        self.errors.append(message)

    def render_result(self, message: str) -> None:
        self.results.append(message)

    def prompt(self, message: str, cancel: CancellationToken | None = None) -> str | None:
        if cancel is not None:
            cancel.raise_if_cancelled()
        self.prompts.append(message)
        return self._answers.pop(0) if self._answers else None
