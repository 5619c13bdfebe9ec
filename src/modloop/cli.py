"""Click CLI for running the module development loop."""

from __future__ import annotations

import logging
import os
import signal
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console

from modloop import __version__
from modloop.application import (
    FailureHandler,
    GuardrailPipeline,
    PauseGate,
    PhaseTransitionController,
    ResilientModelInvoker,
    WorkflowOrchestrator,
)
from modloop.config import DEFAULT_CONFIG_FILE, ModloopConfig, load_config
from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import ConfigurationError
from modloop.domain.interfaces import ModelClientInterface, OutputRendererInterface
from modloop.domain.models import GuardrailContext, OrchestrationResult, WorkflowStep
from modloop.guards import (
    ChurnDetectionGuardrail,
    IterationLimitGuardrail,
    QualityGateGuardrail,
    ResourceLimitGuardrail,
    ToolDisciplineGuardrail,
)
from modloop.infrastructure import (
    BudgetEnforcer,
    DefaultModelSelector,
    DefaultPromptBuilder,
    DefaultToolRegistry,
    FilesystemPlanStore,
    FilesystemSessionManager,
    GitBranchService,
    InMemoryTokenTracker,
    ModelClientRegistry,
    RichOutputRenderer,
    SessionCheckpointSink,
    SpecificationDriftService,
    SpecificationStateAssessor,
)
from modloop.logging_setup import setup_logging

logger = logging.getLogger(__name__)

REQUIREMENTS_DIR = Path("docs") / "requirements"

EXIT_COMPLETE = 0
EXIT_INTERRUPTED = 1
EXIT_CONFIG_ERROR = 2
EXIT_CRITICAL = 6


def exit_code_for(result: OrchestrationResult) -> int:
    if result.is_critical_error:
        return EXIT_CRITICAL
    if result.is_complete:
        return EXIT_COMPLETE
    return EXIT_INTERRUPTED


F = TypeVar("F", bound=Callable[..., Any])


def model_options(func: F) -> F:
    """
    Decorator adding model endpoint options to a click command.

    Options added:
        --client: Registered model client name
        --base-url: OpenAI-compatible endpoint URL
        --api-key-env: Environment variable holding the API key
    """

    @click.option(
        "--client",
        "client_name",
        default="openai",
        show_default=True,
        help="Model client registered under the modloop.model_clients entry point group",
    )
    @click.option(
        "--base-url",
        default="http://localhost:11434/v1",
        show_default=True,
        help="OpenAI-compatible API URL",
    )
    @click.option(
        "--api-key-env",
        default="OPENAI_API_KEY",
        show_default=True,
        help="Environment variable holding the API key",
    )
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def create_model_client(
    client_name: str, base_url: str, api_key_env: str
) -> ModelClientInterface:
    """
    Raises:
        ConfigurationError: If no client is registered under client_name
    """
    try:
        client_class = ModelClientRegistry.get(client_name)
    except KeyError as e:
        raise ConfigurationError(str(e.args[0])) from e

    if client_name == "openai":
        api_key = os.environ.get(api_key_env) or "ollama"
        return client_class(base_url=base_url, api_key=api_key)  # type: ignore[call-arg]
    return client_class()


def build_orchestrator(
    root: Path,
    config: ModloopConfig,
    client: ModelClientInterface,
    renderer: OutputRendererInterface,
    approve_spec: bool = False,
    unattended: bool | None = None,
    failure_threshold: int | None = None,
    user_prompt: str | None = None,
) -> WorkflowOrchestrator:
    """Wire the filesystem, git and model adapters for a project root."""
    assessor = SpecificationStateAssessor(root / REQUIREMENTS_DIR)
    tracker = InMemoryTokenTracker()
    sessions = FilesystemSessionManager(root)
    tool_registry = DefaultToolRegistry()

    selector = DefaultModelSelector(
        phase_models=dict(config.models.phase_models),
        phase_fallbacks=dict(config.models.phase_fallbacks),
        global_fallback=config.models.global_fallback,
    )

    guardrails: list[Any] = [
        IterationLimitGuardrail(config.workflow.max_iterations),
        ChurnDetectionGuardrail(config.workflow.failure_threshold),
        QualityGateGuardrail(
            is_completion_boundary=lambda ctx: _is_module_boundary(assessor, ctx),
            has_passing_verification=lambda ctx: assessor.is_spec_ready(ctx.module_name),
        ),
        ToolDisciplineGuardrail(
            tool_call_threshold=config.tools.tool_call_threshold,
            max_file_reads=config.tools.max_file_reads,
            max_command_retries=config.tools.max_command_retries,
        ),
    ]
    if config.budget.premium_request_budget > 0:
        guardrails.append(
            ResourceLimitGuardrail(tracker, config.budget.premium_request_budget)
        )

    return WorkflowOrchestrator(
        assessor=assessor,
        invoker=ResilientModelInvoker(client, selector),
        prompt_builder=DefaultPromptBuilder(tool_registry),
        tool_registry=tool_registry,
        renderer=renderer,
        failure_handler=FailureHandler(config.workflow.failure_threshold),
        guardrails=GuardrailPipeline(guardrails),
        phase_controller=PhaseTransitionController(spec_approved=approve_spec),
        pause_gate=PauseGate(),
        drift_service=SpecificationDriftService(assessor),
        git_service=GitBranchService(root, enabled=config.git.enabled),
        session_manager=sessions,
        checkpoint_sink=SessionCheckpointSink(sessions),
        token_tracker=tracker,
        plan_store=FilesystemPlanStore(root),
        budget_enforcer=BudgetEnforcer(
            token_budget=config.budget.token_budget_per_module,
            premium_request_budget=config.budget.premium_request_budget,
            warning_threshold=config.budget.warning_threshold,
            confirmation_threshold=config.budget.confirmation_threshold,
        ),
        options=config.to_run_options(
            unattended=unattended,
            failure_threshold=failure_threshold,
            user_prompt=user_prompt,
        ),
    )


def _is_module_boundary(
    assessor: SpecificationStateAssessor, context: GuardrailContext
) -> bool:
    return (
        context.task_id == WorkflowStep.REPEAT.value
        and not assessor.has_more_components(context.module_name)
    )


@contextmanager
def signal_handlers(
    cancel: CancellationToken,
    pause_gate: PauseGate,
    renderer: RichOutputRenderer | None = None,
) -> Iterator[None]:
    """
    Route SIGINT to cancellation and, where available, SIGUSR1 to pause.

    A prompt waiting on stdin does not observe the token, so SIGINT raises
    KeyboardInterrupt into it; the renderer turns that into cancellation.
    """

    def on_interrupt(signum: int, frame: Any) -> None:
        cancel.cancel()
        if renderer is not None and renderer.is_prompting:
            raise KeyboardInterrupt

    def on_pause(signum: int, frame: Any) -> None:
        paused = pause_gate.toggle()
        logger.info("Pause toggled by signal: paused=%s", paused)

    previous = {signal.SIGINT: signal.signal(signal.SIGINT, on_interrupt)}
    sigusr1 = getattr(signal, "SIGUSR1", None)
    if sigusr1 is not None:
        previous[sigusr1] = signal.signal(sigusr1, on_pause)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@click.group()
@click.version_option(__version__, prog_name="modloop")
def main() -> None:
    """Drive a module through specification, planning and building."""


@main.command()
@click.argument("module")
@click.option(
    "--root",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Project root holding docs/requirements and .modloop",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Path to configuration (default: <root>/{DEFAULT_CONFIG_FILE})",
)
@click.option("--unattended", is_flag=True, help="Never prompt; decide automatically")
@click.option(
    "--failure-threshold",
    default=None,
    type=click.IntRange(min=1),
    help="Consecutive failures before asking the user",
)
@click.option("--approve-spec", is_flag=True, help="Treat the specification as already approved")
@click.option("--prompt", "user_prompt", default=None, help="Extra instructions for the model")
@model_options
@click.option("--log-file", default=None, type=click.Path(), help="Path to log file")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging to console")
def run(
    module: str,
    root: Path,
    config_path: Path | None,
    unattended: bool,
    failure_threshold: int | None,
    approve_spec: bool,
    user_prompt: str | None,
    client_name: str,
    base_url: str,
    api_key_env: str,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Run MODULE until it is complete or the loop is interrupted."""
    setup_logging("modloop", log_file=log_file, verbose=verbose)
    console = Console()
    renderer = RichOutputRenderer(console=console)

    try:
        config = load_config(config_path or root / DEFAULT_CONFIG_FILE)
        client = create_model_client(client_name, base_url, api_key_env)
    except ConfigurationError as e:
        renderer.render_error(f"Configuration error: {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    orchestrator = build_orchestrator(
        root,
        config,
        client,
        renderer,
        approve_spec=approve_spec,
        unattended=True if unattended else None,
        failure_threshold=failure_threshold,
        user_prompt=user_prompt,
    )

    cancel = CancellationToken()
    with signal_handlers(cancel, orchestrator.pause_gate, renderer):
        result = orchestrator.run(module, cancel)

    if result.was_interrupted:
        console.print(f"[yellow]Interrupted:[/yellow] {result.interruption_reason}")
    sys.exit(exit_code_for(result))


if __name__ == "__main__":
    main()
