"""
WorkflowOrchestrator: the driving loop of a module run.

Per iteration: pause check -> budget check -> guardrails -> drift check ->
phase branch -> model invocation -> trigger resolution -> transition ->
checkpoint. Runs until the engine completes, the run is interrupted, or the
cancellation token fires.
"""

import logging

from modloop.application.checkpoint_service import CheckpointService
from modloop.application.failure_handler import FailureHandler
from modloop.application.guardrail_pipeline import GuardrailPipeline
from modloop.application.model_resilience import ResilientModelInvoker
from modloop.application.pause_gate import PauseGate
from modloop.application.phase_controller import PhaseTransitionController
from modloop.application.tool_usage import ToolUsageTally
from modloop.application.workflow_engine import WorkflowEngine
from modloop.domain.cancellation import CancellationToken
from modloop.domain.exceptions import OperationCancelled, classify_critical_error
from modloop.domain.interfaces import (
    BudgetEnforcerInterface,
    CheckpointSinkInterface,
    DriftServiceInterface,
    GitWorkflowInterface,
    OutputRendererInterface,
    PlanStoreInterface,
    PromptBuilderInterface,
    SessionManagerInterface,
    StateAssessorInterface,
    TokenTrackerInterface,
    ToolRegistryInterface,
)
from modloop.domain.models import (
    BudgetStatus,
    CheckpointTrigger,
    FailureAction,
    GuardrailContext,
    OrchestrationResult,
    RunOptions,
    SessionTokenMetrics,
    StepResult,
    WorkflowPhase,
    WorkflowStep,
    WorkflowTrigger,
)
from modloop.domain.workflow import DEFAULT_TRIGGERS, STEP_PROGRESS

logger = logging.getLogger(__name__)

CANCELLED_REASON = "Cancelled"
CONFIRMATION_REASON = "User confirmation required"


def _is_yes(answer: str | None) -> bool:
    return answer is not None and answer.strip().lower() in ("y", "yes")


class WorkflowOrchestrator:
    """
    Drives one module through the workflow loop.

    The engine handles transitions; this class drives the outer loop and
    decides policy for guardrail, budget and failure verdicts. Every
    collaborator after tool_registry is optional and may be None.
    """

    def __init__(
        self,
        assessor: StateAssessorInterface,
        invoker: ResilientModelInvoker,
        prompt_builder: PromptBuilderInterface,
        tool_registry: ToolRegistryInterface,
        renderer: OutputRendererInterface,
        failure_handler: FailureHandler | None = None,
        guardrails: GuardrailPipeline | None = None,
        phase_controller: PhaseTransitionController | None = None,
        pause_gate: PauseGate | None = None,
        drift_service: DriftServiceInterface | None = None,
        git_service: GitWorkflowInterface | None = None,
        session_manager: SessionManagerInterface | None = None,
        checkpoint_sink: CheckpointSinkInterface | None = None,
        token_tracker: TokenTrackerInterface | None = None,
        plan_store: PlanStoreInterface | None = None,
        budget_enforcer: BudgetEnforcerInterface | None = None,
        options: RunOptions | None = None,
    ):
        """
        Args:
            assessor: Derives the actual current step from artifacts
            invoker: Model invocation with fallback
            prompt_builder: Builds the system prompt per step
            tool_registry: Tools offered per phase
            renderer: Everything the user sees or answers
            failure_handler: Escalation policy; without one any failure ends the run
            guardrails: Checks run before every model call
            phase_controller: Holds the specification approval gate
            pause_gate: Cooperative pause signal toggled from outside the loop
            drift_service: Reports specification changes
            git_service: Ensures a module branch before the run
            session_manager: Session create/resume and persisted state
            checkpoint_sink: Receives best-effort checkpoints
            token_tracker: Accumulates token usage
            plan_store: Receives plan text produced at BreakIntoTasks
            budget_enforcer: Budget verdicts from cumulative usage
            options: Per-run switches
        """
        self._assessor = assessor
        self._engine = WorkflowEngine(assessor)
        self._invoker = invoker
        self._prompt_builder = prompt_builder
        self._tool_registry = tool_registry
        self._renderer = renderer
        self._configured_failure_handler = failure_handler
        self._failure_handler = failure_handler
        self._guardrails = guardrails or GuardrailPipeline()
        self._phase_controller = phase_controller or PhaseTransitionController()
        self._pause_gate = pause_gate or PauseGate()
        self._drift_service = drift_service
        self._git_service = git_service
        self._token_tracker = token_tracker
        self._plan_store = plan_store
        self._budget_enforcer = budget_enforcer
        self._options = options or RunOptions()
        self._checkpoints = CheckpointService(
            checkpoint_sink, session_manager, token_tracker
        )

        self._module = ""
        self._iteration_count = 0
        self._last_tool_calls = 0
        self._tool_usage = ToolUsageTally()
        self._budget_confirmed = False

    @property
    def engine(self) -> WorkflowEngine:
        return self._engine

    @property
    def pause_gate(self) -> PauseGate:
        return self._pause_gate

    @property
    def phase_controller(self) -> PhaseTransitionController:
        return self._phase_controller

    @property
    def session_id(self) -> str | None:
        return self._checkpoints.session_id

    @property
    def iteration_count(self) -> int:
        return self._iteration_count

    # =========================================================================
    # RUN LOOP
    # =========================================================================

    def run(
        self, module: str, cancel: CancellationToken | None = None
    ) -> OrchestrationResult:
        """
        Run the module until complete, interrupted, or cancelled.

        Args:
            module: Module name
            cancel: Cancellation signal observed at every suspension point

        Returns:
            The terminal result; callers branch on its fields only

        Raises:
            ValueError: If module is empty
        """
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")

        cancel = cancel or CancellationToken()
        self._module = module
        self._iteration_count = 0
        self._last_tool_calls = 0
        self._tool_usage.reset()
        self._budget_confirmed = False
        self._failure_handler = self._configured_failure_handler
        if self._options.failure_threshold is not None:
            self._failure_handler = FailureHandler(self._options.failure_threshold)

        try:
            cancel.raise_if_cancelled()
            self._ensure_branch(module)
            self._open_session(module)
            try:
                self._engine.initialize(module)
            except OperationCancelled:
                raise
            except Exception as e:
                return self._stop_on_error(
                    self._error_result("State assessment", e, cancel)
                )
            logger.info(
                "Starting orchestration for module %s at step %s",
                module,
                self._engine.current_step.value,
            )

            while not self._engine.is_complete:
                cancel.raise_if_cancelled()
                self._wait_if_paused(cancel)
                cancel.raise_if_cancelled()

                self._iteration_count += 1
                logger.debug(
                    "Iteration %d: step=%s, phase=%s",
                    self._iteration_count,
                    self._engine.current_step.value,
                    self._engine.current_phase.value,
                )

                try:
                    blocked = self._check_budget(cancel) or self._check_guardrails(cancel)
                except OperationCancelled:
                    raise
                except Exception as e:
                    return self._stop_on_error(
                        self._error_result("Pre-flight check", e, cancel)
                    )
                if blocked is not None:
                    logger.warning("Step %s blocked: %s", self._engine.current_step.value, blocked)
                    return self._stop_on_error(StepResult.failed(blocked))

                self._check_drift(cancel)
                step_result = self._execute_step(cancel)
                outcome = self._apply_step_result(step_result, cancel)
                if outcome is not None:
                    return outcome

        except OperationCancelled:
            logger.info("Orchestration for module %s cancelled", module)
            self._checkpoint(CheckpointTrigger.USER_PAUSE)
            return OrchestrationResult.interrupted(
                self._iteration_count, self._engine.current_step, CANCELLED_REASON
            )

        logger.info(
            "Orchestration complete for module %s after %d iterations",
            module,
            self._iteration_count,
        )
        self._checkpoint(CheckpointTrigger.STEP_COMPLETION)
        self._renderer.render_result(
            f"Module {module} completed after {self._iteration_count} iterations"
        )
        return OrchestrationResult.completed(
            self._iteration_count, self._engine.current_step
        )

    def _ensure_branch(self, module: str) -> None:
        if self._git_service is None:
            return
        try:
            result = self._git_service.ensure_module_branch(module)
        except Exception as e:
            logger.warning("Git branch setup failed for module %s: %s", module, e)
            return
        logger.info("Git branch %s for module %s: %s", result.branch, module, result.success)

    def _open_session(self, module: str) -> None:
        resumed = self._checkpoints.open_session(module)
        if resumed is None:
            return
        try:
            hint = WorkflowStep(resumed.step)
        except ValueError:
            logger.warning("Ignoring unknown saved step %r", resumed.step)
        else:
            self._persist_hint(hint)
        self._renderer.render_result(
            f"Resuming session {resumed.session_id} at step {resumed.step}"
        )

    def _wait_if_paused(self, cancel: CancellationToken) -> None:
        if not self._pause_gate.is_paused:
            return
        logger.info("Orchestration paused at step %s", self._engine.current_step.value)
        self._renderer.render_result("Paused. Waiting for resume...")
        self._checkpoint(CheckpointTrigger.USER_PAUSE)
        self._pause_gate.wait_if_paused(cancel)
        cancel.raise_if_cancelled()
        logger.info("Orchestration resumed")
        self._renderer.render_result("Resumed.")

    # =========================================================================
    # PRE-FLIGHT CHECKS
    # =========================================================================

    def _check_budget(self, cancel: CancellationToken) -> str | None:
        """Returns a failure reason when the budget stops this step."""
        if self._budget_enforcer is None:
            return None

        usage = (
            self._token_tracker.session_metrics()
            if self._token_tracker is not None
            else SessionTokenMetrics()
        )
        verdict = self._budget_enforcer.check(
            usage.cumulative_tokens, usage.premium_request_count
        )

        if verdict.status is BudgetStatus.OK:
            return None
        if verdict.status is BudgetStatus.WARNING:
            logger.warning("Budget warning: %s", verdict.message)
            self._renderer.render_error(f"Warning: {verdict.message}")
            return None
        if verdict.status is BudgetStatus.EXCEEDED:
            return f"Budget exceeded: {verdict.message}"

        # ConfirmationRequired
        if self._budget_confirmed:
            return None
        if self._options.unattended:
            return f"Budget confirmation required: {verdict.message}"
        answer = self._renderer.prompt(f"{verdict.message} Continue? (yes/no)", cancel)
        if _is_yes(answer):
            self._budget_confirmed = True
            logger.info("User approved continuing past budget threshold")
            return None
        return f"Budget confirmation declined: {verdict.message}"

    def _check_guardrails(self, cancel: CancellationToken) -> str | None:
        """Returns a failure reason on the first Block; renders every Warn."""
        step = self._engine.current_step
        retry_count = (
            self._failure_handler.get_failure_count(step.value)
            if self._failure_handler is not None
            else 0
        )
        context = GuardrailContext(
            module_name=self._module,
            task_id=step.value,
            iteration_count=self._iteration_count,
            retry_count=retry_count,
            tool_call_count=self._last_tool_calls,
            file_read_counts=self._tool_usage.file_read_counts,
            command_retry_counts=self._tool_usage.command_retry_counts,
        )

        for result in self._guardrails.evaluate(context, cancel):
            if result.is_block:
                logger.warning("Guardrail blocked: %s", result.message)
                return f"Blocked by guardrail: {result.message}"
            if result.is_warn:
                logger.warning("Guardrail warning: %s", result.message)
                self._renderer.render_error(f"Warning: {result.message}")
        return None

    def _check_drift(self, cancel: CancellationToken) -> None:
        if self._drift_service is None:
            return
        try:
            drifts = self._drift_service.check_drift(self._module, cancel)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.warning("Drift check failed for module %s: %s", self._module, e)
            return

        for drift in drifts:
            logger.warning("Spec drift: section '%s' was %s", drift.header, drift.action)
            self._renderer.render_error(
                f"Specification drift detected: section '{drift.header}' was {drift.action}"
            )

    # =========================================================================
    # STEP EXECUTION
    # =========================================================================

    def _execute_step(self, cancel: CancellationToken) -> StepResult:
        """Run the current step; collaborator errors become failed results."""
        try:
            return self._run_step(cancel)
        except OperationCancelled:
            raise
        except Exception as e:
            return self._error_result("Step execution", e, cancel)

    def _error_result(
        self, action: str, error: Exception, cancel: CancellationToken
    ) -> StepResult:
        if cancel.is_cancelled:
            raise OperationCancelled(f"{action} cancelled") from error
        kind = classify_critical_error(error)
        logger.error(
            "%s failed at step %s: %s", action, self._engine.current_step.value, error
        )
        if kind is not None:
            return StepResult.failed(
                f"Critical {kind.value} error during {action.lower()}: {error}",
                is_critical_error=True,
            )
        return StepResult.failed(f"{action} failed: {error}")

    def _run_step(self, cancel: CancellationToken) -> StepResult:
        step = self._engine.current_step
        phase = self._engine.current_phase

        if step is WorkflowStep.DRAFT_SPECIFICATION:
            if self._phase_controller.is_specification_approved:
                return StepResult.succeeded(
                    WorkflowTrigger.SPEC_APPROVED, "Specification approved"
                )
            drafted = self._invoke_model(step, phase, cancel)
            if not drafted.success:
                return drafted
            return StepResult.needs_confirmation(
                drafted.summary
                or "Specification drafted. Please review and approve to continue."
            )

        result = self._invoke_model(step, phase, cancel)
        if not result.success:
            return result

        if step is WorkflowStep.BREAK_INTO_TASKS:
            self._store_plan(result.summary)
            self._phase_controller.can_auto_transition_to_building(True, bool(result.summary))
            return result

        if step is WorkflowStep.ITERATE_THROUGH_TASKS:
            if self._assessor.has_more_tasks(self._module):
                return result
            return StepResult.succeeded(
                WorkflowTrigger.COMPONENT_COMPLETE, result.summary or "Component complete"
            )

        if step is WorkflowStep.REPEAT:
            if self._assessor.has_more_components(self._module):
                return result
            self._phase_controller.can_auto_transition_to_complete(True, True)
            logger.info("No more components - completing module %s", self._module)
            return StepResult.succeeded(
                WorkflowTrigger.MODULE_COMPLETE, "All components complete"
            )

        return result

    def _invoke_model(
        self, step: WorkflowStep, phase: WorkflowPhase, cancel: CancellationToken
    ) -> StepResult:
        self._renderer.render_progress(phase.value, step.value, STEP_PROGRESS[step])

        tools = self._tool_registry.tools_for_phase(phase)
        extra_context = (
            {"User Instructions": self._options.user_prompt}
            if self._options.user_prompt
            else None
        )
        prompt = self._prompt_builder.build(
            phase, self._module, extra_context=extra_context
        )

        try:
            invocation = self._invoker.invoke(phase, prompt, tools, cancel)
        except OperationCancelled:
            raise
        except Exception as e:
            return self._error_result("Model invocation", e, cancel)

        self._last_tool_calls = invocation.tool_calls_made
        self._tool_usage.record(invocation.tool_calls)
        if self._token_tracker is not None:
            self._token_tracker.record_usage(invocation.token_usage)

        return StepResult.succeeded(DEFAULT_TRIGGERS[step], invocation.text or None)

    def _store_plan(self, text: str | None) -> None:
        if self._plan_store is None or not text:
            return
        try:
            self._plan_store.append_plan(self._module, text)
        except Exception as e:
            logger.warning("Failed to store plan for module %s: %s", self._module, e)

    # =========================================================================
    # OUTCOMES
    # =========================================================================

    def _apply_step_result(
        self, result: StepResult, cancel: CancellationToken
    ) -> OrchestrationResult | None:
        """Interpret a step outcome; returns a terminal result to stop the run."""
        step = self._engine.current_step

        if not result.success:
            return self._handle_failure(result, cancel)

        if self._failure_handler is not None:
            self._failure_handler.reset_failure_count(step.value)
        self._checkpoint(CheckpointTrigger.STEP_COMPLETION)

        if result.requires_user_confirmation:
            logger.info(
                "User confirmation required at step %s (permitted: %s)",
                step.value,
                ", ".join(t.value for t in self._engine.get_permitted_triggers()),
            )
            self._renderer.render_result(result.summary or "Awaiting user confirmation")
            self._checkpoint(CheckpointTrigger.USER_PAUSE)
            return OrchestrationResult.interrupted(
                self._iteration_count, step, CONFIRMATION_REASON
            )

        if result.next_trigger is not None:
            self._advance(result.next_trigger)
        return None

    def _handle_failure(
        self, result: StepResult, cancel: CancellationToken
    ) -> OrchestrationResult | None:
        step = self._engine.current_step
        message = result.summary or "Step failed"
        logger.warning("Step %s failed: %s", step.value, message)
        self._renderer.render_error(message)
        self._checkpoint(CheckpointTrigger.TASK_FAILURE)

        if result.is_critical_error:
            return self._stop_critical(message)

        if self._failure_handler is None:
            return OrchestrationResult.interrupted(self._iteration_count, step, message)

        classification = self._failure_handler.record_failure(step.value, message)
        if classification.action is FailureAction.SELF_CORRECT:
            return None

        if self._options.unattended:
            logger.warning(
                "Unattended mode: continuing after %d failures of %s",
                classification.consecutive_failures,
                step.value,
            )
            return None

        answer = self._renderer.prompt(
            f"Task '{step.value}' failed {classification.consecutive_failures} times. "
            "Continue? (yes/no)",
            cancel,
        )
        if _is_yes(answer):
            self._failure_handler.reset_failure_count(step.value)
            return None
        return OrchestrationResult.interrupted(
            self._iteration_count, step, classification.message
        )

    def _stop_on_error(self, result: StepResult) -> OrchestrationResult:
        """End the run on a failure that bypasses the FailureHandler."""
        message = result.summary or "Step failed"
        if result.is_critical_error:
            return self._stop_critical(message)
        self._renderer.render_error(message)
        self._checkpoint(CheckpointTrigger.TASK_FAILURE)
        return OrchestrationResult.interrupted(
            self._iteration_count, self._engine.current_step, message
        )

    def _stop_critical(self, message: str) -> OrchestrationResult:
        """End the run on a critical error, ignoring threshold and unattended mode."""
        if self._failure_handler is not None:
            message = self._failure_handler.record_critical_error(message).message
        self._renderer.render_error(f"CRITICAL: {message}. Execution blocked.")
        self._checkpoint(CheckpointTrigger.TASK_FAILURE)
        return OrchestrationResult.critical_error(
            self._iteration_count, self._engine.current_step, message
        )

    def _advance(self, trigger: WorkflowTrigger) -> None:
        # ModuleComplete is only declared from SelectNextComponent; from Repeat
        # the module completes through Assess first.
        if (
            trigger is WorkflowTrigger.MODULE_COMPLETE
            and not self._engine.can_fire(trigger)
            and self._engine.can_fire(WorkflowTrigger.ASSESS)
        ):
            self._transition(WorkflowTrigger.ASSESS)
        self._transition(trigger)

    def _transition(self, trigger: WorkflowTrigger) -> None:
        previous_step = self._engine.current_step
        previous_phase = self._engine.current_phase
        if not self._engine.fire(trigger):
            return
        # Task iterations share one tally; a new step starts a fresh one.
        if self._engine.current_step is not previous_step:
            self._tool_usage.reset()

        self._persist_hint(self._engine.current_step)

        if self._engine.current_phase is not previous_phase:
            self._checkpoint(CheckpointTrigger.PHASE_TRANSITION)

    def _persist_hint(self, step: WorkflowStep) -> None:
        try:
            self._assessor.persist_step(self._module, step)
        except Exception as e:
            logger.warning("Failed to persist step hint %s: %s", step.value, e)

    def _checkpoint(self, trigger: CheckpointTrigger) -> None:
        self._checkpoints.checkpoint(
            trigger,
            self._module,
            self._engine.current_phase,
            self._engine.current_step,
            self._engine.is_complete,
            self._iteration_count,
        )
