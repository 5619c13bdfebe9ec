"""Application service for session and checkpoint operations.

Keeps session bookkeeping (create or resume, state and metrics snapshots) out
of the orchestration loop. Every save is best-effort: persistence errors are
logged and discarded so the loop never depends on them.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from modloop.domain.models import (
    CheckpointTrigger,
    SessionMetrics,
    SessionState,
    WorkflowPhase,
    WorkflowStep,
)

if TYPE_CHECKING:
    from modloop.domain.interfaces import (
        CheckpointSinkInterface,
        SessionManagerInterface,
        TokenTrackerInterface,
    )

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


class CheckpointService:
    """Application service for opening sessions and writing checkpoints.

    All three collaborators are optional. Without a session manager a local
    session id is generated so a bare checkpoint sink still receives saves.
    """

    def __init__(
        self,
        sink: CheckpointSinkInterface | None = None,
        session_manager: SessionManagerInterface | None = None,
        token_tracker: TokenTrackerInterface | None = None,
    ) -> None:
        """Initialize checkpoint service.

        Args:
            sink: Receiver of checkpoint saves (optional).
            session_manager: Session lifecycle and persisted state (optional).
            token_tracker: Source of cumulative usage for metrics (optional).
        """
        self._sink = sink
        self._session_manager = session_manager
        self._token_tracker = token_tracker
        self._session_id: str | None = None
        self._created_at = ""

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def open_session(self, module: str) -> SessionState | None:
        """Resume the latest incomplete session for module, or start one.

        Only the most recent session is considered, and only when it belongs
        to the same module (case-insensitive) and is not complete.

        Args:
            module: Module being run.

        Returns:
            The saved state when a session was resumed, otherwise None.
        """
        self._session_id = None
        self._created_at = _now()

        if self._session_manager is None:
            self._session_id = self._local_session_id(module)
            logger.debug("No session manager; using local session id %s", self._session_id)
            return None

        try:
            resumed = self._find_resumable(self._session_manager, module)
            if resumed is not None:
                self._session_id = resumed.session_id
                self._created_at = resumed.created_at or self._created_at
                self._restore_metrics(resumed.session_id)
                logger.info(
                    "Resuming session %s for module %s", resumed.session_id, module
                )
                return resumed

            self._session_id = self._session_manager.create_session(module)
        except Exception as e:
            self._session_id = self._local_session_id(module)
            logger.warning(
                "Session setup failed for module %s, continuing as %s: %s",
                module,
                self._session_id,
                e,
            )
            return None

        logger.info("Created session %s for module %s", self._session_id, module)
        return None

    @staticmethod
    def _local_session_id(module: str) -> str:
        return f"{module.strip().lower()}-{uuid.uuid4().hex[:12]}"

    @staticmethod
    def _find_resumable(
        manager: SessionManagerInterface, module: str
    ) -> SessionState | None:
        latest = manager.latest_session_id()
        if latest is None:
            return None

        owner = manager.session_module(latest)
        if owner is None or owner.lower() != module.lower():
            return None

        state = manager.load_state(latest)
        if state is None or state.is_complete:
            return None
        return state

    def _restore_metrics(self, session_id: str) -> None:
        if self._token_tracker is None or self._session_manager is None:
            return
        metrics = self._session_manager.load_metrics(session_id)
        if metrics is None:
            return
        self._token_tracker.restore(
            metrics.cumulative_input_tokens,
            metrics.cumulative_output_tokens,
            metrics.premium_request_count,
        )
        logger.debug(
            "Restored token metrics for session %s: %d in, %d out, %d premium",
            session_id,
            metrics.cumulative_input_tokens,
            metrics.cumulative_output_tokens,
            metrics.premium_request_count,
        )

    def snapshot(
        self,
        module: str,
        phase: WorkflowPhase,
        step: WorkflowStep,
        is_complete: bool,
        iteration_count: int,
    ) -> tuple[SessionState, SessionMetrics | None]:
        """Build the state and metrics records for the current position."""
        session_id = self._session_id or ""
        now = _now()
        state = SessionState(
            session_id=session_id,
            module=module,
            phase=phase.value,
            step=step.value,
            is_complete=is_complete,
            created_at=self._created_at or now,
            updated_at=now,
        )

        metrics = None
        if self._token_tracker is not None:
            usage = self._token_tracker.session_metrics()
            metrics = SessionMetrics(
                session_id=session_id,
                cumulative_input_tokens=usage.cumulative_input_tokens,
                cumulative_output_tokens=usage.cumulative_output_tokens,
                premium_request_count=usage.premium_request_count,
                iteration_count=iteration_count,
                updated_at=now,
            )
        return state, metrics

    def checkpoint(
        self,
        trigger: CheckpointTrigger,
        module: str,
        phase: WorkflowPhase,
        step: WorkflowStep,
        is_complete: bool = False,
        iteration_count: int = 0,
    ) -> bool:
        """Write a checkpoint, swallowing and logging any persistence error.

        Returns:
            True when the sink accepted the save, False when there was no
            sink or the save failed.
        """
        if self._sink is None or self._session_id is None:
            return False

        try:
            state, metrics = self.snapshot(
                module, phase, step, is_complete, iteration_count
            )
            self._sink.save(trigger, self._session_id, state, metrics)
        except Exception as e:
            logger.warning("Checkpoint failed for trigger %s: %s", trigger.value, e)
            return False

        logger.debug("Checkpoint saved: trigger=%s, step=%s", trigger.value, step.value)
        return True
