"""
Checkpoint sinks.

SessionCheckpointSink writes checkpoints through a SessionManager.
NullCheckpointSink discards them.
"""

import logging

from modloop.domain.interfaces import CheckpointSinkInterface, SessionManagerInterface
from modloop.domain.models import CheckpointTrigger, SessionMetrics, SessionState

logger = logging.getLogger(__name__)


class SessionCheckpointSink(CheckpointSinkInterface):
    """Persists state (and metrics, when given) for every checkpoint."""

    def __init__(self, session_manager: SessionManagerInterface):
        self._session_manager = session_manager

    def save(
        self,
        trigger: CheckpointTrigger,
        session_id: str,
        state: SessionState,
        metrics: SessionMetrics | None = None,
    ) -> None:
        self._session_manager.save_state(session_id, state)
        if metrics is not None:
            self._session_manager.save_metrics(session_id, metrics)
        logger.debug(
            "Checkpoint %s for session %s at %s", trigger.value, session_id, state.step
        )


class NullCheckpointSink(CheckpointSinkInterface):
    """Discards every checkpoint."""

    def save(
        self,
        trigger: CheckpointTrigger,
        session_id: str,
        state: SessionState,
        metrics: SessionMetrics | None = None,
    ) -> None:
        pass
