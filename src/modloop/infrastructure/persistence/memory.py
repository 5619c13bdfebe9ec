"""
In-memory session and plan storage.

Useful for testing and ephemeral runs.
"""

from datetime import UTC, datetime

from modloop.domain.interfaces import PlanStoreInterface, SessionManagerInterface
from modloop.domain.models import SessionMetrics, SessionState
from modloop.infrastructure.persistence.paths import make_session_id


class InMemorySessionManager(SessionManagerInterface):
    """Simple in-memory session store for testing."""

    def __init__(self) -> None:
        self._states: dict[str, SessionState] = {}
        self._metrics: dict[str, SessionMetrics] = {}
        self._modules: dict[str, str] = {}
        self._latest: str | None = None

    def create_session(self, module: str) -> str:
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")
        today = datetime.now(UTC).date()
        prefix = make_session_id(module, today, 1).rsplit("-", 1)[0]
        counter = 1 + sum(1 for sid in self._modules if sid.startswith(prefix + "-"))
        session_id = make_session_id(module, today, counter)

        now = datetime.now(UTC).isoformat()
        self._modules[session_id] = module
        self._states[session_id] = SessionState(
            session_id=session_id,
            module=module,
            phase="RequirementGathering",
            step="DraftSpecification",
            created_at=now,
            updated_at=now,
        )
        self._latest = session_id
        return session_id

    def latest_session_id(self) -> str | None:
        return self._latest

    def session_module(self, session_id: str) -> str | None:
        return self._modules.get(session_id)

    def load_state(self, session_id: str) -> SessionState | None:
        return self._states.get(session_id)

    def save_state(self, session_id: str, state: SessionState) -> None:
        self._modules.setdefault(session_id, state.module)
        self._states[session_id] = state

    def load_metrics(self, session_id: str) -> SessionMetrics | None:
        return self._metrics.get(session_id)

    def save_metrics(self, session_id: str, metrics: SessionMetrics) -> None:
        self._metrics[session_id] = metrics


class InMemoryPlanStore(PlanStoreInterface):
    """Plan text per module, held in a dict."""

    def __init__(self) -> None:
        self._plans: dict[str, str] = {}

    def read_plan(self, module: str) -> str | None:
        return self._plans.get(module)

    def append_plan(self, module: str, text: str) -> None:
        existing = self._plans.get(module)
        self._plans[module] = f"{existing}\n\n{text}" if existing else text
