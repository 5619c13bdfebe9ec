"""
Filesystem session and plan storage.

Sessions live under .modloop/sessions/<session_id>/ as state.json and
metrics.json. Every JSON write goes to a temp file and is renamed into place.
"""

import json
import logging
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from modloop.domain.interfaces import PlanStoreInterface, SessionManagerInterface
from modloop.domain.models import SessionMetrics, SessionState
from modloop.infrastructure.persistence.paths import (
    StoragePaths,
    make_session_id,
    module_slug,
    parse_session_id,
)

logger = logging.getLogger(__name__)


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON using write-to-temp + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    with open(temp_path, "w") as f:
        json.dump(data, f, indent=2)
    temp_path.replace(path)  # Atomic on POSIX


def _read_json(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Corrupted JSON at %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Expected a JSON object at %s", path)
        return None
    return data


class FilesystemSessionManager(SessionManagerInterface):
    """
    Persistent session store.

    Corrupted state or metrics files are logged and treated as absent so a
    damaged session is never resumed.
    """

    def __init__(self, project_root: str | Path):
        self._paths = StoragePaths(project_root)

    def create_session(self, module: str) -> str:
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")

        today = datetime.now(UTC).date()
        session_id = make_session_id(module, today, self._next_counter(module))
        self._paths.session_dir(session_id).mkdir(parents=True, exist_ok=True)

        now = datetime.now(UTC).isoformat()
        self.save_state(
            session_id,
            SessionState(
                session_id=session_id,
                module=module,
                phase="RequirementGathering",
                step="DraftSpecification",
                created_at=now,
                updated_at=now,
            ),
        )
        self._set_latest(session_id)
        logger.info("Created session %s", session_id)
        return session_id

    def _next_counter(self, module: str) -> int:
        slug = module_slug(module)
        today = datetime.now(UTC).date()
        highest = 0
        for parsed in map(parse_session_id, self.list_sessions()):
            if parsed and parsed[0] == slug and parsed[1] == today:
                highest = max(highest, parsed[2])
        return highest + 1

    def list_sessions(self) -> tuple[str, ...]:
        """Known session ids, oldest first."""
        sessions_dir = self._paths.sessions_dir
        if not sessions_dir.is_dir():
            return ()
        order: dict[str, tuple] = {}
        for entry in sessions_dir.iterdir():
            parsed = parse_session_id(entry.name) if entry.is_dir() else None
            if parsed is not None:
                module, day, counter = parsed
                order[entry.name] = (day, counter, module)

        return tuple(sorted(order, key=order.__getitem__))

    def _set_latest(self, session_id: str) -> None:
        latest = self._paths.latest_path
        latest.parent.mkdir(parents=True, exist_ok=True)
        temp_path = latest.with_suffix(".tmp")
        temp_path.write_text(session_id)
        temp_path.replace(latest)

    def latest_session_id(self) -> str | None:
        latest = self._paths.latest_path
        if not latest.is_file():
            return None
        session_id = latest.read_text().strip()
        return session_id if parse_session_id(session_id) else None

    def session_module(self, session_id: str) -> str | None:
        state = self.load_state(session_id)
        if state is not None:
            return state.module
        parsed = parse_session_id(session_id)
        return parsed[0] if parsed else None

    def load_state(self, session_id: str) -> SessionState | None:
        data = _read_json(self._paths.state_path(session_id))
        if data is None:
            return None
        try:
            return SessionState(**data)
        except TypeError as e:
            logger.warning("Invalid session state for %s: %s", session_id, e)
            return None

    def save_state(self, session_id: str, state: SessionState) -> None:
        write_json_atomic(self._paths.state_path(session_id), asdict(state))
        logger.debug("Saved session state for %s", session_id)

    def load_metrics(self, session_id: str) -> SessionMetrics | None:
        data = _read_json(self._paths.metrics_path(session_id))
        if data is None:
            return None
        try:
            return SessionMetrics(**data)
        except TypeError as e:
            logger.warning("Invalid session metrics for %s: %s", session_id, e)
            return None

    def save_metrics(self, session_id: str, metrics: SessionMetrics) -> None:
        write_json_atomic(self._paths.metrics_path(session_id), asdict(metrics))
        logger.debug("Saved session metrics for %s", session_id)


class FilesystemPlanStore(PlanStoreInterface):
    """Plan text per module at .modloop/modules/<module>/plan.md."""

    def __init__(self, project_root: str | Path):
        self._paths = StoragePaths(project_root)

    def read_plan(self, module: str) -> str | None:
        path = self._paths.plan_path(module)
        if not path.is_file():
            return None
        return path.read_text()

    def append_plan(self, module: str, text: str) -> None:
        path = self._paths.plan_path(module)
        path.parent.mkdir(parents=True, exist_ok=True)
        existing = self.read_plan(module)
        content = f"{existing.rstrip()}\n\n{text}\n" if existing else f"{text}\n"
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(content)
        temp_path.replace(path)
        logger.debug("Appended %d chars to plan for %s", len(text), module)
