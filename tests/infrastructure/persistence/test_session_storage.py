"""Tests for session managers, plan stores and checkpoint sinks."""

import json
from datetime import UTC, datetime

import pytest

from modloop.domain.models import CheckpointTrigger, SessionMetrics, SessionState
from modloop.infrastructure.persistence import (
    FilesystemPlanStore,
    FilesystemSessionManager,
    InMemoryPlanStore,
    InMemorySessionManager,
    NullCheckpointSink,
    SessionCheckpointSink,
    StoragePaths,
)


def today() -> str:
    return f"{datetime.now(UTC).date():%Y%m%d}"


@pytest.fixture
def fs_sessions(tmp_path) -> FilesystemSessionManager:
    return FilesystemSessionManager(tmp_path)


# =============================================================================
# Session managers
# =============================================================================


@pytest.fixture(params=["memory", "filesystem"])
def sessions(request, tmp_path):
    """Both session managers, which must behave the same."""
    if request.param == "memory":
        return InMemorySessionManager()
    return FilesystemSessionManager(tmp_path)


class TestSessionManagers:
    def test_create_session(self, sessions) -> None:
        session_id = sessions.create_session("Auth")

        assert session_id == f"auth-{today()}-1"
        assert sessions.latest_session_id() == session_id
        assert sessions.session_module(session_id) == "Auth"

        state = sessions.load_state(session_id)
        assert state.step == "DraftSpecification"
        assert state.phase == "RequirementGathering"
        assert not state.is_complete

    def test_counter_increments_per_module(self, sessions) -> None:
        first = sessions.create_session("auth")
        other = sessions.create_session("billing")
        second = sessions.create_session("auth")

        assert first.endswith("-1")
        assert other.endswith("-1")
        assert second.endswith("-2")
        assert sessions.latest_session_id() == second

    def test_rejects_empty_module(self, sessions) -> None:
        with pytest.raises(ValueError):
            sessions.create_session("  ")

    def test_state_round_trip(self, sessions) -> None:
        session_id = sessions.create_session("auth")
        state = SessionState(
            session_id=session_id,
            module="auth",
            phase="Building",
            step="Repeat",
            is_complete=True,
            created_at="2024-03-07T10:00:00+00:00",
            updated_at="2024-03-07T11:00:00+00:00",
        )

        sessions.save_state(session_id, state)

        assert sessions.load_state(session_id) == state

    def test_metrics_round_trip(self, sessions) -> None:
        session_id = sessions.create_session("auth")
        metrics = SessionMetrics(
            session_id=session_id,
            cumulative_input_tokens=1200,
            cumulative_output_tokens=300,
            premium_request_count=4,
            iteration_count=6,
        )

        assert sessions.load_metrics(session_id) is None
        sessions.save_metrics(session_id, metrics)

        assert sessions.load_metrics(session_id) == metrics

    def test_unknown_session(self, sessions) -> None:
        assert sessions.latest_session_id() is None
        assert sessions.load_state("auth-20240307-1") is None


class TestFilesystemSessionManager:
    def test_files_on_disk(self, fs_sessions, tmp_path) -> None:
        session_id = fs_sessions.create_session("auth")
        paths = StoragePaths(tmp_path)

        assert paths.latest_path.read_text() == session_id
        data = json.loads(paths.state_path(session_id).read_text())
        assert data["module"] == "auth"
        assert not list(paths.session_dir(session_id).glob("*.tmp"))

    def test_list_sessions_oldest_first(self, fs_sessions, tmp_path) -> None:
        sessions_dir = StoragePaths(tmp_path).sessions_dir
        for name in ("auth-20240308-1", "auth-20240307-2", "auth-20240307-10", "notes"):
            (sessions_dir / name).mkdir(parents=True)

        assert fs_sessions.list_sessions() == (
            "auth-20240307-2",
            "auth-20240307-10",
            "auth-20240308-1",
        )

    def test_counter_continues_from_disk(self, tmp_path) -> None:
        FilesystemSessionManager(tmp_path).create_session("auth")

        assert FilesystemSessionManager(tmp_path).create_session("auth").endswith("-2")

    def test_corrupted_state_is_absent(self, fs_sessions, tmp_path) -> None:
        session_id = fs_sessions.create_session("auth")
        StoragePaths(tmp_path).state_path(session_id).write_text("{not json")

        assert fs_sessions.load_state(session_id) is None

    def test_unexpected_fields_are_absent(self, fs_sessions, tmp_path) -> None:
        session_id = fs_sessions.create_session("auth")
        StoragePaths(tmp_path).state_path(session_id).write_text(json.dumps({"step": "x"}))

        assert fs_sessions.load_state(session_id) is None

    def test_module_from_id_without_state(self, fs_sessions) -> None:
        assert fs_sessions.session_module("user-accounts-20240307-1") == "user-accounts"

    def test_invalid_latest_pointer(self, fs_sessions, tmp_path) -> None:
        latest = StoragePaths(tmp_path).latest_path
        latest.parent.mkdir(parents=True)
        latest.write_text("../../etc")

        assert fs_sessions.latest_session_id() is None


# =============================================================================
# Plan stores
# =============================================================================


class TestPlanStores:
    @pytest.mark.parametrize("kind", ["memory", "filesystem"])
    def test_append(self, kind: str, tmp_path) -> None:
        store = InMemoryPlanStore() if kind == "memory" else FilesystemPlanStore(tmp_path)
        assert store.read_plan("auth") is None

        store.append_plan("auth", "1. Parser")
        store.append_plan("auth", "2. Tokens")

        plan = store.read_plan("auth")
        assert plan.index("1. Parser") < plan.index("2. Tokens")

    def test_filesystem_location(self, tmp_path) -> None:
        FilesystemPlanStore(tmp_path).append_plan("User Accounts", "1. Schema")

        path = tmp_path / ".modloop" / "modules" / "user-accounts" / "plan.md"
        assert path.read_text() == "1. Schema\n"


# =============================================================================
# Checkpoint sinks
# =============================================================================


class TestCheckpointSinks:
    def test_session_sink_saves_state_and_metrics(self) -> None:
        sessions = InMemorySessionManager()
        session_id = sessions.create_session("auth")
        state = SessionState(session_id, "auth", "Planning", "BreakIntoTasks")
        metrics = SessionMetrics(session_id, cumulative_input_tokens=10)

        SessionCheckpointSink(sessions).save(
            CheckpointTrigger.PHASE_TRANSITION, session_id, state, metrics
        )

        assert sessions.load_state(session_id) == state
        assert sessions.load_metrics(session_id) == metrics

    def test_session_sink_without_metrics(self) -> None:
        sessions = InMemorySessionManager()
        session_id = sessions.create_session("auth")
        state = SessionState(session_id, "auth", "Planning", "BreakIntoTasks")

        SessionCheckpointSink(sessions).save(CheckpointTrigger.USER_PAUSE, session_id, state)

        assert sessions.load_metrics(session_id) is None

    def test_null_sink(self) -> None:
        state = SessionState("auth-20240307-1", "auth", "Planning", "BreakIntoTasks")

        NullCheckpointSink().save(CheckpointTrigger.TASK_FAILURE, "auth-20240307-1", state)
