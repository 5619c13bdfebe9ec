"""
Storage layout and session id format.

Session ids look like {module}-YYYYMMDD-{counter}, with the module lowercased
and reduced to [a-z0-9-].
"""

import re
from datetime import date
from pathlib import Path

STORAGE_DIR_NAME = ".modloop"

SESSION_ID_PATTERN = re.compile(
    r"^(?P<module>[a-z0-9][a-z0-9-]*)-(?P<date>\d{8})-(?P<counter>\d+)$"
)


def module_slug(module: str) -> str:
    slug = re.sub(r"[^a-z0-9-]+", "-", module.strip().lower()).strip("-")
    return slug or "module"


def make_session_id(module: str, day: date, counter: int) -> str:
    if counter < 1:
        raise ValueError("counter must be >= 1")
    return f"{module_slug(module)}-{day:%Y%m%d}-{counter}"


def parse_session_id(value: str) -> tuple[str, date, int] | None:
    """Split a session id into (module slug, date, counter), or None."""
    match = SESSION_ID_PATTERN.match(value or "")
    if not match:
        return None
    raw = match.group("date")
    try:
        day = date(int(raw[:4]), int(raw[4:6]), int(raw[6:]))
    except ValueError:
        return None
    return match.group("module"), day, int(match.group("counter"))


class StoragePaths:
    """Resolves storage paths relative to a project root."""

    def __init__(self, project_root: str | Path):
        self.root = Path(project_root) / STORAGE_DIR_NAME

    @property
    def sessions_dir(self) -> Path:
        return self.root / "sessions"

    @property
    def latest_path(self) -> Path:
        return self.sessions_dir / "latest"

    def session_dir(self, session_id: str) -> Path:
        return self.sessions_dir / session_id

    def state_path(self, session_id: str) -> Path:
        return self.session_dir(session_id) / "state.json"

    def metrics_path(self, session_id: str) -> Path:
        return self.session_dir(session_id) / "metrics.json"

    def plan_path(self, module: str) -> Path:
        return self.root / "modules" / module_slug(module) / "plan.md"
