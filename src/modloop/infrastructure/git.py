"""
Module-scoped git branches via the git CLI.

Branch failures are reported in the BranchResult and logged; they never
raise, so a missing git binary or a non-repository root does not stop a run.
"""

import logging
import subprocess
from pathlib import Path

from modloop.domain.interfaces import GitWorkflowInterface
from modloop.domain.models import BranchResult

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "modloop/"
GIT_TIMEOUT_SECONDS = 30


class GitBranchService(GitWorkflowInterface):
    """Ensures a modloop/<module> branch exists and is checked out."""

    def __init__(self, repo_root: str | Path, enabled: bool = True):
        self._repo_root = Path(repo_root)
        self._enabled = enabled

    def branch_name(self, module: str) -> str:
        return f"{BRANCH_PREFIX}{module.strip().lower().replace(' ', '-')}"

    def _git(self, *args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            ["git", *args],
            cwd=self._repo_root,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )

    def ensure_module_branch(self, module: str) -> BranchResult:
        if not module or not module.strip():
            raise ValueError("module must be a non-empty string")

        branch = self.branch_name(module)
        if not self._enabled:
            logger.debug("Git disabled, skipping branch creation for %s", module)
            return BranchResult(branch, success=True, message="git disabled")

        try:
            current = self._git("rev-parse", "--abbrev-ref", "HEAD")
            if current.returncode != 0:
                return self._failed(branch, current.stderr)
            if current.stdout.strip() == branch:
                return BranchResult(branch, success=True, message="already on branch")

            exists = self._git("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}")
            if exists.returncode == 0:
                switched = self._git("checkout", branch)
                if switched.returncode != 0:
                    return self._failed(branch, switched.stderr)
                logger.info("Switched to module branch %s", branch)
                return BranchResult(branch, success=True, message="switched")

            created = self._git("checkout", "-b", branch)
            if created.returncode != 0:
                return self._failed(branch, created.stderr)
        except (OSError, subprocess.TimeoutExpired) as e:
            return self._failed(branch, str(e))

        logger.info("Created module branch %s", branch)
        return BranchResult(branch, success=True, created=True, message="created")

    @staticmethod
    def _failed(branch: str, detail: str) -> BranchResult:
        message = detail.strip() or "git command failed"
        logger.warning("Failed to ensure branch %s: %s", branch, message)
        return BranchResult(branch, success=False, message=message)
