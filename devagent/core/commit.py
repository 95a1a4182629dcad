# devagent/core/commit.py
"""
Hand-off to git: stage everything, commit only when the tree is dirty.

Nothing in here is fatal. Any git problem is reported as
``CommitOutcome.COMMIT_FAILED`` and the run carries on.
"""

import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from .models import CommitOutcome
from ..utils.console import info, success, warning

DEFAULT_AUTHOR_NAME = "AI Developer Agent"
DEFAULT_AUTHOR_EMAIL = "ai-agent@users.noreply.github.com"
DEFAULT_MESSAGE = "AI Agent: automated code changes"


class CommitGate:

    def __init__(
        self,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL,
        message: str = DEFAULT_MESSAGE,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
        git_executable: str = "git",
    ):
        self.author_name = author_name
        self.author_email = author_email
        self.message = message
        self._run = runner or subprocess.run
        self.git = git_executable

    @classmethod
    def from_config(cls, settings) -> "CommitGate":
        return cls(author_name=settings.author_name, author_email=settings.author_email, message=settings.message)

    def commit(self, root: Path) -> CommitOutcome:
        root = Path(root)
        try:
            self._git(root, "add", "-A")
            status = self._git(root, "status", "--porcelain").stdout
            if not status.strip():
                info("Nothing to commit")
                return CommitOutcome.NOTHING_TO_COMMIT
            # identity is passed per command so the repository config is left alone
            self._git(
                root,
                "-c", f"user.name={self.author_name}",
                "-c", f"user.email={self.author_email}",
                "commit", "-m", self.message,
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip()
            warning(f"Git commit failed (the run is still successful): {detail or e}")
            return CommitOutcome.COMMIT_FAILED
        except OSError as e:
            warning(f"Git is not available (the run is still successful): {e}")
            return CommitOutcome.COMMIT_FAILED
        success("Changes committed")
        return CommitOutcome.COMMITTED

    def _git(self, root: Path, *args: str) -> subprocess.CompletedProcess:
        cmd: List[str] = [self.git, *args]
        return self._run(
            cmd,
            cwd=str(root),
            check=True,
            capture_output=True,
            text=True,
        )
