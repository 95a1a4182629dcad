# devagent/core/applier.py
"""Write a ChangeSet to disk, one full-file overwrite per edit."""

import os
import tempfile
from pathlib import Path
from typing import List

from .models import ChangeSet, EditAction, FileEdit, WriteOutcome, WriteStatus
from .utils import resolve_inside
from ..utils.console import error, info, success


class ChangeApplier:
    """
    Applies file edits under a project root.

    A failing edit is recorded and the loop moves on, so one bad path never
    blocks the others. Each file is written to a temporary sibling and moved
    into place, so a target is either fully replaced or left untouched.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def apply(self, change_set: ChangeSet, root: Path) -> List[WriteOutcome]:
        root = Path(root)
        outcomes: List[WriteOutcome] = []
        total = len(change_set.files)
        info(f"Applying {total} file change(s)...")

        for i, edit in enumerate(change_set.files):
            outcome = self.apply_edit(edit, root)
            outcomes.append(outcome)
            label = "Created" if edit.action is EditAction.CREATE else "Updated"
            if outcome.ok:
                success(f"[{i + 1}/{total}] {label}: {edit.path}")
            else:
                error(f"[{i + 1}/{total}] Failed to write {edit.path}: {outcome.reason}")
        return outcomes

    def apply_edit(self, edit: FileEdit, root: Path) -> WriteOutcome:
        target = resolve_inside(root, edit.path)
        if target is None:
            return WriteOutcome(edit.path, WriteStatus.WRITE_FAILED, "path resolves outside the project root")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(target, edit.content)
        except (OSError, UnicodeError) as e:
            return WriteOutcome(edit.path, WriteStatus.WRITE_FAILED, str(e))
        return WriteOutcome(edit.path, WriteStatus.WRITTEN)

    def _write_atomic(self, target: Path, content: str) -> None:
        if target.is_dir():
            raise IsADirectoryError(f"{target} is a directory")
        mode = target.stat().st_mode & 0o777 if target.exists() else _default_mode()
        fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise


def _default_mode() -> int:
    # mkstemp creates 0600 files; new files should follow the process umask
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask
