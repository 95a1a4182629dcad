# devagent/core/context.py
"""
Project context snapshot: a bounded, filtered view of the project tree.

Priority files (manifest, then readme) go first, followed by a depth-first
walk of the tree. Within each directory files are visited before
subdirectories and entries are sorted by name, so files near the root win
when the cap is reached. Nothing here ever writes to disk.
"""

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from .models import FileSnapshot, ProjectContext
from ..utils.console import debug

DEFAULT_MAX_FILES = 20
DEFAULT_MAX_FILE_CHARS = 5000
DEFAULT_EXTENSIONS = (".md", ".js", ".ts", ".json", ".yml", ".yaml", ".py", ".toml")
DEFAULT_IGNORE_DIRS = (".git", ".github", "node_modules", "dist", "build", ".next", "__pycache__")
DEFAULT_PRIORITY_FILES = ("package.json", "pyproject.toml", "README.md")
# structure listing is for display only; keep it bounded too
STRUCTURE_FACTOR = 10


class ContextBuilder:
    """Reads a bounded snapshot of the project tree into memory."""

    def __init__(
        self,
        max_file_chars: int = DEFAULT_MAX_FILE_CHARS,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
        priority_files: Sequence[str] = DEFAULT_PRIORITY_FILES,
    ):
        self.max_file_chars = max_file_chars
        self.extensions = {e.lower() for e in extensions}
        self.ignore_dirs = set(ignore_dirs)
        self.priority_files = list(priority_files)

    @classmethod
    def from_config(cls, config) -> "ContextBuilder":
        return cls(
            max_file_chars=config.max_file_chars,
            extensions=config.context_extensions,
            ignore_dirs=config.ignore_dirs,
            priority_files=config.priority_files,
        )

    def build(self, root: Path, max_files: int = DEFAULT_MAX_FILES, exclude: Iterable[str] = ()) -> ProjectContext:
        """
        Collect at most ``max_files`` snapshots from ``root``.

        Args:
            root: Project root; snapshot paths are relative to it.
            max_files: Hard cap on the number of snapshots.
            exclude: Relative paths never read, e.g. the task file.

        Returns:
            ProjectContext with snapshots in traversal order. Unreadable files
            and directories are skipped, so the context may be partial.
        """
        root = Path(root)
        context = ProjectContext(root=str(root), max_files=max_files)
        structure_limit = max_files * STRUCTURE_FACTOR
        skipped = {Path(p).as_posix() for p in exclude}

        for rel_path in self.priority_files:
            if context.is_full():
                return context
            if rel_path in skipped or self._is_ignored(rel_path):
                continue
            candidate = root / rel_path
            if candidate.is_file():
                self._add(context, candidate, rel_path, structure_limit)

        for file_path in self._walk(root):
            if context.is_full():
                break
            rel_path = file_path.relative_to(root).as_posix()
            if rel_path in skipped or context.has_path(rel_path):
                continue
            self._add(context, file_path, rel_path, structure_limit)

        return context

    def snapshot(self, file_path: Path, rel_path: str) -> Optional[FileSnapshot]:
        """Read one file into a capped snapshot; None when it cannot be read."""
        try:
            content = file_path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as e:
            debug(f"Skipping unreadable file {rel_path}: {e}")
            return None
        if len(content) > self.max_file_chars:
            return FileSnapshot(path=rel_path, content=content[:self.max_file_chars], truncated=True)
        return FileSnapshot(path=rel_path, content=content, truncated=False)

    def is_context_file(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    # ==================== internals ====================

    def _add(self, context: ProjectContext, file_path: Path, rel_path: str, structure_limit: int) -> None:
        if rel_path not in context.structure and len(context.structure) < structure_limit:
            context.structure.append(rel_path)
        if not self.is_context_file(file_path):
            return
        snap = self.snapshot(file_path, rel_path)
        if snap is not None:
            context.files.append(snap)

    def _is_ignored(self, rel_path: str) -> bool:
        parts = Path(rel_path).parts
        return any(part in self.ignore_dirs for part in parts[:-1])

    def _walk(self, directory: Path) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            debug(f"Skipping unreadable directory {directory}: {e}")
            return

        files: List[Path] = []
        dirs: List[Path] = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name not in self.ignore_dirs:
                        dirs.append(Path(entry.path))
                elif entry.is_file():
                    files.append(Path(entry.path))
            except OSError as e:
                debug(f"Skipping {entry.path}: {e}")

        yield from files
        for sub in dirs:
            yield from self._walk(sub)
