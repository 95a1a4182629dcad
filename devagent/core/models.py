# devagent/core/models.py
"""
Core data structures passed between the pipeline stages.

Each stage consumes and produces these objects only; nothing else is shared
between stages. Failures are modelled as values (GenerationFailure,
ParseFailure, WriteOutcome, CommitOutcome) rather than exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class FileSnapshot:
    """Content of one project file, capped at the per-file character budget."""
    path: str
    content: str
    truncated: bool = False


@dataclass
class ProjectContext:
    """Ordered, bounded set of file snapshots sent to the model."""
    root: str
    max_files: int
    files: List[FileSnapshot] = field(default_factory=list)
    # every relative path seen during traversal, read or not
    structure: List[str] = field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    def has_path(self, path: str) -> bool:
        return any(f.path == path for f in self.files)

    def is_full(self) -> bool:
        return len(self.files) >= self.max_files


@dataclass(frozen=True)
class ModelCandidate:
    id: str
    rank: int
    source: str = "fallback"  # preferred | discovery | fallback


@dataclass(frozen=True)
class GenerationRequest:
    model_id: str
    system_instructions: str
    user_payload: str
    temperature: float = 0.2
    response_mime_type: Optional[str] = "application/json"


@dataclass(frozen=True)
class GenerationAttempt:
    model_id: str
    ok: bool
    error: Optional[str] = None


@dataclass
class GenerationResponse:
    """Raw model text; not yet validated as JSON."""
    text: str
    model_id: str
    attempts: List[GenerationAttempt] = field(default_factory=list)


@dataclass
class GenerationFailure:
    reason: str = "all_models_exhausted"
    attempts: List[GenerationAttempt] = field(default_factory=list)

    ALL_MODELS_EXHAUSTED = "all_models_exhausted"


class EditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class FileEdit:
    """Full replacement body for a single file, never a diff."""
    path: str
    content: str
    action: EditAction = EditAction.CREATE


@dataclass
class ChangeSet:
    files: List[FileEdit] = field(default_factory=list)
    summary: Optional[str] = None
    # human-readable reasons for entries removed during validation
    dropped: List[str] = field(default_factory=list)
    strategy: Optional[str] = field(default=None, compare=False)

    def is_empty(self) -> bool:
        return not self.files


@dataclass
class ParseFailure:
    reason: str
    excerpt: str = ""


class WriteStatus(Enum):
    WRITTEN = "written"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class WriteOutcome:
    path: str
    status: WriteStatus
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is WriteStatus.WRITTEN


class CommitOutcome(Enum):
    """Informational only; never fails the run."""
    COMMITTED = "committed"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    COMMIT_FAILED = "commit_failed"
    SKIPPED = "skipped"


@dataclass
class RunReport:
    """Summary of one pipeline run, returned by DevAgent.run()."""
    model_id: Optional[str] = None
    change_set: Optional[ChangeSet] = None
    outcomes: List[WriteOutcome] = field(default_factory=list)
    commit: CommitOutcome = CommitOutcome.SKIPPED
    dry_run: bool = False

    @property
    def written(self) -> List[str]:
        return [o.path for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[WriteOutcome]:
        return [o for o in self.outcomes if not o.ok]
