# devagent/core/agent.py
"""
DevAgent: the service layer the CLI talks to.

Runs the stages strictly in sequence:
task -> context -> prompt -> model resolution -> generation -> parsing
-> apply -> commit. Fatal conditions become ``StageFailure``; everything
else is narrated and the run keeps going.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

from .applier import ChangeApplier
from .client import GenerationClient
from .commit import CommitGate
from .config import AgentConfig, check_credential, get_credential
from .context import ContextBuilder
from .errors import StageFailure, TaskFileError
from .models import (
    ChangeSet,
    CommitOutcome,
    GenerationFailure,
    ModelCandidate,
    ParseFailure,
    ProjectContext,
    RunReport,
)
from .parser import ResponseParser
from .prompt import PromptAssembler
from .resolver import ModelResolver
from .transport import create_transport
from .utils import excerpt
from ..utils.console import heading, info, success, warning, console


class DevAgent:

    def __init__(self, config: AgentConfig, transport=None, commit_gate: Optional[CommitGate] = None):
        self.config = config
        self.root = Path(config.root)
        self.transport = transport or create_transport(config)
        self.context_builder = ContextBuilder.from_config(config)
        self.prompt_assembler = PromptAssembler(max_file_chars=config.max_file_chars)
        self.resolver = ModelResolver.from_config(self.transport, config)
        self.client = GenerationClient(
            self.transport,
            temperature=config.temperature,
            response_mime_type=config.response_mime_type,
        )
        self.parser = ResponseParser()
        self.applier = ChangeApplier()
        self.commit_gate = commit_gate or CommitGate.from_config(config.commit)

    # ==================== stages ====================

    def read_task(self) -> str:
        path = self.config.task_path
        info(f"Reading task file: {path}")
        try:
            task = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise TaskFileError(f"Task file not found: {path}")
        except (OSError, UnicodeDecodeError) as e:
            raise TaskFileError(f"Task file could not be read: {path}: {e}") from e
        if not task.strip():
            raise TaskFileError(f"Task file is empty: {path}")
        return task

    def credential(self) -> str:
        value = get_credential(self.config)
        for message in check_credential(value, env_name=self.config.api_key_env):
            warning(message)
        return value.strip()

    def build_context(self) -> ProjectContext:
        info("Analyzing project files...")
        context = self.context_builder.build(self.root, self.config.max_files, exclude=self._task_exclusion())
        truncated = sum(1 for f in context.files if f.truncated)
        info(f"Context: {len(context.files)} file(s), {truncated} truncated")
        return context

    def _task_exclusion(self) -> List[str]:
        # the task is sent once, after the file contents
        try:
            return [self.config.task_path.resolve().relative_to(self.root.resolve()).as_posix()]
        except ValueError:
            return []

    def assemble_prompt(self, task: str, context: ProjectContext) -> Tuple[str, str]:
        return self.prompt_assembler.assemble(task, context)

    def resolve_models(self, credential: str) -> List[ModelCandidate]:
        candidates = self.resolver.resolve(credential, preferred=self.config.model)
        info("Model candidates: " + ", ".join(c.id for c in candidates))
        return candidates

    def generate(self, candidates: List[ModelCandidate], system: str, user: str, credential: str):
        result = self.client.generate(candidates, system, user, credential)
        if isinstance(result, GenerationFailure):
            tried = ", ".join(a.model_id for a in result.attempts) or "none"
            raise StageFailure(
                "generation",
                f"No model produced a response ({result.reason}). Tried: {tried}. "
                "Check the API key and quota.",
            )
        return result

    def parse(self, raw_text: str) -> ChangeSet:
        info("Parsing model response...")
        result: Union[ChangeSet, ParseFailure] = self.parser.parse(raw_text)
        if isinstance(result, ParseFailure):
            raise StageFailure("parse", result.reason, excerpt=result.excerpt)
        if result.is_empty():
            raise StageFailure("parse", "The response contained no usable file changes.", excerpt=excerpt(raw_text))
        info(f"Change-set: {len(result.files)} file(s), {len(result.dropped)} dropped")
        return result

    def apply(self, change_set: ChangeSet, report: RunReport) -> None:
        report.outcomes = self.applier.apply(change_set, self.root)
        if report.failed:
            warning(f"{len(report.failed)} of {len(report.outcomes)} file(s) could not be written")
        if change_set.summary:
            console.print(f"\n📋 Summary: {change_set.summary}", markup=False, highlight=False)

    def commit(self, report: RunReport) -> None:
        if not self.config.commit.enabled:
            info("Commit disabled; leaving changes in the working tree")
            report.commit = CommitOutcome.SKIPPED
            return
        report.commit = self.commit_gate.commit(self.root)

    # ==================== entry points ====================

    def run(self, dry_run: bool = False) -> RunReport:
        """
        Execute the full pipeline once.

        Raises:
            DevAgentError: any fatal stage failure (missing task, missing
                credential, all models exhausted, unusable response).
        """
        report = RunReport(dry_run=dry_run)

        heading("Task")
        task = self.read_task()
        credential = self.credential()

        heading("Context")
        context = self.build_context()
        system, user = self.assemble_prompt(task, context)

        heading("Generation")
        candidates = self.resolve_models(credential)
        response = self.generate(candidates, system, user, credential)
        report.model_id = response.model_id

        report.change_set = self.parse(response.text)
        return self._finish(report)

    def apply_response(self, raw_text: str, dry_run: bool = False) -> RunReport:
        """Parse and apply a previously saved raw model response."""
        report = RunReport(dry_run=dry_run)
        report.change_set = self.parse(raw_text)
        return self._finish(report)

    def _finish(self, report: RunReport) -> RunReport:
        change_set = report.change_set
        if report.dry_run:
            heading("Dry run")
            for edit in change_set.files:
                info(f"Would {edit.action.value}: {edit.path} ({len(edit.content)} chars)")
            return report

        heading("Apply")
        self.apply(change_set, report)

        heading("Commit")
        self.commit(report)
        if report.written:
            success(f"Done: {len(report.written)} file(s) written")
        else:
            warning("Done, but no files were written")
        return report
