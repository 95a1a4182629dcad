# devagent/core/parser.py
"""
Recover a ChangeSet from the model's free-text reply.

The backend is asked for bare JSON but may wrap it in a code fence, surround
it with prose or return something invalid. Extraction strategies are tried
in order and the first one that yields a JSON object wins:

1. a fenced block tagged ``json``
2. any fenced block
3. the span from the first ``{`` to the last ``}``
4. the whole text

Entries that fail validation are dropped one by one; the rest are kept.
"""

import json
import re
from typing import Any, Callable, List, Optional, Tuple, Union

from .models import ChangeSet, EditAction, FileEdit, ParseFailure
from .utils import excerpt, is_safe_relative_path
from ..utils.console import debug, info, warning

_JSON_FENCE = re.compile(r"```[ \t]*json[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[^\n`]*\r?\n(.*?)```", re.DOTALL)

ACTION_ALIASES = {
    "create": EditAction.CREATE,
    "add": EditAction.CREATE,
    "new": EditAction.CREATE,
    "update": EditAction.UPDATE,
    "modify": EditAction.UPDATE,
    "edit": EditAction.UPDATE,
    "replace": EditAction.UPDATE,
}


def _json_fence(text: str) -> Optional[str]:
    match = _JSON_FENCE.search(text)
    return match.group(1) if match else None


def _any_fence(text: str) -> Optional[str]:
    match = _ANY_FENCE.search(text)
    return match.group(1) if match else None


def _brace_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _full_text(text: str) -> Optional[str]:
    return text


STRATEGIES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ("json_fence", _json_fence),
    ("any_fence", _any_fence),
    ("brace_span", _brace_span),
    ("full_text", _full_text),
]


class ResponseParser:

    def __init__(self, strategies=None):
        self.strategies = list(strategies or STRATEGIES)

    def parse(self, raw_text: str) -> Union[ChangeSet, ParseFailure]:
        """Structured change-set, or ParseFailure with a bounded excerpt."""
        if not raw_text or not raw_text.strip():
            return ParseFailure(reason="empty response", excerpt="")

        decoded = self.decode(raw_text)
        if decoded is None:
            return ParseFailure(reason="no valid JSON object found in response", excerpt=excerpt(raw_text))
        strategy, data = decoded
        info(f"Response decoded with strategy '{strategy}'")

        files = data.get("files")
        if not isinstance(files, list):
            return ParseFailure(reason="'files' is missing or not a list", excerpt=excerpt(raw_text))

        change_set = ChangeSet(strategy=strategy)
        summary = data.get("summary")
        if isinstance(summary, str) and summary.strip():
            change_set.summary = summary.strip()

        seen = {}
        for index, entry in enumerate(files):
            edit, problem = validate_entry(entry)
            if problem:
                message = f"entry {index}: {problem}"
                warning(f"Dropping change {message}")
                change_set.dropped.append(message)
                continue
            if edit.path in seen:
                # later entries for the same path replace earlier ones
                change_set.files[seen[edit.path]] = edit
                continue
            seen[edit.path] = len(change_set.files)
            change_set.files.append(edit)
        return change_set

    def decode(self, raw_text: str) -> Optional[Tuple[str, dict]]:
        """First (strategy name, JSON object) the strategies can produce."""
        for name, strategy in self.strategies:
            candidate = strategy(raw_text)
            if candidate is None:
                continue
            try:
                data = json.loads(candidate.strip())
            except ValueError:
                debug(f"Strategy '{name}' did not yield valid JSON")
                continue
            if isinstance(data, dict):
                return name, data
            debug(f"Strategy '{name}' yielded {type(data).__name__}, not an object")
        return None


def validate_entry(entry: Any) -> Tuple[Optional[FileEdit], Optional[str]]:
    if not isinstance(entry, dict):
        return None, "not an object"
    path = entry.get("path")
    content = entry.get("content")
    if not isinstance(path, str) or not path.strip():
        return None, "missing 'path'"
    path = path.strip().replace("\\", "/")
    if path.startswith("./"):
        path = path[2:]
    if not isinstance(content, str) or content == "":
        return None, f"missing 'content' for {path}"
    if not is_safe_relative_path(path):
        return None, f"path escapes the project root: {path}"
    return FileEdit(path=path, content=content, action=normalize_action(entry.get("action"))), None


def normalize_action(value: Any) -> EditAction:
    if not isinstance(value, str) or not value.strip():
        return EditAction.CREATE
    return ACTION_ALIASES.get(value.strip().lower(), EditAction.UPDATE)
