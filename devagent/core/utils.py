# devagent/core/utils.py
"""Small filesystem and text helpers with no third-party dependencies."""

from pathlib import Path, PurePosixPath
from typing import Optional

EXCERPT_LENGTH = 200


def is_safe_relative_path(path: str) -> bool:
    """True for relative paths that cannot climb out of their base directory."""
    if not path or "\x00" in path:
        return False
    normalized = path.replace("\\", "/")
    pure = PurePosixPath(normalized)
    if pure.is_absolute() or normalized.startswith("/"):
        return False
    # Windows drive letters such as C:/...
    if len(normalized) > 1 and normalized[1] == ":":
        return False
    return ".." not in pure.parts


def resolve_inside(root: Path, relative: str) -> Optional[Path]:
    """Resolve ``relative`` against ``root``; None if it lands outside root."""
    base = root.resolve()
    target = (base / relative.replace("\\", "/")).resolve()
    try:
        target.relative_to(base)
    except ValueError:
        return None
    if target == base:
        return None
    return target


def excerpt(text: str, limit: int = EXCERPT_LENGTH) -> str:
    """Bounded prefix of ``text`` for diagnostics."""
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def redact(message: str, secret: Optional[str]) -> str:
    if secret:
        return message.replace(secret, "***")
    return message
