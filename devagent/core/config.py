# devagent/core/config.py
"""
Configuration loading: defaults, optional ``.devagent/config.yaml`` and the
credential taken from the process environment.
"""

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError, CredentialError

CONFIG_DIR_NAME = ".devagent"
CONFIG_FILE_NAME = "config.yaml"
DEFAULT_TASK_FILE = "tasks/active-task.md"
MIN_CREDENTIAL_LENGTH = 30
SECONDARY_KEY_ENV = "GOOGLE_API_KEY"

DEFAULT_CONFIG: Dict[str, Any] = {
    "task_file": DEFAULT_TASK_FILE,
    "max_files": 20,
    "max_file_chars": 5000,
    "context_extensions": [
        ".md", ".js", ".ts", ".json", ".yml", ".yaml",
        ".py", ".toml", ".txt", ".html", ".css",
    ],
    "ignore_dirs": [
        ".git", ".github", "node_modules", "dist", "build", ".next",
        "__pycache__", ".venv", "venv", CONFIG_DIR_NAME,
    ],
    "priority_files": ["package.json", "pyproject.toml", "README.md"],
    "transport": "rest",
    "api_base_url": "https://generativelanguage.googleapis.com",
    "api_version": "v1beta",
    "timeout": 120,
    "temperature": 0.2,
    "response_mime_type": "application/json",
    "model": None,
    "model_families": ["flash", "pro"],
    "fallback_models": ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"],
    "api_key_env": "GEMINI_API_KEY",
    "commit": {
        "enabled": True,
        "author_name": "AI Developer Agent",
        "author_email": "ai-agent@users.noreply.github.com",
        "message": "AI Agent: automated code changes",
    },
}

TRANSPORTS = ("rest", "sdk")


@dataclass
class CommitSettings:
    enabled: bool = True
    author_name: str = "AI Developer Agent"
    author_email: str = "ai-agent@users.noreply.github.com"
    message: str = "AI Agent: automated code changes"


@dataclass
class AgentConfig:
    root: Path
    task_file: str = DEFAULT_TASK_FILE
    max_files: int = 20
    max_file_chars: int = 5000
    context_extensions: List[str] = field(default_factory=list)
    ignore_dirs: List[str] = field(default_factory=list)
    priority_files: List[str] = field(default_factory=list)
    transport: str = "rest"
    api_base_url: str = "https://generativelanguage.googleapis.com"
    api_version: str = "v1beta"
    timeout: float = 120
    temperature: float = 0.2
    response_mime_type: Optional[str] = "application/json"
    model: Optional[str] = None
    model_families: List[str] = field(default_factory=list)
    fallback_models: List[str] = field(default_factory=list)
    api_key_env: str = "GEMINI_API_KEY"
    commit: CommitSettings = field(default_factory=CommitSettings)

    @property
    def task_path(self) -> Path:
        return self.root / self.task_file

    @property
    def config_path(self) -> Path:
        return config_file_path(self.root)

    def with_overrides(self, **overrides: Any) -> "AgentConfig":
        """Copy with non-None overrides applied (used for CLI flags)."""
        updated = copy.deepcopy(self)
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "commit_enabled":
                updated.commit.enabled = bool(value)
            elif hasattr(updated, key):
                setattr(updated, key, value)
            else:
                raise ConfigError(f"Unknown configuration override: {key}")
        _validate(updated)
        return updated


def config_file_path(root: Path) -> Path:
    return Path(root) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML syntax error in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a YAML mapping, got {type(data).__name__}")
    return data


def _validate(config: AgentConfig) -> None:
    if config.transport not in TRANSPORTS:
        raise ConfigError(f"transport must be one of {', '.join(TRANSPORTS)}, got '{config.transport}'")
    if not isinstance(config.max_files, int) or config.max_files < 1:
        raise ConfigError(f"max_files must be a positive integer, got {config.max_files!r}")
    if not isinstance(config.max_file_chars, int) or config.max_file_chars < 1:
        raise ConfigError(f"max_file_chars must be a positive integer, got {config.max_file_chars!r}")
    for key in ("context_extensions", "ignore_dirs", "priority_files", "model_families", "fallback_models"):
        values = getattr(config, key)
        if not isinstance(values, list):
            raise ConfigError(f"{key} must be a list")
        for item in values:
            if not isinstance(item, str) or not item.strip():
                raise ConfigError(f"{key} entries must be non-empty strings, got {item!r}")
    for key in ("task_file", "api_key_env"):
        if not isinstance(getattr(config, key), str) or not getattr(config, key).strip():
            raise ConfigError(f"{key} must be a non-empty string")
    if config.model is not None and (not isinstance(config.model, str) or not config.model.strip()):
        raise ConfigError(f"model must be a model id string, got {config.model!r}")


def load_config(root: Path = Path(".")) -> AgentConfig:
    """
    Build the effective configuration for a project.

    Values from ``.devagent/config.yaml`` override ``DEFAULT_CONFIG`` key by
    key; the ``commit`` section is merged one level deep. Unknown keys are
    ignored.

    Raises:
        ConfigError: the file exists but is not a valid YAML mapping, or a
            value has the wrong type.
    """
    root = Path(root)
    merged = copy.deepcopy(DEFAULT_CONFIG)
    user_data = _read_config_file(config_file_path(root))

    for key, value in user_data.items():
        if key not in merged:
            continue
        if key == "commit":
            if not isinstance(value, dict):
                raise ConfigError("commit must be a mapping")
            merged["commit"].update(value)
        else:
            merged[key] = value

    commit = CommitSettings(**{k: v for k, v in merged.pop("commit").items()
                               if k in CommitSettings.__dataclass_fields__})
    config = AgentConfig(root=root, commit=commit, **merged)
    _validate(config)
    return config


def get_credential(config: AgentConfig) -> Optional[str]:
    """Read the API key from the environment, primary variable first."""
    value = os.environ.get(config.api_key_env)
    if not value:
        value = os.environ.get(SECONDARY_KEY_ENV)
    return value


def check_credential(value: Optional[str], env_name: str = "GEMINI_API_KEY") -> List[str]:
    """
    Validate the credential before any network call.

    Returns:
        List of warnings for a suspicious but usable key.

    Raises:
        CredentialError: the key is missing or empty.
    """
    if value is None or not value.strip():
        raise CredentialError(f"API key is not set. Export {env_name} before running.")
    warnings = []
    if any(ch.isspace() for ch in value):
        warnings.append("API key contains whitespace or a newline; check how it was exported.")
    if len(value.strip()) < MIN_CREDENTIAL_LENGTH:
        warnings.append(f"API key looks too short ({len(value.strip())} characters).")
    return warnings
