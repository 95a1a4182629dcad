# devagent/core/errors.py
"""Fatal errors. Anything raised from here aborts the run with a non-zero exit."""

from typing import Optional


class DevAgentError(Exception):
    """Base class for fatal agent errors."""


class ConfigError(DevAgentError):
    pass


class TaskFileError(DevAgentError):
    pass


class CredentialError(DevAgentError):
    pass


class ModelResolutionError(DevAgentError):
    """Raised only when no candidate list can be built at all."""


class TransportError(Exception):
    """A backend call failed (network, non-2xx status or malformed envelope).

    Not fatal on its own: callers advance to the next candidate or fall back.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StageFailure(DevAgentError):
    """A pipeline stage failed in a way the run cannot recover from."""

    def __init__(self, stage: str, message: str, excerpt: Optional[str] = None):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
        self.message = message
        self.excerpt = excerpt
