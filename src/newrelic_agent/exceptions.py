"""Custom exceptions for the agent bootstrap core."""

from pathlib import Path


class AgentError(Exception):
    """Base exception for agent bootstrap errors."""

    pass


class ConfigurationError(AgentError):
    """Raised when the configuration document exists but cannot be used.

    This is the only failure expected to abort bootstrap: running the
    instrumentation with unknown settings is not allowed.
    """

    def __init__(self, path: Path, reason: object):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Error reading {self.path}: {reason}")
