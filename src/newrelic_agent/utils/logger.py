"""Agent log channel built on loguru.

The agent writes to its own file sink (``newrelic_agent.<tail>.log``) through a
loguru core of its own, so records never reach the host application's sinks
(including loguru's default stderr handler) and host records never reach the
agent file. Boot announcements are mirrored to stderr regardless of the file
threshold.
"""
from __future__ import annotations

import atexit
import copy
import os
import re
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Union

from loguru import logger

from ..version import STRING as AGENT_VERSION

CHANNEL = "newrelic_agent"
STDERR_PREFIX = "** [NewRelic] "
DEFAULT_LEVEL = "info"

DEFAULT_LOG_FORMAT = "[{time:MM/DD/YY HH:mm:ss} ({process})] {level} : {message}"

LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
    "fatal": "CRITICAL",
}

_IDENTIFIER_TAIL = re.compile(r"[.\w]*$", re.ASCII)

Formatter = Union[str, Callable[[Any], str]]


def _independent_logger():
    """Copy the global loguru logger without any of the host's handlers."""

    # Handler sinks may hold streams that cannot be copied.
    handlers = logger._core.handlers
    agent_logger = copy.deepcopy(logger, {id(handlers): {}})
    agent_logger.remove()
    return agent_logger


_agent_logger = _independent_logger()
atexit.register(_agent_logger.remove)


def to_stderr(message: str) -> None:
    """Write a boot message to the console with the agent prefix."""

    sys.stderr.write(f"{STDERR_PREFIX}{message}\n")
    sys.stderr.flush()


def resolve_log_level(value: Any) -> str:
    """Map a configured severity name to a loguru level; unknown -> INFO."""

    if isinstance(value, str):
        level = LEVELS.get(value.strip().lower())
        if level:
            return level
    return LEVELS[DEFAULT_LEVEL]


def log_file_name(identifier: Optional[str]) -> str:
    """Build the agent log file name for a process identifier.

    The tail is the trailing run of word and dot characters. ``None`` gives
    ``newrelic_agent.log``; an identifier with an empty tail still gets the
    separator, e.g. ``newrelic_agent..log``.
    """

    if identifier is None:
        return "newrelic_agent.log"
    match = _IDENTIFIER_TAIL.search(str(identifier))
    tail = match.group(0) if match else ""
    return f"newrelic_agent.{tail}.log"


def resolve_log_dir(path: Optional[Path]) -> Path:
    """Return ``path`` if it is a writable directory, else the current directory."""

    if path is not None:
        candidate = Path(path).expanduser()
        if candidate.is_dir() and os.access(candidate, os.W_OK):
            return candidate.resolve()
    return Path(".").resolve()


class LogManager:
    """Owns the agent's file log handle and the stderr announcement channel.

    ``fmt`` is handed to loguru as the record format: a template string, or a
    callable taking the record and returning a template (which must then end
    with its own newline).
    """

    def __init__(self, log_dir: Optional[Path] = None, *, fmt: Formatter = DEFAULT_LOG_FORMAT, enqueue: bool = True):
        self.log_dir = log_dir
        self.fmt = fmt
        self.enqueue = enqueue
        self.level = LEVELS[DEFAULT_LEVEL]
        self.log_file: Optional[Path] = None
        self._handler_id: Optional[int] = None
        self._logger = _agent_logger.bind(channel=CHANNEL)

    @property
    def active(self) -> bool:
        return self._handler_id is not None

    def setup(self, identifier: Optional[str], settings: Any, *, level_override: Optional[str] = None) -> Optional[int]:
        """Open the agent log file and announce it.

        ``settings`` only needs a ``fetch(key, default)`` method.
        ``level_override`` takes priority over the ``log_level`` setting.
        Returns the loguru handler id, or ``None`` if the file could not be
        opened (stderr announcements keep working either way).
        """

        self.close()
        directory = resolve_log_dir(self.log_dir)
        log_file = directory / log_file_name(identifier)
        self.level = resolve_log_level(level_override or settings.fetch("log_level", DEFAULT_LEVEL))

        try:
            self._handler_id = _agent_logger.add(
                log_file,
                level=self.level,
                format=self.fmt,
                filter=lambda record: record["extra"].get("channel") == CHANNEL,
                enqueue=self.enqueue,
                backtrace=False,
                diagnose=False,
            )
        except (OSError, ValueError) as exc:
            self._handler_id = None
            self.announce(f"Unable to open agent log {log_file}: {exc}", "warn")
            return None

        self.log_file = log_file
        self.announce(f"New Relic RPM Agent {AGENT_VERSION} Initialized: pid = {os.getpid()}")
        self.announce(f"Agent Log is found in {log_file}")
        return self._handler_id

    def log(self, message: str, level: str = DEFAULT_LEVEL) -> None:
        """Write to the file log only (no-op without a handle)."""

        if self.active:
            self._logger.log(resolve_log_level(level), message)

    def debug(self, message: str) -> None:
        self.log(message, "debug")

    def info(self, message: str) -> None:
        self.log(message, "info")

    def warn(self, message: str) -> None:
        self.log(message, "warn")

    def error(self, message: str) -> None:
        self.log(message, "error")

    def announce(self, message: str, level: str = DEFAULT_LEVEL) -> None:
        """Send ``message`` to stderr and, if the file log is open, to the file."""

        to_stderr(message)
        self.log(message, level)

    def to_stderr(self, message: str) -> None:
        to_stderr(message)

    def flush(self) -> None:
        """Wait for queued records to reach the file."""

        if self.active:
            _agent_logger.complete()

    def close(self) -> None:
        """Release the file handle."""

        if self._handler_id is None:
            return
        handler_id, self._handler_id = self._handler_id, None
        try:
            _agent_logger.remove(handler_id)
        except ValueError:
            # Already removed at interpreter exit.
            pass


__all__ = [
    "CHANNEL",
    "DEFAULT_LOG_FORMAT",
    "LEVELS",
    "LogManager",
    "STDERR_PREFIX",
    "log_file_name",
    "resolve_log_dir",
    "resolve_log_level",
    "to_stderr",
]
