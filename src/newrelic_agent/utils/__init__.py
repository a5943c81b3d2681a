"""Utils package exports."""

from .logger import (
    CHANNEL,
    DEFAULT_LOG_FORMAT,
    LEVELS,
    LogManager,
    STDERR_PREFIX,
    log_file_name,
    resolve_log_dir,
    resolve_log_level,
    to_stderr,
)

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
