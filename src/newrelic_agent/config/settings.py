"""Layered settings handling for the agent.

Settings come from a YAML document keyed by environment name. Lookup order:
1. Environment variables using the `NEWRELIC_` prefix, for the few keys that
   support an override (read at lookup time, never written into the store)
2. The environment section of `<root>/config/newrelic.yml`
3. The bundled `newrelic.yml` shipped with the package, when the
   application does not provide one
4. Caller-supplied defaults
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from ..exceptions import ConfigurationError
from ..utils.logger import to_stderr

# Load environment variables from a .env file in the host's working tree, if present.
load_dotenv(find_dotenv(usecwd=True))

ENV_PREFIX = "NEWRELIC_"
CONFIG_FILE_NAME = "newrelic.yml"
PACKAGE_ROOT = Path(__file__).resolve().parents[1]
BUNDLED_CONFIG_FILE = PACKAGE_ROOT / CONFIG_FILE_NAME


def env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Fetch an environment variable."""

    return os.getenv(key, default)


def env_bool(key: str, default: bool = False) -> bool:
    """Boolean convenience accessor for environment variables."""

    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def freeze(value: Any) -> Any:
    """Return a read-only copy of a parsed YAML value (mappings and lists, recursively)."""

    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


def fetch(settings: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Return ``settings[key]`` unless it is absent or null."""

    value = settings.get(key)
    return default if value is None else value


@dataclass(frozen=True)
class SettingsStore:
    """Read-only settings for one environment section."""

    environment: str
    values: Mapping[str, Any] = field(default_factory=dict)
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", freeze(self.values))

    def fetch(self, key: str, default: Any = None) -> Any:
        return fetch(self.values, key, default)

    def __getitem__(self, key: str) -> Any:
        return self.fetch(key)

    def __contains__(self, key: object) -> bool:
        return key in self.values


def read_settings_document(path: Path) -> Dict[str, Any]:
    """Parse the YAML document at ``path`` into a mapping of environments.

    Any read or parse failure is wrapped in :class:`ConfigurationError`.
    """

    try:
        with path.open("r", encoding="utf-8") as fh:
            document = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(path, exc) from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigurationError(path, f"expected a mapping of environments, got {type(document).__name__}")
    return document


def resolve_settings_path(
    path: Path,
    *,
    fallback: Path = BUNDLED_CONFIG_FILE,
    announce: Callable[[str], None] = to_stderr,
) -> Path:
    """Return ``path`` if it exists, otherwise announce and use ``fallback``."""

    path = Path(path).expanduser().resolve()
    if path.exists():
        return path
    fallback = Path(fallback).expanduser().resolve()
    announce(f"Cannot find {CONFIG_FILE_NAME} file at {path}.")
    announce(f"Using {fallback} file.")
    announce(f"Signup at rpm.newrelic.com to get a {CONFIG_FILE_NAME} file configured for a free Lite account.")
    return fallback


def load_settings_document(
    path: Path,
    environment: str,
    *,
    fallback: Path = BUNDLED_CONFIG_FILE,
    announce: Callable[[str], None] = to_stderr,
) -> SettingsStore:
    """Load the ``environment`` section of the document at ``path``.

    A missing document falls back to the bundled default. A missing section
    yields an empty store; a section that is not a mapping is fatal.
    """

    source = resolve_settings_path(path, fallback=fallback, announce=announce)
    document = read_settings_document(source)

    section = document.get(environment)
    if section is None:
        section = {}
    elif not isinstance(section, dict):
        raise ConfigurationError(source, f"section {environment!r} is not a mapping")

    return SettingsStore(environment=environment, values=section, source=source)


__all__ = [
    "BUNDLED_CONFIG_FILE",
    "CONFIG_FILE_NAME",
    "ENV_PREFIX",
    "SettingsStore",
    "env",
    "env_bool",
    "fetch",
    "freeze",
    "load_settings_document",
    "read_settings_document",
    "resolve_settings_path",
]
