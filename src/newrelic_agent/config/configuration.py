"""Process-wide agent configuration.

One :class:`Configuration` exists per process. It is built lazily on first
access from the profile chosen for the host, and it owns the agent log.
Bootstrap is expected to run once on the main thread; first access is not
guarded by a lock.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, ClassVar, List, Optional, Tuple

from ..exceptions import ConfigurationError
from ..utils.logger import LogManager
from .gating import OVERRIDE_VARIABLE, should_start
from .profiles import EnvironmentProfile, HostFacts, ProfileKind
from .resolver import resolve_profile
from .settings import ENV_PREFIX, PACKAGE_ROOT, SettingsStore, env

_UNSET = object()


class Configuration:
    """Resolved settings, active profile and log channel for the agent."""

    _instance: ClassVar[Optional["Configuration"]] = None

    def __init__(self, profile: EnvironmentProfile, *, log_manager: Optional[LogManager] = None):
        self.profile = profile
        self.log = log_manager if log_manager is not None else LogManager(profile.log_path())
        try:
            self.settings: SettingsStore = profile.load_settings(announce=self._warn)
        except ConfigurationError as exc:
            self.log.announce(str(exc), "error")
            raise

    # ------------------------------------------------------------------
    # Process singleton

    @classmethod
    def instance(cls, facts: Optional[HostFacts] = None, *, profile: Optional[EnvironmentProfile] = None) -> "Configuration":
        """Return the process configuration, building it on first call.

        ``facts`` and ``profile`` only matter for the first call.
        """

        if cls._instance is None:
            cls._instance = cls(profile if profile is not None else resolve_profile(facts))
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the process configuration and release its log (tests, forks)."""

        if cls._instance is not None:
            cls._instance.log.close()
        cls._instance = None

    # ------------------------------------------------------------------
    # Settings access

    def fetch(self, key: str, default: Any = None) -> Any:
        return self.settings.fetch(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.fetch(key)

    @property
    def kind(self) -> ProfileKind:
        return self.profile.kind

    @property
    def app(self) -> str:
        return self.profile.app

    @property
    def environment_name(self) -> str:
        return self.settings.environment

    @property
    def root_path(self) -> Path:
        return self.profile.root_path()

    @property
    def agent_root(self) -> Path:
        return PACKAGE_ROOT

    @property
    def connect_to_server(self) -> Any:
        return self.fetch("enabled", None)

    @property
    def developer_mode(self) -> Any:
        return self.fetch("developer", None)

    def tracers_enabled(self, env_override: Any = _UNSET) -> bool:
        """Gating decision; reads the override variable when none is given."""

        if env_override is _UNSET:
            env_override = os.environ.get(OVERRIDE_VARIABLE)
        return should_start(env_override, self.settings)

    # ------------------------------------------------------------------
    # Logging

    def setup_log(self, identifier: Optional[str]) -> Optional[int]:
        return self.log.setup(identifier, self.settings, level_override=env(f"{ENV_PREFIX}LOG_LEVEL"))

    def announce(self, message: str, level: str = "info") -> None:
        self.log.announce(message, level)

    def _warn(self, message: str) -> None:
        self.log.announce(message, "warn")

    def gather_info(self) -> List[Tuple[str, Any]]:
        return self.profile.gather_info(self.log)

    def __str__(self) -> str:
        return f"Config[{self.app}]"

    def __repr__(self) -> str:
        return f"Configuration(profile={self.profile!r}, settings={dict(self.settings.values)!r})"


def get_configuration(facts: Optional[HostFacts] = None, reload: bool = False) -> Configuration:
    """Return the cached process configuration (or rebuild it if requested)."""

    if reload:
        Configuration.reset()
    return Configuration.instance(facts)


__all__ = ["Configuration", "get_configuration"]
