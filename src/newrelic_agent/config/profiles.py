"""Environment profiles: one per kind of host process.

A profile answers the environment-specific questions (which environment
section applies, where the application root and log directory are) and
carries the environment-specific bootstrap actions.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Iterable, List, Mapping, Optional, Protocol, Tuple

from .settings import CONFIG_FILE_NAME, ENV_PREFIX, SettingsStore, env, load_settings_document

if TYPE_CHECKING:  # pragma: no cover
    from ..utils.logger import LogManager
    from .configuration import Configuration

DEFAULT_ENVIRONMENT = "development"
REVISION_FILE = "REVISION"
REVISION_MAX_BYTES = 64

InfoPairs = List[Tuple[str, Any]]


class ProfileKind(Enum):
    """Kinds of host process the agent knows how to configure itself for."""

    DEFAULT = "python"
    DJANGO = "django"
    FLASK = "flask"
    TEST = "test"


@dataclass(frozen=True)
class DeveloperModeRequest:
    """Everything a framework hook needs to mount the developer-mode UI."""

    controller_path: Path
    helper_path: Path
    framework_config: Any = None
    skip_developer_route: bool = False


class FrameworkIntegrationHook(Protocol):
    """Optional capability that patches the host framework for developer mode."""

    def install_developer_mode(self, request: DeveloperModeRequest) -> None:
        ...


@dataclass(frozen=True)
class HostFacts:
    """Detected capabilities of the host process.

    Built by :func:`newrelic_agent.config.resolver.detect_host_facts` or
    supplied directly by the caller (tests, embedding frameworks).
    """

    test_mode: bool = False
    has_flask: bool = False
    has_django: bool = False
    environment: Optional[str] = None
    root_path: Optional[Path] = None
    host_log_file: Optional[Path] = None
    plugin_dir: Optional[Path] = None
    framework_version: Optional[str] = None
    framework_properties: Optional[Callable[[], Iterable[Tuple[str, Any]]]] = None
    integration_hook: Optional[FrameworkIntegrationHook] = None


class EnvironmentProfile:
    """Base profile for a plain Python host."""

    kind: ClassVar[ProfileKind] = ProfileKind.DEFAULT

    def __init__(self, facts: Optional[HostFacts] = None):
        self.facts = facts or HostFacts()

    @property
    def app(self) -> str:
        return self.kind.value

    def environment_name(self) -> str:
        return env(f"{ENV_PREFIX}ENV") or self.facts.environment or DEFAULT_ENVIRONMENT

    def root_path(self) -> Path:
        root = self.facts.root_path or Path.cwd()
        return Path(root).expanduser().resolve()

    def config_file(self) -> Path:
        return self.root_path() / "config" / CONFIG_FILE_NAME

    def log_path(self) -> Path:
        return self.root_path() / "log"

    def load_settings(self, announce: Callable[[str], None]) -> SettingsStore:
        return load_settings_document(self.config_file(), self.environment_name(), announce=announce)

    def gather_info(self, log: "LogManager") -> InfoPairs:
        """Collect interesting facts about the host environment."""
        return [("app", self.app)]

    def on_bootstrap(self, configuration: "Configuration", local_env: Any, *extra_args: Any) -> None:
        """Environment-specific actions once instrumentation has started."""
        pass

    def _read_revision(self, log: "LogManager") -> Optional[str]:
        rev_file = self.root_path() / REVISION_FILE
        try:
            if not (rev_file.is_file() and os.access(rev_file, os.R_OK)):
                return None
            if rev_file.stat().st_size >= REVISION_MAX_BYTES:
                return None
            return rev_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.debug(f"Unable to read {rev_file}: {exc!r}")
            return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(environment={self.environment_name()!r}, root={str(self.root_path())!r})"


class DefaultProfile(EnvironmentProfile):
    """Plain script, worker or service with no recognized framework."""

    kind = ProfileKind.DEFAULT


class _FrameworkProfile(EnvironmentProfile):
    """Shared behavior for hosts driven by a web framework."""

    framework_name: ClassVar[str] = "framework"

    def environment_name(self) -> str:
        return self.facts.environment or env(f"{ENV_PREFIX}ENV") or DEFAULT_ENVIRONMENT

    def log_path(self) -> Path:
        # Share the directory the framework already logs to.
        if self.facts.host_log_file is not None:
            return Path(self.facts.host_log_file).expanduser().resolve().parent
        return super().log_path()

    def gather_info(self, log: "LogManager") -> InfoPairs:
        info = super().gather_info(log)
        revision = self._read_revision(log)
        if revision is not None:
            info.append(("Revision", revision))
        return info


class FlaskProfile(_FrameworkProfile):
    kind = ProfileKind.FLASK
    framework_name = "Flask"


class DjangoProfile(_FrameworkProfile):
    """Full-stack host; the only one that supports developer mode."""

    kind = ProfileKind.DJANGO
    framework_name = "Django"

    @property
    def integration_hook(self) -> Optional[FrameworkIntegrationHook]:
        return self.facts.integration_hook

    def on_bootstrap(self, configuration: "Configuration", local_env: Any, *extra_args: Any) -> None:
        framework_config = extra_args[0] if extra_args else None
        if configuration.developer_mode:
            self.install_developer_mode(configuration, local_env, framework_config)

    def install_developer_mode(self, configuration: "Configuration", local_env: Any, framework_config: Any = None) -> bool:
        """Mount the developer-mode UI through the integration hook.

        Returns False when the host framework offers no hook.
        """

        log = configuration.log
        hook = self.integration_hook
        if hook is None:
            version = self.facts.framework_version or ""
            log.announce(f"ERROR: {self.framework_name} version {version} too old for developer mode to work.", "warn")
            return False

        ui_root = configuration.agent_root / "ui"
        hook.install_developer_mode(
            DeveloperModeRequest(
                controller_path=ui_root / "controllers",
                helper_path=ui_root / "helpers",
                framework_config=framework_config,
                skip_developer_route=bool(configuration.fetch("skip_developer_route", False)),
            )
        )

        identifier = getattr(local_env, "identifier", None)
        if identifier:
            log.to_stderr("NewRelic Agent (Developer Mode) enabled.")
            log.to_stderr(f"To view performance information, go to http://localhost{developer_port(identifier)}/newrelic")
        return True

    def gather_info(self, log: "LogManager") -> InfoPairs:
        info = [("app", self.app)]
        if self.facts.framework_properties is not None:
            try:
                info.extend(self.facts.framework_properties())
            except Exception as exc:
                log.debug(f"Unable to get the {self.framework_name} info: {exc!r}")

        info.append(("Plugin List", self._plugin_names(log)))

        revision = self._read_revision(log)
        if revision is not None:
            info.append(("Revision", revision))
        return info

    def _plugin_names(self, log: "LogManager") -> List[str]:
        plugin_dir = self.facts.plugin_dir
        if plugin_dir is None:
            return []
        try:
            return sorted(entry.name for entry in Path(plugin_dir).iterdir())
        except OSError as exc:
            log.debug(f"Unable to list plugins in {plugin_dir}: {exc!r}")
            return []


class TestProfile(EnvironmentProfile):
    """Profile with fixed settings and no file I/O, for test suites."""

    __test__ = False  # not a pytest test class

    kind = ProfileKind.TEST

    def __init__(
        self,
        settings: Optional[Mapping[str, Any]] = None,
        *,
        environment: str = "test",
        root: Optional[Path] = None,
        log_dir: Optional[Path] = None,
        facts: Optional[HostFacts] = None,
    ):
        super().__init__(facts)
        self._settings = dict(settings or {})
        self._environment = environment
        self._root = root
        self._log_dir = log_dir

    def environment_name(self) -> str:
        return self._environment

    def root_path(self) -> Path:
        if self._root is not None:
            return Path(self._root).expanduser().resolve()
        return super().root_path()

    def log_path(self) -> Path:
        if self._log_dir is not None:
            return Path(self._log_dir)
        return super().log_path()

    def load_settings(self, announce: Callable[[str], None]) -> SettingsStore:
        return SettingsStore(environment=self._environment, values=self._settings)


def developer_port(identifier: Any) -> str:
    """Port suffix for the developer-mode URL, from a process identifier."""

    match = re.match(r"\d+", str(identifier))
    return f":{match.group(0)}" if match else ":port"


__all__ = [
    "DeveloperModeRequest",
    "DjangoProfile",
    "DefaultProfile",
    "EnvironmentProfile",
    "FlaskProfile",
    "FrameworkIntegrationHook",
    "HostFacts",
    "ProfileKind",
    "TestProfile",
    "developer_port",
]
