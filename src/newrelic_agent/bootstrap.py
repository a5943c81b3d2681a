"""Agent bootstrap: resolve the configuration, open the log, then start or stub.

Typical host integration::

    from newrelic_agent import bootstrap

    bootstrap.start(engine)

The instrumentation engine and the local environment probe are supplied by
the caller; this module only decides which of them runs.
"""
from __future__ import annotations

import importlib
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Optional, Protocol

from .config.configuration import Configuration
from .config.profiles import EnvironmentProfile, HostFacts

SHIM_MODULE = "newrelic_agent.shim"


class InstrumentationEngine(Protocol):
    """Entry point of the tracing engine."""

    def start(self, environment: Any, identifier: Optional[str]) -> None:
        ...


class LocalEnvironment(Protocol):
    """Probe reporting identifying facts about the host process."""

    @property
    def environment(self) -> Any:
        ...

    @property
    def identifier(self) -> Optional[str]:
        ...


@dataclass(frozen=True)
class ProcessEnvironment:
    """Minimal probe: the running script's name is both descriptor and identifier."""

    environment: Any = None
    identifier: Optional[str] = None

    @classmethod
    def detect(cls) -> "ProcessEnvironment":
        script = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else ""
        return cls(environment=script or "python", identifier=script or None)


class BootstrapSequencer:
    """Runs the boot sequence once the process configuration exists."""

    def __init__(
        self,
        configuration: Configuration,
        engine: InstrumentationEngine,
        local_env: Optional[LocalEnvironment] = None,
        *,
        shim_module: str = SHIM_MODULE,
    ):
        self.configuration = configuration
        self.engine = engine
        self.local_env = local_env if local_env is not None else ProcessEnvironment.detect()
        self.shim_module = shim_module
        self.shim: Optional[ModuleType] = None
        self.started = False

    @property
    def log(self):
        return self.configuration.log

    def run(self, *extra_args: Any) -> bool:
        """Open the agent log, then start instrumentation or load the shim."""

        self.configuration.setup_log(self.local_env.identifier)
        return self.start_plugin(*extra_args)

    def start_plugin(self, *extra_args: Any) -> bool:
        """Start the engine if the gating decision allows it, else load the shim.

        ``extra_args`` are handed to the profile (e.g. a framework settings
        object). Returns True when instrumentation started.
        """

        enabled = self.configuration.tracers_enabled()
        self.log.debug(f"{self.configuration} gating decision: {enabled}")
        if not enabled:
            self.load_shim()
            return False

        self.start_agent()
        self.configuration.profile.on_bootstrap(self.configuration, self.local_env, *extra_args)
        return True

    def start_agent(self) -> None:
        self.engine.start(self.local_env.environment, self.local_env.identifier)
        self.started = True

    def load_shim(self) -> ModuleType:
        self.shim = importlib.import_module(self.shim_module)
        self.log.debug(f"Agent disabled; loaded {self.shim_module}")
        return self.shim


def start(
    engine: InstrumentationEngine,
    *extra_args: Any,
    facts: Optional[HostFacts] = None,
    profile: Optional[EnvironmentProfile] = None,
    local_env: Optional[LocalEnvironment] = None,
) -> BootstrapSequencer:
    """Bootstrap the agent for this process and return the sequencer used."""

    configuration = Configuration.instance(facts, profile=profile)
    sequencer = BootstrapSequencer(configuration, engine, local_env)
    sequencer.run(*extra_args)
    return sequencer


__all__ = [
    "BootstrapSequencer",
    "InstrumentationEngine",
    "LocalEnvironment",
    "ProcessEnvironment",
    "SHIM_MODULE",
    "start",
]
