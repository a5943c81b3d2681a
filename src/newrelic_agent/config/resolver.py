"""Selects the environment profile for the host process."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Mapping, Optional

from .profiles import DefaultProfile, DjangoProfile, EnvironmentProfile, FlaskProfile, HostFacts, TestProfile
from .settings import ENV_PREFIX, env, env_bool


def detect_host_facts(modules: Optional[Mapping[str, object]] = None) -> HostFacts:
    """Build :class:`HostFacts` from loaded modules and the process environment."""

    modules = sys.modules if modules is None else modules
    has_django = "django" in modules
    framework_version = None
    if has_django:
        framework_version = getattr(modules["django"], "__version__", None)

    root = env(f"{ENV_PREFIX}ROOT")
    return HostFacts(
        test_mode=env_bool(f"{ENV_PREFIX}TEST"),
        has_flask="flask" in modules,
        has_django=has_django,
        environment=env(f"{ENV_PREFIX}ENV"),
        root_path=Path(root) if root else None,
        framework_version=framework_version,
    )


def resolve_profile(facts: Optional[HostFacts] = None, *, test_profile: Optional[EnvironmentProfile] = None) -> EnvironmentProfile:
    """Pick exactly one profile, checking test mode, Flask, Django, then default.

    ``test_profile`` is returned when the facts report test mode; without one
    a :class:`~newrelic_agent.config.profiles.TestProfile` with empty
    settings is built.
    """

    facts = detect_host_facts() if facts is None else facts

    if facts.test_mode:
        if test_profile is not None:
            return test_profile
        return TestProfile(facts=facts)
    if facts.has_flask:
        return FlaskProfile(facts)
    if facts.has_django:
        return DjangoProfile(facts)
    return DefaultProfile(facts)


__all__ = ["HostFacts", "detect_host_facts", "resolve_profile"]
