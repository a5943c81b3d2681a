"""Configuration package for the agent."""

from .configuration import Configuration, get_configuration
from .gating import OVERRIDE_VARIABLE, should_start
from .profiles import (
    DefaultProfile,
    DeveloperModeRequest,
    DjangoProfile,
    EnvironmentProfile,
    FlaskProfile,
    FrameworkIntegrationHook,
    HostFacts,
    ProfileKind,
    TestProfile,
)
from .resolver import detect_host_facts, resolve_profile
from .settings import BUNDLED_CONFIG_FILE, SettingsStore, env, env_bool, fetch, load_settings_document

__all__ = [
    "BUNDLED_CONFIG_FILE",
    "Configuration",
    "DefaultProfile",
    "DeveloperModeRequest",
    "DjangoProfile",
    "EnvironmentProfile",
    "FlaskProfile",
    "FrameworkIntegrationHook",
    "HostFacts",
    "OVERRIDE_VARIABLE",
    "ProfileKind",
    "SettingsStore",
    "TestProfile",
    "detect_host_facts",
    "env",
    "env_bool",
    "fetch",
    "get_configuration",
    "load_settings_document",
    "resolve_profile",
    "should_start",
]
