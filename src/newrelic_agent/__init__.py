"""Configuration-resolution and bootstrap core of the New Relic agent.

Importing the package has no side effects on logging; the agent log is only
opened by :func:`newrelic_agent.bootstrap.start` (or
``Configuration.setup_log``).
"""

from .bootstrap import BootstrapSequencer, ProcessEnvironment, start
from .config import Configuration, HostFacts, ProfileKind, get_configuration, should_start
from .exceptions import AgentError, ConfigurationError
from .version import STRING as __version__

__all__ = [
    "AgentError",
    "BootstrapSequencer",
    "Configuration",
    "ConfigurationError",
    "HostFacts",
    "ProcessEnvironment",
    "ProfileKind",
    "__version__",
    "get_configuration",
    "should_start",
    "start",
]
