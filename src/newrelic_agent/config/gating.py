"""Decides whether full instrumentation or the inert shim is installed."""
from __future__ import annotations

import re
from typing import Any, Optional

OVERRIDE_VARIABLE = "NEWRELIC_ENABLE"

# Matched anywhere in the value, case-insensitively.
DISABLE_PATTERN = re.compile(r"false|off|no", re.IGNORECASE)


def is_disabled_by_override(env_override: Optional[str]) -> bool:
    return bool(env_override) and DISABLE_PATTERN.search(str(env_override)) is not None


def should_start(env_override: Optional[str], settings: Any) -> bool:
    """Return True when instrumentation should start.

    The override signal always wins when it carries a disable token;
    otherwise either ``developer`` or ``enabled`` being set opts in.
    ``settings`` only needs a ``fetch(key, default)`` method.
    """

    if is_disabled_by_override(env_override):
        return False
    return bool(settings.fetch("developer", None)) or bool(settings.fetch("enabled", None))


__all__ = ["DISABLE_PATTERN", "OVERRIDE_VARIABLE", "is_disabled_by_override", "should_start"]
