"""Inert stand-in for the agent API.

Loaded instead of the instrumentation engine when the agent is disabled, so
host code that calls the agent API keeps working and does nothing.
"""
from typing import Any, Mapping, Optional

ACTIVE = False


class NullAgent:
    """Null object implementation of the agent that does nothing."""

    def start(self, environment: Any = None, identifier: Optional[str] = None) -> None:
        pass

    def shutdown(self) -> None:
        pass

    def record_metric(self, name: str, value: float) -> None:
        pass

    def notice_error(self, error: BaseException, params: Optional[Mapping[str, Any]] = None) -> None:
        pass

    def add_custom_parameters(self, params: Mapping[str, Any]) -> None:
        pass

    def set_transaction_name(self, name: str) -> None:
        pass


agent = NullAgent()

record_metric = agent.record_metric
notice_error = agent.notice_error
add_custom_parameters = agent.add_custom_parameters
set_transaction_name = agent.set_transaction_name
