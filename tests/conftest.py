"""Pytest configuration and fixtures for agent bootstrap tests."""

from pathlib import Path
from typing import Callable

import pytest

from newrelic_agent.bootstrap import ProcessEnvironment
from newrelic_agent.config import Configuration

AGENT_VARIABLES = (
    "NEWRELIC_ENABLE",
    "NEWRELIC_ENV",
    "NEWRELIC_LOG_LEVEL",
    "NEWRELIC_ROOT",
    "NEWRELIC_TEST",
)


@pytest.fixture(autouse=True)
def clean_agent_state(monkeypatch, tmp_path):
    """Isolate every test from the process environment and the singleton.

    The working directory is moved into the test's tmp dir so the log
    directory fallback never writes into the repository.
    """
    for name in AGENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    Configuration.reset()
    yield
    Configuration.reset()


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    """Provide an application root with a log directory."""
    (tmp_path / "log").mkdir()
    return tmp_path


@pytest.fixture
def write_config(app_root: Path) -> Callable[[str], Path]:
    """Write config/newrelic.yml under the application root."""

    def _write(content: str) -> Path:
        config_dir = app_root / "config"
        config_dir.mkdir(exist_ok=True)
        path = config_dir / "newrelic.yml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def mock_engine(mocker):
    """Provide a stand-in for the instrumentation engine."""
    return mocker.Mock(name="engine")


@pytest.fixture
def local_env() -> ProcessEnvironment:
    return ProcessEnvironment(environment="webapp", identifier="3000")
