"""Tests for the agent log channel."""

import os
import re
import subprocess
import sys
import textwrap
import threading
from pathlib import Path

import pytest

import newrelic_agent
from newrelic_agent.config import SettingsStore
from newrelic_agent.utils.logger import (
    STDERR_PREFIX,
    LogManager,
    log_file_name,
    resolve_log_dir,
    resolve_log_level,
    to_stderr,
)
from newrelic_agent.version import STRING as AGENT_VERSION


def settings(**values) -> SettingsStore:
    return SettingsStore(environment="test", values=values)


@pytest.fixture
def log_manager(tmp_path):
    """Provide a LogManager writing into the test's tmp dir."""
    manager = LogManager(tmp_path)
    yield manager
    manager.close()


class TestResolveLogLevel:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("DEBUG", "DEBUG"),
            ("debug", "DEBUG"),
            ("Info", "INFO"),
            ("warn", "WARNING"),
            ("error", "ERROR"),
            ("fatal", "CRITICAL"),
            ("bogus", "INFO"),
            ("warning", "INFO"),
            (None, "INFO"),
            (3, "INFO"),
        ],
    )
    def test_mapping(self, value, expected):
        assert resolve_log_level(value) == expected


class TestLogFileName:
    def test_no_identifier(self):
        assert log_file_name(None) == "newrelic_agent.log"

    def test_dotted_identifier_is_kept_whole(self):
        assert log_file_name("myapp.server") == "newrelic_agent.myapp.server.log"

    def test_only_trailing_word_characters_are_used(self):
        assert log_file_name("host:3000") == "newrelic_agent.3000.log"
        assert log_file_name("/srv/app/worker") == "newrelic_agent.worker.log"

    def test_empty_tail_keeps_separator(self):
        assert log_file_name("worker/") == "newrelic_agent..log"
        assert log_file_name("") == "newrelic_agent..log"


class TestResolveLogDir:
    def test_existing_directory_is_used(self, tmp_path):
        assert resolve_log_dir(tmp_path) == tmp_path.resolve()

    def test_missing_directory_falls_back_to_cwd(self, tmp_path):
        assert resolve_log_dir(tmp_path / "missing") == tmp_path.resolve()

    def test_none_falls_back_to_cwd(self, tmp_path):
        assert resolve_log_dir(None) == tmp_path.resolve()


class TestSetup:
    def test_creates_log_file_and_announces(self, log_manager, tmp_path, capsys):
        handler_id = log_manager.setup("myapp.server", settings())
        log_manager.close()

        log_file = tmp_path / "newrelic_agent.myapp.server.log"
        assert handler_id is not None
        assert log_manager.log_file == log_file.resolve()
        assert log_file.exists()

        err = capsys.readouterr().err
        assert f"{STDERR_PREFIX}New Relic RPM Agent {AGENT_VERSION} Initialized: pid = {os.getpid()}" in err
        assert f"{STDERR_PREFIX}Agent Log is found in {log_file.resolve()}" in err

        contents = log_file.read_text()
        assert "New Relic RPM Agent" in contents
        assert "Agent Log is found in" in contents

    def test_default_record_format(self, log_manager, tmp_path):
        log_manager.setup(None, settings())
        log_manager.close()

        first_line = (tmp_path / "newrelic_agent.log").read_text().splitlines()[0]
        assert re.match(r"^\[\d\d/\d\d/\d\d \d\d:\d\d:\d\d \(\d+\)\] INFO : New Relic RPM Agent ", first_line)

    def test_custom_formatter(self, tmp_path):
        manager = LogManager(tmp_path, fmt="{level}|{message}")
        manager.setup(None, settings())
        manager.close()

        lines = (tmp_path / "newrelic_agent.log").read_text().splitlines()
        assert lines[0].startswith("INFO|New Relic RPM Agent")

    @pytest.mark.parametrize("configured, expected", [("DEBUG", "DEBUG"), ("warn", "WARNING"), ("bogus", "INFO"), (None, "INFO")])
    def test_threshold_from_settings(self, log_manager, configured, expected):
        log_manager.setup(None, settings(log_level=configured))

        assert log_manager.level == expected

    def test_level_override_wins(self, log_manager):
        log_manager.setup(None, settings(log_level="debug"), level_override="error")

        assert log_manager.level == "ERROR"

    def test_announcements_reach_stderr_above_threshold(self, log_manager, tmp_path, capsys):
        log_manager.setup(None, settings(log_level="warn"))
        log_manager.announce("something odd", "warn")
        log_manager.close()

        err = capsys.readouterr().err
        assert "Initialized: pid" in err

        contents = (tmp_path / "newrelic_agent.log").read_text()
        assert "Initialized: pid" not in contents
        assert "WARNING : something odd" in contents

    def test_unopenable_file_keeps_stderr_channel(self, tmp_path, capsys):
        (tmp_path / "newrelic_agent.log").mkdir()
        manager = LogManager(tmp_path)

        assert manager.setup(None, settings()) is None
        assert manager.active is False

        manager.announce("still visible")
        err = capsys.readouterr().err
        assert "Unable to open agent log" in err
        assert f"{STDERR_PREFIX}still visible" in err

    def test_setup_twice_replaces_handle(self, log_manager, tmp_path):
        log_manager.setup("first", settings())
        log_manager.setup("second", settings())
        log_manager.info("after")
        log_manager.close()

        assert "after" not in (tmp_path / "newrelic_agent.first.log").read_text()
        assert "after" in (tmp_path / "newrelic_agent.second.log").read_text()


class TestLogging:
    def test_log_without_handle_is_silent(self, capsys):
        manager = LogManager()
        manager.log("nobody listens", "error")

        assert capsys.readouterr().err == ""

    def test_announce_without_handle_writes_stderr(self, capsys):
        LogManager().announce("boot message")

        assert capsys.readouterr().err == f"{STDERR_PREFIX}boot message\n"

    def test_to_stderr_prefix(self, capsys):
        to_stderr("hello")

        assert capsys.readouterr().err == "** [NewRelic] hello\n"

    def test_severity_filtering(self, log_manager, tmp_path):
        log_manager.setup(None, settings(log_level="info"))
        log_manager.debug("hidden detail")
        log_manager.error("visible failure")
        log_manager.close()

        contents = (tmp_path / "newrelic_agent.log").read_text()
        assert "hidden detail" not in contents
        assert "ERROR : visible failure" in contents

    def test_records_from_other_loggers_are_ignored(self, log_manager, tmp_path):
        from loguru import logger

        log_manager.setup(None, settings())
        logger.info("host application message")
        log_manager.close()

        assert "host application message" not in (tmp_path / "newrelic_agent.log").read_text()

    def test_concurrent_appends(self, log_manager, tmp_path):
        log_manager.setup(None, settings(log_level="info"))

        def worker(index):
            for line in range(25):
                log_manager.info(f"thread-{index} line-{line}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        log_manager.close()

        lines = (tmp_path / "newrelic_agent.log").read_text().splitlines()
        assert sum(1 for line in lines if "thread-" in line) == 8 * 25


AGENT_PROCESS = textwrap.dedent(
    """
    from newrelic_agent.config import SettingsStore
    from newrelic_agent.utils.logger import LogManager

    manager = LogManager()
    manager.setup(None, SettingsStore(environment="test", values={"log_level": "error"}))
    manager.debug("file-only detail")
    manager.error("file-only failure")
    manager.close()
    """
)


class TestHostLoggerIsolation:
    """The agent never writes through the host's loguru handlers."""

    def test_host_sinks_receive_no_agent_records(self, log_manager):
        from loguru import logger

        received = []
        host_id = logger.add(received.append, level="DEBUG")
        try:
            log_manager.setup(None, settings(log_level="debug"))
            log_manager.debug("agent detail")
            log_manager.announce("agent banner")
            log_manager.flush()
        finally:
            logger.remove(host_id)

        assert received == []

    def test_default_stderr_handler_sees_announcements_once(self, tmp_path):
        src_dir = Path(newrelic_agent.__file__).resolve().parents[1]
        python_path = os.pathsep.join(filter(None, [str(src_dir), os.environ.get("PYTHONPATH")]))

        result = subprocess.run(
            [sys.executable, "-c", AGENT_PROCESS],
            cwd=tmp_path,
            env=dict(os.environ, PYTHONPATH=python_path),
            capture_output=True,
            text=True,
            check=True,
        )

        lines = result.stderr.splitlines()
        assert sum(1 for line in lines if "Initialized: pid" in line) == 1
        assert all(line.startswith(STDERR_PREFIX) for line in lines)
        assert "file-only" not in result.stderr

        contents = (tmp_path / "newrelic_agent.log").read_text()
        assert "ERROR : file-only failure" in contents
        assert "file-only detail" not in contents
