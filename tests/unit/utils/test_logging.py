"""Unit tests for logging utilities."""

import json
import logging
from pathlib import Path

import pytest

from git_meta.utils import configure_logging, get_logger
from git_meta.utils._logging import _get_log_level, _log_level_from_string


@pytest.fixture(autouse=True)
def clear_log_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GIT_META_DEBUG", raising=False)
    monkeypatch.delenv("GIT_META_LOG_LEVEL", raising=False)


class TestGetLogLevel:
    def test_defaults_to_warning(self) -> None:
        assert _get_log_level() == logging.WARNING

    def test_debug_env_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GIT_META_DEBUG", "1")
        monkeypatch.setenv("GIT_META_LOG_LEVEL", "error")

        assert _get_log_level() == logging.DEBUG

    def test_reads_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GIT_META_LOG_LEVEL", "error")

        assert _get_log_level() == logging.ERROR

    def test_unknown_level_env_falls_back_to_warning(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GIT_META_LOG_LEVEL", "chatty")

        assert _get_log_level() == logging.WARNING


class TestLogLevelFromString:
    def test_converts_known_level(self) -> None:
        assert _log_level_from_string("debug") == logging.DEBUG
        assert _log_level_from_string("ERROR") == logging.ERROR

    def test_unknown_level_is_info(self) -> None:
        assert _log_level_from_string("chatty") == logging.INFO

    def test_debug_env_respected_when_requested(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GIT_META_DEBUG", "1")

        assert _log_level_from_string("error", respect_env=True) == logging.DEBUG
        assert _log_level_from_string("error") == logging.ERROR


class TestConfigureLogging:
    def test_json_format_writes_structured_events(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "git-meta.log"
        configure_logging(level="info", log_format="json", log_file=str(log_file))

        get_logger("git_meta.tests").info("commit_resolved", commit="abc123")

        line = log_file.read_text().strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "commit_resolved"
        assert event["commit"] == "abc123"
        assert event["level"] == "info"
        assert event["logger"] == "git_meta.tests"
        assert "timestamp" in event

    def test_text_format(self, tmp_path: Path) -> None:
        log_file = tmp_path / "git-meta.log"
        configure_logging(level="info", log_format="text", log_file=str(log_file))

        get_logger("git_meta.tests").info("clone_started", url="https://example.com")

        content = log_file.read_text()
        assert "clone_started" in content
        assert "url=https://example.com" in content

    def test_level_filters_events(self, tmp_path: Path) -> None:
        log_file = tmp_path / "git-meta.log"
        configure_logging(level="warning", log_format="json", log_file=str(log_file))

        logger = get_logger("git_meta.tests")
        logger.debug("hidden_event")
        logger.warning("visible_event")

        content = log_file.read_text()
        assert "hidden_event" not in content
        assert "visible_event" in content

    def test_replaces_previous_handler(self, tmp_path: Path) -> None:
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"
        configure_logging(level="info", log_format="json", log_file=str(first))
        configure_logging(level="info", log_format="json", log_file=str(second))

        get_logger("git_meta.tests").info("after_switch")

        assert "after_switch" not in first.read_text()
        assert "after_switch" in second.read_text()
        assert len(logging.getLogger("git_meta").handlers) == 1

    def test_does_not_propagate_to_root(self, tmp_path: Path) -> None:
        configure_logging(log_file=str(tmp_path / "git-meta.log"))

        assert logging.getLogger("git_meta").propagate is False


class TestGetLogger:
    def test_silent_without_configuration(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        get_logger("git_meta.tests").warning("unconfigured_event")

        captured = capsys.readouterr()
        assert "unconfigured_event" not in captured.out
