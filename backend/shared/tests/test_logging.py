import json
import logging
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from shared.logging import _serialize_values, bind_match_context, clear_match_context, setup_logging


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def _allow_file_logging(monkeypatch):
    """Disable the pytest guard so these tests can create real file handlers."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    with patch("shared.logging._is_test", return_value=False):
        yield


class TestSetupLogging:
    def test_configures_stdout_handler(self):
        setup_logging()
        root = logging.getLogger()

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_file_handler_in_log_dir(self, tmp_path):
        log_path = setup_logging(log_dir=tmp_path / "lobby")
        root = logging.getLogger()

        assert len(root.handlers) == 2
        assert isinstance(root.handlers[1], logging.FileHandler)
        assert log_path is not None
        assert log_path.parent == tmp_path / "lobby"
        assert log_path.suffix == ".log"

    def test_log_file_has_datetime_in_name(self, tmp_path):
        fixed_time = datetime(2026, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path / "lobby")

        assert log_path is not None
        assert log_path.name == "2026-03-15_10-30-45.log"

    def test_no_file_under_pytest(self, tmp_path):
        with patch("shared.logging._is_test", return_value=True):
            assert setup_logging(log_dir=tmp_path / "lobby") is None
        assert not (tmp_path / "lobby").exists()

    def test_accepts_string_path(self, tmp_path):
        log_path = setup_logging(log_dir=str(tmp_path / "nested" / "dir"))
        assert log_path is not None
        assert Path(log_path).parent.exists()

    def test_repeated_calls_replace_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_quiets_http_client_loggers(self):
        setup_logging(level=logging.DEBUG)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        setup_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            setup_logging()

    def test_invalid_log_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()

    def test_json_lines_carry_service_and_match_context(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path, service="lobby")
        bind_match_context(match_id="m-1", user_id="u-1")

        structlog.get_logger("test.json").info("match created", status=_Status.WAITING)

        assert log_path is not None
        entry = json.loads(log_path.read_text().strip().splitlines()[-1])
        assert entry["event"] == "match created"
        assert entry["service"] == "lobby"
        assert entry["match_id"] == "m-1"
        assert entry["user_id"] == "u-1"
        assert entry["status"] == "waiting"


class _Status(Enum):
    WAITING = "waiting"


class TestSerializeValues:
    def test_replaces_enum_and_datetime(self):
        moment = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        result = _serialize_values(None, "info", {"status": _Status.WAITING, "at": moment})
        assert result == {"status": "waiting", "at": "2026-01-02T03:04:05+00:00"}

    def test_replaces_values_inside_dicts(self):
        result = _serialize_values(None, "info", {"changes": {"status": _Status.WAITING, "ready": True}})
        assert result == {"changes": {"status": "waiting", "ready": True}}

    def test_leaves_other_values(self):
        result = _serialize_values(None, "info", {"count": 3, "items": ["a"]})
        assert result == {"count": 3, "items": ["a"]}


class TestMatchContext:
    def test_bind_skips_missing_values(self):
        bind_match_context(match_id="m-1")
        assert structlog.contextvars.get_contextvars() == {"match_id": "m-1"}

    def test_clear_removes_only_match_fields(self):
        structlog.contextvars.bind_contextvars(service="arena")
        bind_match_context(match_id="m-1", user_id="u-1")
        clear_match_context()
        assert structlog.contextvars.get_contextvars() == {"service": "arena"}
