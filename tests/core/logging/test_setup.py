"""Tests for logging setup functions."""

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from core.errors.exceptions import FatalTransportError
from core.logging.context import clear_log_context, get_log_context, set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import get_log_file_path, setup_logging
from core.logging.utilities import extract_log_context, log_exception, log_with_context


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test", level=level, pathname=__file__, lineno=1,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        """Clean up after each test."""
        clear_log_context()
        yield
        clear_log_context()
        # Clear root logger handlers
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

    def test_console_only_without_log_dir(self):
        """Only the console handler is installed when no log_dir is given."""
        setup_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, ConsoleFormatter)

    def test_adds_rotating_file_handler(self, tmp_path):
        """A JSON rotating file handler is added under a date folder."""
        setup_logging(log_dir=tmp_path)

        handlers = logging.getLogger().handlers
        file_handlers = [h for h in handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert isinstance(file_handlers[0].formatter, JSONFormatter)

        logging.getLogger("s6_agent.test").info("written to file")
        for handler in handlers:
            handler.flush()

        log_files = list(tmp_path.rglob("*.log"))
        assert len(log_files) == 1
        assert "written to file" in log_files[0].read_text()

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        setup_logging(log_dir=tmp_path)
        setup_logging(log_dir=tmp_path)

        assert len(logging.getLogger().handlers) == 2

    def test_worker_id_sets_context(self):
        setup_logging(worker_id="agent-1")

        assert get_log_context()["worker_id"] == "agent-1"

    def test_suppresses_noisy_loggers(self):
        setup_logging()

        assert logging.getLogger("aiohttp.access").level == logging.WARNING


class TestGetLogFilePath:
    """Tests for get_log_file_path."""

    def test_includes_instance_id(self, tmp_path):
        path = get_log_file_path(tmp_path, instance_id="p42")

        assert path.name.startswith("s6-agent_")
        assert path.name.endswith("_p42.log")
        assert path.parent.parent == tmp_path

    def test_without_instance_id(self, tmp_path):
        path = get_log_file_path(tmp_path, name="agent")

        assert path.name.startswith("agent_")
        assert path.suffix == ".log"
        assert "_p" not in path.name


class TestJSONFormatter:
    """Tests for JSON log output."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_includes_extra_fields(self):
        record = make_record(bucket="videos-prod", key="a/b.mp4", attempt=2)

        entry = json.loads(JSONFormatter().format(record))

        assert entry["msg"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["bucket"] == "videos-prod"
        assert entry["key"] == "a/b.mp4"
        assert entry["attempt"] == 2

    def test_redacts_thumbor_token_in_url(self):
        token = "ABCDEFGHIJKLMNOPQRSTUVWXYZa="
        url = f"https://img.example.com/{token}/300x200/https://images/a.jpg"
        record = make_record(url=url)

        entry = json.loads(JSONFormatter().format(record))

        assert token not in entry["url"]
        assert "[REDACTED]" in entry["url"]
        assert entry["url"].endswith("/300x200/https://images/a.jpg")

    def test_injects_log_context(self):
        set_log_context(lane="video", object_key="videos-prod/a.mp4")

        entry = json.loads(JSONFormatter().format(make_record()))

        assert entry["lane"] == "video"
        assert entry["object_key"] == "videos-prod/a.mp4"


class TestConsoleFormatter:
    """Tests for console log output."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        clear_log_context()
        yield
        clear_log_context()

    def test_shows_lane_and_object(self):
        set_log_context(lane="image", object_key="images-prod/a.jpg")

        line = ConsoleFormatter().format(make_record("Cache hit"))

        assert "[image]" in line
        assert "[images-prod/a.jpg] Cache hit" in line

    def test_plain_message_without_context(self):
        line = ConsoleFormatter().format(make_record("pong", level=logging.WARNING))

        assert line.endswith("WARNING - pong")


class TestLogUtilities:
    """Tests for structured logging helpers."""

    def test_log_with_context_passes_extra(self, caplog):
        logger = logging.getLogger("test.utilities")

        with caplog.at_level(logging.INFO, logger="test.utilities"):
            log_with_context(logger, logging.INFO, "Done", bytes_downloaded=10)

        assert caplog.records[0].bytes_downloaded == 10

    def test_log_exception_adds_category_and_message(self, caplog):
        logger = logging.getLogger("test.utilities")
        error = FatalTransportError("got non-OK when downloading file: 404")

        with caplog.at_level(logging.ERROR, logger="test.utilities"):
            log_exception(logger, error, "Download failed", include_traceback=False)

        record = caplog.records[0]
        assert record.error_category == "permanent"
        assert record.error_message == "got non-OK when downloading file: 404"
        assert record.exc_info is None

    def test_log_exception_truncates_long_messages(self, caplog):
        logger = logging.getLogger("test.utilities")

        with caplog.at_level(logging.ERROR, logger="test.utilities"):
            log_exception(logger, ValueError("x" * 600), "boom")

        assert len(caplog.records[0].error_message) == 503

    def test_extract_log_context(self):
        class Ref:
            region = "us-east-1"
            bucket = "videos-prod"
            key = "a.mp4"

        assert extract_log_context(Ref()) == {
            "region": "us-east-1",
            "bucket": "videos-prod",
            "key": "a.mp4",
        }
        assert extract_log_context(None) == {}
