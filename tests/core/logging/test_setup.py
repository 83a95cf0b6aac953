"""Tests for logging setup and configuration."""

import json
import logging
import re
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.logging.context import get_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import (
    DEFAULT_BACKUP_COUNT,
    NOISY_LOGGERS,
    generate_trace_id,
    get_log_file_path,
    get_logger,
    setup_logging,
)


class TestGetLogFilePath:

    def test_builds_path_with_cluster_and_component(self):
        path = get_log_file_path(Path("logs"), cluster_name="analytics", component="appmaster")

        assert path.parts[:2] == ("logs", "analytics")
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", path.parts[2])
        assert path.name.startswith("analytics_appmaster_")
        assert path.suffix == ".log"

    def test_builds_path_with_cluster_only(self):
        path = get_log_file_path(Path("logs"), cluster_name="analytics")

        assert re.fullmatch(r"analytics_\d{4}_\d{4}\.log", path.name)

    def test_default_prefix(self):
        path = get_log_file_path(Path("logs"))

        assert path.parts[1] == "amsecurity"
        assert path.name.startswith("amsecurity_")


class TestGenerateTraceId:

    def test_format(self):
        assert re.fullmatch(r"s-\d{8}-\d{6}-[0-9a-f]{4}", generate_trace_id())


class TestGetLogger:

    def test_returns_named_logger(self):
        assert get_logger("core.security") is logging.getLogger("core.security")


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers = root.handlers[:]
        level = root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_console_only(self):
        logger = setup_logging(name="test")

        root = logging.getLogger()
        assert isinstance(logger, logging.Logger)
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)

    def test_sets_context(self):
        setup_logging(name="test", cluster_name="analytics", component="appmaster", trace_id="s-x")

        assert get_log_context() == {
            "cluster_name": "analytics",
            "component": "appmaster",
            "trace_id": "s-x",
        }

    def test_generates_trace_id(self):
        setup_logging(name="test")

        assert get_log_context()["trace_id"].startswith("s-")

    def test_file_handler_writes_json(self, tmp_path):
        setup_logging(name="test", cluster_name="analytics", component="appmaster", log_dir=tmp_path)

        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, TimedRotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        handler = file_handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
        assert handler.backupCount == DEFAULT_BACKUP_COUNT

        get_logger("core.security.keytab").info("Staged", extra={"keytab_name": "app.keytab"})
        handler.flush()

        log_files = list((tmp_path / "analytics").rglob("*.log"))
        assert len(log_files) == 1
        lines = [json.loads(line) for line in log_files[0].read_text().splitlines()]
        staged = [line for line in lines if line["message"] == "Staged"]
        assert staged[0]["keytab_name"] == "app.keytab"
        assert staged[0]["cluster_name"] == "analytics"

    def test_plain_text_file_format(self, tmp_path):
        setup_logging(name="test", log_dir=tmp_path, json_format=False)

        file_handler = next(
            h for h in logging.getLogger().handlers if isinstance(h, TimedRotatingFileHandler)
        )
        assert not isinstance(file_handler.formatter, JSONFormatter)

    def test_suppresses_noisy_loggers(self):
        setup_logging(name="test", suppress_noisy=True)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
