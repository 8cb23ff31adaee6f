"""Tests for logging setup and configuration."""

import json
import logging
import re

import pytest

from core.logging.context import get_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import NOISY_LOGGERS, generate_run_id, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestGenerateRunId:
    def test_format(self):
        assert re.fullmatch(r"\d{14}-[0-9a-f]{6}", generate_run_id())

    def test_unique(self):
        assert generate_run_id() != generate_run_id()


class TestSetupLogging:
    def test_console_only(self):
        logger = setup_logging(console_level=logging.WARNING)

        root = logging.getLogger()
        assert logger.name == "ingestion"
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
        assert root.handlers[0].level == logging.WARNING

    def test_json_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "run.jsonl"
        setup_logging(json_log_file=log_file, run_id="r-1")

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert isinstance(root.handlers[1].formatter, JSONFormatter)

        logging.getLogger("ingestion.test").info("hello", extra={"records": 3})
        for handler in root.handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        hello = [line for line in lines if line["message"] == "hello"][0]
        assert hello["run_id"] == "r-1"
        assert hello["records"] == 3

    def test_sets_run_id(self):
        setup_logging(run_id="r-2")
        assert get_log_context()["run_id"] == "r-2"

    def test_quiets_noisy_loggers(self):
        setup_logging()
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

