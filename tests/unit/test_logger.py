"""Tests for logging setup."""

import logging

from loguru import logger

from import_bot.core.logger import InterceptHandler, setup_structured_logging


def test_setup_creates_log_files(tmp_path):
    logs_dir = tmp_path / "logs"

    setup_structured_logging("DEBUG", logs_dir=logs_dir)
    logger.info("hello from test")
    logger.complete()

    assert (logs_dir / "import_bot.log").exists()
    assert "hello from test" in (logs_dir / "import_bot.log").read_text(encoding="utf-8")
    logger.remove()


def test_json_format(tmp_path):
    setup_structured_logging("INFO", json_format=True, logs_dir=tmp_path)
    logger.info("structured")
    logger.complete()

    assert "structured" in (tmp_path / "import_bot.jsonl").read_text(encoding="utf-8")
    logger.remove()


def test_standard_logging_routed_to_loguru():
    messages = []
    sink_id = logger.add(messages.append, format="{message}", level="DEBUG")
    std_logger = logging.getLogger("import_bot.tests")
    std_logger.addHandler(InterceptHandler())
    std_logger.setLevel(logging.INFO)
    std_logger.propagate = False
    try:
        std_logger.info("routed message")
    finally:
        logger.remove(sink_id)
        std_logger.handlers.clear()

    assert any("routed message" in str(m) for m in messages)
