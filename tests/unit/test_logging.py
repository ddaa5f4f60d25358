"""
Unit tests for loguru sink setup.
"""

import pytest
from loguru import logger

from src.tutor.logs import configure_logging


@pytest.fixture(autouse=True)
def restore_sinks():
    yield
    logger.remove()


class TestConfigureLogging:
    def test_file_sink_receives_messages(self, tmp_path):
        log_file = tmp_path / "tutor.log"

        configure_logging(level="INFO", log_file=str(log_file))
        logger.info("Plan stored for Algebra")
        logger.remove()

        assert "Plan stored for Algebra" in log_file.read_text(encoding="utf-8")

    def test_level_filters_file_sink(self, tmp_path):
        log_file = tmp_path / "tutor.log"

        configure_logging(level="WARNING", log_file=str(log_file))
        logger.debug("Cache hit for lesson-plan")
        logger.warning("Welcome message failed for Algebra")
        logger.remove()

        text = log_file.read_text(encoding="utf-8")
        assert "Cache hit" not in text
        assert "Welcome message failed" in text

    def test_replaces_existing_sinks(self, capsys):
        configure_logging(level="INFO")
        configure_logging(level="INFO")

        logger.info("Tracked generated quiz")

        assert capsys.readouterr().err.count("Tracked generated quiz") == 1
