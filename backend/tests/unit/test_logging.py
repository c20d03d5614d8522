"""Tests for structured logging."""
import logging

import pytest

from backend.services.shared.config import Config
from backend.services.shared.logging import (
    get_logger,
    setup_logging,
    setup_logging_from_config,
)


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test.module")
        assert isinstance(logger, logging.Logger)

    def test_prefixes_namespace(self):
        logger = get_logger("editing.orchestrator")
        assert logger.name == "clip_studio.editing.orchestrator"

    def test_full_name_kept(self):
        logger = get_logger("clip_studio.generation")
        assert logger.name == "clip_studio.generation"

    def test_same_name_returns_same_logger(self):
        l1 = get_logger("test.same")
        l2 = get_logger("test.same")
        assert l1 is l2


class TestSetupLogging:
    def test_setup_with_level(self):
        setup_logging(level="DEBUG")
        root = logging.getLogger("clip_studio")
        assert root.level == logging.DEBUG

    def test_setup_file_handler(self, tmp_dir):
        log_file = tmp_dir / "test.log"
        setup_logging(level="INFO", log_file=str(log_file))
        logger = get_logger("test_file")
        logger.info("test message")
        for handler in logging.getLogger("clip_studio").handlers:
            handler.flush()
        assert log_file.exists()
        assert "test message" in log_file.read_text()

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging(level="INFO")
        setup_logging(level="INFO")
        assert len(logging.getLogger("clip_studio").handlers) == 1

    def test_invalid_level_raises(self):
        with pytest.raises(ValueError):
            setup_logging(level="INVALID_LEVEL")

    def test_from_config(self, sample_settings):
        setup_logging_from_config(Config(str(sample_settings)))
        assert logging.getLogger("clip_studio").level == logging.DEBUG
