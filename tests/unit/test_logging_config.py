"""
Unit tests for config/logging_config.py
"""
import logging
import logging.handlers

import pytest

from config.logging_config import get_logger, setup_logging


@pytest.fixture
def restore_logging():
    yield
    setup_logging(force=True)


class TestGetLogger:

    def test_module_loggers_share_namespace(self):
        assert get_logger("core.backoff").name == "letter_translator.core.backoff"
        assert get_logger("letter_translator.api").name == "letter_translator.api"
        assert get_logger().name == "letter_translator"

    def test_handlers_attached_once(self):
        get_logger("core.admission_queue")
        get_logger("core.backoff")

        root = logging.getLogger("letter_translator")
        assert len(root.handlers) in (1, 2)
        assert not logging.getLogger("letter_translator.core.backoff").handlers


class TestSetupLogging:

    def test_file_handler_uses_given_path_and_level(self, tmp_path, restore_logging):
        log_file = tmp_path / "nested" / "translator.log"

        root = setup_logging(level="debug", log_file=str(log_file), force=True)
        get_logger("core.admission_queue").debug("Processing request. Active: 1, Waiting: 0")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        file_handlers = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert "Processing request. Active: 1, Waiting: 0" in log_file.read_text(encoding="utf-8")

    def test_console_never_below_info(self, tmp_path, restore_logging):
        root = setup_logging(level="DEBUG", log_file=str(tmp_path / "t.log"), force=True)

        consoles = [h for h in root.handlers if not isinstance(h, logging.handlers.RotatingFileHandler)]
        assert [h.level for h in consoles] == [logging.INFO]

    def test_empty_log_file_disables_file_handler(self, restore_logging):
        root = setup_logging(level="WARNING", log_file="", force=True)

        assert root.level == logging.WARNING
        assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)

    def test_without_force_keeps_existing_handlers(self, tmp_path, restore_logging):
        first = list(setup_logging(level="INFO", log_file="", force=True).handlers)

        root = setup_logging(level="DEBUG", log_file=str(tmp_path / "ignored.log"))

        assert root.handlers == first
        assert root.level == logging.INFO

    def test_unknown_level(self, restore_logging):
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging(level="LOUD", log_file="", force=True)
