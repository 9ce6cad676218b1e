"""Тесты настройки логирования"""
import logging
from logging.handlers import RotatingFileHandler

from grocery.core.logging_config import LOG_FORMAT, setup_logging


class TestSetupLogging:
    def test_file_and_console(self, tmp_path):
        handlers = setup_logging(level="DEBUG", logs_dir=str(tmp_path / "logs"))
        try:
            assert isinstance(handlers[0], RotatingFileHandler)
            assert handlers[0].maxBytes == 10 * 1024 * 1024
            assert handlers[0].backupCount == 5
            assert isinstance(handlers[-1], logging.StreamHandler)
            assert (tmp_path / "logs" / "grocery.log").exists()
            assert logging.getLogger().level == logging.DEBUG
            assert handlers[-1].formatter._fmt == LOG_FORMAT
        finally:
            for handler in handlers:
                handler.close()

    def test_fallback_to_console(self, tmp_path):
        """Если директорию логов создать нельзя, остаётся только консоль"""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        handlers = setup_logging(level="INFO", logs_dir=str(blocker / "logs"))

        assert len(handlers) == 1
        assert not isinstance(handlers[0], RotatingFileHandler)
