"""
로깅 설정 테스트
"""

import logging
import logging.handlers

from aggregator.logging_utils import reset_logging, setup_logging


class TestSetupLogging:
    """setup_logging / reset_logging"""

    def test_console_only(self):
        root = setup_logging(level="warning")

        assert root.name == "aggregator"
        assert root.level == logging.WARNING
        assert root.propagate is False
        assert len(root.handlers) == 1
        assert logging.getLogger("config").level == logging.WARNING

    def test_file_handler(self, tmp_path):
        root = setup_logging(level=logging.INFO, log_dir=tmp_path / "logs")

        file_handlers = [h for h in root.handlers if isinstance(h, logging.handlers.TimedRotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].backupCount == 7

        logging.getLogger("aggregator.engine").info("[ENGINE] hello")
        file_handlers[0].flush()
        assert "[ENGINE] hello" in (tmp_path / "logs" / "aggregator.log").read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate(self):
        setup_logging()
        root = setup_logging()

        assert len(root.handlers) == 1

    def test_reset_restores_propagation(self):
        root = setup_logging()
        reset_logging()

        assert root.handlers == []
        assert root.propagate is True
        assert root.level == logging.NOTSET
