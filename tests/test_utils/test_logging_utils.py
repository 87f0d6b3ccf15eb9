"""Tests for logging setup and structured stats logging."""

import logging
from unittest.mock import MagicMock

import pytest


class TestSetupLogging:
    def test_console_only(self):
        from src.utils.logging import setup_logging

        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("DEBUG", log_to_file=False)
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert not isinstance(root.handlers[0], logging.FileHandler)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestStatsLogging:
    def test_log_stats_error_includes_context(self):
        from src.utils.logging import log_stats_error

        logger = MagicMock()
        log_stats_error(ValueError("bad date"), {"user_id": "u-1"}, logger)

        logger.error.assert_called_once()
        kwargs = logger.error.call_args.kwargs
        assert kwargs["error_type"] == "ValueError"
        assert kwargs["error_message"] == "bad date"
        assert kwargs["user_id"] == "u-1"

    def test_log_stats_step(self):
        from src.utils.logging import log_stats_step

        logger = MagicMock()
        log_stats_step("recalculate", {"scope": "USER"}, logger)

        logger.info.assert_called_once()
        assert logger.info.call_args.kwargs == {"step": "recalculate", "scope": "USER"}

    def test_context_logs_start_and_done(self, monkeypatch):
        from src.utils import logging as stats_logging

        logger = MagicMock()
        monkeypatch.setattr(stats_logging, "get_stats_logger", lambda name=None: logger)

        with stats_logging.StatsLogContext("status_change", user_id="u-1"):
            pass

        messages = [c.args[0] for c in logger.info.call_args_list]
        assert messages == [
            "Stats step: status_change - START",
            "Stats step: status_change - DONE",
        ]

    def test_context_logs_error_and_reraises(self, monkeypatch):
        from src.utils import logging as stats_logging

        logger = MagicMock()
        monkeypatch.setattr(stats_logging, "get_stats_logger", lambda name=None: logger)

        with pytest.raises(RuntimeError):
            with stats_logging.StatsLogContext("missed_day", user_id="u-1"):
                raise RuntimeError("boom")

        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["operation"] == "missed_day"
