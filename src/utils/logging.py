"""
Logging setup and structured logging helpers for the stats engine.

Standard library loggers are used for plain module logging; stats
operations go through structlog so every line carries the user, scope
and habit it concerns.
"""

import logging
import logging.handlers
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog

LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def _rotating(path: Path, level: int, max_mb: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_mb * 1024 * 1024, backupCount=backups
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: Union[str, Path] = "logs",
) -> None:
    """Configure structlog and the root logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Also write ``stats.log`` and ``errors.log`` under ``log_dir``
        log_dir: Directory for the rotating log files
    """
    level = getattr(logging, log_level.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if log_to_file
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.set_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LINE_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(console)

    if not log_to_file:
        return

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    root.addHandler(_rotating(logs_dir / "stats.log", logging.INFO, 10, 5))
    root.addHandler(_rotating(logs_dir / "errors.log", logging.ERROR, 5, 10))


def get_stats_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name or "stats")


def log_stats_error(
    error: Exception, context: Dict[str, Any], logger: structlog.BoundLogger = None
) -> None:
    """Log a failed stats operation together with its context."""
    logger = logger or get_stats_logger()
    logger.error(
        "Stats operation failed",
        error_type=type(error).__name__,
        error_message=str(error),
        timestamp=datetime.now().isoformat(),
        **context,
    )


def log_stats_step(
    step: str, details: Dict[str, Any], logger: structlog.BoundLogger = None
) -> None:
    logger = logger or get_stats_logger()
    logger.info(f"Stats step: {step}", step=step, **details)


class StatsLogContext:
    """
    Brackets one stats operation with START and DONE lines.

    A failure inside the block is logged with the elapsed time and then
    propagates unchanged.

    Usage:
        with StatsLogContext("status_change", user_id=user_id, habit_id=habit_id):
            await self._fan_out(...)
    """

    def __init__(self, operation: str, **context):
        self.operation = operation
        self.context = context
        self.logger = get_stats_logger()
        self._started = 0.0

    def __enter__(self):
        self._started = time.monotonic()
        log_stats_step(f"{self.operation} - START", dict(self.context), self.logger)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = round(time.monotonic() - self._started, 4)
        if exc_type is None:
            self.logger.info(
                f"Stats step: {self.operation} - DONE",
                operation=self.operation,
                elapsed_seconds=elapsed,
                **self.context,
            )
            return False

        log_stats_error(
            exc_val,
            {"operation": self.operation, "elapsed_seconds": elapsed, **self.context},
            self.logger,
        )
        return False
