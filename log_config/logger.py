"""Centralized logging configuration using loguru."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Remove default handler
logger.remove()

# Add console handler with INFO level
_console_handler_id = logger.add(
    sys.stderr,
    level="INFO",
    format=CONSOLE_FORMAT,
    colorize=True,
)
_file_handler_ids: List[int] = []


class InterceptHandler(logging.Handler):
    """Route standard-library ``logging`` records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """Reconfigure sinks for a running node.

    Args:
        level: Console log level
        log_dir: Directory for rotating log files, or None to log to stderr only
    """
    global _console_handler_id

    logger.remove(_console_handler_id)
    for handler_id in _file_handler_ids:
        logger.remove(handler_id)
    _file_handler_ids.clear()
    _console_handler_id = logger.add(
        sys.stderr,
        level=level.upper(),
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        _file_handler_ids.append(logger.add(
            log_dir / "vision_{time}.log",
            rotation="20 MB",
            retention="7 days",
            level="DEBUG",
            format=FILE_FORMAT,
            enqueue=True,  # Thread-safe logging
        ))

        # Add error-specific log file
        _file_handler_ids.append(logger.add(
            log_dir / "errors_{time}.log",
            rotation="5 MB",
            retention="30 days",
            level="ERROR",
            format=FILE_FORMAT,
            enqueue=True,
        ))

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def get_logger(name: Optional[str] = None):
    """Get a logger instance with the given name.

    Args:
        name: Module name for the logger (usually __name__)

    Returns:
        Configured logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


def log_performance(operation: str, duration_ms: float, threshold_ms: float = 50.0) -> None:
    """Log timing with a warning when an operation exceeds its budget.

    Args:
        operation: Description of the operation
        duration_ms: Duration in milliseconds
        threshold_ms: Threshold for warning (default: 50ms, about one frame at 20 FPS)
    """
    if duration_ms > threshold_ms:
        logger.warning(f"Slow operation: {operation} took {duration_ms:.2f}ms (threshold: {threshold_ms}ms)")
    else:
        logger.trace(f"Performance: {operation} took {duration_ms:.2f}ms")


# Export configured logger
__all__ = ["logger", "get_logger", "configure_logging", "log_performance", "InterceptHandler"]
