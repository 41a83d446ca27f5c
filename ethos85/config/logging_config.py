"""
Logging configuration for Ethos85.
Console output with optional colour, plus optional plain-text and JSON-lines
log files for offline inspection of analysis runs.
"""

import logging
import sys
import json
import time
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional
from contextlib import contextmanager

ROOT_LOGGER = "ethos85"


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured logs for machine parsing.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds color to console output based on log level.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str = None, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_to_console: bool = True,
    structured: bool = False,
    colored: bool = True,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Configure package logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to also log to a file
        log_to_console: Whether to log to console (stderr, so JSON output on stdout stays clean)
        structured: Use JSON structured logging format
        colored: Use colored console output
        log_dir: Custom log directory (default: ./logs)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    simple_formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S"
    )
    json_formatter = StructuredFormatter()

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)

        if structured:
            console_handler.setFormatter(json_formatter)
        elif colored:
            console_handler.setFormatter(ColoredFormatter(
                fmt="%(asctime)s | %(levelname)-8s | %(message)s",
                datefmt="%H:%M:%S",
            ))
        else:
            console_handler.setFormatter(simple_formatter)

        logger.addHandler(console_handler)

    if log_to_file:
        if log_dir is None:
            log_dir = Path("logs")
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d')

        file_handler = logging.FileHandler(log_dir / f"ethos85_{stamp}.log", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

        if structured:
            json_handler = logging.FileHandler(log_dir / f"ethos85_{stamp}.jsonl", encoding="utf-8")
            json_handler.setLevel(logging.DEBUG)
            json_handler.setFormatter(json_formatter)
            logger.addHandler(json_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger instance under the ethos85 hierarchy.

    Args:
        name: Module name, e.g. __name__

    Returns:
        Logger instance
    """
    if name and name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(f"{ROOT_LOGGER}.{name.split('.')[-1]}")
    return logging.getLogger(name)


class LogContext:
    """
    Context class for adding structured data to log messages.
    """

    def __init__(self, logger: logging.Logger, **context):
        self.logger = logger
        self.context = context

    def _log(self, level: int, msg: str, *args, **kwargs):
        extra = kwargs.pop('extra', {})
        extra['extra_data'] = {**self.context, **extra.get('extra_data', {})}
        kwargs['extra'] = extra
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)


def log_with_context(logger: logging.Logger, **context) -> LogContext:
    """
    Create a logger with additional context data.

    Example:
        ctx_logger = log_with_context(logger, filename="pull.csv", rows=812)
        ctx_logger.info("Columns resolved")
    """
    return LogContext(logger, **context)


@contextmanager
def log_performance(logger: logging.Logger, operation: str, **context):
    """
    Context manager for logging the duration of an operation.

    Example:
        with log_performance(logger, "analyze_log", filename="pull.csv"):
            result = analyzer.analyze_text(text, "pull.csv")
    """
    start_time = time.perf_counter()
    ctx = log_with_context(logger, operation=operation, **context)

    try:
        ctx.debug(f"Starting {operation}")
        yield ctx
        duration = time.perf_counter() - start_time
        ctx.info(f"Completed {operation} in {duration:.3f}s")
    except Exception as e:
        duration = time.perf_counter() - start_time
        ctx.error(f"Failed {operation} after {duration:.3f}s: {e}")
        raise
