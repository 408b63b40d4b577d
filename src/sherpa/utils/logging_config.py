"""
Structured logging configuration for sherpa.

Provides:
- Structured JSON format for log files
- Context tracking for query flows (query id, session id)
- Clean console output for development
"""

import logging
import json
import sys
from typing import Dict, Any, Optional
from datetime import datetime
from pathlib import Path


# Third-party loggers that are too chatty below WARNING
NOISY_LOGGERS = ("openai", "httpx", "httpcore", "urllib3", "mcp")

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info',
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log files."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with context."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Add extra fields from record
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ContextFilter(logging.Filter):
    """Add query context to log records."""

    def __init__(self):
        super().__init__()
        self.context: Dict[str, Any] = {}

    def set_context(self, **kwargs):
        """Set context for subsequent log records."""
        self.context.update(kwargs)

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context to log record."""
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


_context_filter = ContextFilter()


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def set_context(**kwargs):
    """Set logging context for the current operation."""
    _context_filter.set_context(**kwargs)


def _quiet_third_party():
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_file_logging(log_file: Path, level: str = "INFO"):
    """Write structured JSON logs to ``log_file``."""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(JSONFormatter())
    file_handler.addFilter(_context_filter)

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper()))
    logger.addHandler(file_handler)

    _quiet_third_party()


def configure_development_logging(level: str = "DEBUG"):
    """Configure clean console logging for development."""
    console_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    # stderr keeps streamed answers on stdout clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.addFilter(_context_filter)

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper()))
    logger.addHandler(console_handler)

    _quiet_third_party()


def configure_quiet_logging():
    """Configure minimal logging: warnings and errors only."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(
        logging.Formatter('[%(levelname)s] %(message)s')
    )

    logger = logging.getLogger()
    logger.setLevel(logging.WARNING)
    logger.addHandler(handler)

    _quiet_third_party()


def configure_logging(level: str = "DEBUG", console_output: bool = True,
                      log_file: Optional[Path] = None):
    """Configure logging for general use with optional console output."""
    if console_output:
        configure_development_logging(level)
    else:
        configure_quiet_logging()
    if log_file is not None:
        configure_file_logging(log_file, level)


class LogContext:
    """Context manager for temporary logging context."""

    def __init__(self, **context):
        self.context = context
        self.previous_context = {}

    def __enter__(self):
        self.previous_context = _context_filter.context.copy()
        set_context(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _context_filter.context = self.previous_context
