"""
Structured logging configuration for the ICT Platform.

JSON lines in production, a coloured single-line format in development.
Approval transitions attach request/level fields through log_with_context().
"""

import os
import sys
import json
import logging
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if getattr(record, 'extra', None):
            log_entry.update(record.extra)

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, '')
        reset = self.RESET if color else ''

        timestamp = datetime.now().strftime('%H:%M:%S')
        location = f'{record.module}:{record.lineno}'

        base = f'{color}[{timestamp}] {record.levelname:8}{reset} {location:30} {record.getMessage()}'

        if getattr(record, 'extra', None):
            extras = ' | '.join(f'{k}={v}' for k, v in record.extra.items())
            base = f'{base} | {extras}'

        if record.exc_info:
            base = f'{base}\n{self.formatException(record.exc_info)}'

        return base


def setup_logging(
    level: str = 'INFO',
    json_format: bool = None,
    logger_name: str = 'ict_platform'
) -> logging.Logger:
    """Configure and return the application logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting. If None, auto-detects based on environment.
        logger_name: Name for the logger instance.

    Returns:
        Configured logger instance.
    """
    if json_format is None:
        json_format = os.environ.get('PRODUCTION', '').lower() == 'true' or \
                      'gunicorn' in os.environ.get('SERVER_SOFTWARE', '')

    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.setFormatter(JSONFormatter() if json_format else DevelopmentFormatter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = 'ict_platform') -> logging.Logger:
    """Get a logger instance (e.g. 'ict_platform.purchasing.approvals.engine')."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, /, **context):
    """Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        **context: Additional key-value pairs to include in log; any name
            is allowed, including level and message
    """
    if not logger.isEnabledFor(level):
        return
    record = logger.makeRecord(
        logger.name, level, '', 0, message, (), None
    )
    record.extra = context
    logger.handle(record)
