"""Logging setup and the structured log sink.

Components never write to a global logger directly for operational events;
they receive a ``LogSink`` and report ``(level, message, category, metadata)``.
The sink forwards to per-category standard library loggers so that the usual
handlers, levels and formatters apply.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from .config import LoggingConfig

LOGGER_ROOT = "cafeteria_client"


class LogCategory(Enum):
    """Log categories."""
    GENERAL = "general"
    NETWORK = "network"
    AUTH = "auth"
    DATA = "data"
    AI = "ai"
    CACHE = "cache"
    PERFORMANCE = "performance"
    SECURITY = "security"


class StructuredFormatter(logging.Formatter):
    """JSON log formatter."""

    _STANDARD_FIELDS = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
        'filename', 'module', 'lineno', 'funcName', 'created',
        'msecs', 'relativeCreated', 'thread', 'threadName',
        'processName', 'process', 'getMessage', 'exc_info',
        'exc_text', 'stack_info', 'taskName'
    }

    def format(self, record):
        """Format a log record as a JSON document."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        for key, value in record.__dict__.items():
            if key in self._STANDARD_FIELDS or key.startswith('_'):
                continue
            try:
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Text formatter that appends the sink metadata as key=value pairs."""

    def formatMessage(self, record):
        text = super().formatMessage(record)
        metadata = getattr(record, "metadata", None)
        if metadata:
            pairs = " ".join(f"{key}={value}" for key, value in metadata.items())
            text = f"{text} | {pairs}"
        return text


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        config: logging configuration, defaults to ``LoggingConfig()``

    Returns:
        the configured package root logger
    """
    config = config or LoggingConfig()

    logger = logging.getLogger(LOGGER_ROOT)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    logger.handlers.clear()

    if config.format == "structured":
        formatter = StructuredFormatter()
    else:
        formatter = PlainFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.file_path:
        file_handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    # Third-party noise
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return logger


class LogSink:
    """Structured log sink accepting (level, message, category, metadata)."""

    def __init__(self, root: str = LOGGER_ROOT):
        self.root = root
        self._loggers: Dict[LogCategory, logging.Logger] = {}

    def get_logger(self, category: LogCategory) -> logging.Logger:
        logger = self._loggers.get(category)
        if logger is None:
            logger = logging.getLogger(f"{self.root}.{category.value}")
            self._loggers[category] = logger
        return logger

    def log(
        self,
        level: int,
        message: str,
        category: LogCategory = LogCategory.GENERAL,
        exc_info: Any = None,
        **metadata: Any
    ) -> None:
        """Emit one record; metadata goes into the record's ``extra``."""
        logger = self.get_logger(category)
        if not logger.isEnabledFor(level):
            return
        extra = {"category": category.value, "metadata": metadata}
        logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, category: LogCategory = LogCategory.GENERAL, **metadata: Any) -> None:
        self.log(logging.DEBUG, message, category, **metadata)

    def info(self, message: str, category: LogCategory = LogCategory.GENERAL, **metadata: Any) -> None:
        self.log(logging.INFO, message, category, **metadata)

    def warning(self, message: str, category: LogCategory = LogCategory.GENERAL,
                exc_info: Any = None, **metadata: Any) -> None:
        self.log(logging.WARNING, message, category, exc_info=exc_info, **metadata)

    def error(self, message: str, category: LogCategory = LogCategory.GENERAL,
              exc_info: Any = None, **metadata: Any) -> None:
        self.log(logging.ERROR, message, category, exc_info=exc_info, **metadata)

    def critical(self, message: str, category: LogCategory = LogCategory.GENERAL, **metadata: Any) -> None:
        self.log(logging.CRITICAL, message, category, **metadata)
