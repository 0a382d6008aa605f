"""
Structured logging configuration for the teamgate backend.

Provides JSON-formatted logging with file rotation for production environments
and human-readable console logging for development.

Loggers:
- api: HTTP requests, responses, redirects
- auth: Identity exchange, domain policy, session issuance
- services: Team/user provisioning, avatar handling, admin operations
- db: Database operations and migrations
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Dict, Optional
import json
from datetime import datetime


# Attributes present on every LogRecord; anything else came from extra={...}
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs one JSON object per log record.

    Each record includes timestamp, level, logger, message, module, function
    and line, plus any fields passed through ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output in development.

    Example: [2026-10-19 10:30:45] INFO - auth - Google sign-in completed
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _get_log_level() -> int:
    """Log level from TEAMGATE_LOG_LEVEL (defaults to INFO)."""
    level_str = os.environ.get("TEAMGATE_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def _get_log_dir() -> Path:
    """Log directory from TEAMGATE_LOG_DIR (defaults to ./logs)."""
    log_dir = Path(os.environ.get("TEAMGATE_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _is_production() -> bool:
    """True when TEAMGATE_ENV is "production"."""
    return os.environ.get("TEAMGATE_ENV", "development").lower() == "production"


def configure_logging() -> Dict[str, logging.Logger]:
    """
    Configure structured logging for the backend.

    Behavior:
    - Production (TEAMGATE_ENV=production):
      * JSON-formatted logs to files with rotation
      * Separate files per logger: api.log, auth.log, services.log, db.log
      * File rotation: 10MB max size, 5 backup files

    - Development (default):
      * Human-readable console output
      * No file logging

    Returns:
        Dictionary mapping logger names to configured Logger instances
    """
    log_level = _get_log_level()
    is_prod = _is_production()
    log_dir = _get_log_dir() if is_prod else None

    logger_names = ["api", "auth", "services", "db"]
    loggers = {}

    for logger_name in logger_names:
        logger = logging.getLogger(f"teamgate.{logger_name}")
        logger.setLevel(log_level)
        logger.propagate = False
        logger.handlers.clear()

        if is_prod:
            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / f"{logger_name}.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)
        else:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(ConsoleFormatter())
            logger.addHandler(console_handler)

        loggers[logger_name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by name.

    Args:
        name: Logger name (api, auth, services, db)

    Raises:
        ValueError: If logger name is not recognized

    Example:
        >>> logger = get_logger("auth")
        >>> logger.info("Sign-in started", extra={"event": "auth.signin.started"})
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. "
            f"Valid names: {', '.join(_loggers.keys())}"
        )

    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """Initialize logging configuration (called on application startup)."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
