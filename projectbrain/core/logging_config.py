"""
Logging setup for the ProjectBrain server.

Console logging always, plus an optional rotating file under
``LOG_FILE_DIR``. ``LOG_FORMAT=json`` emits one JSON object per line for log
shippers; ``extra=`` fields given to a log call are carried into it.
"""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from projectbrain.server.core.config import settings

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_NAME = "projectbrain.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Levels per logger; third-party libraries are kept quiet
MODULE_LOG_LEVELS = {
    "projectbrain": "INFO",
    "projectbrain.services": "DEBUG",
    "projectbrain.agent_core": "DEBUG",
    "projectbrain.server.api": "DEBUG",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "openai": "WARNING",
    "stripe": "WARNING",
    "firebase_admin": "WARNING",
    "asyncio": "WARNING",
    "uvicorn.access": "INFO",
}

# Attributes every LogRecord has; anything else came from ``extra=``
_RECORD_FIELDS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_FIELDS:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    if fmt == "simple":
        return logging.Formatter(SIMPLE_FORMAT)
    return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file_dir: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Arguments override the ``PROJECTBRAIN_LOG_LEVEL``, ``LOG_FORMAT`` and
    ``LOG_FILE_DIR`` settings. A file handler is attached when
    ``ENABLE_FILE_LOGGING`` is set or ``log_file_dir`` is given.
    """
    level = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format
    formatter = build_formatter(fmt)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_dir = log_file_dir or (settings.log_file_dir if settings.log_file_enabled else None)
    if file_dir:
        Path(file_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(file_dir) / LOG_FILE_NAME, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file={file_dir or 'off'}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
