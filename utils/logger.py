"""
Centralized logging configuration for SymptomSearch.

Structured JSON lines go to rotating files under ``LOG_DIR``:
- app.log   INFO and above
- error.log ERROR and above
- debug.log everything (only when LOG_LEVEL=DEBUG)

Console output is off by default and limited to errors (LOG_TO_CONSOLE=true).
Set LOG_TO_FILES=false to keep the process from touching the filesystem.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Structured context passed as extra={"extra_fields": {...}}
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class LoggerConfig:
    LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_TO_CONSOLE = os.getenv("LOG_TO_CONSOLE", "false").lower() == "true"
    LOG_TO_FILES = os.getenv("LOG_TO_FILES", "true").lower() == "true"
    MAX_BYTES = 10 * 1024 * 1024
    BACKUP_COUNT = 5

    _initialized = False

    @classmethod
    def _file_handler(cls, filename: str, level: int, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            cls.LOG_DIR / filename,
            maxBytes=cls.MAX_BYTES,
            backupCount=cls.BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    @classmethod
    def setup_logging(cls) -> None:
        """Configure the root logger once per process."""
        if cls._initialized:
            return

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))
        root_logger.handlers.clear()

        json_formatter = JsonFormatter()

        if cls.LOG_TO_FILES:
            cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
            root_logger.addHandler(cls._file_handler("app.log", logging.INFO, json_formatter))
            root_logger.addHandler(cls._file_handler("error.log", logging.ERROR, json_formatter))
            if cls.LOG_LEVEL == "DEBUG":
                root_logger.addHandler(cls._file_handler("debug.log", logging.DEBUG, json_formatter))

        if cls.LOG_TO_CONSOLE:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.ERROR)
            console_handler.setFormatter(
                logging.Formatter(
                    fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            root_logger.addHandler(console_handler)

        # httpx logs every request line at INFO, including query strings with API keys
        logging.getLogger("httpx").setLevel(logging.WARNING)

        cls._initialized = True

        logging.getLogger(__name__).info(
            "Logging system initialized",
            extra={
                "extra_fields": {
                    "log_level": cls.LOG_LEVEL,
                    "log_dir": str(cls.LOG_DIR),
                    "file_logging": cls.LOG_TO_FILES,
                    "console_logging": cls.LOG_TO_CONSOLE,
                }
            },
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._initialized:
            cls.setup_logging()
        return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Example:
        >>> from utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Search finished", extra={"extra_fields": {"result_count": 7}})
    """
    return LoggerConfig.get_logger(name)
