"""Logging configuration helpers."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Serialize log records into JSON for easier ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRIBUTES and key not in base:
                base[key] = value
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            base["stack_info"] = record.stack_info
        return json.dumps(base, ensure_ascii=False, default=str)


def configure_logging(log_dir: Path, *, level: str = "INFO") -> None:
    """Configure console output plus rotating text and JSON-lines files under ``log_dir``."""

    log_dir.mkdir(parents=True, exist_ok=True)

    text_log_path = log_dir / "aetherbot.log"
    json_log_path = log_dir / "aetherbot.jsonl"
    latest_log_path = log_dir / "latest.log"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                },
                "detailed": {
                    "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "level": level,
                },
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "formatter": "detailed",
                    "filename": str(text_log_path),
                    "maxBytes": 5 * 1024 * 1024,
                    "backupCount": 5,
                    "encoding": "utf-8",
                    "level": "DEBUG",
                },
                "latest": {
                    "class": "logging.FileHandler",
                    "formatter": "detailed",
                    "filename": str(latest_log_path),
                    "mode": "w",
                    "encoding": "utf-8",
                    "level": "DEBUG",
                },
                "json": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "formatter": "json",
                    "filename": str(json_log_path),
                    "maxBytes": 5 * 1024 * 1024,
                    "backupCount": 3,
                    "encoding": "utf-8",
                    "level": "INFO",
                },
            },
            "loggers": {
                # aiohttp's access log duplicates the webhook middleware
                "aiohttp.access": {"level": "WARNING"},
            },
            "root": {
                "handlers": ["console", "file", "latest", "json"],
                "level": "DEBUG",
            },
        }
    )

    logging.getLogger(__name__).debug(
        "Logging configured: text=%s latest=%s json=%s",
        text_log_path,
        latest_log_path,
        json_log_path,
    )
