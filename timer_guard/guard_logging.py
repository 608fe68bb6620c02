"""Logging setup for the ``timer_guard`` logger namespace.

Console records go to stderr. ``check --log-file`` adds a rotating file
that holds either readable lines or one JSON object per record, which is
where the engine's per-rule timings end up.
"""

import json
import logging
import logging.config
from datetime import UTC, datetime
from pathlib import Path

LOGGER_NAME = "timer_guard"

# Attributes the rule engine attaches through ``extra=``
ENGINE_FIELDS = ("rule_id", "file_path", "duration_ms", "finding_count")

FILE_FORMATS = {
    "text": {
        "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%dT%H:%M:%S",
    },
    "json": {"()": "timer_guard.guard_logging.JSONFormatter"},
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including engine extras when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in ENGINE_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _console_level(level: str, quiet: bool, verbose: bool) -> str:
    if quiet:
        return "ERROR"
    if verbose:
        return "DEBUG"
    return level


def setup_logging(
    level: str = "WARNING",
    quiet: bool = False,
    verbose: bool = False,
    log_file: Path | None = None,
    log_format: str = "text",
    rotation_count: int = 3,
    max_bytes: int = 10 * 1024 * 1024,
) -> logging.Logger:
    """Configure the package logger and return it.

    The console handler honours quiet/verbose; the optional file handler
    always records DEBUG. The logger does not propagate, so a host
    application's root handlers never see duplicate records.
    """
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": _console_level(level, quiet, verbose),
            "stream": "ext://sys.stderr",
        }
    }
    formatters: dict = {"console": {"format": "%(levelname)s | %(message)s"}}

    if log_file:
        formatters["file"] = FILE_FORMATS[log_format]
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "level": "DEBUG",
            "filename": str(log_file),
            "maxBytes": max_bytes,
            "backupCount": rotation_count,
            "encoding": "utf-8",
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "loggers": {
                LOGGER_NAME: {
                    "handlers": list(handlers),
                    "level": "DEBUG",
                    "propagate": False,
                }
            },
        }
    )
    return logging.getLogger(LOGGER_NAME)
