"""
Log handler setup for the relay process.

One console handler (plus an optional file handler under the log directory)
is installed on the root logger; each engine component gets its own level.

Formats:
- simple: level, logger and message
- detailed: adds timestamp and call site
- json: one object per line, for log shippers

Third-party chatter (SQLAlchemy, httpx, asyncio) is held at WARNING.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional


def _get_logging_config():
    """Read level, format and file options from :mod:`action_relay.core.config`.

    The settings import is deferred so that importing this module never
    triggers a settings validation error on its own.
    """
    try:
        from action_relay.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": settings.log_dir,
            "enable_file_logging": settings.log_to_file,
        }
    except Exception:
        # Settings failed validation; read the raw variables instead
        return {
            "log_level": os.getenv("ACTION_RELAY_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("ACTION_RELAY_LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("ACTION_RELAY_LOG_DIR", "logs"),
            "enable_file_logging": os.getenv("ACTION_RELAY_LOG_TO_FILE", "false").lower() in ("true", "1", "yes"),
        }


_config = _get_logging_config()
LOG_LEVEL = _config["log_level"]
LOG_FORMAT = _config["log_format"]
LOG_FILE_DIR = _config["log_file_dir"]
ENABLE_FILE_LOGGING = _config["enable_file_logging"]


SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonLineFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Messages are escaped by ``json.dumps`` so quotes in tool names, URLs or
    target error bodies never break the line.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "module": record.filename,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


# Default level per engine component
MODULE_LOG_LEVELS = {
    "action_relay": "INFO",
    "action_relay.compiler": "INFO",
    "action_relay.protocol": "INFO",
    "action_relay.executor": "INFO",
    "action_relay.audit": "INFO",
    "action_relay.server": "INFO",
    # Third-party libraries (reduce noise)
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonLineFormatter()
    if fmt == "simple":
        return logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Install handlers on the root logger and apply component levels.

    Args:
        log_level: Console level; falls back to ``ACTION_RELAY_LOG_LEVEL``
        log_format: ``simple``, ``detailed`` or ``json``
        enable_file: Allow the file handler (it also needs ``ACTION_RELAY_LOG_TO_FILE``)
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    formatter = _build_formatter(fmt)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # handlers do the filtering

    # Repeated calls (tests, uvicorn reload) must not stack handlers
    for existing in list(root.handlers):
        root.removeHandler(existing)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    file_logging = enable_file and ENABLE_FILE_LOGGING
    if file_logging:
        log_dir = Path(LOG_FILE_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        to_file = logging.FileHandler(log_dir / "action_relay.log")
        to_file.setLevel(logging.DEBUG)  # file keeps the full trace
        to_file.setFormatter(formatter)
        root.addHandler(to_file)

    # Project loggers follow the requested level when it is more verbose than their default
    requested = logging.getLevelName(level)
    for name, default_level in MODULE_LOG_LEVELS.items():
        if name.startswith("action_relay") and requested < logging.getLevelName(default_level):
            logging.getLogger(name).setLevel(level)
        else:
            logging.getLogger(name).setLevel(default_level)

    root.info("Logging configured: level=%s, format=%s, file_logging=%s", level, fmt, file_logging)


def get_logger(name: str) -> logging.Logger:
    """Return the stdlib logger for ``name`` (normally ``__name__``)."""
    return logging.getLogger(name)
