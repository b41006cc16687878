"""
Opener Coach - Logging
One setup call at startup; every module logs under the "coach" namespace:

    logger = logging.getLogger("coach.db")
    logger = get_agent_logger("matcher")   # -> coach.agents.matcher

LOG_FORMAT=text gives one readable line per record, LOG_FORMAT=json gives one
JSON object per line. Session context (session_id, opener_id, ...) is passed
through `extra=` and only shows up in the JSON output.
"""

import json
import logging
import os
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone

from opener_coach import config

# Structured fields copied from `extra={...}` into JSON log lines
EXTRA_FIELDS = ("session_id", "opener_id", "phase", "reason",
                "outcome", "agent_name", "duration_ms")

NOISY_LOGGERS = ("asyncio", "uvicorn.access", "httpx")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, timestamped from the record itself."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update({key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)})

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {"type": exc_type.__name__, "message": str(exc_value)}

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _formatter(fmt: str) -> logging.Formatter:
    return JSONFormatter() if fmt == "json" else TextFormatter()


_configured = False


def setup_logging(level: str = None, fmt: str = None, log_file: str = None):
    """Install handlers on the root logger. Later calls are no-ops.

    Arguments override LOG_LEVEL / LOG_FORMAT / LOG_FILE from config.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = (level or config.LOG_LEVEL).upper()
    fmt = fmt or config.LOG_FORMAT
    log_file = log_file or config.LOG_FILE

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level, logging.INFO))
    formatter = _formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("coach").info(
        "Logging ready (%s, %s)%s", level, fmt, f" -> {log_file}" if log_file else "")


def get_agent_logger(agent_name: str) -> logging.Logger:
    return logging.getLogger(f"coach.agents.{agent_name}")


@contextmanager
def log_duration(logger: logging.Logger, message: str, **extra):
    """Log `message` at DEBUG with a duration_ms field once the block finishes."""
    start = time.perf_counter()
    try:
        yield
    finally:
        extra["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
        logger.debug("%s (%.2f ms)", message, extra["duration_ms"], extra=extra)
