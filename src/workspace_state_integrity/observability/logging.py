"""Logging for the workspace state integrity engine.

Every logger of the package lives under the ``workspace_state_integrity``
namespace. The package only attaches a NullHandler; an embedding application
either routes the namespace through its own handlers or calls setup_logging
to get one JSON line per record.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

LOGGER_NAMESPACE = "workspace_state_integrity"
LOG_LEVEL_ENV = "LOG_LEVEL"

logging.getLogger(LOGGER_NAMESPACE).addHandler(logging.NullHandler())


def _component(logger_name: str) -> str:
    prefix = LOGGER_NAMESPACE + "."
    if logger_name.startswith(prefix):
        return logger_name[len(prefix):]
    return logger_name


class JsonFormatter(logging.Formatter):
    """Renders a record as one JSON line.

    The ``component`` field is the logger name relative to the package
    namespace, e.g. ``validation.validator``. Fields passed as
    ``extra={"extra_fields": {...}}`` are merged into the top level.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Attributes every LogRecord carries are not repeated as fields
        blank = logging.makeLogRecord({})
        self._reserved_attrs = set(vars(blank)) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "component": _component(record.name),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)
        for key, value in vars(record).items():
            if key not in self._reserved_attrs and key != "extra_fields":
                entry.setdefault(key, value)

        return json.dumps(entry, default=str)


def setup_logging(
    level: Optional[str] = None, stream=None, propagate: bool = False
) -> logging.Logger:
    """Sends the package's log records to a JSON stream handler.

    Only the package namespace logger is configured; the root logger and
    the host application's handlers are left alone. Calling it again
    replaces the handler installed by the previous call.

    Args:
        level: Level name. Defaults to the LOG_LEVEL env var, then INFO.
        stream: Output stream for the handler. Defaults to stdout.
        propagate: Also pass records on to the parent (root) handlers.

    Returns:
        The package namespace logger.
    """
    log_level = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(log_level)
    logger.propagate = propagate

    for h in logger.handlers[:]:
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Returns a logger inside the package namespace.

    Module names of the package (``__name__``) are used as they are; any
    other name becomes a child of the namespace.
    """
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def log_event(
    logger: logging.Logger, level: int, message: str, event: str, **fields: Any
) -> None:
    """Logs a message tagged with an event name and structured fields."""
    logger.log(level, message, extra={"extra_fields": {"event": event, **fields}})
