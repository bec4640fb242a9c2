"""
Structured Logging Module

Log lines for registry changes, imports and report runs. Library modules
log through ``logging.getLogger(__name__)`` below the ``flexreg`` logger;
the API routes attach action/resource context with ``log_action``.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


CONTEXT_ATTRS = ("action", "resource", "resource_id", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context keys only when set"""

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value is not None:
                entry[attr] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "flexreg",
                  log_format: str = "json", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a single handler to ``logger_name``.

    ``log_format`` is "json" or "text"; output goes to ``log_file`` when
    given, stderr otherwise. Calling it again replaces the handler.
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False
    return logger


def get_logger(name: str = "flexreg") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               resource_id: Optional[str] = None, extra: Optional[dict] = None):
    """Log ``message`` tagged with what was done to which entity, field, record or dataset"""
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    record = logger.makeRecord(logger.name, levelno, __name__, 0, message, (), None)
    context = {"action": action, "resource": resource, "resource_id": resource_id, "extra": extra}
    for attr, value in context.items():
        if value:
            setattr(record, attr, value)
    logger.handle(record)
