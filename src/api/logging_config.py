"""Process-wide logging setup for the API server and voice client"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from rich.logging import RichHandler

LOG_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with optional structured data"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def resolve_level(environment: str, level: Optional[str] = None) -> int:
    """Explicit level wins; otherwise INFO in production and DEBUG elsewhere"""
    if level:
        return LOG_LEVELS.get(level.upper(), logging.INFO)
    return logging.INFO if environment == "production" else logging.DEBUG


def setup_logging(environment: str = "development", level: Optional[str] = None) -> int:
    """
    Configure root logging once at process start

    Args:
        environment: "production" emits JSON lines, anything else uses Rich
        level: Optional level name overriding the environment default

    Returns:
        The numeric level that was applied
    """
    numeric_level = resolve_level(environment, level)

    if environment == "production":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    return numeric_level
