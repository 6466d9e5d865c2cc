"""
Logging configuration for console or JSON-lines output.

Usage:
    from mev_inspector import logging_config
    logging_config.setup("info", "console")
"""

import logging
import sys
from typing import Union

from .utils import safe_json_dump, timestamp_to_iso

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including any `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": timestamp_to_iso(record.created),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return safe_json_dump(payload)


def resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return _LEVELS.get(level.lower(), logging.INFO)


def setup(level: Union[str, int] = "info", fmt: str = "console") -> None:
    """
    Configure root logging.

    - console: "HH:MM:SS | LEVEL | message" on stderr
    - json: one JSON object per line on stderr
    - Quiets HTTP client loggers used by web3 and the metrics server
    """
    resolved = resolve_level(level)

    root = logging.getLogger()
    root.setLevel(resolved)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)

    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
            )
        )
    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    logging.getLogger("mev_inspector").setLevel(resolved)
