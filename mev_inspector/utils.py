"""
Common helpers for formatting chain values and durations.
"""

import json
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union

from .constants import WEI_PER_ETHER


# Timestamp utilities
def timestamp_to_iso(timestamp: float) -> str:
    """Convert Unix timestamp to ISO 8601 string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) or Go-style strings such as "500ms",
    "12s", "2m" or "1h".

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit]


# Chain value formatting
def wei_to_ether(wei: Optional[int], places: int = 6) -> str:
    """Format a wei amount as ether with a fixed number of decimals."""
    if wei is None:
        return "0"
    ether = Decimal(wei) / Decimal(WEI_PER_ETHER)
    return f"{ether:.{places}f}"


def short_hex(value: str, length: int = 10) -> str:
    """Shorten an address or hash for display (0x + first chars)."""
    return value[:length]


# JSON utilities
def safe_json_dump(data: Any, **kwargs) -> str:
    """Serialize data to JSON, stringifying values json can't handle."""
    defaults = {"ensure_ascii": False, "default": _json_default_handler}
    defaults.update(kwargs)
    return json.dumps(data, **defaults)


def _json_default_handler(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, bytes):
        return "0x" + obj.hex()
    else:
        return str(obj)
