"""
JSON normalization of mapper output.

Mapping functions may return datetimes, decimals or tuples. Fixture output
files only contain JSON, so results are pushed through a JSON round trip
before comparison.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if hasattr(value, "json") and callable(value.json):
        return value.json()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def format_datetime(value: datetime) -> str:
    """ISO 8601 with milliseconds; UTC is written as ``Z``."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    text = value.replace(tzinfo=None).isoformat(timespec="milliseconds")
    return f"{text}Z"


def json_round_trip(value: Any) -> Any:
    """Serialize ``value`` to JSON and parse it back."""
    return json.loads(json.dumps(value, default=_default))
