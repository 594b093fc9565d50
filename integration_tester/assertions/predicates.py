"""
Value and shape predicates.

Every predicate compares an expected value with an actual one and returns
``None`` when the expectation holds or an ``AssertionFailure`` describing
the mismatch. Predicates never raise for a mismatch, so they can be queued
and replayed later.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Pattern
from urllib.parse import parse_qsl

from .models import AssertionFailure

# Bracketed segments of a nested query key, e.g. "[b]" and "[]" in "a[b][]"
_BRACKET = re.compile(r"\[([^\[\]]*)\]")

# Units accepted by parse_duration, in milliseconds
_SECOND = 1000
_MINUTE = _SECOND * 60
_HOUR = _MINUTE * 60
_DAY = _HOUR * 24
_WEEK = _DAY * 7
_YEAR = _DAY * 365.25

_UNITS: dict[str, float] = {
    "years": _YEAR, "year": _YEAR, "yrs": _YEAR, "yr": _YEAR, "y": _YEAR,
    "weeks": _WEEK, "week": _WEEK, "w": _WEEK,
    "days": _DAY, "day": _DAY, "d": _DAY,
    "hours": _HOUR, "hour": _HOUR, "hrs": _HOUR, "hr": _HOUR, "h": _HOUR,
    "minutes": _MINUTE, "minute": _MINUTE, "mins": _MINUTE, "min": _MINUTE, "m": _MINUTE,
    "seconds": _SECOND, "second": _SECOND, "secs": _SECOND, "sec": _SECOND, "s": _SECOND,
    "milliseconds": 1, "millisecond": 1, "msecs": 1, "msec": 1, "ms": 1,
}

_DURATION = re.compile(r"^\s*(-?(?:\d+)?\.?\d+)\s*([a-z]*)\s*$", re.IGNORECASE)


def equals(actual: Any, expected: Any) -> AssertionFailure | None:
    """Deep-compare two plain values."""
    if actual == expected:
        return None
    return AssertionFailure(
        f"expected {actual!r} to equal {expected!r}",
        expected=expected,
        actual=actual,
        show_diff=True,
    )


def match(actual: Any, pattern: Pattern[str] | str) -> AssertionFailure | None:
    """Check that the text form of ``actual`` contains a match for ``pattern``."""
    regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
    if actual is None:
        text = ""
    elif isinstance(actual, (dict, list)):
        text = json.dumps(actual, default=str)
    else:
        text = str(actual)
    if regex.search(text):
        return None
    return AssertionFailure(
        f'expected "{text}" to match {regex.pattern!r}',
        expected=regex.pattern,
        actual=text,
    )


def header(subject: Any, name: str, expected: Any) -> AssertionFailure | None:
    """
    Check a header on a request or response.

    Lookup is case-insensitive. A compiled pattern is matched against the
    header value; any other expected value is compared for equality.
    """
    actual = subject.header(name)
    if actual is None:
        return AssertionFailure(
            f'expected header "{name}" to be "{_plain(expected)}" but it is missing',
            expected=expected,
        )

    if isinstance(expected, re.Pattern):
        if expected.search(actual):
            return None
        return AssertionFailure(
            f'expected header "{name}" to match {expected.pattern!r} but it\'s "{actual}"',
            expected=expected.pattern,
            actual=actual,
        )

    if actual == expected:
        return None
    return AssertionFailure(
        f'expected header "{name}" to be "{expected}" but it\'s "{actual}"',
        expected=expected,
        actual=actual,
    )


def query(request: Any, expected: Mapping[str, Any] | str) -> AssertionFailure | None:
    """
    Check that the request's query string contains every expected pair.

    Extra keys in the request are allowed. A request without any query
    string fails with its own message.
    """
    if isinstance(expected, str):
        expected = parse_query(expected.lstrip("?"))

    path = request.path
    if "?" not in path or not path.split("?", 1)[1]:
        return AssertionFailure(
            "expected request to include query string but no query string was found",
            expected=dict(expected),
        )

    actual = parse_query(path.split("?", 1)[1])
    wanted = {key: _query_value(value) for key, value in expected.items()}
    subset = {key: actual[key] for key in wanted if key in actual}

    if subset == wanted:
        return None

    missing = sorted(key for key in wanted if key not in actual)
    return AssertionFailure(
        f"expected query {wanted!r} to be included in {actual!r}",
        expected=wanted,
        actual=subset,
        details={"missing": missing} if missing else None,
        show_diff=True,
    )


def parse_query(text: str) -> dict[str, Any]:
    """
    Parse a query string, flattening single-valued keys.

    Bracketed keys nest: ``a[b]=1`` becomes ``{"a": {"b": "1"}}`` and
    ``a[]=1&a[]=2`` becomes ``{"a": ["1", "2"]}``. Repeated plain keys
    collect into a list.
    """
    result: dict[str, Any] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        root, bracket, rest = key.partition("[")
        segments = _BRACKET.findall(bracket + rest)
        if not root or not bracket or "".join(f"[{s}]" for s in segments) != bracket + rest:
            _assign(result, key, value)
            continue
        _nest(result, [root, *segments], value)
    return result


def parse_duration(value: str | int | float) -> int:
    """
    Convert a human-readable duration into milliseconds.

    Examples:
        parse_duration("5s")       -> 5000
        parse_duration("1.5 hrs")  -> 5400000
        parse_duration("100")      -> 100
        parse_duration(250)        -> 250
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)

    found = _DURATION.match(value)
    if not found:
        raise ValueError(f"Invalid duration: {value!r}")

    amount, unit = found.groups()
    unit = unit.lower() or "ms"
    if unit not in _UNITS:
        raise ValueError(f"Unknown duration unit {unit!r} in {value!r}")

    return round(float(amount) * _UNITS[unit])


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return {str(k): _query_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_query_value(v) for v in value]
    return str(value)


def _assign(target: dict[str, Any], key: str, value: str) -> None:
    if key not in target:
        target[key] = value
    elif isinstance(target[key], list):
        target[key].append(value)
    else:
        target[key] = [target[key], value]


def _nest(target: dict[str, Any], segments: list[str], value: str) -> None:
    append = segments[-1] == ""
    if append:
        segments = segments[:-1]

    node = target
    for segment in segments[:-1]:
        child = node.get(segment)
        if isinstance(child, list):
            child = {str(i): v for i, v in enumerate(child)}
        elif not isinstance(child, dict):
            child = {}
        node[segment] = child
        node = child

    last = segments[-1]
    if append and not isinstance(node.get(last, []), list):
        node[last] = [node[last]]
    if append:
        node.setdefault(last, []).append(value)
    else:
        _assign(node, last, value)


def _plain(value: Any) -> str:
    if isinstance(value, re.Pattern):
        return value.pattern
    return str(value)
