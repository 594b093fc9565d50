"""
Error models for integration assertions.

This module defines the exceptions raised by immediate checks and
returned by deferred checks, including detailed failure information
for value-level diffs.
"""

from __future__ import annotations

import difflib
import json
from typing import Any

from ..errors import IntegrationTesterError


class AssertionFailure(IntegrationTesterError, AssertionError):
    """
    An expectation did not hold.

    Attributes:
        message: Human-readable description, embedding expected and actual
        expected: What was expected
        actual: What was actually found
        details: Additional context for debugging
        show_diff: Whether `str()` should include a value-level diff
    """

    def __init__(
        self,
        message: str,
        expected: Any = None,
        actual: Any = None,
        details: dict[str, Any] | None = None,
        show_diff: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.expected = expected
        self.actual = actual
        self.details = details or {}
        self.show_diff = show_diff

    def diff(self) -> str:
        """Render a unified diff between expected and actual."""
        expected = _pretty(self.expected).splitlines()
        actual = _pretty(self.actual).splitlines()
        return "\n".join(
            difflib.unified_diff(expected, actual, "expected", "actual", lineterm="")
        )

    def __str__(self) -> str:
        lines = [self.message]

        for key, value in self.details.items():
            lines.append(f"   {key}: {format_value(value)}")

        if self.show_diff:
            lines.append(self.diff())

        return "\n".join(lines)


def format_value(value: Any, max_length: int = 100) -> str:
    """Format a value for display, truncating if too long."""
    if value is None:
        return "null"

    if isinstance(value, str):
        formatted = repr(value)
    elif isinstance(value, (list, dict)):
        try:
            formatted = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            formatted = repr(value)
    else:
        formatted = repr(value)

    if len(formatted) > max_length:
        return formatted[: max_length - 3] + "..."

    return formatted


def _pretty(value: Any) -> str:
    try:
        return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False, default=repr)
    except (TypeError, ValueError):
        return repr(value)
