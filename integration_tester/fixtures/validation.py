"""
Shape validation for fixture files.

This module checks a raw parsed fixture against the expected layout and
collects every problem it finds, so one run reports all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..messages import MESSAGE_TYPES


@dataclass(frozen=True)
class ValidationError:
    """One problem in a fixture, located by a dotted path."""
    path: str
    message: str
    value: Any = None
    hint: str | None = None

    def __str__(self) -> str:
        text = f"{self.path}: {self.message}"
        if self.value is not None:
            text += f" (got {self.value!r})"
        if self.hint:
            text += f"; {self.hint}"
        return text


@dataclass
class ValidationResult:
    """Every problem found in one fixture."""
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, path: str, message: str, value: Any = None, hint: str | None = None) -> None:
        self.errors.append(ValidationError(path, message, value, hint))

    def __str__(self) -> str:
        if self.is_valid:
            return "fixture is valid"
        return "\n".join(f"  - {e}" for e in self.errors)


class FixtureValidator:
    """Validates a raw parsed fixture file."""

    REQUIRED_TOP_LEVEL = {"input", "output"}
    OPTIONAL_TOP_LEVEL = {"settings"}

    def __init__(self, data: Any):
        self.data = data
        self.result = ValidationResult()

    def validate(self) -> ValidationResult:
        """Run all validation checks and return result."""
        if not isinstance(self.data, dict):
            self.result.add_error(
                "$",
                "fixture must be an object",
                value=type(self.data).__name__,
                hint="use { \"input\": {...}, \"output\": {...} }"
            )
            return self.result

        self._validate_top_level()
        if not self.result.is_valid:
            return self.result

        self._validate_input()
        self._validate_output()
        self._validate_settings()

        return self.result

    def _validate_top_level(self) -> None:
        """Check required and unknown top-level keys."""
        keys = set(self.data.keys())
        missing = self.REQUIRED_TOP_LEVEL - keys
        unknown = keys - self.REQUIRED_TOP_LEVEL - self.OPTIONAL_TOP_LEVEL

        for key in sorted(missing):
            self.result.add_error(
                key,
                "is required",
                hint=f'add "{key}" to the fixture'
            )

        for key in sorted(unknown):
            self.result.add_error(
                key,
                "is not a fixture field",
                hint=f"expected one of {', '.join(sorted(self.REQUIRED_TOP_LEVEL | self.OPTIONAL_TOP_LEVEL))}"
            )

    def _validate_input(self) -> None:
        data = self.data["input"]
        if not isinstance(data, dict):
            self.result.add_error("input", "must be an object", value=data)
            return

        message_type = data.get("type")
        if message_type is None:
            self.result.add_error(
                "input.type",
                "is required",
                hint=f"use one of {', '.join(MESSAGE_TYPES)}"
            )
        elif message_type not in MESSAGE_TYPES:
            self.result.add_error(
                "input.type",
                "unknown message type",
                value=message_type,
                hint=f"use one of {', '.join(MESSAGE_TYPES)}"
            )

    def _validate_output(self) -> None:
        output = self.data["output"]
        if not isinstance(output, (dict, list)):
            self.result.add_error(
                "output",
                "must be an object or an array",
                value=output
            )

    def _validate_settings(self) -> None:
        settings = self.data.get("settings")
        if settings is not None and not isinstance(settings, dict):
            self.result.add_error(
                "settings",
                "must be an object",
                value=settings
            )
