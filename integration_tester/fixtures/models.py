"""
Typed structures for fixture files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError
from .validation import ValidationResult


@dataclass
class Fixture:
    """
    A declarative input/output pair for one mapping function.

    Attributes:
        name: Fixture name (file stem)
        input: Raw message mapping; ``input["type"]`` selects the mapper
        output: Expected mapper result after a JSON round trip
        settings: Settings merged into the active settings before mapping
        path: File the fixture was loaded from
    """
    name: str
    input: dict[str, Any]
    output: Any
    settings: dict[str, Any] = field(default_factory=dict)
    path: Path | None = None

    @property
    def type(self) -> str:
        return self.input["type"]

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any], path: Path | None = None) -> Fixture:
        return cls(
            name=name,
            input=data["input"],
            output=data["output"],
            settings=data.get("settings") or {},
            path=path,
        )


class FixtureError(ConfigurationError):
    """A fixture file is missing, unreadable or malformed."""

    def __init__(self, message: str, result: ValidationResult | None = None):
        self.result = result
        if result is not None and not result.is_valid:
            message = f"{message}\n{result}"
        super().__init__(message)
