"""
Base errors shared across integration_tester subpackages.
"""

from __future__ import annotations

from typing import Any


class IntegrationTesterError(Exception):
    """Base class for every error raised by integration_tester."""


class ConfigurationError(IntegrationTesterError):
    """The assertion was set up incorrectly (missing message, mapper, fixture...)."""


class UnknownAssertionError(IntegrationTesterError):
    """`sends()` / `expects()` received arguments matching no known shape."""

    def __init__(self, args: tuple[Any, ...]):
        self.args_given = args
        super().__init__(f"unknown assertion {args!r}")
