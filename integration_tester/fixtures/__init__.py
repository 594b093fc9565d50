"""
Fixtures for Integration Mappers

This package loads declarative input/output fixtures, validates their
shape, normalizes mapper output to plain JSON, and reads settings files.

Usage:
    from integration_tester.fixtures import load_fixture, json_round_trip

    fixture = load_fixture(Path(__file__).parent, "track-basic")
    actual = json_round_trip(integration.mapper[fixture.type](msg, settings))
    assert actual == fixture.output
"""

# Public API
from .encoding import format_datetime, json_round_trip
from .loader import (
    fixture_path,
    interpolate,
    list_fixtures,
    load_fixture,
    load_settings,
    read_document,
)

# Models
from .models import Fixture, FixtureError

# Validation
from .validation import FixtureValidator, ValidationError, ValidationResult

__all__ = [
    # Loader
    "fixture_path",
    "interpolate",
    "list_fixtures",
    "load_fixture",
    "load_settings",
    "read_document",
    # Encoding
    "format_datetime",
    "json_round_trip",
    # Models
    "Fixture",
    "FixtureError",
    # Validation
    "FixtureValidator",
    "ValidationError",
    "ValidationResult",
]
