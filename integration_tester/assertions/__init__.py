"""
Assertion Engine for Integrations

This package provides the fluent ``Assertion`` builder and the value
predicates it is built from.

Supported assertions:
    - sends / expects: request and response shape (body, text, regex,
      header, query string, status)
    - pathname / query / requests: request path, query subset, request count
    - requires / option / channels / name / timeout / retries / endpoint:
      integration metadata
    - valid / invalid / enabled / disabled / all / server / client / mobile:
      validation and enablement
    - fixture: mapper output against a declarative fixture

Usage:
    from integration_tester.assertions import Assertion

    async def test_track(integration):
        await (
            Assertion(integration)
            .set({"apiKey": "secret"})
            .track({"event": "Signed Up"})
            .sends({"event": "Signed Up"})
            .expects(200)
            .end()
        )
"""

# Models
from .models import AssertionFailure, format_value

# Engine
from .engine import Assertion, Check, Shape, classify

# Predicates
from .predicates import (
    equals,
    header,
    match,
    parse_duration,
    parse_query,
    query,
)

__all__ = [
    # Models
    "AssertionFailure",
    "format_value",
    # Engine
    "Assertion",
    "Check",
    "Shape",
    "classify",
    # Predicates
    "equals",
    "header",
    "match",
    "parse_duration",
    "parse_query",
    "query",
]
