"""
integration-tester - Fluent assertions for analytics integrations

This package provides components for testing integrations: adapters that
turn a canonical analytics message into a third-party HTTP request.

Subpackages:
    - messages: Canonical message variants and coercion
    - transport: Request builder, responses, HTTP sender, request capture
    - integration: Base class integrations implement
    - assertions: The fluent Assertion builder and value predicates
    - fixtures: Fixture loading, validation and JSON normalization

Usage:
    from integration_tester import Assertion

    async def test_track_sends_event(integration):
        await (
            Assertion(integration, dirname=Path(__file__).parent)
            .set({"apiKey": "secret"})
            .track({"event": "Signed Up", "userId": "u1"})
            .pathname("/v1/track")
            .sends({"event": "Signed Up", "user_id": "u1"})
            .expects(200)
            .end()
        )
"""

__version__ = "0.1.0"

# Re-export errors for convenience
from .errors import ConfigurationError, IntegrationTesterError, UnknownAssertionError

# Re-export messages for convenience
from .messages import (
    CHANNELS,
    MESSAGE_TYPES,
    Alias,
    Channel,
    Group,
    Identify,
    Message,
    MessageType,
    Page,
    Screen,
    Track,
    UnknownMessageTypeError,
    to_message,
)

# Re-export transport for convenience
from .transport import (
    Request,
    RequestInterceptor,
    RequestTimeoutError,
    Response,
    TransportError,
)

# Re-export integration for convenience
from .integration import Integration, InvalidMessageError, Requirement

# Re-export fixtures for convenience
from .fixtures import Fixture, FixtureError, load_fixture, load_settings

# Re-export assertions for convenience
from .assertions import Assertion, AssertionFailure

__all__ = [
    # Package info
    "__version__",
    # Errors
    "IntegrationTesterError",
    "ConfigurationError",
    "UnknownAssertionError",
    # Messages
    "CHANNELS",
    "MESSAGE_TYPES",
    "Channel",
    "MessageType",
    "Message",
    "Identify",
    "Track",
    "Page",
    "Screen",
    "Group",
    "Alias",
    "UnknownMessageTypeError",
    "to_message",
    # Transport
    "Request",
    "Response",
    "RequestInterceptor",
    "TransportError",
    "RequestTimeoutError",
    # Integration
    "Integration",
    "Requirement",
    "InvalidMessageError",
    # Fixtures
    "Fixture",
    "FixtureError",
    "load_fixture",
    "load_settings",
    # Assertions
    "Assertion",
    "AssertionFailure",
]
