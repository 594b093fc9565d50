"""
Canonical Analytics Messages

This package provides the typed message variants that integrations receive
and the coercion used to build them from plain mappings.

Usage:
    from integration_tester.messages import to_message, Track

    msg = to_message({"type": "track", "event": "Signed Up"})
    assert isinstance(msg, Track)
    assert msg.type() == "track"
"""

from .coercion import is_message, to_message
from .models import (
    CHANNELS,
    MESSAGE_TYPES,
    VARIANTS,
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
    variant_for,
)

__all__ = [
    # Coercion
    "is_message",
    "to_message",
    # Enums and tables
    "CHANNELS",
    "MESSAGE_TYPES",
    "VARIANTS",
    "Channel",
    "MessageType",
    # Variants
    "Message",
    "Identify",
    "Track",
    "Page",
    "Screen",
    "Group",
    "Alias",
    "variant_for",
    "UnknownMessageTypeError",
]
