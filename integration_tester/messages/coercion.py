"""
Coerce test inputs into canonical messages.
"""

from __future__ import annotations

from typing import Any

from .models import Message, variant_for


def is_message(value: Any) -> bool:
    """True when ``value`` already behaves like a canonical message."""
    return callable(getattr(value, "type", None))


def to_message(value: Any = None) -> Message:
    """
    Turn a message or a plain mapping into a canonical message.

    Messages are returned unchanged. For mappings the variant is picked from
    ``action``, then ``type``, defaulting to ``"track"``; the mapping itself
    becomes the message's ``obj``.
    """
    if value is None:
        value = {}
    if is_message(value):
        return value

    name = value.get("action") or value.get("type") or "track"
    return variant_for(name)(value)
