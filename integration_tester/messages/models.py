"""
Canonical analytics messages.

This module contains the enums for message types and channels and the
message variants that integrations receive. A message wraps the caller's
mapping by reference in ``obj``; accessors read from it lazily.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any


class MessageType(str, Enum):
    """Supported message types."""
    IDENTIFY = "identify"
    SCREEN = "screen"
    GROUP = "group"
    ALIAS = "alias"
    TRACK = "track"
    PAGE = "page"


class Channel(str, Enum):
    """Client category a message originates from."""
    SERVER = "server"
    CLIENT = "client"
    MOBILE = "mobile"


MESSAGE_TYPES = tuple(t.value for t in MessageType)
CHANNELS = tuple(c.value for c in Channel)


class UnknownMessageTypeError(ValueError):
    """Raised when a message type names no known variant."""


class Message:
    """
    Base class for all message variants.

    Subclasses set ``action`` to one of ``MESSAGE_TYPES``.
    """

    action: str = ""

    def __init__(self, obj: dict[str, Any] | None = None):
        self.obj = obj if obj is not None else {}

    def type(self) -> str:
        return self.action

    def channel(self) -> str | None:
        return self.obj.get("channel")

    def field(self, path: str, default: Any = None) -> Any:
        """Read a dotted path such as ``"context.ip"`` from the message."""
        value: Any = self.obj
        for key in path.split("."):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def user_id(self) -> str | None:
        return self.obj.get("userId")

    def anonymous_id(self) -> str | None:
        return self.obj.get("anonymousId")

    def context(self) -> dict[str, Any]:
        return self.obj.get("context") or {}

    def timestamp(self) -> datetime | None:
        """Return the message timestamp, parsing ISO 8601 strings."""
        value = self.obj.get("timestamp")
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value

    def json(self) -> dict[str, Any]:
        data = dict(self.obj)
        data["type"] = self.type()
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.obj!r})"


class Identify(Message):
    action = MessageType.IDENTIFY.value

    def traits(self) -> dict[str, Any]:
        return self.obj.get("traits") or {}

    def email(self) -> str | None:
        return self.traits().get("email")


class Track(Message):
    action = MessageType.TRACK.value

    def event(self) -> str | None:
        return self.obj.get("event")

    def properties(self) -> dict[str, Any]:
        return self.obj.get("properties") or {}

    def revenue(self) -> float | None:
        revenue = self.properties().get("revenue")
        return float(revenue) if revenue is not None else None


class Page(Message):
    action = MessageType.PAGE.value

    def name(self) -> str | None:
        return self.obj.get("name")

    def category(self) -> str | None:
        return self.obj.get("category")

    def properties(self) -> dict[str, Any]:
        return self.obj.get("properties") or {}


class Screen(Page):
    action = MessageType.SCREEN.value


class Group(Message):
    action = MessageType.GROUP.value

    def group_id(self) -> str | None:
        return self.obj.get("groupId")

    def traits(self) -> dict[str, Any]:
        return self.obj.get("traits") or {}


class Alias(Message):
    action = MessageType.ALIAS.value

    def previous_id(self) -> str | None:
        return self.obj.get("previousId")


# Variant classes by capitalized type name
VARIANTS: dict[str, type[Message]] = {
    cls.__name__: cls for cls in (Identify, Screen, Group, Alias, Track, Page)
}


def variant_for(name: str) -> type[Message]:
    """Select the message class for a type name such as ``"track"``."""
    key = name[:1].upper() + name[1:]
    try:
        return VARIANTS[key]
    except KeyError:
        raise UnknownMessageTypeError(
            f"Unknown message type {name!r}. Valid types are: {', '.join(MESSAGE_TYPES)}"
        ) from None
