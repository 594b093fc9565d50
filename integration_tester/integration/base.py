"""
Base class for integrations.

An integration forwards canonical messages to a third-party HTTP API. This
module defines the attributes and hooks every integration exposes, which
is exactly what ``Assertion`` inspects and drives.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, Callable, ClassVar

from ..errors import ConfigurationError
from ..messages import CHANNELS, Message
from ..transport import Request, Response
from .models import InvalidMessageError, Requirement

logger = logging.getLogger(__name__)

Mapper = Callable[[Message, dict[str, Any]], Any]


class Integration:
    """
    Base class for integrations.

    Subclasses describe themselves through class attributes, register
    mapping functions in ``mapper`` and implement one coroutine per
    supported message type.

    Example:
        class Acme(Integration):
            name = "Acme"
            endpoint = "https://api.acme.test/v1"
            requirements = [Requirement("settings.apiKey")]

            def __init__(self, settings=None):
                super().__init__(settings)
                self.mapper["track"] = self.map_track

            def map_track(self, msg, settings):
                return {"event": msg.event()}

            async def track(self, msg, settings):
                payload = self.mapper["track"](msg, settings)
                return await self.post("/track").send(payload).end()
    """

    name: ClassVar[str] = ""
    endpoint: ClassVar[str] = ""
    timeout: ClassVar[int] = 30000
    retries: ClassVar[int] = 0
    channels: ClassVar[Sequence[str]] = ("server",)
    requirements: ClassVar[Sequence[Requirement]] = ()
    options: ClassVar[Mapping[str, dict[str, Any]]] = MappingProxyType({})

    def __init__(self, settings: dict[str, Any] | None = None):
        self.settings = dict(settings or {})
        self.mapper: dict[str, Mapper] = {}

    def request(self, method: str, path: str = "") -> Request:
        """Build a request against ``endpoint``."""
        return Request(method, f"{self.endpoint}{path}", timeout_ms=self.timeout)

    def get(self, path: str = "") -> Request:
        return self.request("GET", path)

    def post(self, path: str = "") -> Request:
        return self.request("POST", path)

    def put(self, path: str = "") -> Request:
        return self.request("PUT", path)

    def delete(self, path: str = "") -> Request:
        return self.request("DELETE", path)

    def handles(self, message_type: str) -> bool:
        """True if the integration implements a handler for ``message_type``."""
        return callable(getattr(self, message_type, None))

    def enabled(self, msg: Message, settings: dict[str, Any] | None = None) -> bool:
        """Whether this integration should receive ``msg``."""
        channel = msg.channel()
        if channel is not None and channel not in CHANNELS:
            logger.warning(f"Message has unknown channel {channel!r}")
        return self.handles(msg.type()) and channel in self.channels

    def validate(self, msg: Message, settings: dict[str, Any]) -> InvalidMessageError | None:
        """Return an error for the first unmet requirement, or None."""
        for requirement in self.requirements:
            if requirement.method and requirement.method != msg.type():
                continue
            if _resolve(requirement.path, msg, settings) in (None, ""):
                return InvalidMessageError(requirement)
        return None

    async def send(self, msg: Message, settings: dict[str, Any]) -> Response:
        """Dispatch ``msg`` to the handler named after its type."""
        return await dispatch(self, msg, settings)


def dispatch(integration: Any, msg: Message, settings: dict[str, Any]) -> Awaitable[Any]:
    """
    Look up the handler ``integration`` implements for ``msg``'s type.

    The lookup happens immediately; the returned awaitable calls the
    handler, which may be a plain function or a coroutine.

    Raises:
        ConfigurationError: If the integration has no such handler
    """
    message_type = msg.type()
    handler = getattr(integration, message_type, None)
    if not callable(handler):
        raise ConfigurationError(f"integration.{message_type}() is missing")
    return _call(handler, msg, settings)


async def _call(handler: Callable[..., Any], msg: Message, settings: dict[str, Any]) -> Any:
    result = handler(msg, settings)
    if inspect.isawaitable(result):
        result = await result
    return result


def _resolve(path: str, msg: Message, settings: dict[str, Any]) -> Any:
    scope, _, rest = path.partition(".")
    if scope == "settings":
        return settings.get(rest)
    if scope == "message":
        return msg.field(rest)
    raise ConfigurationError(
        f"Requirement path {path!r} must start with 'settings.' or 'message.'"
    )
