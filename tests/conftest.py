"""Shared fixtures for integration_tester tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import pytest

from integration_tester import (
    Assertion,
    Integration,
    Request,
    Requirement,
    Response,
    TransportError,
)

TESTS_DIR = Path(__file__).parent


def _validate_key(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


class Acme(Integration):
    """A small integration that records requests instead of hitting the network."""

    name = "Acme"
    endpoint = "https://api.acme.test/v1"
    timeout = 5000
    retries = 2
    channels = ["server", "client"]
    requirements = [
        Requirement("settings.apiKey"),
        Requirement("message.userId", method="identify"),
    ]
    options = {
        "apiKey": {"type": "string", "required": True, "validate": _validate_key},
        "region": {"type": "select", "default": "us"},
    }

    def __init__(self, settings: dict[str, Any] | None = None):
        super().__init__(settings)
        self.mapper["track"] = self.map_track
        self.mapper["identify"] = self.map_identify
        self.respond: Callable[[Request], Response] = lambda request: Response.from_json(
            200, {"ok": True}, {"X-Request-Id": "req-1"}
        )

    def map_track(self, msg, settings):
        return {
            "event": msg.event(),
            "user_id": msg.user_id(),
            "properties": msg.properties(),
            "timestamp": msg.timestamp(),
            "api_key": settings.get("apiKey"),
        }

    def map_identify(self, msg, settings):
        return {"user_id": msg.user_id(), "traits": msg.traits()}

    async def reply(self, request: Request) -> Response:
        await asyncio.sleep(0)
        return self.respond(request)

    async def track(self, msg, settings):
        request = (
            self.post("/track")
            .set("Authorization", f"Bearer {settings.get('apiKey')}")
            .query({"verbose": 1})
            .send(self.mapper["track"](msg, settings))
        )
        return await self.reply(request)

    async def identify(self, msg, settings):
        request = self.post("/users").send(self.mapper["identify"](msg, settings))
        return await self.reply(request)

    async def page(self, msg, settings):
        # Looks the page up first, then records the view
        self.get(f"/pages?name={msg.name()}")
        request = self.post("/views").type("form").send({"name": msg.name()})
        return await self.reply(request)

    async def group(self, msg, settings):
        self.post("/groups").send({"group_id": msg.group_id()})
        await asyncio.sleep(0)
        raise TransportError("upstream refused the group call")

    async def alias(self, msg, settings):
        # Nothing to send for aliases
        await asyncio.sleep(0)
        return Response(status=204)


@pytest.fixture
def integration() -> Acme:
    return Acme()


@pytest.fixture
def assertion(integration: Acme) -> Assertion:
    return Assertion(integration, dirname=TESTS_DIR).set({"apiKey": "secret"})
