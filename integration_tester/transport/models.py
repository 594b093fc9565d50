"""
Transport layer models for integration requests.

This module defines the request builder integrations use to describe an
outbound HTTP call, the response they receive back, and transport errors.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit

from ..errors import IntegrationTesterError

# Body encodings understood by Request.type()
JSON = "json"
FORM = "form"


class TransportError(IntegrationTesterError):
    """The HTTP call could not be completed."""


class RequestTimeoutError(TransportError):
    """The HTTP call did not finish within the request timeout."""


class Request:
    """
    Chainable description of an outbound HTTP request.

    Example:
        request = (
            Request("POST", "https://api.example.com/v1/track")
            .set("Authorization", "Bearer secret")
            .query({"verbose": 1})
            .send({"event": "Signed Up"})
        )
        request.path  # "/v1/track?verbose=1"
    """

    def __init__(self, method: str, url: str, timeout_ms: int = 30000):
        self.method = method.upper()
        self.url = url
        self.timeout_ms = timeout_ms
        self.headers: dict[str, str] = {}
        self.params: list[tuple[str, str]] = []
        self.encoding = JSON
        self.data: Any = None

    def set(self, name: str | Mapping[str, str], value: str | None = None) -> Request:
        """Set one header, or several from a mapping."""
        if isinstance(name, Mapping):
            for key, val in name.items():
                self.set(key, val)
            return self
        self.headers[name] = str(value)
        return self

    def header(self, name: str) -> str | None:
        """Read a header case-insensitively."""
        return _lookup(self.headers, name)

    def query(self, params: Mapping[str, Any] | str) -> Request:
        """Append query parameters from a mapping or a raw query string."""
        if isinstance(params, str):
            self.params.extend(parse_qsl(params.lstrip("?"), keep_blank_values=True))
        else:
            for key, value in params.items():
                self.params.append((key, _text(value)))
        return self

    def type(self, encoding: str) -> Request:
        """Select the body encoding: ``"json"`` or ``"form"``."""
        if encoding not in (JSON, FORM):
            raise ValueError(f"Unsupported body encoding: {encoding!r}")
        self.encoding = encoding
        return self

    def send(self, data: Any) -> Request:
        """Set the body; mappings are merged into an existing mapping body."""
        if isinstance(data, Mapping) and isinstance(self.data, dict):
            self.data.update(data)
        elif isinstance(data, Mapping):
            self.data = dict(data)
        else:
            self.data = data
        return self

    @property
    def full_url(self) -> str:
        if not self.params:
            return self.url
        separator = "&" if urlsplit(self.url).query else "?"
        return f"{self.url}{separator}{urlencode(self.params)}"

    @property
    def path(self) -> str:
        """URL path followed by the query string, if any."""
        parts = urlsplit(self.full_url)
        path = parts.path or "/"
        return f"{path}?{parts.query}" if parts.query else path

    async def end(self, session: Any = None) -> Response:
        """Perform the request. See ``transport.http.perform``."""
        from .http import perform

        return await perform(self, session=session)

    def __repr__(self) -> str:
        return f"Request({self.method} {self.full_url})"


@dataclass
class Response:
    """Represents the result of an HTTP call."""
    status: int
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        return _lookup(self.headers, name)

    @classmethod
    def from_text(cls, status: int, text: str, headers: Mapping[str, str] | None = None) -> Response:
        """Build a response, parsing ``text`` as JSON when possible."""
        try:
            body = json.loads(text) if text else None
        except json.JSONDecodeError:
            body = None
        return cls(status=status, text=text, headers=dict(headers or {}), body=body)

    @classmethod
    def from_json(cls, status: int, body: Any, headers: Mapping[str, str] | None = None) -> Response:
        """Build a response from a JSON-serializable body."""
        merged = {"Content-Type": "application/json"}
        merged.update(headers or {})
        return cls(status=status, text=json.dumps(body), headers=merged, body=body)


def _lookup(headers: Mapping[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
