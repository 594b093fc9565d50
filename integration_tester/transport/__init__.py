"""
Transport Layer for Integration Requests

This package provides the request builder integrations use to describe
outbound calls, the aiohttp-backed sender, and the interceptor that
records requests for later assertions.

Usage:
    from integration_tester.transport import Request, RequestInterceptor

    request = Request("POST", "https://api.example.com/track").send({"event": "Signed Up"})
    response = await request.end()
"""

from .http import perform
from .interceptor import RequestInterceptor
from .models import (
    FORM,
    JSON,
    Request,
    RequestTimeoutError,
    Response,
    TransportError,
)

__all__ = [
    # Sending
    "perform",
    # Interception
    "RequestInterceptor",
    # Models
    "Request",
    "Response",
    "JSON",
    "FORM",
    # Errors
    "TransportError",
    "RequestTimeoutError",
]
