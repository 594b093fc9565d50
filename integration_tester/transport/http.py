"""
HTTP transport for integration requests.

This module performs a ``Request`` over HTTP with aiohttp and turns the
reply into a ``Response``. JSON bodies are sent as ``application/json``
unless the request asked for form encoding.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from .models import FORM, Request, RequestTimeoutError, Response, TransportError

logger = logging.getLogger(__name__)


def _body_kwargs(request: Request) -> dict[str, Any]:
    """Choose how aiohttp should encode the request body."""
    data = request.data
    if data is None:
        return {}
    if isinstance(data, (Mapping, list)):
        if request.encoding == FORM:
            return {"data": dict(data)}
        return {"json": data}
    return {"data": data}


async def perform(
    request: Request,
    session: aiohttp.ClientSession | None = None,
) -> Response:
    """
    Send a request and read the whole response.

    Args:
        request: The request to send
        session: Optional session to reuse; it is left open

    Returns:
        Response with status, text, headers and parsed JSON body

    Raises:
        RequestTimeoutError: If the call exceeds ``request.timeout_ms``
        TransportError: On any other aiohttp client error
    """
    timeout = aiohttp.ClientTimeout(total=request.timeout_ms / 1000)
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()

    logger.debug(f"{request.method} {request.full_url}")

    try:
        async with session.request(
            request.method,
            request.full_url,
            headers=request.headers,
            timeout=timeout,
            **_body_kwargs(request),
        ) as resp:
            text = await resp.text()
            logger.debug(f"{request.method} {request.full_url} -> HTTP {resp.status}")
            return Response.from_text(resp.status, text, dict(resp.headers))

    except asyncio.TimeoutError as e:
        raise RequestTimeoutError(
            f"Request timed out after {request.timeout_ms}ms: {request.method} {request.full_url}"
        ) from e
    except aiohttp.ClientError as e:
        raise TransportError(f"HTTP error: {e}") from e
    finally:
        if owns_session:
            await session.close()
