"""
Capture the requests an integration builds.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .models import Request

logger = logging.getLogger(__name__)


class RequestInterceptor:
    """
    Wraps an integration's request factory and records every request it makes.

    The wrapped factory's return value is handed back untouched, so the
    integration keeps building on the same object the interceptor recorded.

    Attributes:
        factory: The original request factory
        requests: Every request produced, in call order
        current: The most recent request, or None before the first call
    """

    def __init__(self, factory: Callable[..., Request]):
        self.factory = factory
        self.requests: list[Request] = []
        self.current: Request | None = None

    @classmethod
    def install(cls, integration: Any) -> RequestInterceptor:
        """Replace ``integration.request`` with an interceptor around it."""
        interceptor = cls(integration.request)
        integration.request = interceptor
        return interceptor

    def __call__(self, *args: Any, **kwargs: Any) -> Request:
        request = self.factory(*args, **kwargs)
        self.requests.append(request)
        self.current = request
        logger.debug(f"Captured request #{len(self.requests)}: {request!r}")
        return request
