"""
Fluent assertions for integrations.

This module provides the ``Assertion`` builder: it captures the requests an
integration builds, queues request and response expectations, sends a
message through the integration and replays the queued expectations
against what happened.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from ..errors import ConfigurationError, UnknownAssertionError
from ..fixtures import json_round_trip, load_fixture
from ..integration import dispatch
from ..messages import (
    CHANNELS,
    Alias,
    Channel,
    Group,
    Identify,
    Message,
    Page,
    Screen,
    Track,
    is_message,
    to_message,
)
from ..transport import Request, RequestInterceptor, Response
from . import predicates
from .models import AssertionFailure

logger = logging.getLogger(__name__)

# A deferred check receives the last captured request and the response
Check = Callable[[Optional[Request], Response], Optional[Exception]]


class Shape(str, Enum):
    """What a ``sends()`` / ``expects()`` call compares."""
    HEADER = "header"    # (name, value)
    BODY = "body"        # mapping
    PATTERN = "pattern"  # compiled regex
    QUERY = "query"      # "?a=b" (requests only)
    TEXT = "text"        # any other string
    STATUS = "status"    # integer (responses only)


def classify(args: tuple[Any, ...], response: bool = False) -> Shape:
    """
    Decide once, at registration time, what an argument list asserts.

    Raises:
        UnknownAssertionError: If the arguments match no shape
    """
    if len(args) == 2 and isinstance(args[0], str):
        return Shape.HEADER
    if len(args) != 1:
        raise UnknownAssertionError(args)

    value = args[0]
    if isinstance(value, Mapping):
        return Shape.BODY
    if isinstance(value, re.Pattern):
        return Shape.PATTERN
    if isinstance(value, str):
        if value.startswith("?") and not response:
            return Shape.QUERY
        return Shape.TEXT
    if response and isinstance(value, int) and not isinstance(value, bool):
        return Shape.STATUS
    raise UnknownAssertionError(args)


def _request_check(shape: Shape, args: tuple[Any, ...]) -> Check:
    value = args[0]

    def check(req: Request | None, res: Response) -> Exception | None:
        if req is None:
            return AssertionFailure("expected integration to make a request but none was captured")
        if shape is Shape.HEADER:
            return predicates.header(req, *args)
        if shape is Shape.PATTERN:
            return predicates.match(req.data, value)
        if shape is Shape.QUERY:
            return predicates.query(req, value)
        return predicates.equals(req.data, value)

    return check


def _response_check(shape: Shape, args: tuple[Any, ...]) -> Check:
    value = args[0]

    def check(req: Request | None, res: Response) -> Exception | None:
        if res is None:
            return AssertionFailure("expected integration to return a response but it returned None")
        if shape is Shape.HEADER:
            return predicates.header(res, *args)
        if shape is Shape.BODY:
            return predicates.equals(res.body, value)
        if shape is Shape.PATTERN:
            return predicates.match(res.text, value)
        if shape is Shape.STATUS:
            if res.status == value:
                return None
            return AssertionFailure(
                f'expected response status to be "{value}" but it\'s "{res.status}"',
                expected=value,
                actual=res.status,
            )
        return predicates.equals(res.text, value)

    return check


def _message_setter(variant: type[Message]) -> Callable[..., Assertion]:
    def setter(self: Assertion, msg: Any = None, settings: dict[str, Any] | None = None) -> Assertion:
        if not is_message(msg):
            msg = variant(msg if msg is not None else {})
        if settings is not None:
            self.set(settings)
        self.msg = msg
        logger.debug(f"Active message: {msg!r}")
        return self

    setter.__name__ = variant.action
    setter.__doc__ = f"Use a {variant.action} message built from ``msg``, optionally merging ``settings``."
    return setter


def _channel_check(channel: str) -> Callable[..., Assertion]:
    def check(self: Assertion, msg: Any = None) -> Assertion:
        msg = to_message(msg)
        msg.obj["channel"] = channel
        if self.integration.enabled(msg, self.settings):
            return self
        raise AssertionFailure(f'expected integration to be enabled on "{channel}"', expected=channel)

    check.__name__ = channel
    check.__doc__ = f"Assert the integration is enabled for ``msg`` on the {channel} channel."
    return check


def _attr(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True, default=str)
    except TypeError:
        # mixed int and str keys cannot be sorted
        return json.dumps(value, default=str)


def _report_scheduled(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Scheduled evaluation raised {type(exc).__name__}: {exc}")


class Assertion:
    """
    Fluent, deferred assertions against one integration.

    Immediate checks (``requires``, ``option``, ``enabled``, ...) raise as
    soon as they are called. Deferred checks (``sends``, ``expects``,
    ``pathname``, ``query``, ``requests``) are queued and run in order,
    against the last captured request and the response, once ``end()`` has
    sent the active message. Evaluation stops at the first failure.

    Example:
        await (
            Assertion(integration)
            .set({"apiKey": "secret"})
            .track({"event": "Signed Up", "userId": "u1"})
            .pathname("/v1/track")
            .sends({"event": "Signed Up", "user": "u1"})
            .expects(200)
            .end()
        )

    Attributes:
        integration: The integration under test
        dirname: Directory holding the ``fixtures/`` folder
        settings: Settings passed to the integration
        msg: The active message, set by ``track()`` / ``identify()`` etc.
        checks: Deferred checks, in evaluation order
        task: Evaluation scheduled by ``expects(..., callback)``

    A scheduled evaluation only runs once the caller yields to the event
    loop. Tests that register a callback must ``await assertion.wait()``
    (or ``await assertion.task``) before returning; ``end()`` and
    ``error()`` also wait for it first. An exception raised by the
    callback is logged and re-raised by ``wait()``.
    """

    def __init__(self, integration: Any, dirname: str | Path | None = None):
        if integration is None:
            raise ConfigurationError("expected integration")
        self.integration = integration
        self.dirname = Path(dirname) if dirname is not None else None
        self.interceptor = RequestInterceptor.install(integration)
        self.settings: dict[str, Any] = {}
        self.msg: Message | None = None
        self.checks: list[Check] = []
        self.task: asyncio.Task | None = None
        self._query: dict[str, Any] = {}
        self._query_registered = False

    @property
    def req(self) -> Request | None:
        """The most recent captured request."""
        return self.interceptor.current

    @property
    def captured(self) -> list[Request]:
        """Every captured request, in order."""
        return self.interceptor.requests

    # ─────────────────────────────────────────────────────────────────────
    # Configuration
    # ─────────────────────────────────────────────────────────────────────

    def set(self, key: str | Mapping[str, Any], value: Any = None) -> Assertion:
        """Set one setting, or several from a mapping."""
        if isinstance(key, Mapping):
            for k, v in key.items():
                self.set(k, v)
            return self
        self.settings[key] = value
        return self

    identify = _message_setter(Identify)
    screen = _message_setter(Screen)
    group = _message_setter(Group)
    alias = _message_setter(Alias)
    track = _message_setter(Track)
    page = _message_setter(Page)

    server = _channel_check(Channel.SERVER.value)
    client = _channel_check(Channel.CLIENT.value)
    mobile = _channel_check(Channel.MOBILE.value)

    # ─────────────────────────────────────────────────────────────────────
    # Immediate checks
    # ─────────────────────────────────────────────────────────────────────

    def requires(self, method: str | None, path: str | None = None) -> Assertion:
        """
        Assert the integration declares a requirement.

        ``requires("settings.apiKey")`` looks for a requirement without a
        method; ``requires("identify", "message.userId")`` for one scoped
        to identify calls.
        """
        if path is None:
            method, path = None, method

        requirements = getattr(self.integration, "requirements", None) or []
        if any(_attr(r, "method") == method and _attr(r, "path") == path for r in requirements):
            return self

        if method:
            raise AssertionFailure(f'expected integration to require "{path}" on "{method}"')
        raise AssertionFailure(f'expected integration to require "{path}"')

    def option(self, name: str, meta: Mapping[str, Any]) -> Assertion:
        """Assert the integration declares option ``name`` with ``meta`` (validator ignored)."""
        options = getattr(self.integration, "options", None) or {}
        if name not in options:
            raise AssertionFailure(f'expected integration to have option "{name}"')

        actual = {k: v for k, v in options[name].items() if k != "validate"}
        failure = predicates.equals(actual, dict(meta))
        if failure:
            raise failure
        return self

    def channels(self, expected: list[str]) -> Assertion:
        failure = predicates.equals(list(self.integration.channels), list(expected))
        if failure:
            raise failure
        return self

    def retries(self, n: int) -> Assertion:
        actual = self.integration.retries
        if n == actual:
            return self
        raise AssertionFailure(f'expected retries to be "{n}" but it\'s "{actual}"', expected=n, actual=actual)

    def name(self, name: str) -> Assertion:
        actual = self.integration.name
        if name == actual:
            return self
        raise AssertionFailure(f'expected name to be "{name}" but it\'s "{actual}"', expected=name, actual=actual)

    def timeout(self, ms: str | int) -> Assertion:
        """Assert the integration timeout; strings such as ``"5s"`` are accepted."""
        actual = self.integration.timeout
        if isinstance(ms, str):
            ms = predicates.parse_duration(ms)
        if ms == actual:
            return self
        raise AssertionFailure(f'expected timeout to be "{ms}" but it\'s "{actual}"', expected=ms, actual=actual)

    def endpoint(self, url: str) -> Assertion:
        actual = self.integration.endpoint
        if url == actual:
            return self
        raise AssertionFailure(f'expected endpoint to be "{url}" but it\'s "{actual}"', expected=url, actual=actual)

    def valid(self, msg: Any = None, settings: dict[str, Any] | None = None) -> Assertion:
        """Assert ``integration.validate()`` accepts the message; its error is raised as is."""
        msg = to_message(msg)
        settings = self.settings if settings is None else settings
        err = self.integration.validate(msg, settings)
        if err:
            raise err
        return self

    def invalid(self, msg: Any = None, settings: dict[str, Any] | None = None) -> Assertion:
        msg = to_message(msg)
        settings = self.settings if settings is None else settings
        err = self.integration.validate(msg, settings)
        if not err:
            raise AssertionFailure("expected .validate(msg, settings) to return an error.")
        return self

    def enabled(self, msg: Any = None, settings: dict[str, Any] | None = None) -> Assertion:
        settings = self.settings if settings is None else settings
        msg = to_message(msg)
        if self.integration.enabled(msg, settings):
            return self
        raise AssertionFailure(
            f"expected integration to be enabled with {_dump(msg.json())}, {_dump(settings)}"
        )

    def disabled(self, msg: Any = None, settings: dict[str, Any] | None = None) -> Assertion:
        settings = self.settings if settings is None else settings
        msg = to_message(msg)
        if not self.integration.enabled(msg, settings):
            return self
        raise AssertionFailure(
            f"expected integration to be disabled with {_dump(msg.json())}, {_dump(settings)}"
        )

    def all(self, msg: Any = None, settings: dict[str, Any] | None = None) -> Assertion:
        """Assert the message is enabled on every channel; names the ones that are not."""
        settings = self.settings if settings is None else settings
        msg = to_message(msg)

        disabled = []
        for channel in CHANNELS:
            msg.obj["channel"] = channel
            if not self.integration.enabled(msg, settings):
                disabled.append(channel)

        if disabled:
            raise AssertionFailure(
                "expected message to be enabled on all channels, "
                f'but it is disabled on "{", ".join(disabled)}"',
                actual=disabled,
            )
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Deferred checks
    # ─────────────────────────────────────────────────────────────────────

    def pathname(self, value: str) -> Assertion:
        """
        Assert the request path, without its query string.

        Example:
            Assertion(integration).track({"event": "e"}).pathname("/track").expects(200)
        """
        def check(req: Request | None, res: Response) -> Exception | None:
            if req is None:
                return AssertionFailure("expected integration to make a request but none was captured")
            pathname = req.path.split("?")[0]
            if pathname == value:
                return None
            return AssertionFailure(
                f'expected request pathname to be "{value}" but got "{pathname}"',
                expected=value,
                actual=pathname,
            )

        self.checks.append(check)
        return self

    def query(self, obj: Mapping[str, Any]) -> Assertion:
        """
        Assert the request query string includes ``obj``.

        Repeated calls accumulate keys into a single check.

        Example:
            Assertion(integration).track(msg).query({"one": 1}).query({"two": 2}).expects(200)
        """
        self._query.update(obj)

        if not self._query_registered:
            self._query_registered = True

            def check(req: Request | None, res: Response) -> Exception | None:
                if req is None:
                    return AssertionFailure("expected integration to make a request but none was captured")
                return predicates.query(req, self._query)

            self.checks.append(check)

        return self

    def sends(self, *args: Any) -> Assertion:
        """
        Assert what the integration sends.

        - ``sends("Header", "value")``: request header
        - ``sends({...})``: request body equals
        - ``sends(re.compile(...))``: request body matches
        - ``sends("?a=b")``: request query includes
        - ``sends("text")``: request body equals

        Raises:
            UnknownAssertionError: For any other arguments
        """
        self.checks.append(_request_check(classify(args), args))
        return self

    def expects(self, *args: Any) -> Assertion:
        """
        Assert what the integration receives back.

        Accepts the same shapes as ``sends()`` (checked against the
        response body or text) plus an integer status. When a callable is
        passed last, ``end(callback)`` is scheduled on the running loop.

        Raises:
            UnknownAssertionError: For unrecognized arguments
        """
        callback = None
        if len(args) > 1 and callable(args[-1]):
            *rest, callback = args
            args = tuple(rest)

        self.checks.append(_response_check(classify(args, response=True), args))

        if callback is not None:
            self._schedule(callback)
        return self

    def requests(self, n: int) -> Assertion:
        """Assert the total number of requests the integration built."""
        def check(req: Request | None, res: Response) -> Exception | None:
            count = len(self.interceptor.requests)
            if n == count:
                return None
            return AssertionFailure(
                f'expected number of requests to be "{n}", but it\'s "{count}"',
                expected=n,
                actual=count,
            )

        self.checks.append(check)
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Evaluation
    # ─────────────────────────────────────────────────────────────────────

    async def end(self, callback: Callable[..., Any] | None = None) -> Response | None:
        """
        Send the active message and run every deferred check.

        With a callback, ``callback(err, res)`` is called and the response
        returned. Without one, the first error is raised.

        Raises:
            ConfigurationError: If no message was set
        """
        await self._collect()
        err, res = await self._run()
        if callback is not None:
            callback(err, res)
            return res
        if err is not None:
            raise err
        return res

    async def error(self, callback: Callable[..., Any] | None = None) -> Exception | None:
        """
        Assert that sending the active message fails.

        Returns the error that occurred. With a callback, ``callback(None)``
        is called on success and ``callback(failure)`` otherwise.
        """
        await self._collect()
        err, _ = await self._run()
        failure = None if err is not None else AssertionFailure("expected integration to error")
        if callback is not None:
            callback(failure)
            return err
        if failure is not None:
            raise failure
        return err

    def evaluate(self, req: Request | None, res: Response) -> Exception | None:
        """Run the deferred checks in order and return the first failure."""
        for index, check in enumerate(self.checks):
            failure = check(req, res)
            if failure is not None:
                logger.info(f"Check {index + 1}/{len(self.checks)} failed: {failure}")
                return failure
        return None

    async def _run(self) -> tuple[Exception | None, Response | None]:
        if self.msg is None:
            raise ConfigurationError("you must call .identify() / .alias() etc..")

        message_type = self.msg.type()
        pending = dispatch(self.integration, self.msg, self.settings)

        logger.debug(f"Sending {message_type} with {len(self.checks)} queued check(s)")
        try:
            res = await pending
        except Exception as e:
            logger.debug(f"integration.{message_type}() failed: {type(e).__name__}: {e}")
            return e, None

        return self.evaluate(self.interceptor.current, res), res

    async def wait(self) -> None:
        """
        Wait for the evaluation scheduled by ``expects(..., callback)``.

        Raises:
            Exception: Whatever the scheduled callback raised
        """
        if self.task is not None:
            task, self.task = self.task, None
            await task

    async def _collect(self) -> None:
        if self.task is not None and self.task is not asyncio.current_task():
            await self.wait()

    def _schedule(self, callback: Callable[..., Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise ConfigurationError(
                "expects(..., callback) needs a running event loop; use `await .end(callback)`"
            ) from None
        self.task = loop.create_task(self.end(callback))
        self.task.add_done_callback(_report_scheduled)
        logger.debug("Scheduled evaluation")

    # ─────────────────────────────────────────────────────────────────────
    # Fixtures
    # ─────────────────────────────────────────────────────────────────────

    def fixture(self, name: str, settings: dict[str, Any] | None = None) -> Assertion:
        """
        Assert a mapper turns a fixture's input into its output.

        Loads ``<dirname>/fixtures/<name>.json``, merges its ``settings``
        into the active settings (in place), runs
        ``integration.mapper[input.type]`` and compares the JSON round trip
        of the result with ``output``.

        Raises:
            ConfigurationError: If dirname, the fixture or the mapper is missing
            AssertionFailure: If the output differs; ``str()`` includes a diff
        """
        if self.dirname is None:
            raise ConfigurationError("you must pass dirname to Assertion()")

        settings = self.settings if settings is None else settings
        fixture = load_fixture(self.dirname, name)
        message_type = fixture.type
        msg = to_message(fixture.input)

        mapper = (getattr(self.integration, "mapper", None) or {}).get(message_type)
        if mapper is None:
            raise ConfigurationError(f"integration.mapper.{message_type}() is missing")

        settings.update(fixture.settings)

        actual = mapper(msg, settings)
        if actual is None:
            raise ConfigurationError(f'integration.mapper.{message_type}() returned "None"')

        actual = json_round_trip(actual)
        if actual == fixture.output:
            return self

        raise AssertionFailure(
            f'integration.mapper.{message_type}() output does not match fixture "{name}"',
            expected=fixture.output,
            actual=actual,
            show_diff=True,
        )
