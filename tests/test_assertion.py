"""Tests for Assertion configuration and immediate checks."""

from __future__ import annotations

import re

import pytest

from integration_tester import (
    Assertion,
    AssertionFailure,
    ConfigurationError,
    Group,
    Identify,
    InvalidMessageError,
    Page,
    Track,
    UnknownAssertionError,
)
from integration_tester.assertions import Shape, classify

from .conftest import Acme


class TestConfiguration:
    """Setting messages and settings."""

    def test_requires_integration(self) -> None:
        with pytest.raises(ConfigurationError):
            Assertion(None)

    def test_installs_interceptor(self, integration: Acme) -> None:
        assertion = Assertion(integration)
        integration.post("/x")
        assert len(assertion.captured) == 1
        assert assertion.req is assertion.captured[0]

    def test_set_key_and_mapping(self, integration: Acme) -> None:
        assertion = Assertion(integration).set("a", 1).set({"b": 2})
        assert assertion.settings == {"a": 1, "b": 2}

    @pytest.mark.parametrize(
        "setter, variant",
        [
            ("identify", Identify),
            ("track", Track),
            ("page", Page),
            ("group", Group),
        ],
    )
    def test_type_setters_wrap_plain_mappings(self, integration: Acme, setter: str, variant: type) -> None:
        assertion = getattr(Assertion(integration), setter)({"userId": "u1"})
        assert isinstance(assertion.msg, variant)
        assert assertion.msg.user_id() == "u1"

    def test_type_setter_keeps_typed_message(self, integration: Acme) -> None:
        msg = Identify({"userId": "u1"})
        assert Assertion(integration).track(msg).msg is msg

    def test_type_setter_merges_settings(self, integration: Acme) -> None:
        assertion = Assertion(integration).set("a", 1).track({}, {"b": 2})
        assert assertion.settings == {"a": 1, "b": 2}


class TestChannels:
    """Channel setters and enablement checks."""

    def test_enabled_channel_passes(self, assertion: Assertion) -> None:
        assert assertion.server({"type": "track"}) is assertion
        assert assertion.client({"type": "track"}) is assertion

    def test_disabled_channel_fails_immediately(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match='enabled on "mobile"'):
            assertion.mobile({"type": "track"})

    def test_channel_written_onto_callers_mapping(self, assertion: Assertion) -> None:
        raw = {"type": "track"}
        assertion.server(raw)
        assert raw["channel"] == "server"

    def test_all_names_only_disabled_channels(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure) as excinfo:
            assertion.all({"type": "track"})
        assert 'disabled on "mobile"' in str(excinfo.value)
        assert "server" not in str(excinfo.value)
        assert excinfo.value.actual == ["mobile"]

    def test_all_passes_when_every_channel_enabled(self, integration: Acme) -> None:
        integration.channels = ["server", "client", "mobile"]
        assert Assertion(integration).all({"type": "track"})

    def test_enabled_and_disabled(self, assertion: Assertion) -> None:
        assertion.enabled({"type": "track", "channel": "server"})
        assertion.disabled({"type": "screen", "channel": "server"})

    def test_enabled_failure_embeds_message_and_settings(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure) as excinfo:
            assertion.enabled({"type": "track", "channel": "mobile"}, {"apiKey": "k"})
        message = str(excinfo.value)
        assert '"channel": "mobile"' in message
        assert '"apiKey": "k"' in message

    def test_enabled_failure_with_mixed_key_types(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure) as excinfo:
            assertion.enabled({"type": "track", "channel": "mobile"}, {"apiKey": "k", 1: "one"})
        assert '"1": "one"' in str(excinfo.value)

    def test_disabled_failure(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match="to be disabled"):
            assertion.disabled({"type": "track", "channel": "server"})

    def test_channels_list(self, assertion: Assertion) -> None:
        assertion.channels(["server", "client"])
        with pytest.raises(AssertionFailure):
            assertion.channels(["server"])


class TestMetadata:
    """Checks against the integration's declared metadata."""

    def test_requires(self, assertion: Assertion) -> None:
        assertion.requires("settings.apiKey")
        assertion.requires("identify", "message.userId")

    def test_requires_missing(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match='require "settings.secret"$'):
            assertion.requires("settings.secret")

    def test_requires_missing_on_method(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match='require "message.userId" on "track"'):
            assertion.requires("track", "message.userId")

    def test_option_ignores_validator(self, assertion: Assertion) -> None:
        assertion.option("apiKey", {"type": "string", "required": True})
        assert "validate" in Acme.options["apiKey"]

    def test_option_mismatch(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure):
            assertion.option("region", {"type": "select", "default": "eu"})

    def test_option_undeclared(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match='have option "token"'):
            assertion.option("token", {})

    def test_scalars(self, assertion: Assertion) -> None:
        assertion.name("Acme").retries(2).endpoint("https://api.acme.test/v1")

    def test_scalar_mismatch(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match="expected retries to be \"3\" but it's \"2\""):
            assertion.retries(3)
        with pytest.raises(AssertionFailure):
            assertion.name("Other")
        with pytest.raises(AssertionFailure):
            assertion.endpoint("https://elsewhere.test")

    def test_timeout_accepts_durations(self, assertion: Assertion) -> None:
        assertion.timeout("5s")
        assertion.timeout(5000)
        with pytest.raises(AssertionFailure):
            assertion.timeout("6s")


class TestValidation:
    def test_valid(self, assertion: Assertion) -> None:
        assertion.valid({"type": "identify", "userId": "u1"})

    def test_valid_raises_integration_error(self, assertion: Assertion) -> None:
        with pytest.raises(InvalidMessageError):
            assertion.valid({"type": "identify"})

    def test_invalid(self, assertion: Assertion) -> None:
        assertion.invalid({"type": "track"}, {})

    def test_invalid_fails_when_valid(self, assertion: Assertion) -> None:
        with pytest.raises(AssertionFailure, match="to return an error"):
            assertion.invalid({"type": "track"})


class TestClassify:
    """Argument shapes for sends() / expects()."""

    @pytest.mark.parametrize(
        "args, response, shape",
        [
            (("X-Key", "v"), False, Shape.HEADER),
            (({"a": 1},), False, Shape.BODY),
            ((re.compile("a"),), False, Shape.PATTERN),
            (("?a=1",), False, Shape.QUERY),
            (("?a=1",), True, Shape.TEXT),
            (("text",), False, Shape.TEXT),
            ((200,), True, Shape.STATUS),
        ],
    )
    def test_shapes(self, args: tuple, response: bool, shape: Shape) -> None:
        assert classify(args, response=response) is shape

    @pytest.mark.parametrize("args", [(200,), (True,), (None,), (), (1, 2, 3)])
    def test_unknown_for_sends(self, args: tuple) -> None:
        with pytest.raises(UnknownAssertionError):
            classify(args)

    def test_sends_unknown_raises_at_registration(self, assertion: Assertion) -> None:
        with pytest.raises(UnknownAssertionError):
            assertion.sends(42)
        assert assertion.checks == []

    def test_expects_unknown_raises_at_registration(self, assertion: Assertion) -> None:
        with pytest.raises(UnknownAssertionError):
            assertion.expects(4.5)
