"""Tests for fixture loading, validation and the fixture runner."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from integration_tester import Assertion, AssertionFailure, ConfigurationError
from integration_tester.fixtures import (
    FixtureError,
    FixtureValidator,
    json_round_trip,
    list_fixtures,
    load_fixture,
    load_settings,
)

from .conftest import TESTS_DIR, Acme


def _write_fixture(root: Path, name: str, data: dict) -> None:
    folder = root / "fixtures"
    folder.mkdir(exist_ok=True)
    (folder / f"{name}.json").write_text(json.dumps(data))


class TestLoader:
    def test_loads_json(self) -> None:
        fixture = load_fixture(TESTS_DIR, "track-basic")
        assert fixture.type == "track"
        assert fixture.settings == {"apiKey": "fixture-key"}
        assert fixture.path == TESTS_DIR / "fixtures" / "track-basic.json"

    def test_loads_yaml_when_no_json(self) -> None:
        fixture = load_fixture(TESTS_DIR, "identify-basic")
        assert fixture.type == "identify"
        assert fixture.settings == {}

    def test_missing_fixture(self) -> None:
        with pytest.raises(FixtureError, match="not found"):
            load_fixture(TESTS_DIR, "nope")

    def test_invalid_shape_reports_every_error(self, tmp_path: Path) -> None:
        _write_fixture(tmp_path, "broken", {"input": {"event": "x"}, "output": 1})
        with pytest.raises(FixtureError) as excinfo:
            load_fixture(tmp_path, "broken")
        paths = [e.path for e in excinfo.value.result.errors]
        assert paths == ["input.type", "output"]

    def test_unparseable(self, tmp_path: Path) -> None:
        (tmp_path / "fixtures").mkdir()
        (tmp_path / "fixtures" / "bad.json").write_text("{not json")
        with pytest.raises(FixtureError, match="could not be parsed"):
            load_fixture(tmp_path, "bad")

    def test_list_fixtures(self) -> None:
        assert list_fixtures(TESTS_DIR) == ["identify-basic", "page-basic", "track-basic"]


class TestValidator:
    def test_valid(self) -> None:
        result = FixtureValidator({"input": {"type": "page"}, "output": {}}).validate()
        assert result.is_valid

    def test_unknown_and_missing_fields(self) -> None:
        result = FixtureValidator({"input": {"type": "track"}, "extra": 1}).validate()
        assert not result.is_valid
        assert {e.path for e in result.errors} == {"output", "extra"}

    def test_unknown_message_type(self) -> None:
        result = FixtureValidator({"input": {"type": "purchase"}, "output": {}}).validate()
        assert "unknown message type" in str(result)

    def test_not_an_object(self) -> None:
        assert not FixtureValidator([1, 2]).validate().is_valid


class TestJsonRoundTrip:
    def test_normalizes_values(self) -> None:
        value = {
            "at": datetime(2014, 1, 1, 12, 30, tzinfo=timezone.utc),
            "day": date(2014, 1, 2),
            "amount": Decimal("9.5"),
            "tags": ("a", "b"),
        }
        assert json_round_trip(value) == {
            "at": "2014-01-01T12:30:00.000Z",
            "day": "2014-01-02",
            "amount": 9.5,
            "tags": ["a", "b"],
        }

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError):
            json_round_trip({"x": object()})


class TestSettings:
    def test_interpolates_env(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("apiKey: '{{env.ACME_KEY}}'\nregion: us\nnested:\n  - '{{env.MISSING}}'\n")
        settings = load_settings(path, env={"ACME_KEY": "from-env"})
        assert settings == {"apiKey": "from-env", "region": "us", "nested": ["{{env.MISSING}}"]}

    def test_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(FixtureError, match="must contain an object"):
            load_settings(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FixtureError):
            load_settings(tmp_path / "nope.yaml")


class TestFixtureRunner:
    """Assertion.fixture() against mapper functions."""

    def test_track_fixture_passes(self, assertion: Assertion) -> None:
        assert assertion.fixture("track-basic") is assertion

    def test_fixture_settings_merged_in_place(self, assertion: Assertion) -> None:
        assertion.fixture("track-basic")
        assert assertion.settings["apiKey"] == "fixture-key"

    def test_explicit_settings_used(self, assertion: Assertion) -> None:
        settings: dict = {}
        assertion.fixture("identify-basic", settings)
        assert assertion.settings == {"apiKey": "secret"}

    def test_changed_leaf_fails_with_diff(self, tmp_path: Path, integration: Acme) -> None:
        data = json.loads((TESTS_DIR / "fixtures" / "track-basic.json").read_text())
        data["output"]["properties"]["plan"] = "free"
        _write_fixture(tmp_path, "track-changed", data)

        with pytest.raises(AssertionFailure) as excinfo:
            Assertion(integration, tmp_path).fixture("track-changed")

        failure = excinfo.value
        assert failure.show_diff
        assert failure.expected["properties"]["plan"] == "free"
        assert failure.actual["properties"]["plan"] == "pro"
        assert '-    "plan": "free"' in failure.diff()
        assert '+    "plan": "pro"' in str(failure)

    def test_requires_dirname(self, integration: Acme) -> None:
        with pytest.raises(ConfigurationError, match="dirname"):
            Assertion(integration).fixture("track-basic")

    def test_missing_mapper(self, assertion: Assertion) -> None:
        with pytest.raises(ConfigurationError, match=r"mapper\.page\(\) is missing"):
            assertion.fixture("page-basic")

    def test_mapper_returning_none(self, assertion: Assertion, integration: Acme) -> None:
        integration.mapper["track"] = lambda msg, settings: None
        with pytest.raises(ConfigurationError, match="returned"):
            assertion.fixture("track-basic")
