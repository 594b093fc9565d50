"""
Fixture and settings loader.

This module provides the public API for reading fixture files and
settings files from disk.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import Fixture, FixtureError
from .validation import FixtureValidator, ValidationResult

logger = logging.getLogger(__name__)

FIXTURES_DIR = "fixtures"
EXTENSIONS = (".json", ".yaml", ".yml")

_ENV_PATTERN = re.compile(r"\{\{env\.(\w+)\}\}")


def fixture_path(dirname: str | Path, name: str) -> Path:
    """
    Resolve ``<dirname>/fixtures/<name>.json``.

    A ``.yaml`` or ``.yml`` file is used instead when no JSON file exists.
    The JSON path is returned if none of them exist.
    """
    base = Path(dirname) / FIXTURES_DIR
    for extension in EXTENSIONS:
        candidate = base / f"{name}{extension}"
        if candidate.exists():
            return candidate
    return base / f"{name}.json"


def read_document(path: str | Path) -> Any:
    """Parse a JSON or YAML file."""
    path = Path(path)
    with open(path) as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_fixture(dirname: str | Path, name: str) -> Fixture:
    """
    Load and validate a fixture.

    Args:
        dirname: Directory containing the ``fixtures/`` folder
        name: Fixture name, without extension

    Returns:
        The parsed Fixture

    Raises:
        FixtureError: If the file is missing, unparseable or malformed
    """
    path = fixture_path(dirname, name)

    if not path.exists():
        result = ValidationResult()
        result.add_error(
            str(path),
            "file not found",
            hint=f"Create {path.name} under {path.parent}"
        )
        raise FixtureError(f'fixture "{name}" not found', result)

    try:
        data = read_document(path)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise FixtureError(f'fixture "{name}" could not be parsed: {e}') from e

    result = FixtureValidator(data).validate()
    if not result.is_valid:
        raise FixtureError(f'fixture "{name}" is invalid', result)

    logger.debug(f"Loaded fixture {name!r} from {path}")
    return Fixture.from_dict(name, data, path)


def list_fixtures(dirname: str | Path) -> list[str]:
    """Names of every fixture file under ``<dirname>/fixtures``."""
    base = Path(dirname) / FIXTURES_DIR
    if not base.is_dir():
        return []
    names = {p.stem for p in base.iterdir() if p.suffix in EXTENSIONS and p.is_file()}
    return sorted(names)


def interpolate(value: Any, env: Mapping[str, str]) -> Any:
    """Replace ``{{env.NAME}}`` placeholders in strings, recursively."""
    if isinstance(value, str):
        def replace_env(match: re.Match) -> str:
            var_name = match.group(1)
            return str(env.get(var_name, match.group(0)))
        return _ENV_PATTERN.sub(replace_env, value)
    elif isinstance(value, dict):
        return {k: interpolate(v, env) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate(v, env) for v in value]
    return value


def load_settings(path: str | Path, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Load integration settings from a YAML or JSON file.

    Args:
        path: Settings file
        env: Variables for ``{{env.NAME}}`` placeholders (defaults to os.environ)

    Raises:
        FixtureError: If the file is missing or is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FixtureError(f"settings file not found: {path}")

    try:
        data = read_document(path)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise FixtureError(f"settings file {path} could not be parsed: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FixtureError(
            f"settings file {path} must contain an object, got {type(data).__name__}"
        )

    return interpolate(data, os.environ if env is None else env)
