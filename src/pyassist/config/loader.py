# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Load :class:`Settings` from ``pyproject.toml`` or ``pyassist.toml``."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from ..core.errors import ConfigError
from .models import Settings

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
STANDALONE_FILENAME: Final[str] = "pyassist.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "pyassist"

_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$(\w+)|\$\{([^}]+)\}")


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, Mapping):
        return {key: _expand_env_value(entry, env) for key, entry in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(entry, env) for entry in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def load_config_fragment(root: Path) -> dict[str, Any]:
    """Return the raw configuration table discovered under ``root``.

    ``pyassist.toml`` takes precedence over ``[tool.pyassist]`` in
    ``pyproject.toml`` when both define a key.

    Args:
        root: Workspace directory to inspect.

    Returns:
        dict[str, Any]: Merged configuration fragment (possibly empty).

    Raises:
        ConfigError: If a configuration file is malformed.
    """

    fragment: dict[str, Any] = {}
    pyproject = root / PYPROJECT_FILENAME
    if pyproject.is_file():
        tool_section = _read_toml(pyproject).get(PYPROJECT_TOOL_KEY, {})
        section = tool_section.get(PYPROJECT_SECTION_KEY) if isinstance(tool_section, Mapping) else None
        if section is not None and not isinstance(section, Mapping):
            raise ConfigError(f"[tool.{PYPROJECT_SECTION_KEY}] in {pyproject} must be a table")
        fragment = _deep_merge(fragment, section or {})
    standalone = root / STANDALONE_FILENAME
    if standalone.is_file():
        fragment = _deep_merge(fragment, _read_toml(standalone))
    return fragment


def load_settings(
    root: Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Build :class:`Settings` for the workspace rooted at ``root``.

    Args:
        root: Workspace directory; defaults to the current working directory.
        overrides: Extra values merged last, typically from the command line.
        env: Environment used to expand ``$VAR`` references.

    Returns:
        Settings: Validated configuration.

    Raises:
        ConfigError: If the configuration files or overrides are invalid.
    """

    workspace = (root or Path.cwd()).resolve()
    payload = _deep_merge(load_config_fragment(workspace), overrides or {})
    payload = _expand_env_value(payload, env if env is not None else os.environ)
    payload.setdefault("workspace_root", workspace)
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid pyassist configuration: {exc}") from exc


__all__ = [
    "PYPROJECT_FILENAME",
    "STANDALONE_FILENAME",
    "load_config_fragment",
    "load_settings",
]
