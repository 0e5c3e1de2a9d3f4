# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Concrete configuration sources (defaults, TOML, pyproject, overrides)."""

from __future__ import annotations

import copy
import os
import re
import tomllib
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final

from ..constants import PYPROJECT_SECTION_KEY
from .models import BridgeSettings, ConfigError

PYPROJECT_TOOL_KEY: Final[str] = "tool"

_ENV_VAR_PATTERN = re.compile(r"\$(\w+)|\$\{([^}]+)\}")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_TOML_CACHE: dict[tuple[Path, int], Mapping[str, Any]] = {}


def normalise_key(key: str) -> str:
    """Return ``key`` in snake case (``endOfLine`` and ``end-of-line`` become ``end_of_line``)."""

    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def _normalise_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {normalise_key(str(key)): value for key, value in data.items()}


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, list):
        return [_expand_env_value(item, env) for item in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


class ConfigSource:
    """Base class for a single layer of configuration."""

    name: str = "source"

    def load(self) -> Mapping[str, Any]:
        raise NotImplementedError

    def describe(self) -> str:
        return self.name


class DefaultConfigSource(ConfigSource):
    """Return the built-in defaults as a configuration fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        return BridgeSettings().model_dump()

    def describe(self) -> str:
        return "Built-in defaults"


class TomlConfigSource(ConfigSource):
    """Load configuration data from a standalone TOML document."""

    def __init__(
        self,
        path: Path,
        *,
        name: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.path = path
        self.name = name or str(path)
        self._env = env if env is not None else os.environ

    def load(self) -> Mapping[str, Any]:
        document = self._read()
        return _expand_env(_normalise_keys(document), self._env)

    def _read(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        resolved = self.path.resolve()
        cache_key = (resolved, resolved.stat().st_mtime_ns)
        if cached := _TOML_CACHE.get(cache_key):
            data = copy.deepcopy(cached)
        else:
            try:
                with resolved.open("rb") as handle:
                    data = tomllib.load(handle)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {self.path}: {exc}") from exc
            _TOML_CACHE[cache_key] = copy.deepcopy(data)
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {self.path} must be a table")
        return dict(data)

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.mdformat-bridge]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        data = self._read()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return _expand_env(_normalise_keys(section), self._env)

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


class MappingConfigSource(ConfigSource):
    """Expose explicit overrides (for example CLI options) as a source.

    ``None`` values are dropped so that unset options never mask lower layers.
    """

    def __init__(self, values: Mapping[str, Any], *, name: str = "overrides") -> None:
        self.name = name
        self._values = {normalise_key(key): value for key, value in values.items() if value is not None}

    def load(self) -> Mapping[str, Any]:
        return dict(self._values)

    def describe(self) -> str:
        return f"Explicit {self.name}"


__all__ = [
    "ConfigSource",
    "DefaultConfigSource",
    "MappingConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "normalise_key",
]
