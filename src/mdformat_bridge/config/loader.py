# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Config loading utilities with layered precedence and traceability."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import CONFIG_FILE_NAME, PROJECT_ROOT_MARKERS, PYPROJECT_FILE_NAME
from .models import BridgeSettings, ConfigError
from .sources import (
    ConfigSource,
    DefaultConfigSource,
    MappingConfigSource,
    PyProjectConfigSource,
    TomlConfigSource,
)


class FieldUpdate(BaseModel):
    """Description of a single configuration field set by a source."""

    model_config = ConfigDict(frozen=True)

    field: str
    source: str
    value: Any


class ConfigLoadResult(BaseModel):
    """Container bundling resolved settings with provenance metadata."""

    settings: BridgeSettings
    project_root: Path
    updates: list[FieldUpdate] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def source_of(self, field: str) -> str | None:
        """Return the description of the last source that set ``field``."""

        for update in reversed(self.updates):
            if update.field == field:
                return update.source
        return None


def find_project_root(start: Path | None) -> Path:
    """Return the nearest ancestor of ``start`` holding a project marker.

    Falls back to ``start`` itself (or its directory when it is a file) and to
    the current working directory when no hint is given.
    """

    base = (start or Path.cwd()).resolve()
    if not base.is_dir():
        base = base.parent
    for candidate in (base, *base.parents):
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return candidate
    return base


class ConfigLoader:
    """Apply layered configuration sources with predictable precedence."""

    def __init__(self, *, project_root: Path, sources: Sequence[ConfigSource]) -> None:
        if not sources:
            raise ValueError("at least one configuration source is required")
        self._sources = list(sources)
        self._project_root = project_root

    @classmethod
    def for_path(
        cls,
        context_hint: Path | None,
        *,
        overrides: Mapping[str, Any] | None = None,
        user_config: Path | None = None,
    ) -> ConfigLoader:
        """Build a loader for the project that contains ``context_hint``.

        Args:
            context_hint: Document or directory the settings are requested for.
            overrides: Highest-precedence values, typically from CLI options.
            user_config: Optional path replacing ``~/.mdformat-bridge.toml``.

        Returns:
            ConfigLoader: Loader with defaults, user, pyproject, project and override layers.
        """

        root = find_project_root(context_hint)
        home_config = user_config if user_config is not None else Path.home() / CONFIG_FILE_NAME
        sources: list[ConfigSource] = [
            DefaultConfigSource(),
            TomlConfigSource(home_config),
            PyProjectConfigSource(root / PYPROJECT_FILE_NAME),
            TomlConfigSource(root / CONFIG_FILE_NAME),
        ]
        if overrides:
            sources.append(MappingConfigSource(overrides))
        return cls(project_root=root, sources=sources)

    def load(self) -> BridgeSettings:
        return self.load_with_trace().settings

    def load_with_trace(self) -> ConfigLoadResult:
        """Merge every source in order and validate the result.

        Raises:
            ConfigError: If a source is unreadable or the merged values are invalid.
        """

        merged: dict[str, Any] = {}
        updates: list[FieldUpdate] = []
        warnings: list[str] = []
        known = set(BridgeSettings.model_fields)
        for source in self._sources:
            fragment = source.load()
            for key, value in fragment.items():
                if key not in known:
                    warnings.append(f"Unknown setting '{key}' in {source.describe()}")
                    continue
                merged[key] = value
                if not isinstance(source, DefaultConfigSource):
                    updates.append(FieldUpdate(field=key, source=source.describe(), value=value))
        settings = BridgeSettings.from_mapping(merged)
        return ConfigLoadResult(
            settings=settings,
            project_root=self._project_root,
            updates=updates,
            warnings=warnings,
        )


__all__ = ["ConfigError", "ConfigLoadResult", "ConfigLoader", "FieldUpdate", "find_project_root"]
