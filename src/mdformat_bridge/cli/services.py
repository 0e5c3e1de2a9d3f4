# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Service wiring shared by the CLI commands."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import BridgeSettings, ConfigLoader, ConfigLoadResult, find_project_root
from ..constants import MARKDOWN_EXTENSIONS
from ..environment import VirtualEnvInterpreterSource
from ..notifications import ConsoleNotificationSink
from ..orchestrator import FormatOrchestrator
from ..resolver import RuntimeResolver

LOGGER = logging.getLogger(__name__)

EXCLUDED_DIRS = frozenset({".git", ".venv", "venv", "node_modules", "__pycache__", ".tox", "build", "dist"})


class ProjectSettings:
    """Settings provider that loads and caches configuration per project root."""

    def __init__(self, overrides: Mapping[str, Any] | None = None, *, user_config: Path | None = None) -> None:
        self._overrides = dict(overrides or {})
        self._user_config = user_config
        self._results: dict[Path, ConfigLoadResult] = {}

    def load(self, context_hint: Path | None) -> ConfigLoadResult:
        """Return the traced configuration for the project containing ``context_hint``.

        Raises:
            ConfigError: If the configuration files or overrides are invalid.
        """

        root = find_project_root(context_hint)
        cached = self._results.get(root)
        if cached is not None:
            return cached
        loader = ConfigLoader.for_path(context_hint, overrides=self._overrides, user_config=self._user_config)
        result = loader.load_with_trace()
        for warning in result.warnings:
            LOGGER.warning("%s", warning)
        self._results[root] = result
        return result

    def __call__(self, context_hint: Path | None) -> BridgeSettings:
        return self.load(context_hint).settings


@dataclass(slots=True)
class BridgeServices:
    """Objects shared across one CLI invocation."""

    settings: ProjectSettings
    orchestrator: FormatOrchestrator


def build_services(
    overrides: Mapping[str, Any] | None = None,
    *,
    use_emoji: bool = True,
    user_config: Path | None = None,
) -> BridgeServices:
    """Wire the settings provider, interpreter source, resolver and orchestrator.

    Args:
        overrides: Highest-precedence settings, typically from CLI options.
        use_emoji: Render notifications with emoji prefixes.
        user_config: Optional replacement for ``~/.mdformat-bridge.toml``.

    Returns:
        BridgeServices: Objects shared by one command invocation.
    """

    settings = ProjectSettings(overrides, user_config=user_config)
    interpreter_source = VirtualEnvInterpreterSource()
    resolver = RuntimeResolver(settings, interpreter_source=interpreter_source)
    orchestrator = FormatOrchestrator(
        resolver=resolver,
        notifications=ConsoleNotificationSink(use_emoji=use_emoji),
        interpreter_source=interpreter_source,
    )
    return BridgeServices(settings=settings, orchestrator=orchestrator)


def iter_markdown_files(paths: Iterable[Path]) -> Iterator[Path]:
    """Yield Markdown files named by ``paths``, expanding directories recursively."""

    seen: set[Path] = set()
    for path in paths:
        if path.is_dir():
            candidates: Iterable[Path] = sorted(
                candidate
                for candidate in path.rglob("*")
                if candidate.suffix.lower() in MARKDOWN_EXTENSIONS
                and candidate.is_file()
                and not EXCLUDED_DIRS.intersection(candidate.relative_to(path).parts)
            )
        else:
            candidates = (path,)
        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                yield candidate


__all__ = ["BridgeServices", "ProjectSettings", "build_services", "iter_markdown_files"]
