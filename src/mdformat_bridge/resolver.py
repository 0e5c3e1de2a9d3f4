# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Locate a Python interpreter from prioritised sources."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeAlias

from .constants import (
    IS_WINDOWS,
    POSIX_INTERPRETER_NAMES,
    RUNTIME_NAME,
    UNSET_SENTINEL,
    VERSION_FLAG,
    WINDOWS_INTERPRETER_NAMES,
)
from .interfaces import InterpreterSource, SettingsSource
from .models import RuntimeCandidate
from .process_utils import ProbeError, run_probe

LOGGER = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 10.0

SettingsProvider: TypeAlias = Callable[[Path | None], SettingsSource]
VersionProbe: TypeAlias = Callable[[str], str | None]


def probe_version(command: str) -> str | None:
    """Run ``<command> --version`` and return its combined output, or ``None`` on failure."""

    try:
        result = run_probe([command, VERSION_FLAG], timeout=PROBE_TIMEOUT_SECONDS)
    except (OSError, ValueError, ProbeError) as exc:
        LOGGER.debug("Command '%s %s' failed: %s", command, VERSION_FLAG, exc)
        return None
    return result.combined_output


def default_interpreter_names(*, windows: bool = IS_WINDOWS) -> tuple[str, ...]:
    """Return the bare interpreter names probed on ``PATH``, in priority order.

    Args:
        windows: Select the Windows names (``python.exe``, ``python3.exe``, ``py.exe``).

    Returns:
        tuple[str, ...]: Command names tried with ``--version``.
    """

    return WINDOWS_INTERPRETER_NAMES if windows else POSIX_INTERPRETER_NAMES


class RuntimeResolver:
    """Resolve the interpreter used to run the formatter.

    Sources are tried strictly in order and the first hit wins:

    1. the explicit ``python_path`` setting, when it exists on disk;
    2. the cooperating :class:`InterpreterSource`, when one is attached;
    3. well-known interpreter names on ``PATH``, verified with ``--version``.
    """

    def __init__(
        self,
        settings: SettingsProvider,
        *,
        interpreter_source: InterpreterSource | None = None,
        probe: VersionProbe = probe_version,
        interpreter_names: Sequence[str] | None = None,
    ) -> None:
        self._settings = settings
        self._interpreter_source = interpreter_source
        self._probe = probe
        self._interpreter_names = tuple(interpreter_names or default_interpreter_names())

    async def resolve(self, context_hint: Path | None = None) -> RuntimeCandidate | None:
        """Return the interpreter for ``context_hint`` or ``None`` when nothing usable exists."""

        configured = self._from_settings(context_hint)
        if configured is not None:
            return configured
        from_source = await self._from_interpreter_source(context_hint)
        if from_source is not None:
            return from_source
        from_path = await self._from_path()
        if from_path is not None:
            return from_path
        LOGGER.warning("No suitable Python interpreter found through settings, virtual environment, or system PATH.")
        return None

    def _from_settings(self, context_hint: Path | None) -> RuntimeCandidate | None:
        raw = self._settings(context_hint).get("python_path", "")
        if not isinstance(raw, str):
            return None
        configured = raw.strip()
        if not configured or configured == UNSET_SENTINEL:
            return None
        LOGGER.info('Using Python interpreter from "python_path": %s', configured)
        candidate = Path(configured).expanduser()
        if candidate.exists():
            # Symlinks are kept: a virtualenv interpreter must not collapse to its base Python.
            return str(candidate.absolute())
        LOGGER.error(
            "Provided python_path %s is not a valid file. Trying to find another interpreter.",
            configured,
        )
        return None

    async def _from_interpreter_source(self, context_hint: Path | None) -> RuntimeCandidate | None:
        source = self._interpreter_source
        if source is None:
            LOGGER.info("No interpreter source attached. Skipping its interpreter discovery.")
            return None
        try:
            if not source.is_active:
                LOGGER.info("Activating interpreter source for interpreter path...")
                await source.activate()
            if not source.is_active:
                LOGGER.info("Interpreter source could not be activated.")
                return None
            command = list(source.get_execution_command(context_hint))
        except Exception:  # noqa: BLE001 - third-party sources must not break resolution
            LOGGER.exception("Error while trying to get interpreter from the interpreter source")
            return None
        if not command or not command[0]:
            LOGGER.info("Interpreter source is active, but no interpreter selected or found through it.")
            return None
        LOGGER.info("Using Python interpreter from interpreter source: %s", command[0])
        return command[0]

    async def _from_path(self) -> RuntimeCandidate | None:
        LOGGER.info("Trying to find a global Python interpreter in PATH...")
        for name in self._interpreter_names:
            output = await asyncio.to_thread(self._probe, name)
            if output is not None and RUNTIME_NAME in output.lower():
                LOGGER.info("Found global Python: %s", name)
                return name
            LOGGER.debug("Command '%s %s' did not identify Python, trying next.", name, VERSION_FLAG)
        return None


__all__ = ["RuntimeResolver", "SettingsProvider", "VersionProbe", "default_interpreter_names", "probe_version"]
