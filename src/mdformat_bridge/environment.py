# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Virtual environment discovery acting as the cooperating interpreter source."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Final

from .constants import WINDOWS_OS_NAME

LOGGER = logging.getLogger(__name__)

VIRTUAL_ENV_VAR: Final[str] = "VIRTUAL_ENV"
CONDA_PREFIX_VAR: Final[str] = "CONDA_PREFIX"
VENV_DIR_NAMES: Final[tuple[str, ...]] = (".venv", "venv")


def _bin_dir_name() -> str:
    return "Scripts" if os.name == WINDOWS_OS_NAME else "bin"


def venv_interpreter(venv_dir: Path) -> Path | None:
    """Return the Python executable inside ``venv_dir`` when present."""

    names = ("python.exe",) if os.name == WINDOWS_OS_NAME else ("python", "python3")
    for base in (venv_dir / _bin_dir_name(), venv_dir):
        for name in names:
            candidate = base / name
            if candidate.is_file():
                return candidate
    return None


def find_venv_bin(root: Path | None = None) -> Path | None:
    """Find the virtualenv bin/Scripts directory relative to ``root``.

    The search walks up from ``root`` until the filesystem root, looking for
    either ``.venv`` or ``venv`` directories.
    """

    root = (root or Path.cwd()).resolve()
    if root.is_file():
        root = root.parent
    for candidate in (root, *root.parents):
        for name in VENV_DIR_NAMES:
            bin_dir = candidate / name / _bin_dir_name()
            if bin_dir.is_dir():
                return bin_dir
    return None


class _Subscription:
    def __init__(self, owner: VirtualEnvInterpreterSource, callback: Callable[[], None]) -> None:
        self._owner = owner
        self._callback: Callable[[], None] | None = callback

    def dispose(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            self._owner._remove_listener(callback)


class VirtualEnvInterpreterSource:
    """Report the interpreter of the active or nearest virtual environment.

    Lookup order for :meth:`get_execution_command`: an interpreter chosen via
    :meth:`select`, the environment named by ``VIRTUAL_ENV``/``CONDA_PREFIX``,
    then a ``.venv``/``venv`` directory above the context hint.
    """

    def __init__(self, *, environ: Mapping[str, str] | None = None, discover_local: bool = True) -> None:
        self._environ = environ if environ is not None else os.environ
        self._discover_local = discover_local
        self._active = False
        self._selected: Path | None = None
        self._activated_env: str | None = None
        self._listeners: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self._active

    async def activate(self) -> None:
        if self._active:
            return
        self._activated_env = self._environment_prefix()
        self._active = True
        LOGGER.debug("Virtual environment source activated (environment: %s)", self._activated_env or "<none>")

    def get_execution_command(self, context_hint: Path | None) -> Sequence[str]:
        if self._selected is not None:
            return [str(self._selected)]
        prefix = self._environment_prefix()
        if prefix:
            interpreter = venv_interpreter(Path(prefix))
            if interpreter is not None:
                return [str(interpreter)]
            LOGGER.debug("Environment %s does not contain a Python executable", prefix)
        if self._discover_local:
            bin_dir = find_venv_bin(context_hint)
            if bin_dir is not None:
                interpreter = venv_interpreter(bin_dir.parent)
                if interpreter is not None:
                    return [str(interpreter)]
        return []

    def on_execution_details_changed(self, callback: Callable[[], None]) -> _Subscription:
        with self._lock:
            self._listeners.append(callback)
        return _Subscription(self, callback)

    def select(self, interpreter: Path | None) -> None:
        """Pin ``interpreter`` (or clear the pin) and notify listeners on change."""

        if interpreter == self._selected:
            return
        self._selected = interpreter
        LOGGER.info("Selected interpreter changed to %s", interpreter or "<auto>")
        self._notify()

    def refresh(self) -> bool:
        """Re-read the environment variables; notify listeners if the environment changed.

        Returns:
            bool: ``True`` when a change was detected.
        """

        current = self._environment_prefix()
        if current == self._activated_env:
            return False
        LOGGER.info("Active environment changed from %s to %s", self._activated_env, current)
        self._activated_env = current
        self._notify()
        return True

    def _environment_prefix(self) -> str | None:
        for name in (VIRTUAL_ENV_VAR, CONDA_PREFIX_VAR):
            value = self._environ.get(name, "").strip()
            if value:
                return value
        return None

    def _remove_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._listeners.remove(callback)
            except ValueError:
                LOGGER.debug("Listener %r already removed", callback)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)


__all__ = ["VirtualEnvInterpreterSource", "find_venv_bin", "venv_interpreter"]
