# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Blocking helpers for short-lived probe commands such as ``python --version``."""

from __future__ import annotations

import shutil
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

TIMEOUT_RETURNCODE = 124


class ProbeError(RuntimeError):
    """Raised when a probe command cannot be located or exits unsuccessfully."""

    def __init__(self, command: Sequence[str], message: str, *, returncode: int | None = None) -> None:
        super().__init__(f"{command[0]}: {message}")
        self.command = tuple(command)
        self.returncode = returncode


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Captured output of a finished probe command."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def combined_output(self) -> str:
        return f"{self.stdout}{self.stderr}"


def locate_executable(command: str) -> str:
    """Return an absolute path for ``command``, searching ``PATH`` for bare names.

    Raises:
        FileNotFoundError: If a bare command name is not on ``PATH``.
    """

    if Path(command).is_absolute():
        return command
    found = shutil.which(command)
    if found is None:
        raise FileNotFoundError(f"Executable '{command}' was not found on PATH")
    return found


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_probe(
    args: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    check: bool = True,
) -> ProbeResult:
    """Run ``args`` without input and capture its decoded output.

    Args:
        args: Executable followed by its arguments.
        env: Complete child environment; the parent environment when ``None``.
        timeout: Seconds before the probe is abandoned. A timeout is reported
            as return code ``124``.
        check: Raise :class:`ProbeError` on a non-zero exit.

    Returns:
        ProbeResult: Output and exit status of the command.

    Raises:
        FileNotFoundError: If the executable cannot be located.
        ValueError: If ``args`` is empty.
        ProbeError: When ``check`` is true and the command failed.
    """

    if not args:
        raise ValueError("probe command requires at least one argument")
    command = (locate_executable(args[0]), *args[1:])
    try:
        completed = subprocess.run(  # nosec B603 - fixed argument vector, no shell
            command,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            stdin=subprocess.DEVNULL,
            check=False,
        )
        result = ProbeResult(command, completed.returncode, _as_text(completed.stdout), _as_text(completed.stderr))
    except subprocess.TimeoutExpired as exc:
        result = ProbeResult(
            command,
            TIMEOUT_RETURNCODE,
            _as_text(exc.stdout),
            f"{_as_text(exc.stderr)}timed out after {timeout}s",
        )
    if check and result.returncode != 0:
        raise ProbeError(command, f"exited with status {result.returncode}", returncode=result.returncode)
    return result


__all__ = ["ProbeError", "ProbeResult", "locate_executable", "run_probe"]
