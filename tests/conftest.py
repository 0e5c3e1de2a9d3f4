# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

FAKE_MDFORMAT_SOURCE = '''
import os
import signal
import sys
import time

args = sys.argv[1:]
log_path = os.environ.get("FAKE_MDFORMAT_LOG")
if log_path:
    with open(log_path, "a", encoding="utf-8") as handle:
        handle.write(" ".join(args) + "\\n")

if args[:2] != ["-m", "mdformat"]:
    print("Python 3.12.1")
    sys.exit(0)

if MISSING:
    sys.stderr.write("No module named mdformat\\n")
    sys.exit(1)

if "--version" in args:
    print("mdformat 0.7.17 (mdformat_tables: 0.4.1)")
    sys.exit(0)

text = sys.stdin.buffer.read().decode("utf-8")
if "SLOW" in text:
    time.sleep(1.0)
if "SYNTAX" in text:
    sys.stderr.write("syntax error\\n")
    sys.exit(1)
if "SILENT_FAIL" in text:
    sys.exit(3)
if "KILL" in text:
    os.kill(os.getpid(), signal.SIGKILL)
if "CWD" in text:
    sys.stdout.write(os.getcwd() + "\\n")
    sys.exit(0)
if "ENCODING" in text:
    sys.stdout.write(os.environ.get("PYTHONIOENCODING", "") + "\\n")
    sys.exit(0)
sys.stdout.buffer.write((text.rstrip("\\n") + "\\n").encode("utf-8"))
'''


@pytest.fixture
def fake_python(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing an executable that impersonates ``python -m mdformat``.

    The fake formats by collapsing trailing blank lines. Markers in the input
    select failure modes: ``SYNTAX`` (exit 1 with stderr), ``SILENT_FAIL``
    (exit 3, no stderr), ``KILL`` (SIGKILL), ``SLOW`` (sleep), ``CWD`` and
    ``ENCODING`` (echo process details).
    """

    if os.name == "nt":
        pytest.skip("fake interpreters are POSIX shell wrappers")

    def _factory(name: str = "python", *, missing: bool = False) -> Path:
        script = tmp_path / f"{name}_impl.py"
        script.write_text(f"MISSING = {missing!r}\n{FAKE_MDFORMAT_SOURCE}", encoding="utf-8")
        wrapper = tmp_path / name
        wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n', encoding="utf-8")
        wrapper.chmod(0o755)
        return wrapper

    return _factory


@dataclass
class RecordingSink:
    """Notification sink capturing every message for assertions."""

    infos: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[tuple[str, str | None]] = field(default_factory=list)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str, detail: str | None = None) -> None:
        self.errors.append((message, detail))


@dataclass
class StaticSettings:
    """Settings source returning fixed values regardless of the context hint."""

    values: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any) -> Any:
        return self.values.get(key, default)

    def __call__(self, context_hint: Path | None) -> StaticSettings:
        return self


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def static_settings() -> Callable[..., StaticSettings]:
    def _factory(**values: Any) -> StaticSettings:
        return StaticSettings(values=dict(values))

    return _factory
