# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for interpreter resolution order."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from mdformat_bridge.resolver import RuntimeResolver, default_interpreter_names, probe_version


class FakeSource:
    def __init__(self, command: Sequence[str] = (), *, active: bool = False, fail: bool = False) -> None:
        self._command = list(command)
        self._active = active
        self._fail = fail
        self.activations = 0

    @property
    def is_active(self) -> bool:
        return self._active

    async def activate(self) -> None:
        self.activations += 1
        if self._fail:
            raise RuntimeError("extension host crashed")
        self._active = True

    def get_execution_command(self, context_hint: Path | None) -> Sequence[str]:
        return self._command

    def on_execution_details_changed(self, callback):  # pragma: no cover - unused here
        raise NotImplementedError


class RecordingProbe:
    def __init__(self, outputs: dict[str, str | None]) -> None:
        self._outputs = outputs
        self.calls: list[str] = []

    def __call__(self, command: str) -> str | None:
        self.calls.append(command)
        return self._outputs.get(command)


def _resolve(resolver: RuntimeResolver, hint: Path | None = None) -> str | None:
    return asyncio.run(resolver.resolve(hint))


def test_configured_path_wins(tmp_path: Path, static_settings) -> None:
    interpreter = tmp_path / "python"
    interpreter.write_text("", encoding="utf-8")
    probe = RecordingProbe({})
    source = FakeSource(["/venv/bin/python"])
    resolver = RuntimeResolver(
        static_settings(python_path=str(interpreter)),
        interpreter_source=source,
        probe=probe,
    )

    assert _resolve(resolver) == str(interpreter)
    assert source.activations == 0
    assert probe.calls == []


def test_missing_configured_path_falls_through(tmp_path: Path, static_settings) -> None:
    resolver = RuntimeResolver(
        static_settings(python_path=str(tmp_path / "gone" / "python")),
        interpreter_source=FakeSource(["/venv/bin/python"]),
        probe=RecordingProbe({}),
    )

    assert _resolve(resolver) == "/venv/bin/python"


@pytest.mark.parametrize("value", ["", "   ", "null"])
def test_unset_configured_path_is_ignored(value: str, static_settings) -> None:
    resolver = RuntimeResolver(
        static_settings(python_path=value),
        interpreter_source=FakeSource(["/venv/bin/python"], active=True),
        probe=RecordingProbe({}),
    )

    assert _resolve(resolver) == "/venv/bin/python"


def test_inactive_source_is_activated(static_settings) -> None:
    source = FakeSource(["/conda/bin/python", "-X", "utf8"])
    resolver = RuntimeResolver(static_settings(), interpreter_source=source, probe=RecordingProbe({}))

    assert _resolve(resolver) == "/conda/bin/python"
    assert source.activations == 1


def test_source_activation_error_is_swallowed(static_settings) -> None:
    probe = RecordingProbe({"python3": "Python 3.12.1"})
    resolver = RuntimeResolver(
        static_settings(),
        interpreter_source=FakeSource(fail=True),
        probe=probe,
        interpreter_names=["python3", "python"],
    )

    assert _resolve(resolver) == "python3"


def test_empty_source_command_falls_through(static_settings) -> None:
    probe = RecordingProbe({"python": "Python 3.11.9"})
    resolver = RuntimeResolver(
        static_settings(),
        interpreter_source=FakeSource([], active=True),
        probe=probe,
        interpreter_names=["python3", "python"],
    )

    assert _resolve(resolver) == "python"
    assert probe.calls == ["python3", "python"]


def test_probe_skips_output_without_python(static_settings) -> None:
    probe = RecordingProbe({"python3": "command not found", "python": "PYTHON 3.10.0"})
    resolver = RuntimeResolver(static_settings(), probe=probe, interpreter_names=["python3", "python"])

    assert _resolve(resolver) == "python"


def test_nothing_found_returns_none(static_settings) -> None:
    resolver = RuntimeResolver(static_settings(), probe=RecordingProbe({}), interpreter_names=["python3", "python"])

    assert _resolve(resolver) is None


def test_default_interpreter_names_per_platform() -> None:
    assert default_interpreter_names(windows=True) == ("python.exe", "python3.exe", "py.exe")
    assert default_interpreter_names(windows=False) == ("python3", "python")


def test_probe_version_reads_fake_interpreter(fake_python) -> None:
    assert probe_version(str(fake_python())) == "Python 3.12.1\n"


def test_probe_version_missing_command(tmp_path: Path) -> None:
    assert probe_version(str(tmp_path / "absent")) is None


def test_relative_configured_path_is_made_absolute(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    static_settings,
) -> None:
    tools = tmp_path / "tools"
    tools.mkdir()
    (tools / "python").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    resolver = RuntimeResolver(static_settings(python_path="tools/python"), probe=RecordingProbe({}))

    assert _resolve(resolver) == str(tmp_path / "tools" / "python")


@pytest.mark.skipif(os.name == "nt", reason="symlinks need elevated rights on Windows")
def test_configured_symlink_is_not_followed(tmp_path: Path, static_settings) -> None:
    target = tmp_path / "base-python"
    target.write_text("", encoding="utf-8")
    link = tmp_path / "venv-python"
    link.symlink_to(target)
    resolver = RuntimeResolver(static_settings(python_path=str(link)), probe=RecordingProbe({}))

    assert _resolve(resolver) == str(link)
