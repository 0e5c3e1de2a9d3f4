# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the resolve, check and invoke composition."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from mdformat_bridge.availability import AvailabilityCache
from mdformat_bridge.cancellation import CancellationToken
from mdformat_bridge.config import FormatOptions
from mdformat_bridge.document import StringDocument
from mdformat_bridge.errors import (
    FormattingCancelled,
    NoRuntimeFound,
    ProcessStartError,
    TerminatedBySignalError,
    ToolExitedWithError,
    ToolUnavailable,
)
from mdformat_bridge.invoker import ToolInvoker
from mdformat_bridge.models import (
    AvailabilityVerdict,
    CacheState,
    Cancelled,
    InvocationOutcome,
    InvocationRequest,
    ProcessStartFailure,
    Success,
    TerminatedBySignal,
    TextEdit,
    ToolReportedFailure,
)
from mdformat_bridge.orchestrator import FormatOrchestrator, working_directory_for
from mdformat_bridge.resolver import RuntimeResolver


class ScriptedInvoker(ToolInvoker):
    """Invoker answering version probes and formatting runs from scripted outcomes."""

    def __init__(self, *, available: bool = True, outcomes: Sequence[InvocationOutcome] = ()) -> None:
        super().__init__(windows=False)
        self.available = available
        self.outcomes = list(outcomes)
        self.version_checks: list[str] = []
        self.format_requests: list[InvocationRequest] = []

    async def run(self, request: InvocationRequest) -> InvocationOutcome:
        if "--version" in request.tool_arguments:
            self.version_checks.append(request.runtime)
            if self.available:
                return Success(output_text="mdformat 0.7.17\n")
            return ToolReportedFailure(exit_code=1, stderr_text="No module named mdformat")
        self.format_requests.append(request)
        return self.outcomes.pop(0)


class FixedResolver(RuntimeResolver):
    def __init__(self, runtime: str | None) -> None:
        super().__init__(lambda hint: None)  # type: ignore[arg-type, return-value]
        self.runtime = runtime
        self.calls = 0

    async def resolve(self, context_hint: Path | None = None) -> str | None:
        self.calls += 1
        return self.runtime


class ListeningSource:
    def __init__(self) -> None:
        self.active = False
        self.listeners: list[Callable[[], None]] = []

    @property
    def is_active(self) -> bool:
        return self.active

    async def activate(self) -> None:
        self.active = True

    def get_execution_command(self, context_hint: Path | None) -> Sequence[str]:
        return []

    def on_execution_details_changed(self, callback: Callable[[], None]):
        self.listeners.append(callback)
        listeners = self.listeners

        class _Subscription:
            def dispose(self) -> None:
                listeners.remove(callback)

        return _Subscription()

    def fire(self) -> None:
        for listener in list(self.listeners):
            listener()


@pytest.fixture
def build(sink):
    def _build(runtime: str | None = "python3", **invoker_kwargs):
        invoker = ScriptedInvoker(**invoker_kwargs)
        orchestrator = FormatOrchestrator(resolver=FixedResolver(runtime), notifications=sink, invoker=invoker)
        return orchestrator, invoker

    return _build


def _format(orchestrator: FormatOrchestrator, text: str, **kwargs):
    return asyncio.run(orchestrator.format(text, None, FormatOptions(), **kwargs))


def test_changed_output_yields_single_full_replacement(build, sink) -> None:
    orchestrator, invoker = build(outcomes=[Success(output_text="# H\n")])

    result = _format(orchestrator, "# H\n\n")

    assert result.ok
    assert result.text == "# H\n"
    assert result.edits == [TextEdit(start=0, end=5, new_text="# H\n")]
    assert invoker.format_requests[0].input_text == "# H\n\n"
    assert sink.errors == []


def test_identical_output_yields_no_edit(build, sink) -> None:
    orchestrator, _ = build(outcomes=[Success(output_text="# H\n")])

    result = _format(orchestrator, "# H\n")

    assert result.ok
    assert not result.changed
    assert result.edits == []
    assert sink.errors == []


def test_empty_output_yields_no_edit(build) -> None:
    orchestrator, _ = build(outcomes=[Success(output_text="")])

    result = _format(orchestrator, "# H\n")

    assert result.ok
    assert result.edits == []


def test_tool_failure_is_reported_and_cache_stays_available(build, sink) -> None:
    orchestrator, _ = build(outcomes=[ToolReportedFailure(exit_code=1, stderr_text="syntax error")])

    result = _format(orchestrator, "broken")

    assert isinstance(result.error, ToolExitedWithError)
    assert result.edits == []
    assert sink.errors == [("mdformat formatting failed: syntax error", "syntax error")]
    assert orchestrator.cache.snapshot.verdict is AvailabilityVerdict.AVAILABLE


def test_signal_termination_is_reported(build, sink) -> None:
    orchestrator, _ = build(outcomes=[TerminatedBySignal(signal_name="SIGKILL")])

    result = _format(orchestrator, "text")

    assert isinstance(result.error, TerminatedBySignalError)
    assert "SIGKILL" in sink.errors[0][0]


def test_cancellation_is_silent(build, sink) -> None:
    orchestrator, _ = build(outcomes=[Cancelled()])

    result = _format(orchestrator, "text", cancellation=CancellationToken())

    assert result.cancelled
    assert result.error is None
    assert result.edits == []
    assert sink.errors == []
    with pytest.raises(FormattingCancelled):
        result.raise_for_status()


def test_repeated_formats_verify_once(build) -> None:
    orchestrator, invoker = build(outcomes=[Success(output_text="x\n")] * 4)

    for _ in range(4):
        _format(orchestrator, "x")

    assert invoker.version_checks == ["python3"]
    assert len(invoker.format_requests) == 4


def test_start_failure_downgrades_cache(build, sink) -> None:
    # A verified interpreter that later fails to spawn is re-verified next time.
    orchestrator, invoker = build(outcomes=[ProcessStartFailure(reason="Permission denied"), Success(output_text="")])

    first = _format(orchestrator, "x")

    assert isinstance(first.error, ProcessStartError)
    assert "Permission denied" in sink.errors[0][0]
    assert orchestrator.cache.snapshot.verdict is AvailabilityVerdict.UNAVAILABLE
    _format(orchestrator, "x")
    assert invoker.version_checks == ["python3", "python3"]


def test_missing_runtime_spawns_nothing(build, sink) -> None:
    orchestrator, invoker = build(runtime=None)

    result = _format(orchestrator, "x")

    assert isinstance(result.error, NoRuntimeFound)
    assert invoker.version_checks == []
    assert invoker.format_requests == []
    assert len(sink.errors) == 1


def test_unavailable_tool_names_runtime(build, sink) -> None:
    orchestrator, invoker = build(runtime="/opt/py/bin/python", available=False)

    result = _format(orchestrator, "x")

    assert isinstance(result.error, ToolUnavailable)
    assert "/opt/py/bin/python" in sink.errors[0][0]
    assert invoker.format_requests == []
    assert orchestrator.cache.snapshot.verdict is AvailabilityVerdict.UNAVAILABLE


def test_format_document_applies_edit(build) -> None:
    orchestrator, _ = build(outcomes=[Success(output_text="- a\n- b\n")])
    document = StringDocument("* a\n* b\n")

    result = asyncio.run(orchestrator.format_document(document, None, FormatOptions()))

    assert result.changed
    assert document.text == "- a\n- b\n"
    assert len(document.edits) == 1


def test_check_installation_reports_version(build, sink) -> None:
    orchestrator, invoker = build()

    report = asyncio.run(orchestrator.check_installation())

    assert report.available
    assert report.runtime == "python3"
    assert report.version == "0.7.17"
    assert sink.infos == ["mdformat is available with: python3"]


def test_check_installation_ignores_cached_verdict(build) -> None:
    orchestrator, invoker = build(outcomes=[Success(output_text="")])
    _format(orchestrator, "x")

    asyncio.run(orchestrator.check_installation())

    assert invoker.version_checks == ["python3", "python3"]


def test_check_installation_without_runtime(build, sink) -> None:
    orchestrator, _ = build(runtime=None)

    report = asyncio.run(orchestrator.check_installation())

    assert not report.available
    assert report.runtime is None
    assert len(sink.infos) == 1
    assert "no interpreter was selected/found" in sink.errors[0][0]


def test_interpreter_change_invalidates_cache(sink) -> None:
    source = ListeningSource()
    invoker = ScriptedInvoker(outcomes=[Success(output_text="")] * 2)
    orchestrator = FormatOrchestrator(
        resolver=FixedResolver("python3"),
        notifications=sink,
        invoker=invoker,
        cache=AvailabilityCache(),
        interpreter_source=source,
    )

    async def scenario() -> None:
        async with orchestrator:
            assert source.is_active
            await orchestrator.format("x", None, FormatOptions())
            source.fire()
            assert orchestrator.cache.snapshot.verdict is AvailabilityVerdict.UNKNOWN
            assert orchestrator.cache.snapshot.runtime == "python3"
            await orchestrator.format("x", None, FormatOptions())

    asyncio.run(scenario())

    assert invoker.version_checks == ["python3", "python3"]
    assert source.listeners == []


def test_working_directory_for(tmp_path: Path) -> None:
    document = tmp_path / "README.md"
    document.write_text("", encoding="utf-8")

    assert working_directory_for(document) == tmp_path
    assert working_directory_for(tmp_path) == tmp_path
    assert working_directory_for(tmp_path / "missing" / "file.md") is None
    assert working_directory_for(None) is None


def test_end_to_end_with_fake_interpreter(fake_python, sink, static_settings) -> None:
    python = fake_python()
    resolver = RuntimeResolver(static_settings(python_path=str(python)))
    orchestrator = FormatOrchestrator(resolver=resolver, notifications=sink, invoker=ToolInvoker(windows=False))

    result = asyncio.run(orchestrator.format("# Title\n\n\n", None, FormatOptions()))

    assert result.text == "# Title\n"
    assert sink.errors == []


def test_end_to_end_missing_module(fake_python, sink, static_settings) -> None:
    python = fake_python(missing=True)
    resolver = RuntimeResolver(static_settings(python_path=str(python)))
    orchestrator = FormatOrchestrator(resolver=resolver, notifications=sink, invoker=ToolInvoker(windows=False))

    result = asyncio.run(orchestrator.format("# Title\n", None, FormatOptions()))

    assert isinstance(result.error, ToolUnavailable)
    assert result.error.runtime == str(python)


class PerRuntimeInvoker(ToolInvoker):
    """Invoker whose version check yields to the loop and succeeds only for ``installed``."""

    def __init__(self, installed: str) -> None:
        super().__init__(windows=False)
        self.installed = installed

    async def run(self, request: InvocationRequest) -> InvocationOutcome:
        await asyncio.sleep(0)
        if "--version" in request.tool_arguments:
            await asyncio.sleep(0)
            if request.runtime == self.installed:
                return Success(output_text="mdformat 0.7.17\n")
            return ToolReportedFailure(exit_code=1, stderr_text="No module named mdformat")
        return Success(output_text=f"formatted by {request.runtime}\n")


class HintResolver(RuntimeResolver):
    def __init__(self, runtimes: dict[str, str]) -> None:
        super().__init__(lambda hint: None)  # type: ignore[arg-type, return-value]
        self.runtimes = runtimes

    async def resolve(self, context_hint: Path | None = None) -> str | None:
        await asyncio.sleep(0)
        return self.runtimes[context_hint.name] if context_hint is not None else None


def test_concurrent_requests_keep_cache_consistent(sink) -> None:
    orchestrator = FormatOrchestrator(
        resolver=HintResolver({"a.md": "/envs/a/python", "b.md": "/envs/b/python"}),
        notifications=sink,
        invoker=PerRuntimeInvoker(installed="/envs/a/python"),
    )

    async def scenario():
        return await asyncio.gather(
            orchestrator.format("x", Path("a.md"), FormatOptions()),
            orchestrator.format("x", Path("b.md"), FormatOptions()),
        )

    first, second = asyncio.run(scenario())

    assert first.text == "formatted by /envs/a/python\n"
    assert isinstance(second.error, ToolUnavailable)
    assert second.error.runtime == "/envs/b/python"
    assert orchestrator.cache.snapshot in {
        CacheState(runtime="/envs/a/python", verdict=AvailabilityVerdict.AVAILABLE),
        CacheState(runtime="/envs/b/python", verdict=AvailabilityVerdict.UNAVAILABLE),
    }
