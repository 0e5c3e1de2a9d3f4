# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Compose interpreter resolution, availability caching and formatter invocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from .availability import AvailabilityCache
from .cancellation import CancellationToken
from .config.models import FormatOptions
from .constants import TOOL_NAME
from .errors import (
    FormatterError,
    NoRuntimeFound,
    ProcessStartError,
    TerminatedBySignalError,
    ToolExitedWithError,
    ToolUnavailable,
)
from .interfaces import DocumentSurface, InterpreterSource, NotificationSink, Subscription
from .invoker import ToolInvoker, build_tool_arguments, version_arguments
from .models import (
    Cancelled,
    FormatResult,
    InvocationOutcome,
    InvocationRequest,
    ProcessStartFailure,
    RuntimeCandidate,
    Success,
    TerminatedBySignal,
    ToolReportedFailure,
)
from .resolver import RuntimeResolver
from .versioning import normalize_version

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstallationReport:
    """Result of a manual installation check."""

    runtime: RuntimeCandidate | None
    available: bool
    version: str | None = None


def working_directory_for(context_hint: Path | None) -> Path | None:
    """Return the directory the formatter should run in for ``context_hint``."""

    if context_hint is None:
        return None
    if context_hint.is_dir():
        return context_hint
    parent = context_hint.parent
    return parent if parent.is_dir() else None


class FormatOrchestrator:
    """Answer "format this text" requests end to end.

    Each request resolves an interpreter, confirms the formatter is installed
    for it (through the availability cache) and only then runs the formatter.
    Failures are reported once through the notification sink; cancellation is
    silent. The orchestrator owns its cache for its whole lifetime and listens
    to the interpreter source between :meth:`start` and :meth:`close`.
    """

    def __init__(
        self,
        *,
        resolver: RuntimeResolver,
        notifications: NotificationSink,
        invoker: ToolInvoker | None = None,
        cache: AvailabilityCache | None = None,
        interpreter_source: InterpreterSource | None = None,
    ) -> None:
        self._resolver = resolver
        self._notifications = notifications
        self._invoker = invoker or ToolInvoker()
        self._cache = cache or AvailabilityCache()
        self._interpreter_source = interpreter_source
        self._subscription: Subscription | None = None
        self._versions: dict[RuntimeCandidate, str] = {}

    @property
    def cache(self) -> AvailabilityCache:
        return self._cache

    async def start(self) -> None:
        """Subscribe to interpreter changes, activating the source first when needed."""

        LOGGER.info("%s bridge is now active.", TOOL_NAME)
        source = self._interpreter_source
        if source is None or self._subscription is not None:
            return
        if not source.is_active:
            try:
                await source.activate()
            except Exception:  # noqa: BLE001 - an unusable source only disables change tracking
                LOGGER.exception("Could not activate the interpreter source; interpreter changes will not be tracked")
                return
        self._subscription = source.on_execution_details_changed(self._on_execution_details_changed)

    def close(self) -> None:
        """Release the interpreter change subscription."""

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.dispose()
        LOGGER.info("%s bridge is now deactivated.", TOOL_NAME)

    async def __aenter__(self) -> FormatOrchestrator:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _on_execution_details_changed(self) -> None:
        LOGGER.info("Python execution details changed. %s availability will be re-evaluated.", TOOL_NAME)
        self._cache.invalidate()

    async def verify(self, runtime: RuntimeCandidate) -> bool:
        """Return whether ``runtime`` can run ``<runtime> -m mdformat --version``."""

        LOGGER.info("Checking for %s using Python: %s", TOOL_NAME, runtime)
        outcome = await self._invoker.run(InvocationRequest.build(runtime, version_arguments()))
        if isinstance(outcome, Success):
            raw_version = outcome.output_text.strip()
            self._versions[runtime] = normalize_version(raw_version) or raw_version
            LOGGER.info("%s found with %s. Version: %s", TOOL_NAME, runtime, raw_version)
            return True
        self._versions.pop(runtime, None)
        LOGGER.error("%s check failed for %s: %s", TOOL_NAME, runtime, outcome)
        return False

    async def format(
        self,
        input_text: str,
        context_hint: Path | None,
        options: FormatOptions,
        *,
        cancellation: CancellationToken | None = None,
    ) -> FormatResult:
        """Format ``input_text`` and return the replacement text or a classified failure.

        Args:
            input_text: Complete document text.
            context_hint: Path of the document, used for settings, interpreter
                discovery and the working directory.
            options: Formatter flags.
            cancellation: Optional token; once raised the result is discarded.

        Returns:
            FormatResult: ``text`` is set only when the formatter changed the input.
        """

        runtime = await self._resolver.resolve(context_hint)
        if runtime is None:
            return self._fail(input_text, NoRuntimeFound())

        if not await self._cache.ensure_checked(runtime, self.verify):
            return self._fail(input_text, ToolUnavailable(runtime), runtime=runtime)

        LOGGER.info("Formatting with %s using: %s", TOOL_NAME, runtime)
        request = InvocationRequest.build(
            runtime,
            build_tool_arguments(options),
            input_text=input_text,
            working_directory=working_directory_for(context_hint),
            cancellation=cancellation,
        )
        outcome = await self._invoker.run(request)
        return self._interpret(input_text, runtime, outcome)

    async def format_document(
        self,
        document: DocumentSurface,
        context_hint: Path | None,
        options: FormatOptions,
        *,
        cancellation: CancellationToken | None = None,
    ) -> FormatResult:
        """Format ``document`` and apply the single full-document edit, if any."""

        result = await self.format(document.get_text(), context_hint, options, cancellation=cancellation)
        for edit in result.edits:
            document.apply_edit(edit)
        return result

    async def check_installation(self, context_hint: Path | None = None) -> InstallationReport:
        """Re-resolve the interpreter and re-verify the formatter from a clean cache."""

        self._cache.invalidate()
        runtime = await self._resolver.resolve(context_hint)
        if runtime is None:
            self._notifications.info(
                f'Cannot check {TOOL_NAME}: No Python interpreter selected or configured via "python_path".',
            )
            self._report(ToolUnavailable(None))
            return InstallationReport(runtime=None, available=False)
        available = await self._cache.ensure_checked(runtime, self.verify)
        if not available:
            self._report(ToolUnavailable(runtime))
            return InstallationReport(runtime=runtime, available=False)
        self._notifications.info(f"{TOOL_NAME} is available with: {runtime}")
        return InstallationReport(runtime=runtime, available=True, version=self._versions.get(runtime))

    def _interpret(self, input_text: str, runtime: RuntimeCandidate, outcome: InvocationOutcome) -> FormatResult:
        match outcome:
            case Cancelled():
                return FormatResult(original_text=input_text, cancelled=True, runtime=runtime)
            case ProcessStartFailure(reason=reason):
                # The interpreter vanished or is not executable since it was verified.
                self._cache.mark_unavailable(runtime)
                return self._fail(input_text, ProcessStartError(runtime, reason), runtime=runtime)
            case TerminatedBySignal(signal_name=signal_name):
                return self._fail(input_text, TerminatedBySignalError(signal_name), runtime=runtime)
            case ToolReportedFailure(exit_code=exit_code, stderr_text=stderr_text):
                return self._fail(input_text, ToolExitedWithError(exit_code, stderr_text), runtime=runtime)
            case Success(output_text=output) if output and output != input_text:
                LOGGER.info("Formatted successfully.")
                return FormatResult(original_text=input_text, text=output, runtime=runtime)
            case _:
                LOGGER.info("%s produced no changes.", TOOL_NAME)
                return FormatResult(original_text=input_text, runtime=runtime)

    def _fail(
        self,
        input_text: str,
        error: FormatterError,
        *,
        runtime: RuntimeCandidate | None = None,
    ) -> FormatResult:
        self._report(error)
        return FormatResult(original_text=input_text, error=error, runtime=runtime)

    def _report(self, error: FormatterError) -> None:
        LOGGER.error("%s", error)
        self._notifications.error(str(error), error.detail)


__all__ = ["FormatOrchestrator", "InstallationReport", "working_directory_for"]
