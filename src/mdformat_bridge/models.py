# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Value objects shared by the resolution, cache and invocation pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from .errors import FormatterError, FormattingCancelled

if TYPE_CHECKING:
    from .cancellation import CancellationToken

RuntimeCandidate: TypeAlias = str


class AvailabilityVerdict(str, Enum):
    """Enumerate the states of the formatter availability cache."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class CacheState:
    """Snapshot of the availability cache.

    Attributes:
        runtime: Interpreter used for the most recent check, if any.
        verdict: Outcome of that check.
    """

    runtime: RuntimeCandidate | None = None
    verdict: AvailabilityVerdict = AvailabilityVerdict.UNKNOWN


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """Everything required to run the formatter once."""

    runtime: RuntimeCandidate
    tool_arguments: tuple[str, ...]
    input_text: str = ""
    working_directory: Path | None = None
    cancellation: CancellationToken | None = None

    @classmethod
    def build(
        cls,
        runtime: RuntimeCandidate,
        tool_arguments: Sequence[str],
        *,
        input_text: str = "",
        working_directory: Path | None = None,
        cancellation: CancellationToken | None = None,
    ) -> InvocationRequest:
        return cls(
            runtime=runtime,
            tool_arguments=tuple(tool_arguments),
            input_text=input_text,
            working_directory=working_directory,
            cancellation=cancellation,
        )


@dataclass(frozen=True, slots=True)
class Success:
    """The formatter exited cleanly; ``output_text`` is its stdout."""

    output_text: str


@dataclass(frozen=True, slots=True)
class ToolReportedFailure:
    """The formatter ran but exited with a non-zero status."""

    exit_code: int
    stderr_text: str


@dataclass(frozen=True, slots=True)
class ProcessStartFailure:
    """The interpreter could not be started at all."""

    reason: str


@dataclass(frozen=True, slots=True)
class TerminatedBySignal:
    """The formatter was killed by a signal instead of exiting."""

    signal_name: str


@dataclass(frozen=True, slots=True)
class Cancelled:
    """The caller cancelled the request; no output is trusted."""


InvocationOutcome: TypeAlias = Success | ToolReportedFailure | ProcessStartFailure | TerminatedBySignal | Cancelled


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replacement of ``original[start:end]`` with ``new_text``."""

    start: int
    end: int
    new_text: str

    @classmethod
    def full_document(cls, original: str, new_text: str) -> TextEdit:
        """Return an edit replacing the whole of ``original``."""

        return cls(start=0, end=len(original), new_text=new_text)

    def apply(self, original: str) -> str:
        return original[: self.start] + self.new_text + original[self.end :]


@dataclass(slots=True)
class FormatResult:
    """Outcome of a single orchestrated formatting request.

    Attributes:
        original_text: Text supplied by the caller.
        text: Replacement text, or ``None`` when nothing changed or the run failed.
        error: Classified failure, ``None`` on success or cancellation.
        cancelled: ``True`` when the request was cancelled by the caller.
        runtime: Interpreter used for the run, when one was resolved.
    """

    original_text: str
    text: str | None = None
    error: FormatterError | None = None
    cancelled: bool = False
    runtime: RuntimeCandidate | None = None
    edits: list[TextEdit] = field(init=False)

    def __post_init__(self) -> None:
        self.edits = [] if self.text is None else [TextEdit.full_document(self.original_text, self.text)]

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    @property
    def changed(self) -> bool:
        return bool(self.edits)

    def raise_for_status(self) -> None:
        """Raise the classified failure, or :class:`FormattingCancelled` when cancelled."""

        if self.error is not None:
            raise self.error
        if self.cancelled:
            raise FormattingCancelled


__all__ = [
    "AvailabilityVerdict",
    "CacheState",
    "Cancelled",
    "FormatResult",
    "InvocationOutcome",
    "InvocationRequest",
    "ProcessStartFailure",
    "RuntimeCandidate",
    "Success",
    "TerminatedBySignal",
    "TextEdit",
    "ToolReportedFailure",
]
