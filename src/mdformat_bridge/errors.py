# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception taxonomy for formatter resolution and invocation failures."""

from __future__ import annotations

from .constants import TOOL_NAME


class FormatterError(RuntimeError):
    """Base class for failures surfaced to the user."""

    @property
    def detail(self) -> str | None:
        """Return supplementary text shown alongside the message."""

        return None


class NoRuntimeFound(FormatterError):
    """Raised when no Python interpreter could be located."""

    def __init__(self) -> None:
        super().__init__(
            f"{TOOL_NAME}: Cannot format. No Python interpreter found. "
            "Please ensure Python is installed and in your PATH, activate a virtual environment, "
            'or set the "python_path" setting.',
        )


class ToolUnavailable(FormatterError):
    """Raised when the formatter is not installed for the resolved interpreter."""

    def __init__(self, runtime: str | None) -> None:
        self.runtime = runtime
        where = (
            f"the Python interpreter ('{runtime}')"
            if runtime
            else "your Python environment (no interpreter was selected/found, or the path was invalid)"
        )
        super().__init__(
            f"{TOOL_NAME} was not found using {where}. "
            'Make sure you have selected the right Python interpreter (or set "python_path") '
            f"and have {TOOL_NAME} installed in that environment (e.g., 'pip install {TOOL_NAME}').",
        )


class ProcessStartError(FormatterError):
    """Raised when the interpreter process could not be spawned."""

    def __init__(self, runtime: str, reason: str) -> None:
        self.runtime = runtime
        self.reason = reason
        super().__init__(f'{TOOL_NAME} failed to start: {reason}. Is "{runtime}" a valid Python path?')


class ToolExitedWithError(FormatterError):
    """Raised when the formatter exits with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"{TOOL_NAME} formatting failed: {stderr}")

    @property
    def detail(self) -> str | None:
        return self.stderr or None


class TerminatedBySignalError(FormatterError):
    """Raised when the formatter process was terminated by a signal."""

    def __init__(self, signal_name: str) -> None:
        self.signal_name = signal_name
        super().__init__(f"{TOOL_NAME} process terminated unexpectedly (signal: {signal_name}).")


class FormattingCancelled(FormatterError):
    """Raised by callers that convert a cancelled result into control flow."""

    def __init__(self) -> None:
        super().__init__("Formatting cancelled by user.")


__all__ = [
    "FormatterError",
    "FormattingCancelled",
    "NoRuntimeFound",
    "ProcessStartError",
    "TerminatedBySignalError",
    "ToolExitedWithError",
    "ToolUnavailable",
]
