# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build formatter command lines and run them as one-shot subprocesses."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

# Bandit: list2cmdline is only used to quote arguments for the Windows shell plan.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .config.models import FormatOptions
from .constants import (
    CHILD_ENV_OVERRIDES,
    IS_WINDOWS,
    STDIN_SENTINEL,
    TOOL_MODULE,
    TOOL_NAME,
    VERSION_FLAG,
    WINDOWS_UTF8_CODEPAGE,
    WRAP_KEEP,
)
from .models import (
    Cancelled,
    InvocationOutcome,
    InvocationRequest,
    ProcessStartFailure,
    RuntimeCandidate,
    Success,
    TerminatedBySignal,
    ToolReportedFailure,
)

LOGGER = logging.getLogger(__name__)

OUTPUT_ENCODING = "utf-8"


def build_tool_arguments(options: FormatOptions) -> list[str]:
    """Return the formatter arguments for ``options`` in a stable order.

    The layout is ``-m mdformat [--wrap W] --end-of-line E [--no-validate] [args...] -``.
    Pass-through arguments come after the derived flags so that they win when
    the formatter honours the last occurrence of a repeated flag.
    """

    arguments = ["-m", TOOL_MODULE]
    if options.wrap != WRAP_KEEP:
        arguments.extend(["--wrap", str(options.wrap)])
    arguments.extend(["--end-of-line", options.end_of_line])
    if options.no_validate:
        arguments.append("--no-validate")
    arguments.extend(options.args)
    arguments.append(STDIN_SENTINEL)
    return arguments


def version_arguments() -> list[str]:
    """Return the arguments that make the formatter print its version and exit.

    Returns:
        list[str]: ``-m mdformat --version``.
    """

    return ["-m", TOOL_MODULE, VERSION_FLAG]


@dataclass(frozen=True, slots=True)
class InvocationPlan:
    """Platform-specific description of how to spawn the interpreter.

    Exactly one of ``argv`` (direct execution) or ``shell_command`` (execution
    through the platform command interpreter) drives the spawn.
    """

    argv: tuple[str, ...] = ()
    shell_command: str | None = None

    @property
    def uses_shell(self) -> bool:
        return self.shell_command is not None

    def describe(self) -> str:
        return self.shell_command if self.shell_command is not None else subprocess.list2cmdline(self.argv)


def build_invocation_plan(
    runtime: RuntimeCandidate,
    arguments: Sequence[str],
    *,
    windows: bool = IS_WINDOWS,
) -> InvocationPlan:
    """Return how ``runtime`` should be spawned with ``arguments`` on this platform.

    On Windows the interpreter runs under ``cmd`` after switching the console
    code page to UTF-8; elsewhere it is executed directly without a shell.
    """

    if windows:
        command_line = subprocess.list2cmdline([runtime, *arguments])
        return InvocationPlan(shell_command=f"{WINDOWS_UTF8_CODEPAGE} && {command_line}")
    return InvocationPlan(argv=(runtime, *arguments))


def child_environment(base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the formatter's environment: ``base`` (or ``os.environ``) with UTF-8 stdio forced.

    Args:
        base: Parent environment; the current process environment when ``None``.

    Returns:
        dict[str, str]: A new mapping safe to pass to the child process.
    """

    env = dict(os.environ if base is None else base)
    env.update(CHILD_ENV_OVERRIDES)
    return env


def _signal_name(returncode: int) -> str:
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"SIG{-returncode}"


class ToolInvoker:
    """Spawn the formatter, feed it the input text and classify how it ended."""

    def __init__(self, *, windows: bool = IS_WINDOWS, environ: Mapping[str, str] | None = None) -> None:
        self._windows = windows
        self._environ = environ

    def plan(self, request: InvocationRequest) -> InvocationPlan:
        """Return the spawn plan for ``request`` on the configured platform.

        Args:
            request: Invocation to describe.

        Returns:
            InvocationPlan: Direct argv or shell command line.
        """

        return build_invocation_plan(request.runtime, request.tool_arguments, windows=self._windows)

    async def run(self, request: InvocationRequest) -> InvocationOutcome:
        """Run ``request`` to completion and return its classified outcome.

        A cancellation requested while the process runs does not stop it; the
        process is awaited and its output discarded.

        Args:
            request: Runtime, arguments, input text and optional cancellation token.

        Returns:
            InvocationOutcome: Exactly one of the outcome variants.
        """

        plan = self.plan(request)
        LOGGER.debug("Spawning: %s", plan.describe())
        token = request.cancellation
        if token is not None and token.is_cancellation_requested:
            LOGGER.info("Formatting cancelled before %s was started.", TOOL_NAME)
            return Cancelled()
        try:
            process = await self._spawn(plan, request)
        except OSError as exc:
            LOGGER.error("Failed to start %s process: %s", TOOL_NAME, exc)
            return ProcessStartFailure(reason=exc.strerror or str(exc))

        stdout, stderr = await process.communicate(request.input_text.encode(OUTPUT_ENCODING))
        returncode = process.returncode
        stdout_text = stdout.decode(OUTPUT_ENCODING, errors="replace")
        stderr_text = stderr.decode(OUTPUT_ENCODING, errors="replace")

        if token is not None and token.is_cancellation_requested:
            LOGGER.info("Formatting cancelled by user; discarding %s output (exit code %s).", TOOL_NAME, returncode)
            return Cancelled()
        if returncode is not None and returncode < 0 and not self._windows:
            name = _signal_name(returncode)
            LOGGER.error("%s process terminated by signal: %s", TOOL_NAME, name)
            return TerminatedBySignal(signal_name=name)
        if returncode:
            LOGGER.error("%s process exited with code %s.", TOOL_NAME, returncode)
            if stderr_text.strip():
                LOGGER.error("%s stderr: %s", TOOL_NAME, stderr_text.strip())
            detail = stderr_text.strip() or f"{TOOL_NAME} exited with code {returncode}"
            return ToolReportedFailure(exit_code=returncode, stderr_text=detail)
        return Success(output_text=stdout_text)

    async def _spawn(self, plan: InvocationPlan, request: InvocationRequest) -> asyncio.subprocess.Process:
        cwd = str(request.working_directory) if request.working_directory is not None else None
        env = child_environment(self._environ)
        if plan.shell_command is not None:
            return await asyncio.create_subprocess_shell(  # nosec B602 - Windows code page switch requires cmd
                plan.shell_command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )
        return await asyncio.create_subprocess_exec(
            *plan.argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )


__all__ = [
    "InvocationPlan",
    "ToolInvoker",
    "build_invocation_plan",
    "build_tool_arguments",
    "child_environment",
    "version_arguments",
]
