# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Format CLI command."""

from __future__ import annotations

import asyncio
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from ...cancellation import CancellationToken
from ...config import ConfigError
from ...document import FileDocument, StringDocument
from ...errors import NoRuntimeFound, ProcessStartError, ToolUnavailable
from ...logging import configure_diagnostics, fail, ok, warn
from ...orchestrator import FormatOrchestrator
from ..models import (
    CHECK_OPTION,
    END_OF_LINE_OPTION,
    EXTRA_ARGS_OPTION,
    NO_EMOJI_OPTION,
    PATHS_ARGUMENT,
    PYTHON_PATH_OPTION,
    STDIN_FILENAME_OPTION,
    VALIDATE_OPTION,
    VERBOSE_OPTION,
    WRAP_OPTION,
    FormatCLIOptions,
    build_format_options,
)
from ..services import BridgeServices, build_services, iter_markdown_files

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_CANCELLED = 130
STDIO_ENCODING = "utf-8"

# Failures that will repeat for every remaining file in the run.
ENVIRONMENT_ERRORS = (NoRuntimeFound, ToolUnavailable, ProcessStartError)


def register(app: typer.Typer) -> None:
    """Attach the ``format`` command to ``app``."""

    app.command("format")(format_command)


def format_command(
    paths: PATHS_ARGUMENT = None,
    python_path: PYTHON_PATH_OPTION = None,
    wrap: WRAP_OPTION = None,
    end_of_line: END_OF_LINE_OPTION = None,
    validate: VALIDATE_OPTION = None,
    extra_args: EXTRA_ARGS_OPTION = None,
    stdin_filename: STDIN_FILENAME_OPTION = None,
    check: CHECK_OPTION = False,
    no_emoji: NO_EMOJI_OPTION = False,
    verbose: VERBOSE_OPTION = False,
) -> None:
    """Format Markdown files in place, or standard input to standard output.

    Raises:
        typer.Exit: Always raised to terminate the command with an exit status.
    """

    options = build_format_options(
        paths=paths,
        python_path=python_path,
        wrap=wrap,
        end_of_line=end_of_line,
        validate=validate,
        extra_args=extra_args,
        stdin_filename=stdin_filename,
        check=check,
        no_emoji=no_emoji,
        verbose=verbose,
    )
    configure_diagnostics(verbose=options.verbose)
    try:
        exit_code = asyncio.run(run_format(options))
    except ConfigError as exc:
        fail(f"Invalid configuration: {exc}", use_emoji=options.use_emoji, stderr=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
    raise typer.Exit(code=exit_code)


async def run_format(options: FormatCLIOptions) -> int:
    """Format the requested inputs and return the process exit status."""

    services = build_services(options.overrides.as_mapping(), use_emoji=options.use_emoji)
    token = CancellationToken()
    with _cancel_on_interrupt(token):
        async with services.orchestrator as orchestrator:
            if options.reads_stdin:
                return await _format_stdin(options, services, orchestrator, token)
            return await _format_paths(options, services, orchestrator, token)


@contextmanager
def _cancel_on_interrupt(token: CancellationToken) -> Iterator[None]:
    loop = asyncio.get_running_loop()
    installed = True
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError):
        # Windows event loops and non-main threads cannot install signal handlers.
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def read_stdin_text() -> str:
    """Read standard input as UTF-8 without newline translation."""

    return sys.stdin.buffer.read().decode(STDIO_ENCODING)


def write_stdout_text(text: str) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(text.encode(STDIO_ENCODING))
    sys.stdout.buffer.flush()


async def _format_stdin(
    options: FormatCLIOptions,
    services: BridgeServices,
    orchestrator: FormatOrchestrator,
    token: CancellationToken,
) -> int:
    hint = options.stdin_filename or Path.cwd()
    settings = services.settings(hint)
    try:
        text = await asyncio.to_thread(read_stdin_text)
    except UnicodeDecodeError as exc:
        fail(f"Standard input is not valid {STDIO_ENCODING}: {exc}", use_emoji=options.use_emoji, stderr=True)
        return EXIT_FAILED
    document = StringDocument(text)
    result = await orchestrator.format_document(document, hint, settings.format_options(), cancellation=token)
    if result.cancelled:
        return EXIT_CANCELLED
    if result.error is not None:
        return EXIT_FAILED
    if options.check:
        return EXIT_FAILED if result.changed else EXIT_OK
    write_stdout_text(document.text)
    return EXIT_OK


async def _format_paths(
    options: FormatCLIOptions,
    services: BridgeServices,
    orchestrator: FormatOrchestrator,
    token: CancellationToken,
) -> int:
    changed = unchanged = failed = 0
    for path in iter_markdown_files(options.paths):
        if not path.is_file():
            fail(f"{path}: no such file", use_emoji=options.use_emoji, stderr=True)
            failed += 1
            continue
        document = FileDocument(path)
        format_options = services.settings(path).format_options()
        if options.check:
            result = await orchestrator.format(document.get_text(), path, format_options, cancellation=token)
        else:
            result = await orchestrator.format_document(document, path, format_options, cancellation=token)
        if result.cancelled:
            return EXIT_CANCELLED
        if result.error is not None:
            failed += 1
            if isinstance(result.error, ENVIRONMENT_ERRORS):
                break
            continue
        if result.changed:
            changed += 1
            if options.check:
                warn(f"Would reformat {path}", use_emoji=options.use_emoji, stderr=True)
        else:
            unchanged += 1

    verb = "would be reformatted" if options.check else "reformatted"
    summary = f"{changed} file(s) {verb}, {unchanged} unchanged"
    if failed:
        fail(f"{summary}, {failed} failed", use_emoji=options.use_emoji, stderr=True)
        return EXIT_FAILED
    ok(summary, use_emoji=options.use_emoji, stderr=True)
    if options.check and changed:
        return EXIT_FAILED
    return EXIT_OK


__all__ = ["format_command", "register", "run_format"]
