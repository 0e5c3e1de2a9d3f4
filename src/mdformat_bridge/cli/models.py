# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Option declarations and normalised inputs for the CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer

PATHS_ARGUMENT = Annotated[
    list[Path] | None,
    typer.Argument(
        metavar="[PATHS...]",
        help="Markdown files or directories to format. Reads standard input when omitted or '-'.",
    ),
]
CONTEXT_ARGUMENT = Annotated[
    Path | None,
    typer.Argument(
        metavar="[PATH]",
        help="Document or directory whose settings and environment should be checked.",
    ),
]
PYTHON_PATH_OPTION = Annotated[
    str | None,
    typer.Option("--python-path", help="Python interpreter that has mdformat installed."),
]
WRAP_OPTION = Annotated[
    str | None,
    typer.Option("--wrap", help="Paragraph wrap mode: 'keep', 'no' or a line width."),
]
END_OF_LINE_OPTION = Annotated[
    str | None,
    typer.Option("--end-of-line", help="Output line endings: 'keep', 'lf' or 'crlf'."),
]
VALIDATE_OPTION = Annotated[
    bool | None,
    typer.Option(
        "--validate/--no-validate",
        help="Ask mdformat to verify that the rendered HTML is unchanged.",
        show_default=False,
    ),
]
EXTRA_ARGS_OPTION = Annotated[
    list[str] | None,
    typer.Option("--arg", help="Extra argument passed to mdformat (repeatable)."),
]
STDIN_FILENAME_OPTION = Annotated[
    Path | None,
    typer.Option("--stdin-filename", help="Path used to locate settings when formatting standard input."),
]
CHECK_OPTION = Annotated[
    bool,
    typer.Option("--check", help="Report files that would change without writing them."),
]
NO_EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--no-emoji", help="Disable emoji in output."),
]
VERBOSE_OPTION = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show diagnostic logging on standard error."),
]


@dataclass(slots=True)
class SettingsOverrides:
    """Settings supplied on the command line; ``None`` leaves lower layers untouched."""

    python_path: str | None = None
    wrap: str | None = None
    end_of_line: str | None = None
    no_validate: bool | None = None
    args: tuple[str, ...] | None = None

    def as_mapping(self) -> dict[str, Any]:
        return {
            "python_path": self.python_path,
            "wrap": self.wrap,
            "end_of_line": self.end_of_line,
            "no_validate": self.no_validate,
            "args": list(self.args) if self.args is not None else None,
        }


@dataclass(slots=True)
class FormatCLIOptions:
    """Normalised CLI inputs for the format command."""

    paths: tuple[Path, ...]
    overrides: SettingsOverrides
    stdin_filename: Path | None
    check: bool
    use_emoji: bool
    verbose: bool

    @property
    def reads_stdin(self) -> bool:
        return not self.paths or self.paths == (Path("-"),)


def build_format_options(
    *,
    paths: list[Path] | None,
    python_path: str | None,
    wrap: str | None,
    end_of_line: str | None,
    validate: bool | None,
    extra_args: list[str] | None,
    stdin_filename: Path | None,
    check: bool,
    no_emoji: bool,
    verbose: bool,
) -> FormatCLIOptions:
    """Construct :class:`FormatCLIOptions` from Typer parameters."""

    return FormatCLIOptions(
        paths=tuple(path.expanduser() for path in (paths or [])),
        overrides=SettingsOverrides(
            python_path=python_path,
            wrap=wrap,
            end_of_line=end_of_line,
            no_validate=None if validate is None else not validate,
            args=tuple(extra_args) if extra_args else None,
        ),
        stdin_filename=stdin_filename.expanduser() if stdin_filename is not None else None,
        check=check,
        use_emoji=not no_emoji,
        verbose=verbose,
    )


__all__ = [
    "CHECK_OPTION",
    "CONTEXT_ARGUMENT",
    "END_OF_LINE_OPTION",
    "EXTRA_ARGS_OPTION",
    "FormatCLIOptions",
    "NO_EMOJI_OPTION",
    "PATHS_ARGUMENT",
    "PYTHON_PATH_OPTION",
    "STDIN_FILENAME_OPTION",
    "SettingsOverrides",
    "VALIDATE_OPTION",
    "VERBOSE_OPTION",
    "WRAP_OPTION",
    "build_format_options",
]
