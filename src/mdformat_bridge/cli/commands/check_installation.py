# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation check CLI command."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich import box
from rich.table import Table

from ...config import ConfigError, ConfigLoadResult
from ...console import detect_tty, get_console_manager
from ...constants import TOOL_NAME
from ...logging import configure_diagnostics, fail, section
from ...orchestrator import InstallationReport
from ..models import CONTEXT_ARGUMENT, NO_EMOJI_OPTION, PYTHON_PATH_OPTION, VERBOSE_OPTION, SettingsOverrides
from ..services import build_services


def register(app: typer.Typer) -> None:
    """Attach the ``check-installation`` command to ``app``."""

    app.command("check-installation")(check_installation_command)


def check_installation_command(
    path: CONTEXT_ARGUMENT = None,
    python_path: PYTHON_PATH_OPTION = None,
    no_emoji: NO_EMOJI_OPTION = False,
    verbose: VERBOSE_OPTION = False,
) -> None:
    """Locate the Python interpreter and confirm mdformat is installed for it.

    Raises:
        typer.Exit: Always raised; status 0 when mdformat is available.
    """

    configure_diagnostics(verbose=verbose)
    use_emoji = not no_emoji
    hint = path.expanduser().resolve() if path is not None else Path.cwd()
    overrides = SettingsOverrides(python_path=python_path)
    try:
        report, load_result = asyncio.run(run_check(hint, overrides, use_emoji=use_emoji))
    except ConfigError as exc:
        fail(f"Invalid configuration: {exc}", use_emoji=use_emoji, stderr=True)
        raise typer.Exit(code=2) from exc
    _render_report(report, load_result)
    raise typer.Exit(code=0 if report.available else 1)


async def run_check(
    hint: Path,
    overrides: SettingsOverrides,
    *,
    use_emoji: bool,
) -> tuple[InstallationReport, ConfigLoadResult]:
    services = build_services(overrides.as_mapping(), use_emoji=use_emoji)
    load_result = services.settings.load(hint)
    async with services.orchestrator as orchestrator:
        report = await orchestrator.check_installation(hint)
    return report, load_result


def _render_report(report: InstallationReport, load_result: ConfigLoadResult) -> None:
    use_color = detect_tty()
    section(f"{TOOL_NAME} installation", use_color=use_color)
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Check", style="bold")
    table.add_column("Details", overflow="fold")
    table.add_row("Project root", str(load_result.project_root))
    table.add_row("python_path source", load_result.source_of("python_path") or "not configured")
    table.add_row("Interpreter", report.runtime or "-")
    status = "available" if report.available else "missing"
    style = "green" if report.available else "red"
    table.add_row("Status", f"[{style}]{status}[/]" if use_color else status)
    table.add_row("Version", report.version or "-")
    plugins = load_result.settings.plugins
    table.add_row("Configured plugins", ", ".join(plugins) if plugins else "-")
    get_console_manager().get(color=use_color, emoji=False).print(table)


__all__ = ["check_installation_command", "register", "run_check"]
