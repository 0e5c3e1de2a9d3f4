# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants used across mdformat_bridge modules."""

from __future__ import annotations

import os
from typing import Final

TOOL_NAME: Final[str] = "mdformat"
TOOL_MODULE: Final[str] = "mdformat"
RUNTIME_NAME: Final[str] = "python"

WINDOWS_OS_NAME: Final[str] = "nt"
IS_WINDOWS: Final[bool] = os.name == WINDOWS_OS_NAME

# Configured interpreter values treated as "not set".
UNSET_SENTINEL: Final[str] = "null"

VERSION_FLAG: Final[str] = "--version"
STDIN_SENTINEL: Final[str] = "-"

WINDOWS_INTERPRETER_NAMES: Final[tuple[str, ...]] = ("python.exe", "python3.exe", "py.exe")
POSIX_INTERPRETER_NAMES: Final[tuple[str, ...]] = ("python3", "python")

WINDOWS_UTF8_CODEPAGE: Final[str] = "chcp 65001>nul"

CHILD_ENV_OVERRIDES: Final[dict[str, str]] = {"PYTHONIOENCODING": "utf-8"}

WRAP_KEEP: Final[str] = "keep"
WRAP_NO: Final[str] = "no"
DEFAULT_END_OF_LINE: Final[str] = "lf"

CONFIG_FILE_NAME: Final[str] = ".mdformat-bridge.toml"
PYPROJECT_FILE_NAME: Final[str] = "pyproject.toml"
PYPROJECT_SECTION_KEY: Final[str] = "mdformat-bridge"
PROJECT_ROOT_MARKERS: Final[tuple[str, ...]] = (CONFIG_FILE_NAME, PYPROJECT_FILE_NAME, ".git")

MARKDOWN_EXTENSIONS: Final[frozenset[str]] = frozenset({".md", ".markdown"})
