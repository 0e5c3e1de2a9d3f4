# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for extracting tool versions from ``--version`` output."""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)+(?:[.-]?(?:a|b|rc|post|dev)\d*)?)")


def normalize_version(raw: str | None) -> str | None:
    """Return the first valid version number found on the first line of ``raw``."""

    if not raw or not raw.strip():
        return None
    first_line = raw.strip().splitlines()[0]
    match = VERSION_PATTERN.search(first_line)
    if match is None:
        return None
    try:
        return str(Version(match.group(1)))
    except InvalidVersion:
        return None


__all__ = ["normalize_version"]
