# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models, sources and the layered loader."""

from __future__ import annotations

from .loader import ConfigLoader, ConfigLoadResult, FieldUpdate, find_project_root
from .models import BridgeSettings, ConfigError, EndOfLine, FormatOptions, WrapMode
from .sources import (
    ConfigSource,
    DefaultConfigSource,
    MappingConfigSource,
    PyProjectConfigSource,
    TomlConfigSource,
    normalise_key,
)

__all__ = [
    "BridgeSettings",
    "ConfigError",
    "ConfigLoadResult",
    "ConfigLoader",
    "ConfigSource",
    "DefaultConfigSource",
    "EndOfLine",
    "FieldUpdate",
    "FormatOptions",
    "MappingConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "WrapMode",
    "find_project_root",
    "normalise_key",
]
