# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for formatter invocation."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from typing import Any, Literal, TypeAlias, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants import DEFAULT_END_OF_LINE, UNSET_SENTINEL, WRAP_KEEP, WRAP_NO

EndOfLine: TypeAlias = Literal["keep", "lf", "crlf"]
WrapMode: TypeAlias = Literal["keep", "no"] | int
ValueT = TypeVar("ValueT")


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class FormatOptions(BaseModel):
    """Options translated into formatter command-line flags."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    wrap: WrapMode = WRAP_KEEP
    end_of_line: EndOfLine = cast(EndOfLine, DEFAULT_END_OF_LINE)
    no_validate: bool = False
    args: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("wrap", mode="before")
    @classmethod
    def _coerce_wrap(cls, value: Any) -> WrapMode:
        """Accept ``keep``, ``no`` or a positive integer (including numeric strings)."""

        if isinstance(value, bool):
            raise ValueError("wrap must be 'keep', 'no' or a positive integer")
        if isinstance(value, str):
            token = value.strip().lower()
            if token in (WRAP_KEEP, WRAP_NO):
                return cast(WrapMode, token)
            if not token.isdigit():
                raise ValueError("wrap must be 'keep', 'no' or a positive integer")
            value = int(token)
        if isinstance(value, int):
            if value < 1:
                raise ValueError("wrap width must be a positive integer")
            return value
        raise ValueError("wrap must be 'keep', 'no' or a positive integer")

    @field_validator("end_of_line", mode="before")
    @classmethod
    def _lower_end_of_line(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("args", mode="before")
    @classmethod
    def _split_args(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(shlex.split(value))
        return value


class BridgeSettings(FormatOptions):
    """Complete settings bundle, including interpreter selection."""

    python_path: str = ""
    plugins: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("python_path", mode="before")
    @classmethod
    def _normalise_python_path(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str) and value.strip() == UNSET_SENTINEL:
            return ""
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BridgeSettings:
        """Validate ``data`` and raise :class:`ConfigError` on failure."""

        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def format_options(self) -> FormatOptions:
        """Return the subset of settings that shapes the formatter command line."""

        return FormatOptions(
            wrap=self.wrap,
            end_of_line=self.end_of_line,
            no_validate=self.no_validate,
            args=self.args,
        )

    def get(self, key: str, default: ValueT) -> ValueT:
        """Return the setting stored under ``key`` or ``default`` when unset."""

        if key not in type(self).model_fields:
            return default
        value = getattr(self, key)
        if value is None or value == "":
            return default
        return cast(ValueT, value)


__all__ = ["BridgeSettings", "ConfigError", "EndOfLine", "FormatOptions", "WrapMode"]
