# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console-backed notification sink."""

from __future__ import annotations

from dataclasses import dataclass

from .logging import fail, info, warn


@dataclass(slots=True)
class ConsoleNotificationSink:
    """Render notifications on standard error so stdout can carry formatted text."""

    use_emoji: bool = True
    use_color: bool | None = None

    def info(self, message: str) -> None:
        info(message, use_emoji=self.use_emoji, use_color=self.use_color, stderr=True)

    def warn(self, message: str) -> None:
        warn(message, use_emoji=self.use_emoji, use_color=self.use_color, stderr=True)

    def error(self, message: str, detail: str | None = None) -> None:
        fail(message, use_emoji=self.use_emoji, use_color=self.use_color, stderr=True)
        if detail and detail not in message:
            for line in detail.splitlines():
                fail(f"    {line}", use_emoji=False, use_color=self.use_color, stderr=True)


__all__ = ["ConsoleNotificationSink"]
