# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Document surfaces backed by files and in-memory strings."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .models import TextEdit


@dataclass(slots=True)
class FileDocument:
    """Markdown file on disk; line endings are preserved byte for byte."""

    path: Path
    encoding: str = "utf-8"

    def get_text(self) -> str:
        with self.path.open("r", encoding=self.encoding, newline="") as handle:
            return handle.read()

    def apply_edit(self, edit: TextEdit) -> None:
        updated = edit.apply(self.get_text())
        with self.path.open("w", encoding=self.encoding, newline="") as handle:
            handle.write(updated)


@dataclass(slots=True)
class StringDocument:
    """In-memory document, used for standard input."""

    text: str
    edits: list[TextEdit] = field(default_factory=list)

    def get_text(self) -> str:
        return self.text

    def apply_edit(self, edit: TextEdit) -> None:
        self.text = edit.apply(self.text)
        self.edits.append(edit)


__all__ = ["FileDocument", "StringDocument"]
