# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Interfaces for the collaborators consumed by the formatter pipeline."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, TypeVar, runtime_checkable

from .models import TextEdit

ValueT = TypeVar("ValueT")


@runtime_checkable
class SettingsSource(Protocol):
    """Read formatter settings scoped to the current document."""

    @abstractmethod
    def get(self, key: str, default: ValueT) -> ValueT:
        """Return the value stored under ``key``.

        Args:
            key: Setting name, e.g. ``python_path`` or ``wrap``.
            default: Value returned when the setting is absent.

        Returns:
            ValueT: Stored value or ``default``.
        """
        raise NotImplementedError


@runtime_checkable
class Subscription(Protocol):
    """Handle returned by event registrations."""

    @abstractmethod
    def dispose(self) -> None:
        """Stop delivering events to the registered callback."""
        raise NotImplementedError


@runtime_checkable
class InterpreterSource(Protocol):
    """Cooperating component that tracks the user's selected interpreter."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Return whether the source is ready to answer queries.

        Returns:
            bool: ``True`` once :meth:`activate` has completed.
        """
        raise NotImplementedError

    @abstractmethod
    async def activate(self) -> None:
        """Prepare the source for queries."""
        raise NotImplementedError

    @abstractmethod
    def get_execution_command(self, context_hint: Path | None) -> Sequence[str]:
        """Return the command used to run Python for ``context_hint``.

        Args:
            context_hint: Document path the interpreter is requested for.

        Returns:
            Sequence[str]: Interpreter command, empty when none is selected.
        """
        raise NotImplementedError

    @abstractmethod
    def on_execution_details_changed(self, callback: Callable[[], None]) -> Subscription:
        """Register ``callback`` for interpreter selection changes.

        Args:
            callback: Zero-argument callable invoked after each change.

        Returns:
            Subscription: Handle releasing the registration.
        """
        raise NotImplementedError


@runtime_checkable
class NotificationSink(Protocol):
    """Fire-and-forget user notifications."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Show an informational message.

        Args:
            message: Text presented to the user.
        """
        raise NotImplementedError

    @abstractmethod
    def warn(self, message: str) -> None:
        """Show a warning.

        Args:
            message: Text presented to the user.
        """
        raise NotImplementedError

    @abstractmethod
    def error(self, message: str, detail: str | None = None) -> None:
        """Show an error.

        Args:
            message: One-line summary of the failure.
            detail: Optional supplementary text, such as the formatter's stderr.
        """
        raise NotImplementedError


@runtime_checkable
class DocumentSurface(Protocol):
    """Text container that accepts a single full-range replacement."""

    @abstractmethod
    def get_text(self) -> str:
        """Return the complete current text of the document.

        Returns:
            str: Document contents with line endings untouched.
        """
        raise NotImplementedError

    @abstractmethod
    def apply_edit(self, edit: TextEdit) -> None:
        """Apply ``edit`` to the document.

        Args:
            edit: Replacement computed against the text from :meth:`get_text`.
        """
        raise NotImplementedError


__all__ = [
    "DocumentSurface",
    "InterpreterSource",
    "NotificationSink",
    "SettingsSource",
    "Subscription",
]
