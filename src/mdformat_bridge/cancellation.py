# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cancellation tokens shared between callers and the formatter pipeline."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

LOGGER = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe flag a caller raises to abandon a formatting request.

    Cancelling never kills a running formatter process. The pipeline lets the
    process exit and then discards its output, reporting the request as
    cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; repeated calls are no-ops."""

        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback()
            except Exception:  # noqa: BLE001 - one listener must not starve the rest
                LOGGER.exception("Cancellation callback %r failed", callback)

    def on_cancelled(self, callback: Callable[[], None]) -> None:
        """Invoke ``callback`` once cancellation is requested (immediately if it already was)."""

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()


__all__ = ["CancellationToken"]
