# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Memoised verdict on whether the formatter is installed for an interpreter."""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from typing import TypeAlias

from .models import AvailabilityVerdict, CacheState, RuntimeCandidate

LOGGER = logging.getLogger(__name__)

Verifier: TypeAlias = Callable[[RuntimeCandidate], Awaitable[bool]]


class AvailabilityCache:
    """Remember whether the formatter answered for the last checked interpreter.

    Only a positive verdict for the same interpreter is reused. Unknown,
    mismatched and negative verdicts always trigger a fresh verification so a
    newly installed formatter is picked up on the next request. The
    ``(runtime, verdict)`` pair is stored as one immutable snapshot and swapped
    under a lock, so readers never observe a torn pair.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = CacheState()

    @property
    def snapshot(self) -> CacheState:
        with self._lock:
            return self._state

    def needs_check(self, candidate: RuntimeCandidate) -> bool:
        state = self.snapshot
        return state.verdict is not AvailabilityVerdict.AVAILABLE or state.runtime != candidate

    async def ensure_checked(self, candidate: RuntimeCandidate, verifier: Verifier) -> bool:
        """Return whether the formatter is available for ``candidate``.

        Args:
            candidate: Interpreter about to be used.
            verifier: Coroutine function running the real availability probe.

        Returns:
            bool: ``True`` when the formatter is available.
        """

        if not self.needs_check(candidate):
            LOGGER.debug("Formatter availability for %s served from cache", candidate)
            return True
        LOGGER.info("Re-evaluating formatter availability for interpreter: %s", candidate)
        available = await verifier(candidate)
        self._store(candidate, AvailabilityVerdict.AVAILABLE if available else AvailabilityVerdict.UNAVAILABLE)
        return available

    def invalidate(self) -> None:
        """Force the next request to re-verify; the remembered interpreter is kept."""

        with self._lock:
            self._state = CacheState(runtime=self._state.runtime, verdict=AvailabilityVerdict.UNKNOWN)
        LOGGER.info("Formatter availability will be re-evaluated on next format attempt.")

    def mark_unavailable(self, candidate: RuntimeCandidate) -> None:
        """Record that ``candidate`` could not run the formatter."""

        self._store(candidate, AvailabilityVerdict.UNAVAILABLE)

    def _store(self, candidate: RuntimeCandidate, verdict: AvailabilityVerdict) -> None:
        with self._lock:
            self._state = CacheState(runtime=candidate, verdict=verdict)


__all__ = ["AvailabilityCache", "Verifier"]
