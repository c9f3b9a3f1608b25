"""Coalescing delivery of rendering-facing updates.

A single pending slot plus one scheduled flush: any number of submissions
before the flush collapse into one delivery of the latest value. Only the
notification is coalesced; state reconciliation still happens per message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)

_EMPTY = object()


class CoalescingScheduler(Generic[T]):
    """Deliver at most one value per ``interval`` seconds to ``deliver``."""

    def __init__(
        self,
        deliver: Callable[[T], None],
        *,
        interval: float = 1 / 60,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._deliver = deliver
        self._interval = interval
        self._loop = loop
        self._pending: object = _EMPTY
        self._handle: asyncio.TimerHandle | asyncio.Handle | None = None
        self._delivered = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not _EMPTY

    @property
    def delivered(self) -> int:
        """Number of deliveries made so far."""
        return self._delivered

    def submit(self, value: T) -> None:
        """Replace the pending value and schedule a flush if none is scheduled."""
        self._pending = value
        if self._handle is not None:
            return
        loop = self._loop or asyncio.get_running_loop()
        if self._interval > 0:
            self._handle = loop.call_later(self._interval, self._on_tick)
        else:
            self._handle = loop.call_soon(self._on_tick)

    def _on_tick(self) -> None:
        self._handle = None
        self.flush()

    def flush(self) -> bool:
        """Deliver the pending value now. Returns whether anything was delivered."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._pending is _EMPTY:
            return False
        value = self._pending
        self._pending = _EMPTY
        self._delivered += 1
        try:
            self._deliver(value)  # type: ignore[arg-type]
        except Exception:
            _logger.exception("Update subscriber raised")
        return True

    def cancel(self) -> None:
        """Drop any pending value without delivering it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = _EMPTY
