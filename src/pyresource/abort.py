"""Cooperative cancellation primitives passed to fetchers.

A fresh :class:`AbortSignal` accompanies every fetcher call.  Fetchers
may honor it (stop the underlying transport) or ignore it; the
coordinator discards the aborted call's outcome either way.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pyresource.exceptions import RequestAbortedError

_logger = logging.getLogger(__name__)


class AbortSignal:
    """Read-only view of an :class:`AbortController`'s state."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: BaseException | None = None
        self._listeners: list[Callable[[BaseException], None]] = []
        self._event: asyncio.Event | None = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> BaseException | None:
        return self._reason

    def raise_if_aborted(self) -> None:
        if self._aborted and self._reason is not None:
            raise self._reason

    def add_listener(self, callback: Callable[[BaseException], None]) -> None:
        """Call *callback* with the abort reason once the signal is aborted."""
        if self._aborted:
            assert self._reason is not None  # noqa: S101
            callback(self._reason)
            return
        self._listeners.append(callback)

    async def wait(self) -> BaseException:
        """Block until the signal is aborted; return the reason."""
        if not self._aborted:
            if self._event is None:
                self._event = asyncio.Event()
            await self._event.wait()
        assert self._reason is not None  # noqa: S101
        return self._reason

    def _abort(self, reason: BaseException) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        if self._event is not None:
            self._event.set()
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener(reason)
            except Exception:
                _logger.debug("Abort listener failed", exc_info=True)


class AbortController:
    """Owner side of an :class:`AbortSignal`."""

    def __init__(self) -> None:
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    def abort(self, reason: BaseException | None = None) -> None:
        """Abort the signal; later calls are no-ops."""
        self._signal._abort(reason if reason is not None else RequestAbortedError())  # noqa: SLF001


def is_cancellation(error: Any, signal: AbortSignal | None) -> bool:
    """Whether *error* is the outcome of aborting *signal*."""
    if signal is None or not signal.aborted:
        return False
    return error is signal.reason or isinstance(error, asyncio.CancelledError)
