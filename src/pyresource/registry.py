"""Promise registry.

Maps a derived future to the controls that settle it, so a future can be
handed out to consumers long before (and independently of) the code that
eventually resolves or rejects it.  The transition engine is the only
writer; snapshots are immutable and this registry is the one piece of
mutable state shared between them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PromiseControls:
    """Settlement controls for one derived future."""

    resolve: Callable[[Any], None]
    reject: Callable[[BaseException], None]


def _mark_retrieved(future: asyncio.Future[Any]) -> None:
    # Rejections nobody awaited must not be reported by the loop's
    # "exception was never retrieved" handler.
    if not future.cancelled():
        future.exception()


def _controls_for(future: asyncio.Future[Any]) -> PromiseControls:
    def resolve(value: Any) -> None:
        if future.done():
            _logger.debug("Ignoring resolve of an already settled future id=%s", id(future))
            return
        future.set_result(value)

    def reject(error: BaseException) -> None:
        if future.done():
            _logger.debug("Ignoring reject of an already settled future id=%s", id(future))
            return
        future.set_exception(error)

    return PromiseControls(resolve=resolve, reject=reject)


class PromiseRegistry:
    """Keyed store of derived futures and their settlement controls.

    Entries are removed right after settlement; ``get`` and ``delete`` on
    unknown handles are no-ops.  A future whose entry is deleted before it
    was settled stays pending unless something else settles it.
    """

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._entries: dict[asyncio.Future[Any], PromiseControls] = {}

    def _event_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def create(self) -> tuple[asyncio.Future[Any], PromiseControls]:
        """Allocate a pending future and its controls (not registered)."""
        future: asyncio.Future[Any] = self._event_loop().create_future()
        future.add_done_callback(_mark_retrieved)
        return future, _controls_for(future)

    def resolved(self, value: Any) -> asyncio.Future[Any]:
        """Return an already-resolved, unregistered future."""
        future: asyncio.Future[Any] = self._event_loop().create_future()
        future.set_result(value)
        return future

    def set(self, promise: asyncio.Future[Any], controls: PromiseControls) -> None:
        self._entries[promise] = controls

    def get(self, promise: asyncio.Future[Any] | None) -> PromiseControls | None:
        if promise is None:
            return None
        return self._entries.get(promise)

    def delete(self, promise: asyncio.Future[Any] | None) -> None:
        if promise is None:
            return
        self._entries.pop(promise, None)

    def has(self, promise: asyncio.Future[Any] | None) -> bool:
        return promise is not None and promise in self._entries

    def __contains__(self, promise: object) -> bool:
        return promise in self._entries

    def __len__(self) -> int:
        return len(self._entries)
