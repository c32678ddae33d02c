"""Imperatively set asynchronous value.

:class:`AsyncState` is a resource without a fetcher: callers push plain
values or awaitables into it with :meth:`AsyncState.set`.  Only the most
recently set awaitable may settle the resource.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pyresource._logfmt import summarize_for_log
from pyresource.models.actions import Pend, Reject, Resolve, SyncResult
from pyresource.models.resource import Resource
from pyresource.registry import PromiseRegistry
from pyresource.store import ResourceStore, invoke_callback
from pyresource.transitions import create_resource

_logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")


class AsyncState(Generic[T, C]):
    """A single async value with race-guarded updates.

    Usage::

        state = AsyncState(load_profile(user_id))
        ...
        state.set(load_profile(other_user_id))
        profile = await state.resource.promise

    Must be created while an event loop is running.
    """

    def __init__(
        self,
        initial: T | Awaitable[T] | Callable[[], T] | None = None,
        *,
        on_completed: Callable[[T, C | None], None] | None = None,
        on_error: Callable[[Any, C | None], None] | None = None,
        context: C | None = None,
        registry: PromiseRegistry | None = None,
    ) -> None:
        self._registry = registry if registry is not None else PromiseRegistry()
        self._on_completed = on_completed
        self._on_error = on_error
        self._context = context
        self._last: Awaitable[T] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

        if callable(initial) and not inspect.isawaitable(initial):
            initial = initial()
        self._store: ResourceStore[T] = ResourceStore(
            create_resource(initial, registry=self._registry),
            registry=self._registry,
        )
        if inspect.isawaitable(initial):
            self._track(initial)

    @property
    def resource(self) -> Resource[T]:
        return self._store.resource

    @property
    def registry(self) -> PromiseRegistry:
        return self._registry

    @property
    def closed(self) -> bool:
        return self._store.closed

    def read(self, *, allow_stale: bool = False) -> T:
        return self._store.resource.read(allow_stale=allow_stale)

    def subscribe(self, listener: Callable[[Resource[T]], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def set(self, value: T | Awaitable[T]) -> Resource[T]:
        """Set the next value.

        Plain values settle the resource immediately.  Awaitables move it to
        ``pending``/``refreshing`` until they settle, unless superseded by a
        later ``set`` in the meantime.
        """
        if self._store.closed:
            _logger.debug("Ignoring set on closed AsyncState")
            return self._store.resource
        if not inspect.isawaitable(value):
            self._last = None
            return self._store.dispatch(SyncResult(payload=value))
        self._store.dispatch(Pend())
        self._track(value)
        return self._store.resource

    def close(self) -> None:
        """Discard pending settlements and freeze the current snapshot."""
        self._last = None
        self._store.close()

    def _track(self, awaitable: Awaitable[T]) -> None:
        self._last = awaitable
        task = asyncio.get_running_loop().create_task(self._settle(awaitable))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _settle(self, awaitable: Awaitable[T]) -> None:
        try:
            data = await awaitable
        except asyncio.CancelledError as exc:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            self._reject(awaitable, exc)
            return
        except Exception as exc:
            self._reject(awaitable, exc)
            return
        if self._last is not awaitable:
            _logger.debug("Discarding stale result %s", summarize_for_log(data))
            return
        self._last = None
        self._store.dispatch(Resolve(payload=data))
        invoke_callback(self._on_completed, data, self._context)

    def _reject(self, awaitable: Awaitable[T], error: BaseException) -> None:
        if self._last is not awaitable:
            _logger.debug("Discarding stale rejection %s", summarize_for_log(error))
            return
        self._last = None
        self._store.dispatch(Reject(payload=error))
        invoke_callback(self._on_error, self._store.resource.error, self._context)
