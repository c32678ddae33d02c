"""Request coordinator.

Binds a fetcher to a dependency tuple and drives one resource store with
its outcomes.

Owns:
- issuing calls on activation, dependency change and ``refetch()``
- the race guard: only the most recently issued call may settle the
  resource, whatever order the calls finish in
- cooperative cancellation of superseded calls through abort signals
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pyresource._logfmt import summarize_for_log
from pyresource.abort import AbortController, is_cancellation
from pyresource.config import CoordinatorConfig
from pyresource.exceptions import ResourceConfigError
from pyresource.models.actions import Pend, Reject, Resolve, SyncResult
from pyresource.models.resource import Resource
from pyresource.registry import PromiseRegistry
from pyresource.store import ResourceStore, invoke_callback
from pyresource.transitions import initial_resource

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[..., Any]


@dataclass(slots=True)
class _Call:
    """One issued fetcher call.  Compared by identity for the race guard."""

    number: int
    args: tuple[Any, ...]
    is_refetch: bool
    controller: AbortController
    task: asyncio.Task[None] | None = None


def dependencies_changed(previous: Sequence[Any], current: Sequence[Any]) -> bool:
    """Shallow, ordered, position-wise comparison of two dependency tuples.

    Elements match when they are the same object, or equal and of the same
    type, so ``1`` and ``True`` count as different dependencies.
    """
    if len(previous) != len(current):
        return True
    return any(
        not (old is new or (type(old) is type(new) and old == new))
        for old, new in zip(previous, current, strict=True)
    )


class RequestCoordinator(Generic[T]):
    """Drives a resource from a fetcher and its dependencies.

    The fetcher is called as ``fetcher(*dependencies, signal=..., is_refetch=...)``
    and may return a value or an awaitable.

    Usage::

        async def load_user(user_id, *, signal, is_refetch):
            ...

        async with RequestCoordinator(load_user, 42) as users:
            user = await users.resource.promise
            users.update(43)

    Lifecycle triggers from the host are :meth:`activate`, :meth:`update`
    and :meth:`deactivate`.  Once deactivated, every trigger and control
    method is a no-op.

    Must be created while an event loop is running, unless a
    :class:`PromiseRegistry` bound to a loop is passed as *registry*.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *dependencies: Any,
        initial: T | Callable[[], T] | None = None,
        config: CoordinatorConfig | None = None,
        on_completed: Callable[[T], None] | None = None,
        on_error: Callable[[Any], None] | None = None,
        registry: PromiseRegistry | None = None,
    ) -> None:
        if not callable(fetcher):
            raise ResourceConfigError(f"fetcher must be callable, got {type(fetcher).__name__}")
        self._fetcher = fetcher
        self._dependencies: tuple[Any, ...] = tuple(dependencies)
        self._config = config if config is not None else CoordinatorConfig()
        self._on_completed = on_completed
        self._on_error = on_error
        self._registry = registry if registry is not None else PromiseRegistry()
        # Starts loading when a first run is due, so consumers never see a
        # one-tick "unresolved" before the first call is issued.
        self._store: ResourceStore[T] = ResourceStore(
            initial_resource(initial, loading=self._config.runs_on_activate, registry=self._registry),
            registry=self._registry,
        )
        self._current: _Call | None = None
        self._numbers = itertools.count(1)
        self._tasks: set[asyncio.Task[None]] = set()
        self._active = False
        self._torn_down = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RequestCoordinator[T]:
        self.activate()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.deactivate()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def resource(self) -> Resource[T]:
        return self._store.resource

    @property
    def registry(self) -> PromiseRegistry:
        return self._registry

    @property
    def config(self) -> CoordinatorConfig:
        return self._config

    @property
    def dependencies(self) -> tuple[Any, ...]:
        return self._dependencies

    @property
    def active(self) -> bool:
        return self._active

    @property
    def closed(self) -> bool:
        return self._torn_down

    @property
    def in_flight(self) -> asyncio.Task[None] | None:
        """Task awaiting the current call, if it is asynchronous and unsettled."""
        return self._current.task if self._current is not None else None

    def read(self, *, allow_stale: bool = False) -> T:
        return self._store.resource.read(allow_stale=allow_stale)

    def subscribe(self, listener: Callable[[Resource[T]], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    # ------------------------------------------------------------------
    # Host lifecycle triggers
    # ------------------------------------------------------------------

    def activate(self) -> Resource[T]:
        """First use: issue the initial call unless configured to skip it."""
        if self._torn_down or self._active:
            return self._store.resource
        self._active = True
        if self._config.runs_on_activate:
            self._issue(self._dependencies, is_refetch=False)
        return self._store.resource

    def update(self, *dependencies: Any, fetcher: Fetcher | None = None) -> Resource[T]:
        """Dependency change: issue a new call when the dependencies differ.

        A different *fetcher* is adopted for later calls; it triggers a
        call on its own only with ``refetch_on_fetcher_change``.
        """
        if self._torn_down:
            _logger.debug("Ignoring dependency change on torn down coordinator")
            return self._store.resource
        if fetcher is not None and not callable(fetcher):
            raise ResourceConfigError(f"fetcher must be callable, got {type(fetcher).__name__}")

        changed = dependencies_changed(self._dependencies, dependencies)
        if fetcher is not None and fetcher is not self._fetcher:
            changed = changed or self._config.refetch_on_fetcher_change
            self._fetcher = fetcher
        self._dependencies = tuple(dependencies)

        if not changed or not self._active:
            return self._store.resource
        if self._config.skip:
            self._abort_current(None)
        else:
            self._issue(self._dependencies, is_refetch=False)
        return self._store.resource

    def deactivate(self) -> None:
        """Teardown: abort the call in flight and freeze the resource."""
        if self._torn_down:
            return
        self._torn_down = True
        self._active = False
        self._abort_current(None)
        self._store.close()
        _logger.debug("Coordinator torn down")

    # ------------------------------------------------------------------
    # Imperative controls
    # ------------------------------------------------------------------

    def mutate(self, value: T) -> Resource[T]:
        """Settle the resource with *value* directly.

        A call in flight keeps running but its outcome is discarded.
        """
        if self._torn_down:
            return self._store.resource
        self._current = None
        return self._store.dispatch(SyncResult(payload=value))

    def refetch(self, *args: Any) -> asyncio.Future[Any]:
        """Issue a new call now, bypassing dependency change detection.

        Calls the fetcher with *args* when given, with the current
        dependencies otherwise.  Returns the derived future.
        """
        if self._torn_down:
            return self._store.resource.promise  # type: ignore[return-value]
        self._issue(args if args else self._dependencies, is_refetch=True)
        return self._store.resource.promise  # type: ignore[return-value]

    def abort(self, reason: BaseException | None = None) -> None:
        """Cancel the call in flight; its outcome is discarded.

        The resource is left as it is (still loading) until the next call
        settles it.  Aborting never produces an ``errored`` resource.
        """
        self._abort_current(reason)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _abort_current(self, reason: BaseException | None) -> None:
        call = self._current
        self._current = None
        if call is None:
            return
        _logger.debug("Aborting call #%d", call.number)
        call.controller.abort(reason)
        if self._config.cancel_on_abort and call.task is not None and not call.task.done():
            call.task.cancel()

    def _issue(self, args: tuple[Any, ...], *, is_refetch: bool) -> None:
        self._abort_current(None)
        call = _Call(
            number=next(self._numbers),
            args=tuple(args),
            is_refetch=is_refetch,
            controller=AbortController(),
        )
        self._current = call
        self._store.dispatch(Pend())
        _logger.debug(
            "Issuing call #%d args=%s is_refetch=%s",
            call.number,
            summarize_for_log(call.args),
            is_refetch,
        )

        try:
            result = self._fetcher(*call.args, signal=call.controller.signal, is_refetch=is_refetch)
        except Exception as exc:
            self._apply_error(call, exc)
            return

        if not inspect.isawaitable(result):
            self._apply_result(call, result)
            return

        task = asyncio.get_running_loop().create_task(self._await_call(call, result))
        call.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _await_call(self, call: _Call, awaitable: Any) -> None:
        try:
            data = await awaitable
        except asyncio.CancelledError as exc:
            if call.controller.signal.aborted:
                _logger.debug("Call #%d cancelled after abort", call.number)
                return
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            # The awaited fetcher result was cancelled by its own owner.
            self._apply_error(call, exc)
            return
        except Exception as exc:
            self._apply_error(call, exc)
            return
        self._apply_result(call, data)

    def _is_current(self, call: _Call) -> bool:
        """Only teardown discards a current call; a ``refetch`` issued before
        :meth:`activate` still settles the resource."""
        return self._current is call and not self._torn_down

    def _apply_result(self, call: _Call, data: Any) -> None:
        if not self._is_current(call):
            _logger.debug("Discarding stale result of call #%d", call.number)
            return
        self._current = None
        self._store.dispatch(Resolve(payload=data))
        invoke_callback(self._on_completed, data)

    def _apply_error(self, call: _Call, error: BaseException) -> None:
        if is_cancellation(error, call.controller.signal):
            _logger.debug("Suppressing cancellation of call #%d", call.number)
            return
        if not self._is_current(call):
            _logger.debug(
                "Discarding stale error of call #%d: %s",
                call.number,
                summarize_for_log(error),
            )
            return
        self._current = None
        self._store.dispatch(Reject(payload=error))
        invoke_callback(self._on_error, error)
