"""Resource store.

This is the only component allowed to move a resource forward: every
new snapshot of one logical resource goes through :meth:`ResourceStore.dispatch`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pyresource.models.actions import parse_action
from pyresource.models.resource import Resource
from pyresource.registry import PromiseRegistry
from pyresource.transitions import reduce

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[Resource[Any]], None]


class ResourceStore(Generic[T]):
    """Holds the current snapshot and applies actions to it.

    Listeners are notified with each new snapshot.  Once closed, the
    store ignores every dispatch and keeps its last snapshot.
    """

    def __init__(self, resource: Resource[T], *, registry: PromiseRegistry) -> None:
        self._resource = resource
        self._registry = registry
        self._listeners: list[Listener] = []
        self._closed = False

    @property
    def resource(self) -> Resource[T]:
        return self._resource

    @property
    def registry(self) -> PromiseRegistry:
        return self._registry

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, action: Any) -> Resource[T]:
        """Apply *action* and notify listeners.

        Raises
        ------
        InvalidTransitionError
            For unrecognized actions, even on a closed store.
        """
        parsed = parse_action(action)
        if self._closed:
            _logger.debug("Ignoring %s on closed store", parsed.type)
            return self._resource
        self._resource = reduce(self._resource, parsed, self._registry)
        for listener in list(self._listeners):
            try:
                listener(self._resource)
            except Exception:
                _logger.debug("Resource listener failed", exc_info=True)
        return self._resource

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()


def invoke_callback(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Run a user callback; failures are logged and never propagated."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        _logger.debug("Resource callback %r failed", callback, exc_info=True)
