"""Transition engine.

:func:`advance` is the only function that produces a follow-up snapshot.
Besides building the new immutable :class:`Resource`, it performs the
promise registry side effects tied to the loading boundary:

- ``loading`` False -> True: a new derived future is allocated and
  registered; the outgoing registration is dropped without settling it.
- ``loading`` True -> False: the registered future is resolved with
  ``data`` or rejected with ``error``, then deregistered.
- unchanged ``loading``: the previous future is reused as is.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pyresource._logfmt import summarize_for_log
from pyresource.exceptions import InvalidTransitionError, NullishRejectionError, ResourceRejectedError
from pyresource.models.actions import Patch, Pend, Reject, Resolve, SyncResult, parse_action, parse_patch
from pyresource.models.resource import Resource
from pyresource.registry import PromiseRegistry

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _as_exception(error: Any) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return ResourceRejectedError(error)


def _renew(registry: PromiseRegistry, outgoing: Resource[Any] | None) -> Any:
    if outgoing is not None:
        registry.delete(outgoing.promise)
    promise, controls = registry.create()
    registry.set(promise, controls)
    return promise


def _settle(registry: PromiseRegistry, resource: Resource[Any]) -> None:
    controls = registry.get(resource.promise)
    if controls is None:
        return
    if resource.error is not None:
        controls.reject(_as_exception(resource.error))
    else:
        controls.resolve(resource.data)
    registry.delete(resource.promise)


def advance(current: Resource[T], patch: Patch | Mapping[str, Any], registry: PromiseRegistry) -> Resource[T]:
    """Compute the snapshot following *current* after applying *patch*.

    Raises
    ------
    InvalidTransitionError
        When *patch* is not a recognizable patch shape.
    """
    patch = parse_patch(patch)

    error = patch.error
    if patch.has_error and error is None:
        error = NullishRejectionError(None)

    latest = patch.data if patch.data is not None else current.latest
    loading_changed = current.loading != patch.loading

    if loading_changed and patch.loading:
        promise = _renew(registry, current)
    else:
        promise = current.promise

    result: Resource[T] = Resource(
        data=patch.data,
        loading=patch.loading,
        error=error,
        latest=latest,
        promise=promise,
    )

    if loading_changed and not patch.loading:
        _settle(registry, result)
    elif not result.loading and (result.data is not None or result.error is not None):
        # A future handed out while unresolved is still registered; the
        # first synchronous outcome settles it.
        _settle(registry, result)

    _logger.debug(
        "Resource transition %s -> %s data=%s error=%s",
        current.state,
        result.state,
        summarize_for_log(result.data),
        summarize_for_log(result.error),
    )
    return result


def reduce(current: Resource[T], action: Any, registry: PromiseRegistry) -> Resource[T]:
    """Apply a tagged action (or an action mapping) to *current*."""
    parsed = parse_action(action)
    match parsed:
        case Pend() | Resolve() | Reject() | SyncResult():
            return advance(current, parsed.to_patch(current), registry)
        case _:  # pragma: no cover
            raise InvalidTransitionError(f"Invalid action type: {parsed!r}", action=action)


def create_resource(initial: Any = None, *, registry: PromiseRegistry) -> Resource[Any]:
    """Create a brand-new resource.

    An awaitable *initial* gives a ``pending`` resource, a value gives
    ``ready`` with an already resolved future, ``None`` gives
    ``unresolved`` with a registered future that the first outcome
    settles.
    """
    if inspect.isawaitable(initial):
        promise, controls = registry.create()
        registry.set(promise, controls)
        return Resource(loading=True, promise=promise)
    if initial is not None:
        return Resource(data=initial, latest=initial, promise=registry.resolved(initial))
    promise, controls = registry.create()
    registry.set(promise, controls)
    return Resource(promise=promise)


def initial_resource(
    initial: Any | Callable[[], Any] = None,
    *,
    loading: bool,
    registry: PromiseRegistry,
) -> Resource[Any]:
    """Build the first snapshot of a store.

    *initial* may be a value or a zero-argument callable producing it.
    With ``loading`` the result is ``pending`` (no value) or
    ``refreshing`` (value present); otherwise ``unresolved`` or ``ready``.
    """
    if callable(initial):
        initial = initial()
    if not loading:
        return create_resource(initial, registry=registry)
    return advance(create_resource(registry=registry), Patch(loading=True, data=initial), registry)
