"""Resource snapshot model and its state classification.

A :class:`Resource` is an immutable snapshot of one asynchronous value:

| state      | data | loading | error |
|:-----------|:----:|:-------:|:-----:|
| unresolved | No   | No      | No    |
| pending    | No   | Yes     | No    |
| refreshing | Yes  | Yes     | No    |
| ready      | Yes  | No      | No    |
| errored    | No   | No      | Yes   |

``None`` means "absent" for both ``data`` and ``error``.  ``state`` is
never passed in; it is derived from the three core fields whenever a
snapshot is built.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pyresource.exceptions import ResourcePendingError, ResourceRejectedError

T = TypeVar("T")


class ResourceState(StrEnum):
    UNRESOLVED = "unresolved"
    PENDING = "pending"
    READY = "ready"
    REFRESHING = "refreshing"
    ERRORED = "errored"


def classify(data: Any, loading: bool, error: Any) -> ResourceState:
    """Determine the resource state from its core fields.

    Loading takes precedence, then error, then data; combinations outside
    the table above (e.g. data and error both set) resolve in that order.
    """
    if loading:
        return ResourceState.REFRESHING if data is not None else ResourceState.PENDING
    if error is not None:
        return ResourceState.ERRORED
    if data is not None:
        return ResourceState.READY
    return ResourceState.UNRESOLVED


@dataclass(frozen=True, slots=True)
class Pending:
    """Value not available yet; ``promise`` settles when it is."""

    promise: asyncio.Future[Any]


@dataclass(frozen=True, slots=True)
class Ready(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Errored:
    error: Any


ReadResult = Pending | Ready[Any] | Errored


@dataclass(frozen=True, slots=True)
class Resource(Generic[T]):
    """Immutable resource snapshot.

    Parameters
    ----------
    data : T or None
        Value of the last fresh resolution.  Cleared by a plain ``PEND``
        and by an error.
    loading : bool
        Whether an operation is currently in flight.
    error : Any or None
        Last rejection reason.
    latest : T or None
        Last resolved value, kept across loading/errored snapshots for
        stale-while-revalidate display.
    promise : asyncio.Future
        Derived future owned by the state machine.  It is not the
        fetcher's own awaitable: its identity only changes when loading
        starts, and it settles when loading ends.
    """

    data: T | None = None
    loading: bool = False
    error: Any = None
    latest: T | None = None
    promise: asyncio.Future[Any] | None = field(default=None, compare=False, repr=False)
    state: ResourceState = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "state", classify(self.data, self.loading, self.error))

    def peek(self) -> ReadResult:
        """Read without raising."""
        if self.loading or self.state == ResourceState.UNRESOLVED:
            assert self.promise is not None  # noqa: S101
            return Pending(self.promise)
        if self.state == ResourceState.ERRORED:
            return Errored(self.error)
        return Ready(self.data)

    def read(self, *, allow_stale: bool = False) -> T:
        """Return ``data`` or raise the reason it is not available.

        Raises :class:`ResourcePendingError` (carrying the derived future)
        while loading, unless ``allow_stale`` is set and there is data to
        show.  An errored resource raises its error, wrapped in
        :class:`ResourceRejectedError` when it is not an exception.
        """
        if allow_stale and self.state == ResourceState.REFRESHING:
            return self.data  # type: ignore[return-value]
        result = self.peek()
        if isinstance(result, Pending):
            raise ResourcePendingError(result.promise)
        if isinstance(result, Errored):
            if isinstance(result.error, BaseException):
                raise result.error
            raise ResourceRejectedError(result.error)
        return result.value
