"""Custom exception hierarchy for pyresource."""

from __future__ import annotations

from typing import Any


class ResourceError(Exception):
    """Base exception for all pyresource errors."""


class ResourceConfigError(ResourceError):
    """Invalid coordinator or store configuration."""


class InvalidTransitionError(ResourceError):
    """An unrecognized action or patch reached the transition engine.

    This is a programmer error.  It is always raised synchronously from
    ``dispatch`` and never captured into a resource snapshot.
    """

    def __init__(self, message: str, *, action: Any = None) -> None:
        self.action = action
        super().__init__(message)


class ResourceRejectedError(ResourceError):
    """A derived promise was rejected with a value that is not an exception.

    ``asyncio`` futures can only carry exceptions, so plain rejection
    values are wrapped.  The original value is kept in ``reason``.
    """

    def __init__(self, reason: Any, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Resource rejected: {reason!r}")


class NullishRejectionError(ResourceRejectedError):
    """Rejection carrying ``None`` as its reason.

    Substituted so an ``errored`` resource always holds a non-``None``
    error; ``reason`` keeps the original ``None``.
    """

    def __init__(self, reason: Any = None) -> None:
        super().__init__(reason, "Resource rejected with a nullish reason")


class RequestAbortedError(ResourceError):
    """Default reason of an aborted request signal."""

    def __init__(self, message: str = "Request aborted") -> None:
        super().__init__(message)


class ResourcePendingError(ResourceError):
    """Raised by ``Resource.read()`` while the value is still loading.

    ``promise`` is the derived future; awaiting it yields the value once
    the resource settles.
    """

    def __init__(self, promise: Any) -> None:
        self.promise = promise
        super().__init__("Resource is not ready yet")
