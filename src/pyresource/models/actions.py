"""Patches and tagged actions accepted by the transition engine.

``Patch`` is the raw input of :func:`pyresource.transitions.advance`.
Actions are the closed set of variants dispatched to a store; each one
maps onto exactly one patch.  Untyped mappings such as
``{"type": "RESOLVE", "payload": 1}`` are validated into actions by
:func:`parse_action`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from pyresource.exceptions import InvalidTransitionError
from pyresource.models.resource import Resource


class Patch(BaseModel):
    """Core fields of the next snapshot.

    ``has_error`` marks an error patch explicitly so a rejection with a
    ``None`` reason can be told apart from "no error".  A patch carries
    at most one of ``data`` and an error.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    loading: bool
    data: Any = None
    error: Any = None
    has_error: bool = False

    @model_validator(mode="after")
    def _data_or_error(self) -> Patch:
        if self.is_error and self.data is not None:
            raise ValueError("patch carries both data and an error")
        return self

    @property
    def is_error(self) -> bool:
        return self.has_error or self.error is not None


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)


class Pend(_Action):
    """Start loading, keeping the current ``data`` on display.

    A ``ready`` resource becomes ``refreshing``; anything else becomes
    ``pending``.
    """

    type: Literal["PEND"] = "PEND"

    def to_patch(self, current: Resource[Any]) -> Patch:
        return Patch(loading=True, data=current.data)


class Resolve(_Action):
    """Settle an in-flight operation with a value."""

    type: Literal["RESOLVE"] = "RESOLVE"
    payload: Any = None

    def to_patch(self, current: Resource[Any]) -> Patch:
        return Patch(loading=False, data=self.payload)


class Reject(_Action):
    """Settle an in-flight operation with an error."""

    type: Literal["REJECT"] = "REJECT"
    payload: Any = None

    def to_patch(self, current: Resource[Any]) -> Patch:
        return Patch(loading=False, error=self.payload, has_error=True)


class SyncResult(_Action):
    """Set a value that was available synchronously."""

    type: Literal["SYNC-RESULT"] = "SYNC-RESULT"
    payload: Any = None

    def to_patch(self, current: Resource[Any]) -> Patch:
        return Patch(loading=False, data=self.payload)


Action = Annotated[Pend | Resolve | Reject | SyncResult, Field(discriminator="type")]

_ACTION_ADAPTER: TypeAdapter[Pend | Resolve | Reject | SyncResult] = TypeAdapter(Action)


def parse_action(obj: Any) -> Pend | Resolve | Reject | SyncResult:
    """Validate *obj* into an action.

    Raises
    ------
    InvalidTransitionError
        For unknown ``type`` tags and malformed shapes.
    """
    if isinstance(obj, (Pend, Resolve, Reject, SyncResult)):
        return obj
    if not isinstance(obj, Mapping):
        raise InvalidTransitionError(f"Invalid action: {obj!r}", action=obj)
    try:
        return _ACTION_ADAPTER.validate_python(dict(obj))
    except ValidationError as exc:
        raise InvalidTransitionError(f"Invalid action type: {obj.get('type')!r}", action=obj) from exc


def parse_patch(obj: Any) -> Patch:
    """Validate *obj* into a :class:`Patch`."""
    if isinstance(obj, Patch):
        return obj
    if not isinstance(obj, Mapping):
        raise InvalidTransitionError(f"Invalid patch: {obj!r}", action=obj)
    try:
        return Patch.model_validate(dict(obj))
    except ValidationError as exc:
        raise InvalidTransitionError(f"Invalid patch shape: {sorted(obj)!r}", action=obj) from exc
