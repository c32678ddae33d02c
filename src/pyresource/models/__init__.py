"""Resource snapshot model and dispatchable actions."""

from pyresource.models.actions import (
    Action,
    Patch,
    Pend,
    Reject,
    Resolve,
    SyncResult,
    parse_action,
    parse_patch,
)
from pyresource.models.resource import (
    Errored,
    Pending,
    Ready,
    ReadResult,
    Resource,
    ResourceState,
    classify,
)

__all__ = [
    "Action",
    "Errored",
    "Patch",
    "Pend",
    "Pending",
    "ReadResult",
    "Ready",
    "Reject",
    "Resolve",
    "Resource",
    "ResourceState",
    "SyncResult",
    "classify",
    "parse_action",
    "parse_patch",
]
