"""pyresource - race-safe state machine for a single asynchronous value."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyresource")
except PackageNotFoundError:
    __version__ = "0+local"
from pyresource.abort import AbortController, AbortSignal, is_cancellation
from pyresource.async_state import AsyncState
from pyresource.config import CoordinatorConfig
from pyresource.coordinator import RequestCoordinator, dependencies_changed
from pyresource.exceptions import (
    InvalidTransitionError,
    NullishRejectionError,
    RequestAbortedError,
    ResourceConfigError,
    ResourceError,
    ResourcePendingError,
    ResourceRejectedError,
)
from pyresource.models import (
    Errored,
    Patch,
    Pend,
    Pending,
    Ready,
    Reject,
    Resolve,
    Resource,
    ResourceState,
    SyncResult,
    classify,
    parse_action,
)
from pyresource.registry import PromiseControls, PromiseRegistry
from pyresource.store import ResourceStore
from pyresource.transitions import advance, create_resource, initial_resource, reduce

__all__ = [
    "__version__",
    "AbortController",
    "AbortSignal",
    "AsyncState",
    "CoordinatorConfig",
    "Errored",
    "InvalidTransitionError",
    "NullishRejectionError",
    "Patch",
    "Pend",
    "Pending",
    "PromiseControls",
    "PromiseRegistry",
    "Ready",
    "Reject",
    "RequestAbortedError",
    "RequestCoordinator",
    "Resolve",
    "Resource",
    "ResourceConfigError",
    "ResourceError",
    "ResourcePendingError",
    "ResourceRejectedError",
    "ResourceState",
    "ResourceStore",
    "SyncResult",
    "advance",
    "classify",
    "create_resource",
    "dependencies_changed",
    "initial_resource",
    "is_cancellation",
    "parse_action",
    "reduce",
]
