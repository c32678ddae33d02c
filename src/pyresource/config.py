"""Coordinator configuration for pyresource."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class CoordinatorConfig:
    """Request coordinator behaviour switches.

    Parameters
    ----------
    skip : bool
        Never issue automatic calls (activation or dependency change).
        ``refetch()`` still issues calls.
    skip_first_run : bool
        Skip only the call normally issued on activation.  Dependency
        changes still issue calls.
    refetch_on_fetcher_change : bool
        Treat a changed fetcher reference as a change of "what to call"
        and issue a new call even when the dependencies are unchanged.
        By default the new fetcher is only used for later calls.
    cancel_on_abort : bool
        Besides raising the abort signal, cancel the task awaiting an
        aborted fetcher.  Off by default: cancellation is cooperative.
    """

    skip: bool = False
    skip_first_run: bool = False
    refetch_on_fetcher_change: bool = False
    cancel_on_abort: bool = False

    @property
    def runs_on_activate(self) -> bool:
        return not (self.skip or self.skip_first_run)

    @classmethod
    def from_env(cls, **overrides: Any) -> CoordinatorConfig:
        """Create configuration from ``PYRESOURCE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "PYRESOURCE_SKIP": "skip",
            "PYRESOURCE_SKIP_FIRST_RUN": "skip_first_run",
            "PYRESOURCE_REFETCH_ON_FETCHER_CHANGE": "refetch_on_fetcher_change",
            "PYRESOURCE_CANCEL_ON_ABORT": "cancel_on_abort",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            if field_name in overrides:
                continue
            default = getattr(cls, field_name)
            config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
