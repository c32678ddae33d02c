from __future__ import annotations

import asyncio

import pytest

from pyresource.abort import AbortController, is_cancellation
from pyresource.exceptions import RequestAbortedError


def test_abort_sets_default_reason() -> None:
    controller = AbortController()
    signal = controller.signal
    assert not signal.aborted
    assert signal.reason is None
    signal.raise_if_aborted()

    controller.abort()

    assert signal.aborted
    assert isinstance(signal.reason, RequestAbortedError)
    with pytest.raises(RequestAbortedError):
        signal.raise_if_aborted()


def test_second_abort_keeps_first_reason() -> None:
    controller = AbortController()
    first = RuntimeError("first")
    controller.abort(first)
    controller.abort(RuntimeError("second"))
    assert controller.signal.reason is first


def test_listeners_fire_once() -> None:
    controller = AbortController()
    seen: list[BaseException] = []
    controller.signal.add_listener(seen.append)

    controller.abort()
    controller.abort()

    assert seen == [controller.signal.reason]


def test_listener_added_after_abort_fires_immediately() -> None:
    controller = AbortController()
    controller.abort()
    seen: list[BaseException] = []
    controller.signal.add_listener(seen.append)
    assert seen == [controller.signal.reason]


def test_failing_listener_does_not_break_abort() -> None:
    controller = AbortController()
    seen: list[BaseException] = []

    def explode(_reason: BaseException) -> None:
        raise RuntimeError("listener bug")

    controller.signal.add_listener(explode)
    controller.signal.add_listener(seen.append)
    controller.abort()

    assert controller.signal.aborted
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_wait_returns_reason() -> None:
    controller = AbortController()
    waiter = asyncio.create_task(controller.signal.wait())
    await asyncio.sleep(0)
    assert not waiter.done()

    controller.abort()

    assert await waiter is controller.signal.reason
    assert await controller.signal.wait() is controller.signal.reason


def test_is_cancellation() -> None:
    controller = AbortController()
    signal = controller.signal
    assert not is_cancellation(RequestAbortedError(), signal)

    controller.abort()

    assert is_cancellation(signal.reason, signal)
    assert is_cancellation(asyncio.CancelledError(), signal)
    assert not is_cancellation(RequestAbortedError(), signal)
    assert not is_cancellation(ValueError("real failure"), signal)
    assert not is_cancellation(signal.reason, None)
