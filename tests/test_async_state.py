from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pyresource.async_state import AsyncState
from pyresource.models.resource import ResourceState


async def _drain() -> None:
    for _ in range(3):
        await asyncio.sleep(0)


def _future() -> asyncio.Future[Any]:
    return asyncio.get_running_loop().create_future()


@pytest.mark.asyncio
async def test_sync_values() -> None:
    state: AsyncState[str, None] = AsyncState()
    assert state.resource.state == ResourceState.UNRESOLVED
    promise = state.resource.promise

    state.set("value")

    assert state.resource.state == ResourceState.READY
    assert state.read() == "value"
    assert state.resource.promise is promise
    assert await promise == "value"  # type: ignore[misc]


@pytest.mark.asyncio
async def test_initial_value_and_callable() -> None:
    assert AsyncState(5).resource.state == ResourceState.READY
    assert AsyncState(lambda: "lazy").read() == "lazy"


@pytest.mark.asyncio
async def test_initial_awaitable_is_tracked() -> None:
    future = _future()
    state: AsyncState[int, None] = AsyncState(future)
    assert state.resource.state == ResourceState.PENDING

    future.set_result(3)
    assert await state.resource.promise == 3  # type: ignore[misc]
    assert state.resource.state == ResourceState.READY


@pytest.mark.asyncio
async def test_awaitable_completion_calls_back_with_context() -> None:
    completed: list[tuple[Any, Any]] = []
    state: AsyncState[str, str] = AsyncState(
        on_completed=lambda data, ctx: completed.append((data, ctx)),
        context="ctx",
    )

    future = _future()
    state.set(future)
    assert state.resource.state == ResourceState.PENDING

    future.set_result("done")
    await _drain()

    assert state.resource.state == ResourceState.READY
    assert completed == [("done", "ctx")]


@pytest.mark.asyncio
async def test_coroutines_are_accepted() -> None:
    async def load() -> str:
        await asyncio.sleep(0)
        return "from coroutine"

    state: AsyncState[str, None] = AsyncState("old")
    state.set(load())
    assert state.resource.state == ResourceState.REFRESHING

    assert await state.resource.promise == "from coroutine"  # type: ignore[misc]


@pytest.mark.asyncio
async def test_rejection_calls_on_error() -> None:
    errors: list[tuple[Any, Any]] = []
    state: AsyncState[str, int] = AsyncState(on_error=lambda err, ctx: errors.append((err, ctx)), context=7)

    future = _future()
    state.set(future)
    promise = state.resource.promise
    error = ValueError("failed")
    future.set_exception(error)
    await _drain()

    assert state.resource.state == ResourceState.ERRORED
    assert state.resource.error is error
    assert errors == [(error, 7)]
    with pytest.raises(ValueError, match="failed"):
        await promise  # type: ignore[misc]


@pytest.mark.asyncio
async def test_only_the_last_awaitable_settles() -> None:
    completed: list[Any] = []
    state: AsyncState[str, None] = AsyncState(on_completed=lambda data, _ctx: completed.append(data))

    first = _future()
    second = _future()
    state.set(first)
    promise = state.resource.promise
    state.set(second)
    assert state.resource.promise is promise

    second.set_result("second")
    await _drain()
    first.set_result("first")
    await _drain()

    assert state.read() == "second"
    assert completed == ["second"]
    assert await promise == "second"  # type: ignore[misc]


@pytest.mark.asyncio
async def test_sync_set_supersedes_pending_awaitable() -> None:
    state: AsyncState[str, None] = AsyncState()
    future = _future()
    state.set(future)
    state.set("sync")

    future.set_result("late")
    await _drain()

    assert state.read() == "sync"


@pytest.mark.asyncio
async def test_close_freezes_state() -> None:
    state: AsyncState[str, None] = AsyncState()
    future = _future()
    state.set(future)
    state.close()

    future.set_result("late")
    await _drain()
    state.set("ignored")

    assert state.closed
    assert state.resource.state == ResourceState.PENDING


@pytest.mark.asyncio
async def test_externally_cancelled_awaitable_becomes_error() -> None:
    errors: list[Any] = []
    inner = _future()
    state: AsyncState[str, None] = AsyncState(inner, on_error=lambda err, _ctx: errors.append(err))
    promise = state.resource.promise
    assert promise is not None

    inner.cancel()
    await _drain()

    assert state.resource.state == ResourceState.ERRORED
    assert isinstance(state.resource.error, asyncio.CancelledError)
    assert errors == [state.resource.error]
    assert promise.done()
    assert isinstance(promise.exception(), asyncio.CancelledError)
