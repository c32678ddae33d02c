from __future__ import annotations

import asyncio

import pytest

from pyresource.registry import PromiseRegistry


@pytest.mark.asyncio
async def test_create_does_not_register() -> None:
    registry = PromiseRegistry()
    promise, controls = registry.create()

    assert not promise.done()
    assert not registry.has(promise)
    assert len(registry) == 0

    registry.set(promise, controls)
    assert registry.has(promise)
    assert promise in registry
    assert registry.get(promise) is controls


@pytest.mark.asyncio
async def test_unknown_handles_are_tolerated() -> None:
    registry = PromiseRegistry()
    promise, controls = registry.create()

    assert registry.get(promise) is None
    assert registry.get(None) is None
    registry.delete(promise)
    registry.delete(None)
    assert not registry.has(None)

    registry.set(promise, controls)
    registry.delete(promise)
    registry.delete(promise)
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_controls_never_settle_twice() -> None:
    registry = PromiseRegistry()
    promise, controls = registry.create()

    controls.resolve("first")
    controls.resolve("second")
    controls.reject(ValueError("late"))

    assert await promise == "first"


@pytest.mark.asyncio
async def test_reject_controls_set_exception() -> None:
    registry = PromiseRegistry()
    promise, controls = registry.create()

    controls.reject(ValueError("boom"))

    with pytest.raises(ValueError, match="boom"):
        await promise


@pytest.mark.asyncio
async def test_unawaited_rejection_is_not_reported() -> None:
    loop = asyncio.get_running_loop()
    reported: list[dict[str, object]] = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        registry = PromiseRegistry()
        promise, controls = registry.create()
        controls.reject(ValueError("nobody awaits this"))
        await asyncio.sleep(0)
        del promise, controls
        await asyncio.sleep(0)
    finally:
        loop.set_exception_handler(previous)

    assert reported == []


@pytest.mark.asyncio
async def test_resolved_future_is_unregistered() -> None:
    registry = PromiseRegistry()
    promise = registry.resolved(5)

    assert promise.done()
    assert promise.result() == 5
    assert not registry.has(promise)


@pytest.mark.asyncio
async def test_registries_are_isolated() -> None:
    first = PromiseRegistry()
    second = PromiseRegistry()
    promise, controls = first.create()
    first.set(promise, controls)

    assert first.has(promise)
    assert not second.has(promise)


@pytest.mark.asyncio
async def test_explicit_loop() -> None:
    loop = asyncio.get_running_loop()
    registry = PromiseRegistry(loop=loop)
    promise, _controls = registry.create()
    assert promise.get_loop() is loop
