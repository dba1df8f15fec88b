"""Test fan-out and cancellation helpers."""

from __future__ import annotations

import asyncio

import pytest

from hub_tool.exceptions import NotFoundError, OperationCancelledError
from hub_tool.storage.tasks import gather_or_raise, race_cancellation


async def _after(delay: float, value: int) -> int:
    await asyncio.sleep(delay)
    return value


@pytest.mark.asyncio
async def test_gather_keeps_order() -> None:
    results = await gather_or_raise(
        _after(0.03, 1), _after(0.01, 2), _after(0.02, 3)
    )
    assert results == [1, 2, 3]


@pytest.mark.asyncio
async def test_gather_first_error_unwrapped() -> None:
    finished: list[int] = []

    async def fail() -> int:
        await asyncio.sleep(0.01)
        raise NotFoundError

    async def slow() -> int:
        await asyncio.sleep(1)
        finished.append(1)
        return 1

    with pytest.raises(NotFoundError):
        await gather_or_raise(fail(), slow())
    assert finished == []


@pytest.mark.asyncio
async def test_gather_nothing() -> None:
    assert await gather_or_raise() == []


@pytest.mark.asyncio
async def test_race_without_event() -> None:
    assert await race_cancellation(_after(0, 5), None) == 5


@pytest.mark.asyncio
async def test_race_work_wins() -> None:
    assert await race_cancellation(_after(0, 5), asyncio.Event()) == 5


@pytest.mark.asyncio
async def test_race_cancel_wins() -> None:
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.01, cancel.set)
    with pytest.raises(OperationCancelledError):
        await race_cancellation(_after(1, 5), cancel)


@pytest.mark.asyncio
async def test_race_work_error() -> None:
    async def fail() -> int:
        raise NotFoundError

    with pytest.raises(NotFoundError):
        await race_cancellation(fail(), asyncio.Event())
