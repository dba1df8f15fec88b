"""Structured fan-out and cancellation helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import structlog

from ..exceptions import OperationCancelledError

T = TypeVar("T")

_logger = structlog.get_logger(__name__)


def _first_leaf(group: BaseExceptionGroup) -> BaseException:
    exc: BaseException = group
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


async def gather_or_raise(*coros: Coroutine[Any, Any, T]) -> list[T]:
    """Run coroutines concurrently and return their results in order.

    The first failure cancels the siblings that are still running and is
    re-raised as itself, not wrapped in an `ExceptionGroup`.  Cancellation
    of the siblings is best-effort; nothing they produced is returned.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(c) for c in coros]
    except BaseExceptionGroup as eg:
        raise _first_leaf(eg) from None
    return [t.result() for t in tasks]


async def race_cancellation(
    coro: Coroutine[Any, Any, T], cancel: asyncio.Event | None
) -> T:
    """Await ``coro`` unless ``cancel`` is set first.

    If the event wins, ``coro`` is cancelled and `OperationCancelledError`
    raised.  Whatever ``coro`` would have produced afterwards is discarded.
    """
    if cancel is None:
        return await coro
    if cancel.is_set():
        coro.close()
        raise OperationCancelledError
    work = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not work.done():
            work.cancel()
    if work.done():
        return work.result()
    await asyncio.wait({work})
    if not work.cancelled() and work.exception() is not None:
        _logger.debug(
            "Discarding error raised after cancellation",
            error=str(work.exception()),
        )
    raise OperationCancelledError
