"""Core utility functions shared across modules."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


async def run_cancellable(
    awaitable: Awaitable[T], cancel_event: Optional[asyncio.Event] = None
) -> T:
    """Await ``awaitable`` unless ``cancel_event`` fires first.

    When the event is already set the awaitable is never started. When it is
    set while the awaitable is pending, the awaitable is cancelled and awaited
    before :class:`asyncio.CancelledError` is raised to the caller.

    Examples:
        >>> stop = asyncio.Event()
        >>> await run_cancellable(session.get(url), stop)
    """

    if cancel_event is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    if cancel_event.is_set():
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise asyncio.CancelledError("Cancelled before the request was sent")

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            if cancel_event.is_set():
                raise asyncio.CancelledError("Cancelled while awaiting the response")

    return task.result()
