"""Small asyncio helpers shared by frames and the scheduler."""

import asyncio
from collections.abc import Awaitable
from typing import Any


def discard(task: "asyncio.Future[Any]") -> None:
    """Cancel a task we no longer wait on and silence its eventual result."""
    if not task.done():
        task.cancel()
    task.add_done_callback(_consume_result)


def _consume_result(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled():
        task.exception()


async def race(*awaitables: Awaitable[Any]) -> tuple[int, "asyncio.Future[Any]"]:
    """Wait for the first awaitable to finish and cancel the rest.

    Returns:
        Index of the winner and its finished future. The winner's exception,
        if any, is not raised here.
    """
    futures = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        done, _ = await asyncio.wait(futures, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        for future in futures:
            discard(future)
        raise
    winner = next(i for i, future in enumerate(futures) if future in done)
    for i, future in enumerate(futures):
        if i != winner:
            discard(future)
    return winner, futures[winner]
