"""
Concurrent fetch: fan-out / fan-in join for independent store reads.

Rules:
- every branch must complete before the handler continues
- the first failing branch cancels the pending ones and its error propagates
- no partial results, no retries, no timeout
"""

import asyncio
from collections.abc import Awaitable
from typing import Any


async def fetch_all(**branches: Awaitable[Any]) -> dict[str, Any]:
    """
    Run the awaitables concurrently and join.

    Usage:
        results = await fetch_all(
            book=store.find_by_id(BOOKS, book_id).populate("author", AUTHORS),
            book_instances=store.find(BOOK_INSTANCES, {"book": book_id}),
        )
        results["book"], results["book_instances"]

    Args:
        **branches: name -> awaitable

    Returns:
        name -> result, in argument order

    Raises:
        the exception of the first branch that failed
    """
    if not branches:
        return {}

    tasks = {
        name: asyncio.ensure_future(_as_coroutine(aw))
        for name, aw in branches.items()
    }

    try:
        done, pending = await asyncio.wait(
            tasks.values(), return_when=asyncio.FIRST_EXCEPTION
        )
    except asyncio.CancelledError:
        for task in tasks.values():
            task.cancel()
        raise

    failed = [task for task in done if not task.cancelled() and task.exception()]
    if failed:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # first failure in argument order among those already finished
        first = next(task for task in tasks.values() if task in failed)
        raise first.exception()  # type: ignore[misc]

    return {name: task.result() for name, task in tasks.items()}


async def _as_coroutine(aw: Awaitable[Any]) -> Any:
    # Query objects are awaitable but not coroutines
    return await aw
