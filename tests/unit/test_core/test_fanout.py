"""
test_fanout.py - concurrent fetch join

DoD:
- results keyed by branch name
- branches run concurrently
- first failure cancels the rest and propagates
"""

import asyncio

import pytest

from src.core.fanout import fetch_all
from src.core.store import MemoryDocumentStore
from src.domain.constants import BOOKS, GENRES
from src.domain.errors import StoreError


async def _value(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(error: Exception, delay: float = 0.0):
    await asyncio.sleep(delay)
    raise error


class TestFetchAll:
    """fetch_all tests."""

    @pytest.mark.asyncio
    async def test_results_by_name(self):
        results = await fetch_all(a=_value(1), b=_value("two"))

        assert results == {"a": 1, "b": "two"}

    @pytest.mark.asyncio
    async def test_no_branches(self):
        assert await fetch_all() == {}

    @pytest.mark.asyncio
    async def test_accepts_queries(self, store: MemoryDocumentStore):
        """Query objects are awaitable but not coroutines."""
        results = await fetch_all(
            book=store.find_by_id(BOOKS, "b1"),
            genres=store.find(GENRES).sort("name"),
            count=store.count_documents(BOOKS),
        )

        assert results["book"]["title"] == "Dune"
        assert len(results["genres"]) == 3
        assert results["count"] == 3

    @pytest.mark.asyncio
    async def test_branches_run_concurrently(self):
        started = []

        async def branch(name: str):
            started.append(name)
            await asyncio.sleep(0.05)
            return len(started)

        results = await fetch_all(a=branch("a"), b=branch("b"))

        # both started before either finished
        assert results == {"a": 2, "b": 2}

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        with pytest.raises(StoreError, match="boom"):
            await fetch_all(a=_value(1), b=_fail(StoreError("boom")))

    @pytest.mark.asyncio
    async def test_failure_cancels_pending(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(StoreError):
            await fetch_all(slow=slow(), bad=_fail(StoreError("boom")))

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_outer_cancellation_cancels_branches(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        task = asyncio.ensure_future(fetch_all(a=slow()))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.01)

        assert cancelled.is_set()
