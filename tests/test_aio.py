"""Unit tests for the Deferred and LazyFuture primitives."""

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from sheetplan.utils.aio import Deferred, LazyFuture, lazy, new_deferred


class TestDeferred:
    """Tests for externally settled futures."""

    @pytest.mark.asyncio
    async def test_resolve_wakes_every_awaiter(self):
        """All concurrent awaiters receive the same value."""
        deferred = new_deferred()
        waiters = [asyncio.ensure_future(self._await(deferred)) for _ in range(3)]
        await asyncio.sleep(0)

        deferred.resolve("ready")

        assert await asyncio.gather(*waiters) == ["ready", "ready", "ready"]

    @pytest.mark.asyncio
    async def test_second_settlement_is_ignored(self):
        """resolve/reject after settlement are no-ops, not errors."""
        deferred = Deferred()
        deferred.resolve(1)
        deferred.resolve(2)
        deferred.reject(RuntimeError("too late"))

        assert deferred.done()
        assert await deferred == 1

    @pytest.mark.asyncio
    async def test_reject_raises_for_awaiters(self):
        """A rejection is raised to each awaiter."""
        deferred = Deferred()
        error = ValueError("nope")
        deferred.reject(error)
        deferred.resolve("ignored")

        with pytest.raises(ValueError) as first:
            await deferred
        with pytest.raises(ValueError) as second:
            await deferred
        assert first.value is error
        assert second.value is error

    @staticmethod
    async def _await(deferred):
        return await deferred


class TestLazyFuture:
    """Tests for lazily started, shared futures."""

    @pytest.mark.asyncio
    async def test_producer_not_started_until_observed(self):
        """Creating a LazyFuture runs nothing."""
        calls = []

        async def producer():
            calls.append(1)
            return "value"

        future = lazy(producer)
        await asyncio.sleep(0)

        assert calls == []
        assert not future.started
        assert await future == "value"
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_concurrent_observers_share_one_invocation(self):
        """Racing observers never re-invoke the producer."""
        calls = []
        gate = asyncio.Event()

        async def producer():
            calls.append(1)
            await gate.wait()
            return 42

        future = LazyFuture(producer)
        observers = [asyncio.ensure_future(self._observe(future)) for _ in range(10)]
        await asyncio.sleep(0)
        gate.set()

        assert await asyncio.gather(*observers) == [42] * 10
        assert await future == 42
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_rejection_is_cached_not_retried(self):
        """A failed producer replays its failure to later observers."""
        calls = []

        async def producer():
            calls.append(1)
            raise RuntimeError("bootstrap failed")

        future = LazyFuture(producer)
        with pytest.raises(RuntimeError) as first:
            await future
        with pytest.raises(RuntimeError) as second:
            await future

        assert first.value is second.value
        assert calls == [1]
        assert future.done()

    @pytest.mark.asyncio
    async def test_synchronous_producer_failure_is_cached(self):
        """A producer raising before returning an awaitable still settles."""
        def producer():
            raise KeyError("missing")

        future = LazyFuture(producer)
        with pytest.raises(KeyError):
            await future
        with pytest.raises(KeyError):
            await future

    @pytest.mark.asyncio
    async def test_cancelled_observer_does_not_cancel_producer(self):
        """Cancelling one observer leaves the shared work running."""
        gate = asyncio.Event()

        async def producer():
            await gate.wait()
            return "done"

        future = LazyFuture(producer)
        observer = asyncio.ensure_future(self._observe(future))
        await asyncio.sleep(0)
        observer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await observer

        gate.set()
        assert await future == "done"

    @staticmethod
    async def _observe(future):
        return await future
