"""Unit tests for SharedResource."""

import asyncio
import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from sheetplan.core.singleton import SharedResource
from sheetplan.utils.aio import Deferred


class ControlledFactory:
    """Factory whose result is settled by the test."""

    def __init__(self):
        self.calls = 0
        self.update = None
        self.deferred = None

    async def __call__(self, update):
        self.calls += 1
        self.update = update
        self.deferred = Deferred()
        return await self.deferred


class TestSharedResource:
    """Tests for the lazy, multi-subscriber resource."""

    @pytest.mark.asyncio
    async def test_read_never_starts_factory(self):
        """Passive reads report absence without triggering work."""
        factory = ControlledFactory()
        resource = SharedResource(factory, name="api")

        assert resource.read() is None
        await asyncio.sleep(0)
        assert factory.calls == 0
        assert not resource.resolution.started

    @pytest.mark.asyncio
    async def test_many_subscribers_invoke_factory_once(self):
        """N concurrent subscribers share a single factory invocation."""
        factory = ControlledFactory()
        resource = SharedResource(factory)
        received = [[] for _ in range(5)]

        for values in received:
            resource.subscribe(values.append)
        await asyncio.sleep(0)
        factory.deferred.resolve("handle")
        await resource.resolve()

        assert factory.calls == 1
        assert received == [["handle"]] * 5
        assert resource.read() == "handle"

    @pytest.mark.asyncio
    async def test_late_subscriber_replayed_synchronously(self):
        """Subscribing after resolution delivers the value immediately."""
        factory = ControlledFactory()
        resource = SharedResource(factory)
        resource.subscribe(lambda value: None)
        await asyncio.sleep(0)
        factory.deferred.resolve("handle")
        await resource.resolve()

        received = []
        resource.subscribe(received.append)

        assert received == ["handle"]

    @pytest.mark.asyncio
    async def test_pushed_updates_reach_all_subscribers_once(self):
        """Values pushed by the factory are broadcast, unchanged ones skipped."""
        factory = ControlledFactory()
        resource = SharedResource(factory)
        first, second = [], []
        resource.subscribe(first.append)
        resource.subscribe(second.append)
        await asyncio.sleep(0)
        factory.deferred.resolve("v1")
        await resource.resolve()

        factory.update("v2")
        factory.update("v2")

        assert first == ["v1", "v2"]
        assert second == ["v1", "v2"]
        assert resource.read() == "v2"
        assert await resource.resolve() == "v2"

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent_and_safe_in_callback(self):
        """A callback may unsubscribe itself, any number of times."""
        factory = ControlledFactory()
        resource = SharedResource(factory)
        seen = []

        def once(value):
            seen.append(value)
            unsubscribe()
            unsubscribe()

        unsubscribe = resource.subscribe(once)
        others = []
        resource.subscribe(others.append)
        await asyncio.sleep(0)
        factory.deferred.resolve("v1")
        await resource.resolve()
        factory.update("v2")

        assert seen == ["v1"]
        assert others == ["v1", "v2"]
        unsubscribe()

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_hidden_from_subscribers(self, caplog):
        """Subscribers see absence; explicit awaiters see the error."""
        async def failing(update):
            raise RuntimeError("script blocked")

        resource = SharedResource(failing, name="google.api")
        received = []

        with caplog.at_level(logging.ERROR, logger="sheetplan.core.singleton"):
            resource.subscribe(received.append)
            with pytest.raises(RuntimeError):
                await resource.resolve()

        assert received == []
        assert resource.read() is None
        assert "google.api" in caplog.text

    @pytest.mark.asyncio
    async def test_raising_subscriber_does_not_block_others(self):
        """One failing callback does not stop delivery to the rest."""
        factory = ControlledFactory()
        resource = SharedResource(factory)
        received = []

        def broken(value):
            raise ValueError("render failed")

        resource.subscribe(broken)
        resource.subscribe(received.append)
        await asyncio.sleep(0)
        factory.deferred.resolve("handle")
        await resource.resolve()

        assert received == ["handle"]
