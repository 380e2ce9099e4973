import asyncio
import threading

import pytest

from snapboot.events import EventBus, Subscription


@pytest.fixture
def bus():
    return EventBus()


class TestSubscribe:
    """Tests for subscription management."""

    def test_subscribe_returns_token(self, bus):
        """Test subscribe returns a Subscription and registers the listener."""
        token = bus.subscribe("evt", lambda name, data: None)

        assert isinstance(token, Subscription)
        assert bus.has_listeners("evt")

    def test_unsubscribe_by_token_removes_exact_listener(self, bus):
        """Test a token removes only its own registration."""
        def listener(name, data):
            pass

        first = bus.subscribe("evt", listener)
        bus.subscribe("evt", listener)

        assert bus.unsubscribe("evt", first)
        assert bus.has_listeners("evt")
        assert not bus.unsubscribe("evt", first)

    def test_unsubscribe_by_identity(self, bus):
        """Test a bare callable is matched by identity."""
        def listener(name, data):
            pass

        bus.subscribe("evt", listener)

        assert bus.unsubscribe("evt", listener)
        assert not bus.has_listeners("evt")

    def test_unsubscribe_unknown_is_noop(self, bus):
        """Test unsubscribing an unknown listener does nothing."""
        assert not bus.unsubscribe("evt", lambda name, data: None)

    def test_clear(self, bus):
        """Test clear removes every listener."""
        bus.subscribe("a", lambda name, data: None)
        bus.subscribe("b", lambda name, data: None)
        bus.clear()

        assert not bus.has_listeners("a")
        assert not bus.has_listeners("b")


class TestPublishSync:
    """Tests for synchronous delivery."""

    @pytest.mark.asyncio
    async def test_listeners_called_in_order(self, bus):
        """Test sync and async listeners run in subscription order."""
        calls = []

        def first(name, data):
            calls.append(("first", name, data))

        async def second(name, data):
            calls.append(("second", name, data))

        bus.subscribe("evt", first)
        bus.subscribe("evt", second)

        await bus.publish_sync("evt", 1)

        assert calls == [("first", "evt", 1), ("second", "evt", 1)]

    @pytest.mark.asyncio
    async def test_no_listeners_is_noop(self, bus):
        """Test publishing without listeners does nothing."""
        await bus.publish_sync("nobody", None)
        bus.publish("nobody", None)

    @pytest.mark.asyncio
    async def test_failing_listener_isolated(self, bus):
        """Test a raising listener does not stop the others or the publisher."""
        calls = []

        def broken(name, data):
            raise RuntimeError("listener failure")

        bus.subscribe("evt", broken)
        bus.subscribe("evt", lambda name, data: calls.append(data))

        await bus.publish_sync("evt", "payload")

        assert calls == ["payload"]


class TestPublish:
    """Tests for asynchronous delivery."""

    @pytest.mark.asyncio
    async def test_publish_does_not_block(self, bus):
        """Test publish returns before listeners run, and they run afterwards."""
        received = []

        async def listener(name, data):
            received.append(data)

        bus.subscribe("evt", listener)
        bus.publish("evt", 42)

        assert received == []
        await bus.drain()
        assert received == [42]

    @pytest.mark.asyncio
    async def test_slow_listener_does_not_delay_others(self, bus):
        """Test each listener runs independently."""
        release = asyncio.Event()
        fast_done = asyncio.Event()

        async def slow(name, data):
            await release.wait()

        async def fast(name, data):
            fast_done.set()

        bus.subscribe("evt", slow)
        bus.subscribe("evt", fast)
        bus.publish("evt")

        await asyncio.wait_for(fast_done.wait(), timeout=1)
        release.set()
        await bus.drain()

    @pytest.mark.asyncio
    async def test_failing_listener_is_logged(self, bus, caplog):
        """Test listener exceptions are logged, not raised."""
        bus.subscribe("evt", lambda name, data: 1 / 0)
        bus.publish("evt")
        await bus.drain()

        assert "Error in event listener for evt" in caplog.text

    def test_publish_without_loop_uses_threads(self, bus):
        """Test delivery happens on a worker thread when no loop is running."""
        delivered = threading.Event()
        bus.subscribe("evt", lambda name, data: delivered.set())

        bus.publish("evt")

        assert delivered.wait(timeout=2)
