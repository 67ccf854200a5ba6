"""
Test suite for live quote streams

Covers:
  - Immediate, interval and event-driven delivery
  - Per-subscription cancellation and cancel_all generations
  - In-flight results never delivered after cancellation
  - Error and callback failure handling
"""

import asyncio

import pytest

from optionkit.config import StreamConfig
from optionkit.constants import WAD
from optionkit.quotes import QuoteRequest, QuoteStream, TradeSide

from fakes import POOL, FakeAggregator, FakeEvents

REQUEST = QuoteRequest(POOL, 10 * WAD, TradeSide.BUY)
SLOW = StreamConfig(interval_seconds=60)
FAST = StreamConfig(interval_seconds=0.01)


async def wait_until(predicate, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.001)


class Collector:
    def __init__(self):
        self.received = []

    def __call__(self, quote):
        self.received.append(quote)


# ============================================================================
#  DELIVERY
# ============================================================================

class TestDelivery:

    @pytest.mark.asyncio
    async def test_immediate_delivery(self):
        stream = QuoteStream(FakeAggregator("quote-a"), config=SLOW)
        out = Collector()

        stream.subscribe(REQUEST, out)
        await wait_until(lambda: out.received)

        assert out.received == ["quote-a"]
        assert stream.stats.deliveries == 1
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_interval_reevaluation(self):
        aggregator = FakeAggregator(lambda calls: calls)
        stream = QuoteStream(aggregator, config=FAST)
        out = Collector()

        stream.subscribe(REQUEST, out)
        await wait_until(lambda: len(out.received) >= 3)

        assert out.received[:3] == [1, 2, 3]
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_event_triggers_reevaluation(self):
        events = FakeEvents()
        aggregator = FakeAggregator(lambda calls: calls)
        stream = QuoteStream(aggregator, events=events, config=SLOW)
        out = Collector()

        stream.subscribe(REQUEST, out)
        await wait_until(lambda: out.received)
        events.fire(POOL)
        await wait_until(lambda: len(out.received) == 2)

        assert out.received == [1, 2]
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_events_for_other_pools_ignored(self):
        events = FakeEvents()
        aggregator = FakeAggregator("q")
        stream = QuoteStream(aggregator, events=events, config=SLOW)

        stream.subscribe(REQUEST, Collector())
        await wait_until(lambda: aggregator.calls == 1)
        events.fire("0x" + "77" * 20)
        await asyncio.sleep(0.02)

        assert aggregator.calls == 1
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_async_callback(self):
        stream = QuoteStream(FakeAggregator("q"), config=SLOW)
        received = []

        async def on_quote(quote):
            await asyncio.sleep(0)
            received.append(quote)

        stream.subscribe(REQUEST, on_quote)
        await wait_until(lambda: received)
        assert received == ["q"]
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_no_quote_delivers_none(self):
        stream = QuoteStream(FakeAggregator(None), config=SLOW)
        out = Collector()

        stream.subscribe(REQUEST, out)
        await wait_until(lambda: out.received)
        assert out.received == [None]
        await stream.aclose()


# ============================================================================
#  CANCELLATION
# ============================================================================

class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancel_stops_in_flight_delivery(self):
        aggregator = FakeAggregator("late")
        aggregator.gate = asyncio.Event()
        stream = QuoteStream(aggregator, config=SLOW)
        out = Collector()

        sub = stream.subscribe(REQUEST, out)
        await wait_until(lambda: aggregator.calls == 1)
        sub.cancel()
        aggregator.gate.set()
        await sub.wait_closed()

        assert out.received == []
        assert not sub.active
        assert stream.subscriptions == {}

    @pytest.mark.asyncio
    async def test_cancel_removes_listener(self):
        events = FakeEvents()
        stream = QuoteStream(FakeAggregator("q"), events=events, config=SLOW)

        sub = stream.subscribe(REQUEST, Collector())
        assert len(events.listeners) == 1
        sub.cancel()
        await sub.wait_closed()

        assert events.listeners == {}

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self):
        stream = QuoteStream(FakeAggregator("q"), config=SLOW)
        sub = stream.subscribe(REQUEST, Collector())
        sub.cancel()
        sub.cancel()
        await sub.wait_closed()
        assert sub.cancelled

    @pytest.mark.asyncio
    async def test_cancel_one_keeps_others(self):
        aggregator = FakeAggregator("q")
        stream = QuoteStream(aggregator, config=FAST)
        a, b = Collector(), Collector()

        sub_a = stream.subscribe(REQUEST, a)
        sub_b = stream.subscribe(REQUEST, b)
        await wait_until(lambda: a.received and b.received)

        sub_a.cancel()
        await sub_a.wait_closed()
        seen_a = len(a.received)
        seen_b = len(b.received)
        await wait_until(lambda: len(b.received) > seen_b)

        assert len(a.received) == seen_a
        assert sub_b.active
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_cancel_all_advances_generation(self):
        aggregator = FakeAggregator("q")
        stream = QuoteStream(aggregator, config=SLOW)
        a, b = Collector(), Collector()

        sub_a = stream.subscribe(REQUEST, a)
        sub_b = stream.subscribe(REQUEST, b)
        await wait_until(lambda: a.received and b.received)

        assert stream.cancel_all() == 1
        assert stream.generation == 1
        await asyncio.gather(sub_a.wait_closed(), sub_b.wait_closed())

        assert not sub_a.active and not sub_b.active
        assert stream.subscriptions == {}

        fresh = Collector()
        sub_c = stream.subscribe(REQUEST, fresh)
        await wait_until(lambda: fresh.received)
        assert sub_c.generation == 1
        assert sub_c.active
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_cancel_all_during_evaluation_drops_result(self):
        aggregator = FakeAggregator()
        stream = QuoteStream(aggregator, config=SLOW)

        def evaluate(calls):
            stream.cancel_all()
            return "stale"

        aggregator.result = evaluate
        out = Collector()
        sub = stream.subscribe(REQUEST, out)
        await sub.wait_closed()

        assert out.received == []
        assert stream.stats.stale_drops == 1
        assert stream.stats.deliveries == 0

    @pytest.mark.asyncio
    async def test_callback_cancelling_itself(self):
        aggregator = FakeAggregator("q")
        stream = QuoteStream(aggregator, config=FAST)
        received = []

        def on_quote(quote):
            received.append(quote)
            sub.cancel()

        sub = stream.subscribe(REQUEST, on_quote)
        await sub.wait_closed()
        await asyncio.sleep(0.03)

        assert received == ["q"]
        assert aggregator.calls == 1


# ============================================================================
#  FAILURES
# ============================================================================

class TestFailures:

    @pytest.mark.asyncio
    async def test_evaluation_error_delivers_none(self):
        stream = QuoteStream(FakeAggregator(RuntimeError("rpc down")), config=SLOW)
        out = Collector()

        stream.subscribe(REQUEST, out)
        await wait_until(lambda: out.received)

        assert out.received == [None]
        assert stream.stats.failures == 1
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_callback_error_keeps_streaming(self):
        aggregator = FakeAggregator("q")
        stream = QuoteStream(aggregator, config=FAST)
        calls = []

        def on_quote(quote):
            calls.append(quote)
            if len(calls) == 1:
                raise ValueError("consumer bug")

        stream.subscribe(REQUEST, on_quote)
        await wait_until(lambda: len(calls) >= 2)
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_event_source_failure_falls_back_to_interval(self):
        class BrokenEvents:
            def add_listener(self, pool_address, callback):
                raise ConnectionError("websocket closed")

        stream = QuoteStream(FakeAggregator("q"), events=BrokenEvents(), config=FAST)
        out = Collector()

        stream.subscribe(REQUEST, out)
        await wait_until(lambda: len(out.received) >= 2)
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_aclose_waits_for_workers(self):
        stream = QuoteStream(FakeAggregator("q"), config=SLOW)
        subs = [stream.subscribe(REQUEST, Collector()) for _ in range(3)]

        await stream.aclose()

        assert all(s._task.done() for s in subs)
        assert stream.subscriptions == {}
