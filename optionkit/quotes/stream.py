"""
Live quote streaming.

A subscription delivers the best quote for a request immediately, then
re-evaluates it every ``interval_seconds`` and whenever the event source
reports activity on the pool (a trade, a vault quote update).

Stale deliveries are fenced two ways:
  - each subscription has its own cancellation flag (``Subscription.cancel``)
  - the stream holds a generation counter that ``cancel_all`` advances;
    subscriptions created under an older generation stop delivering

Both are re-checked immediately before every callback, so a quote computed
before a cancellation is never delivered after it.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Union

from optionkit.config.loader import StreamConfig
from optionkit.quotes.aggregator import QuoteAggregator
from optionkit.quotes.gateways import EventSource, Unsubscribe
from optionkit.quotes.types import CandidateQuote, QuoteRequest

logger = logging.getLogger(__name__)

QuoteCallback = Callable[[Optional[CandidateQuote]], Union[None, Awaitable[None]]]

_subscription_ids = itertools.count(1)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass
class StreamSession:
    """Generation fence shared by every subscription of one stream."""
    generation: int = 0

    def advance(self) -> int:
        self.generation += 1
        return self.generation


@dataclass
class StreamStats:
    deliveries: int = 0
    stale_drops: int = 0
    failures: int = 0


@dataclass(eq=False)
class Subscription:
    """A live quote subscription; create through ``QuoteStream.subscribe``."""
    request: QuoteRequest
    callback: QuoteCallback
    session: StreamSession
    generation: int
    id: int = field(default_factory=lambda: next(_subscription_ids))
    created_at: float = field(default_factory=time.time)
    cancelled: bool = False
    _trigger: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _task: Optional[asyncio.Task] = field(default=None, repr=False)
    _unsubscribe: Optional[Unsubscribe] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return not self.cancelled and self.generation == self.session.generation

    def cancel(self) -> None:
        """Stop this subscription. In-flight evaluations are never delivered."""
        if self.cancelled:
            return
        self.cancelled = True
        logger.debug("Subscription %d cancelled", self.id)
        self._teardown()

    def trigger(self) -> None:
        """Request an immediate re-evaluation."""
        self._trigger.set()

    async def wait_closed(self) -> None:
        """Wait until the subscription's worker has exited."""
        if self._task is not None and self._task is not asyncio.current_task():
            await asyncio.gather(self._task, return_exceptions=True)

    def _remove_listener(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception:
                logger.exception("Failed to remove event listener of subscription %d", self.id)

    def _teardown(self) -> None:
        self._remove_listener()
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()


# ---------------------------------------------------------------------------
# Stream engine
# ---------------------------------------------------------------------------

class QuoteStream:
    """
    Generation-fenced quote subscriptions over a ``QuoteAggregator``.

    Must be used from a running event loop.
    """

    def __init__(
        self,
        aggregator: QuoteAggregator,
        events: Optional[EventSource] = None,
        config: Optional[StreamConfig] = None,
    ):
        self.aggregator = aggregator
        self.events = events
        self.config = config or StreamConfig()
        self.session = StreamSession()
        self.stats = StreamStats()
        self._subscriptions: Dict[int, Subscription] = {}

    @property
    def generation(self) -> int:
        return self.session.generation

    @property
    def subscriptions(self) -> Dict[int, Subscription]:
        return dict(self._subscriptions)

    # -- Subscription lifecycle ---------------------------------------------

    def subscribe(self, request: QuoteRequest, on_quote: QuoteCallback) -> Subscription:
        """
        Start streaming the best quote for *request* into *on_quote*.

        *on_quote* may be a plain function or a coroutine function. It
        receives None when no quote is available or evaluation failed.
        """
        loop = asyncio.get_running_loop()

        sub = Subscription(
            request=request,
            callback=on_quote,
            session=self.session,
            generation=self.session.generation,
        )
        self._subscriptions[sub.id] = sub

        if self.events is not None:
            try:
                sub._unsubscribe = self.events.add_listener(
                    request.pool_address, lambda: loop.call_soon_threadsafe(sub.trigger)
                )
            except Exception as e:
                logger.warning(
                    "Event listener for pool %s unavailable, streaming on interval only: %s",
                    request.pool_address, e,
                )

        sub._task = loop.create_task(self._run(sub), name=f"quote-stream-{sub.id}")
        # runs even when the task is cancelled before it starts
        sub._task.add_done_callback(lambda _: self._subscriptions.pop(sub.id, None))
        logger.info(
            "Subscription %d started for pool %s (%s, generation %d)",
            sub.id, request.pool_address, request.side.name, sub.generation,
        )
        return sub

    def cancel_all(self) -> int:
        """
        Invalidate every existing subscription.

        Returns the new generation.
        """
        generation = self.session.advance()
        for sub in list(self._subscriptions.values()):
            sub._teardown()
        logger.info("All quote streams cancelled (generation %d)", generation)
        return generation

    async def aclose(self) -> None:
        """Cancel everything and wait for the workers to exit."""
        subs = list(self._subscriptions.values())
        self.cancel_all()
        await asyncio.gather(*(s.wait_closed() for s in subs))

    # -- Worker -------------------------------------------------------------

    async def _run(self, sub: Subscription) -> None:
        try:
            while True:
                quote = await self._evaluate(sub)
                if not sub.active:
                    self.stats.stale_drops += 1
                    logger.debug("Dropping stale quote for subscription %d", sub.id)
                    break

                await self._deliver(sub, quote)
                if not sub.active:
                    break

                try:
                    await asyncio.wait_for(sub._trigger.wait(), timeout=self.config.interval_seconds)
                except asyncio.TimeoutError:
                    pass
                sub._trigger.clear()

                if not sub.active:
                    break
        finally:
            sub._remove_listener()

    async def _evaluate(self, sub: Subscription) -> Optional[CandidateQuote]:
        try:
            return await self.aggregator.best_quote_for(sub.request)
        except Exception as e:
            self.stats.failures += 1
            logger.warning("Quote evaluation failed for subscription %d: %s", sub.id, e)
            return None

    async def _deliver(self, sub: Subscription, quote: Optional[CandidateQuote]) -> None:
        self.stats.deliveries += 1
        try:
            result = sub.callback(quote)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Quote callback of subscription %d failed", sub.id)
