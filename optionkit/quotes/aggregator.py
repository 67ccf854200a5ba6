"""
Best-execution quote aggregation.

For one pool the aggregator asks, concurrently:
  - the pool's AMM (always)
  - every vault the registry lists for the pool's collateral, trade side and
    option type, provided the vault supports the exact token pair
  - the RFQ orderbook, when one is configured

A failing source is logged and dropped; it never prevents the others from
quoting. The surviving candidates are ranked by ``comparator.best``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from optionkit.address import normalize_address
from optionkit.config.loader import QuoteConfig
from optionkit.exceptions import DomainRangeError, SourceUnavailableError
from optionkit.fixed import Numeric
from optionkit.quotes import comparator
from optionkit.quotes.fees import TakerFeeResolver
from optionkit.quotes.gateways import OrderbookGateway, PoolGateway, VaultRegistry
from optionkit.quotes.sources import (
    AmmQuoteSource,
    OrderbookQuoteSource,
    QuoteSource,
    VaultQuoteSource,
)
from optionkit.quotes.types import (
    CandidateQuote,
    FillSource,
    PoolSettings,
    QuoteRequest,
    TradeSide,
)

logger = logging.getLogger(__name__)


class QuoteAggregator:
    """
    Fan-out quoting across liquidity sources with per-source failure isolation.

    Args:
        pools: pool contract gateway
        registry: vault registry; without one only the AMM (and RFQ) quote
        orderbook: RFQ gateway; optional
        config: quote settings (TTL, router, referrer, error verbosity)
        clock: unix-seconds clock, injectable for tests
    """

    def __init__(
        self,
        pools: PoolGateway,
        registry: Optional[VaultRegistry] = None,
        orderbook: Optional[OrderbookGateway] = None,
        config: Optional[QuoteConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.pools = pools
        self.registry = registry
        self.orderbook = orderbook
        self.config = config or QuoteConfig()
        self.fees = TakerFeeResolver(pools)
        self._clock = clock

    # -- Public API ---------------------------------------------------------

    async def best_quote(
        self,
        pool_address: str,
        size: int,
        side: TradeSide,
        min_size: Optional[int] = None,
        max_slippage_percent: Optional[Numeric] = None,
        taker: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> Optional[CandidateQuote]:
        """
        Best executable quote for trading *size* contracts on *side*.

        Returns None when no source produced a usable quote.
        """
        request = QuoteRequest(
            pool_address=pool_address,
            size=size,
            side=side,
            min_size=min_size,
            max_slippage_percent=max_slippage_percent,
            taker=taker,
            referrer=referrer,
        )
        return await self.best_quote_for(request)

    async def best_quote_for(self, request: QuoteRequest) -> Optional[CandidateQuote]:
        candidates = await self.candidates(request)
        quote = comparator.best(candidates, request.size, request.min_size, now=self._now())
        if quote is None:
            logger.info("No quote available for %s on pool %s", request.side.name, request.pool_address)
        else:
            logger.debug("Best quote for pool %s: %s at %d", request.pool_address, quote.source_id, quote.price)
        return quote

    async def collect_quotes(self, request: QuoteRequest) -> Dict[FillSource, List[CandidateQuote]]:
        """Every usable quote grouped by source kind, each group best first."""
        candidates = await self.candidates(request)
        ranked = comparator.sort_quotes(candidates, request.size, request.min_size, now=self._now())
        grouped: Dict[FillSource, List[CandidateQuote]] = defaultdict(list)
        for quote in ranked:
            grouped[quote.source].append(quote)
        return dict(grouped)

    async def candidates(self, request: QuoteRequest) -> List[Optional[CandidateQuote]]:
        """
        One result slot per source, in source order; failed sources are None.
        """
        settings = await self._pool_settings(request.pool_address)
        if settings is None:
            return []

        sources = await self.sources_for(settings, request)
        return list(await asyncio.gather(*(self._fetch(s, settings, request) for s in sources)))

    async def sources_for(self, settings: PoolSettings, request: QuoteRequest) -> List[QuoteSource]:
        """Sources to ask for *request*: AMM first, then vaults, then RFQ."""
        sources: List[QuoteSource] = [
            AmmQuoteSource(settings.pool_address, self.pools, self.config, self._clock)
        ]
        for vault in await self.discover_vaults(settings, request.side):
            sources.append(
                VaultQuoteSource(vault, self.pools, self.registry, self.fees, self.config, self._clock)
            )
        if self.orderbook is not None:
            sources.append(OrderbookQuoteSource(self.orderbook, self.fees, self.config, self._clock))
        return sources

    async def discover_vaults(self, settings: PoolSettings, side: TradeSide) -> List[str]:
        """
        Vaults the registry lists for the pool's collateral and option type.

        The vault trades against the taker, so it is looked up on the
        opposite side. Registry failures yield no vaults.
        """
        if self.registry is None:
            return []

        key = settings.key
        try:
            vaults = await self.registry.find_vaults_by_filter(
                [key.collateral], side.opposite(), key.option_type
            )
        except Exception as e:
            self._log_failure("vault registry", e)
            return []

        found = []
        for vault in vaults:
            try:
                found.append(normalize_address(vault))
            except DomainRangeError:
                logger.warning("Vault registry returned an invalid address: %r", vault)
        # registry order is kept; duplicates would double-count a vault
        return list(dict.fromkeys(found))

    # -- Internals ----------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock())

    async def _pool_settings(self, pool_address: str) -> Optional[PoolSettings]:
        try:
            return await self.pools.get_pool_settings(pool_address)
        except Exception as e:
            self._log_failure(f"pool settings for {pool_address}", e)
            return None

    async def _fetch(
        self, source: QuoteSource, settings: PoolSettings, request: QuoteRequest
    ) -> Optional[CandidateQuote]:
        try:
            return await source.fetch(settings, request)
        except SourceUnavailableError as e:
            self._log_failure(e.source, e)
            return None

    def _log_failure(self, what: str, error: Exception) -> None:
        logger.warning(
            "[%s] unavailable: %s", what, error,
            exc_info=error if self.config.show_errors else None,
        )
