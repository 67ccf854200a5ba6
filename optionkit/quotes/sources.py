"""
Liquidity sources.

Every source answers the same question, "what would it cost to trade this
size on this pool right now?", and returns a normalized ``CandidateQuote``:

  - ``AmmQuoteSource``: the pool's own AMM liquidity
  - ``VaultQuoteSource``: one vault that quotes the pool's series
  - ``OrderbookQuoteSource``: the best signed RFQ quote for the pool

Prices are normalized to "premium per contract excluding the taker fee" so
that quotes from different sources compare directly.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from optionkit.address import normalize_address
from optionkit.config.loader import QuoteConfig
from optionkit.constants import WAD_DECIMALS, ZERO_ADDRESS
from optionkit.exceptions import SourceUnavailableError
from optionkit.fixed import convert_decimals, wdiv, wmul
from optionkit.quotes import calldata
from optionkit.quotes.comparator import premium_limit
from optionkit.quotes.fees import TakerFeeResolver
from optionkit.quotes.gateways import OrderbookGateway, PoolGateway, VaultRegistry
from optionkit.quotes.types import (
    CandidateQuote,
    FillSource,
    OrderbookQuote,
    PoolSettings,
    QuoteRequest,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class QuoteSource(ABC):
    """A place liquidity can be taken from."""

    kind: FillSource

    def __init__(self, config: QuoteConfig, clock: Clock = time.time):
        self.config = config
        self._clock = clock

    @property
    @abstractmethod
    def source_id(self) -> str:
        ...

    @abstractmethod
    async def _quote(
        self, settings: PoolSettings, request: QuoteRequest
    ) -> Optional[CandidateQuote]:
        ...

    async def fetch(
        self, settings: PoolSettings, request: QuoteRequest
    ) -> Optional[CandidateQuote]:
        """
        Quote *request* against this source.

        Returns None when the source has nothing to offer for the request.

        Raises:
            SourceUnavailableError: if a collaborator call fails
        """
        try:
            return await self._quote(settings, request)
        except SourceUnavailableError:
            raise
        except Exception as e:
            raise SourceUnavailableError(self.source_id, f"{type(e).__name__}: {e}") from e

    # -- helpers ------------------------------------------------------------

    def now(self) -> int:
        return int(self._clock())

    def deadline(self) -> int:
        return self.now() + self.config.ttl_seconds

    def taker(self, request: QuoteRequest) -> str:
        return normalize_address(request.taker) if request.taker else ZERO_ADDRESS

    def referrer(self, request: QuoteRequest) -> str:
        if request.referrer:
            return normalize_address(request.referrer)
        return self.config.default_referrer or ZERO_ADDRESS

    @staticmethod
    def limit(premium: int, request: QuoteRequest) -> int:
        """Slippage-bounded premium, or the raw premium when no bound was asked for."""
        if request.max_slippage_percent is None:
            return premium
        return premium_limit(premium, request.max_slippage_percent, request.side.is_buy)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.source_id}>"


# ---------------------------------------------------------------------------
# AMM
# ---------------------------------------------------------------------------

class AmmQuoteSource(QuoteSource):
    """
    The pool's AMM. Its premium excludes the taker fee, which the pool
    reports separately.
    """

    kind = FillSource.AMM

    def __init__(
        self,
        pool_address: str,
        pools: PoolGateway,
        config: QuoteConfig,
        clock: Clock = time.time,
    ):
        super().__init__(config, clock)
        self.pool_address = normalize_address(pool_address)
        self._pools = pools

    @property
    def source_id(self) -> str:
        return f"amm:{self.pool_address}"

    async def _quote(self, settings: PoolSettings, request: QuoteRequest) -> CandidateQuote:
        is_buy = request.side.is_buy
        taker = self.taker(request)

        raw = await self._pools.get_amm_quote(settings.pool_address, request.size, is_buy, taker)
        limit = self.limit(raw.premium_net, request)

        return CandidateQuote(
            source_id=self.source_id,
            source=self.kind,
            pool_address=settings.pool_address,
            price=wdiv(raw.premium_net, request.size),
            size=request.size,
            side=request.side,
            taker_fee=raw.taker_fee,
            premium_limit=limit,
            deadline=self.deadline(),
            approval_target=self.config.router_address,
            # sellers post the full collateral minus the premium they receive
            approval_amount=limit if is_buy else request.size - limit + raw.taker_fee,
            to=settings.pool_address,
            call_data=calldata.encode_pool_trade(
                request.size, is_buy, limit, self.referrer(request)
            ),
            taker=taker,
        )


# ---------------------------------------------------------------------------
# Vaults
# ---------------------------------------------------------------------------

class VaultQuoteSource(QuoteSource):
    """
    A single vault. Vault premiums include the taker fee, so the fee is
    looked up separately and subtracted to normalize the price.
    """

    kind = FillSource.VAULT

    def __init__(
        self,
        vault_address: str,
        pools: PoolGateway,
        registry: VaultRegistry,
        fees: TakerFeeResolver,
        config: QuoteConfig,
        clock: Clock = time.time,
    ):
        super().__init__(config, clock)
        self.vault_address = normalize_address(vault_address)
        self._pools = pools
        self._registry = registry
        self._fees = fees

    @property
    def source_id(self) -> str:
        return f"vault:{self.vault_address}"

    async def supports(self, settings: PoolSettings) -> bool:
        """True when the vault lists the pool's exact (base, quote, oracle) triplet."""
        pairs = await self._registry.get_supported_pairs(self.vault_address)
        return any(pair.matches(settings.key) for pair in pairs)

    async def _quote(
        self, settings: PoolSettings, request: QuoteRequest
    ) -> Optional[CandidateQuote]:
        if not await self.supports(settings):
            logger.debug("Vault %s does not trade pool %s", self.vault_address, settings.pool_address)
            return None

        is_buy = request.side.is_buy
        taker = self.taker(request)

        premium = await self._pools.get_vault_quote(
            self.vault_address, settings.key, request.size, is_buy, taker
        )
        limit = self.limit(premium, request)
        taker_fee = await self._fees.taker_fee(
            settings.pool_address, request.size, 0, True, False, taker,
            settings.collateral_decimals,
        )

        return CandidateQuote(
            source_id=self.source_id,
            source=self.kind,
            pool_address=settings.pool_address,
            price=wdiv(premium - taker_fee, request.size),
            size=request.size,
            side=request.side,
            taker_fee=taker_fee,
            premium_limit=limit,
            deadline=self.deadline(),
            approval_target=self.vault_address,
            approval_amount=limit,
            to=self.vault_address,
            call_data=calldata.encode_vault_trade(
                settings.key, request.size, is_buy, limit, self.referrer(request)
            ),
            taker=taker,
        )


# ---------------------------------------------------------------------------
# Orderbook (RFQ)
# ---------------------------------------------------------------------------

class OrderbookQuoteSource(QuoteSource):
    """Best signed RFQ quote the taker is allowed to fill."""

    kind = FillSource.ORDERBOOK

    def __init__(
        self,
        orderbook: OrderbookGateway,
        fees: TakerFeeResolver,
        config: QuoteConfig,
        clock: Clock = time.time,
    ):
        super().__init__(config, clock)
        self._orderbook = orderbook
        self._fees = fees

    @property
    def source_id(self) -> str:
        return "orderbook"

    def fillable(self, quotes: List[OrderbookQuote], request: QuoteRequest) -> List[OrderbookQuote]:
        """Live quotes on the other side of the taker that this taker may fill."""
        now = self.now()
        taker = self.taker(request)
        result = []
        for q in quotes:
            if q.deadline <= now or q.fillable_size <= 0:
                continue
            # a partial fill below the minimum size would lose to every full quote
            if q.fillable_size < request.effective_min_size:
                continue
            # the market maker must be on the opposite side of the taker
            if q.is_buy == request.side.is_buy:
                continue
            allowed_taker = normalize_address(q.taker)
            if allowed_taker != ZERO_ADDRESS and allowed_taker != taker:
                continue
            result.append(q)
        return result

    def select(self, quotes: List[OrderbookQuote], request: QuoteRequest) -> OrderbookQuote:
        if request.side.is_buy:
            return min(quotes, key=lambda q: (q.price, q.created_at))
        return min(quotes, key=lambda q: (-q.price, q.created_at))

    async def _quote(
        self, settings: PoolSettings, request: QuoteRequest
    ) -> Optional[CandidateQuote]:
        quotes = await self._orderbook.get_quotes(
            settings.pool_address, request.size, request.side, request.taker
        )
        candidates = self.fillable(quotes, request)
        if not candidates:
            return None

        quote = self.select(candidates, request)
        size = min(request.size, quote.fillable_size)

        decimals = settings.collateral_decimals
        taker_fee = await self._fees.taker_fee(
            settings.pool_address, size, wmul(size, quote.price), True, True, quote.taker, decimals
        )
        # RFQ prices are normalized WAD; puts are quoted as a fraction of strike
        price_wad = quote.price if settings.key.is_call_pool else wmul(quote.price, settings.key.strike)
        price = convert_decimals(price_wad, WAD_DECIMALS, decimals)
        premium = convert_decimals(wmul(size, price_wad), WAD_DECIMALS, decimals)

        return CandidateQuote(
            source_id=f"orderbook:{quote.quote_id}",
            source=self.kind,
            pool_address=settings.pool_address,
            price=price,
            size=size,
            side=request.side,
            taker_fee=taker_fee,
            premium_limit=premium,
            deadline=quote.deadline,
            approval_target=self.config.router_address,
            approval_amount=size - premium + taker_fee if quote.is_buy else premium + taker_fee,
            to=settings.pool_address,
            call_data=calldata.encode_fill_quote_ob(quote, size, self.referrer(request)),
            taker=self.taker(request),
            created_at=quote.created_at,
        )
