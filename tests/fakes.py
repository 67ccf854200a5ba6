"""
In-memory collaborators for quote layer tests.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Union

from optionkit.constants import WAD
from optionkit.quotes import (
    AmmQuote,
    OrderbookQuote,
    PoolKey,
    PoolSettings,
    Signature,
    TokenPair,
)

NOW = 1_700_000_000

POOL = "0x" + "aa" * 20
BASE = "0x" + "b0" * 20
QUOTE = "0x" + "c0" * 20
ORACLE = "0x" + "d0" * 20
OTHER_ORACLE = "0x" + "d1" * 20
VAULT_1 = "0x" + "01" * 20
VAULT_2 = "0x" + "02" * 20
VAULT_3 = "0x" + "03" * 20
TAKER = "0x" + "0e" * 20
MAKER = "0x" + "0f" * 20
ROUTER = "0x" + "5e" * 20

STRIKE = 2000 * WAD
MATURITY = NOW + 7 * 24 * 3600


def clock() -> float:
    return float(NOW)


def make_key(is_call: bool = True, oracle: str = ORACLE) -> PoolKey:
    return PoolKey(
        base=BASE,
        quote=QUOTE,
        oracle_adapter=oracle,
        strike=STRIKE,
        maturity=MATURITY,
        is_call_pool=is_call,
    )


def make_settings(is_call: bool = True) -> PoolSettings:
    return PoolSettings(pool_address=POOL, key=make_key(is_call))


def make_rfq(
    price: int,
    is_buy: bool = False,
    size: int = 10 * WAD,
    fillable_size: Optional[int] = None,
    deadline: int = NOW + 600,
    created_at: int = NOW - 10,
    taker: str = "0x" + "00" * 20,
    quote_id: str = "q1",
) -> OrderbookQuote:
    return OrderbookQuote(
        quote_id=quote_id,
        provider=MAKER,
        taker=taker,
        price=price,
        size=size,
        is_buy=is_buy,
        deadline=deadline,
        salt=42,
        signature=Signature(v=27, r=b"\x11" * 32, s=b"\x22" * 32),
        fillable_size=size if fillable_size is None else fillable_size,
        created_at=created_at,
    )


class FakePools:
    """PoolGateway backed by plain attributes; set an Exception to make a call fail."""

    def __init__(self, settings: Optional[PoolSettings] = None):
        self.settings: Union[PoolSettings, Exception] = settings or make_settings()
        self.amm: Union[AmmQuote, Exception] = AmmQuote(premium_net=WAD, taker_fee=3 * 10 ** 16)
        self.vault_quotes: Dict[str, Union[int, Exception]] = {}
        self.fee: Union[int, Exception] = 3 * 10 ** 16
        self.amm_calls: List[tuple] = []
        self.fee_calls: List[tuple] = []

    async def get_pool_settings(self, pool_address):
        if isinstance(self.settings, Exception):
            raise self.settings
        return self.settings

    async def get_amm_quote(self, pool_address, size, is_buy, taker):
        self.amm_calls.append((pool_address, size, is_buy, taker))
        if isinstance(self.amm, Exception):
            raise self.amm
        return self.amm

    async def get_vault_quote(self, vault_address, pool_key, size, is_buy, taker):
        value = self.vault_quotes[vault_address.lower()]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_taker_fee(self, pool_address, size, premium, is_premium_normalized, is_orderbook, taker):
        self.fee_calls.append((pool_address, size, premium, is_premium_normalized, is_orderbook, taker))
        if isinstance(self.fee, Exception):
            raise self.fee
        return self.fee


class FakeRegistry:
    def __init__(self, vaults: Optional[List[str]] = None, pairs: Optional[Dict[str, List[TokenPair]]] = None):
        self.vaults: Union[List[str], Exception] = vaults or []
        self.pairs = pairs or {}
        self.filters: List[tuple] = []

    async def find_vaults_by_filter(self, assets, side, option_type):
        self.filters.append((list(assets), side, option_type))
        if isinstance(self.vaults, Exception):
            raise self.vaults
        return list(self.vaults)

    async def get_supported_pairs(self, vault_address):
        default = [TokenPair(BASE, QUOTE, ORACLE)]
        return self.pairs.get(vault_address.lower(), default)


class FakeOrderbook:
    def __init__(self, quotes: Optional[List[OrderbookQuote]] = None):
        self.quotes: Union[List[OrderbookQuote], Exception] = quotes or []

    async def get_quotes(self, pool_address, size, side, taker):
        if isinstance(self.quotes, Exception):
            raise self.quotes
        return list(self.quotes)


class FakeEvents:
    def __init__(self):
        self.listeners: Dict[int, tuple] = {}
        self._next = 0

    def add_listener(self, pool_address: str, callback: Callable[[], None]):
        self._next += 1
        token = self._next
        self.listeners[token] = (pool_address, callback)

        def remove():
            self.listeners.pop(token, None)

        return remove

    def fire(self, pool_address: str = POOL) -> None:
        for pool, callback in list(self.listeners.values()):
            if pool.lower() == pool_address.lower():
                callback()


class FakeAggregator:
    """Stands in for QuoteAggregator in stream tests."""

    def __init__(self, result=None):
        self.result = result
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None

    async def best_quote_for(self, request):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.result, Exception):
            raise self.result
        if callable(self.result):
            return self.result(self.calls)
        return self.result
