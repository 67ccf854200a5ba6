"""
Collaborator interfaces consumed by the quote layer.

These are the only points where optionkit talks to the outside world. An
application wires them to its contract-call client, vault registry and RFQ
service; tests wire them to in-memory fakes. Any exception raised by a
collaborator is treated as "source unavailable".
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence, runtime_checkable

from optionkit.quotes.types import (
    AmmQuote,
    OptionType,
    OrderbookQuote,
    PoolKey,
    PoolSettings,
    TokenPair,
    TradeSide,
)

# Removes a listener registered with ``EventSource.add_listener``
Unsubscribe = Callable[[], None]


@runtime_checkable
class PoolGateway(Protocol):
    """
    Read-only view of pool contracts. Premiums and fees are returned in the
    collateral token's decimals (``PoolSettings.collateral_decimals``).
    """

    async def get_pool_settings(self, pool_address: str) -> PoolSettings: ...

    async def get_amm_quote(
        self, pool_address: str, size: int, is_buy: bool, taker: str
    ) -> AmmQuote: ...

    async def get_vault_quote(
        self, vault_address: str, pool_key: PoolKey, size: int, is_buy: bool, taker: str
    ) -> int:
        """Vault premium for *size* contracts, taker fee included."""
        ...

    async def get_taker_fee(
        self,
        pool_address: str,
        size: int,
        premium: int,
        is_premium_normalized: bool,
        is_orderbook: bool,
        taker: str,
    ) -> int:
        """Authoritative taker fee as computed by the pool."""
        ...


@runtime_checkable
class VaultRegistry(Protocol):

    async def find_vaults_by_filter(
        self, assets: Sequence[str], side: TradeSide, option_type: OptionType
    ) -> List[str]: ...

    async def get_supported_pairs(self, vault_address: str) -> List[TokenPair]: ...


@runtime_checkable
class OrderbookGateway(Protocol):
    """RFQ service publishing signed market-maker quotes."""

    async def get_quotes(
        self, pool_address: str, size: int, side: TradeSide, taker: Optional[str]
    ) -> List[OrderbookQuote]:
        """Quotes the taker could fill on *side*; ``side`` is the taker's side."""
        ...


@runtime_checkable
class EventSource(Protocol):
    """Signals when something that can move a pool's quotes happens."""

    def add_listener(self, pool_address: str, callback: Callable[[], None]) -> Unsubscribe: ...
