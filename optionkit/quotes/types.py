"""
Quote layer data model.

Quotes are immutable: every evaluation produces fresh ``CandidateQuote``
objects and a newer quote supersedes an older one instead of updating it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import NamedTuple, Optional, Tuple

from optionkit.address import normalize_address, same_address
from optionkit.constants import WAD_DECIMALS
from optionkit.exceptions import DomainRangeError, InvalidQuoteError
from optionkit.fixed import Numeric, parse_wad


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TradeSide(IntEnum):
    """Trade direction; values match the vault registry's encoding."""
    BUY = 0
    SELL = 1

    @property
    def is_buy(self) -> bool:
        return self is TradeSide.BUY

    def opposite(self) -> "TradeSide":
        return TradeSide.SELL if self is TradeSide.BUY else TradeSide.BUY

    @classmethod
    def from_is_buy(cls, is_buy: bool) -> "TradeSide":
        return cls.BUY if is_buy else cls.SELL


class OptionType(IntEnum):
    """Option type; values match the vault registry's encoding."""
    CALL = 0
    PUT = 1

    @classmethod
    def from_is_call(cls, is_call: bool) -> "OptionType":
        return cls.CALL if is_call else cls.PUT


class FillSource(str, Enum):
    AMM = "amm"
    VAULT = "vault"
    ORDERBOOK = "orderbook"   # signed RFQ quotes

    @property
    def priority(self) -> int:
        """Lower wins when two quotes have the same price."""
        return _SOURCE_PRIORITY[self]


_SOURCE_PRIORITY = {FillSource.AMM: 0, FillSource.VAULT: 1, FillSource.ORDERBOOK: 2}


# ---------------------------------------------------------------------------
# Pool identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PoolKey:
    """Parameters that identify an option pool."""
    base: str
    quote: str
    oracle_adapter: str
    strike: int
    maturity: int
    is_call_pool: bool

    def __post_init__(self):
        for name in ("base", "quote", "oracle_adapter"):
            object.__setattr__(self, name, normalize_address(getattr(self, name)))

    def as_abi_tuple(self) -> Tuple[str, str, str, int, int, bool]:
        return (
            self.base,
            self.quote,
            self.oracle_adapter,
            self.strike,
            self.maturity,
            self.is_call_pool,
        )

    @property
    def collateral(self) -> str:
        """Calls are collateralized in the base token, puts in the quote token."""
        return self.base if self.is_call_pool else self.quote

    @property
    def option_type(self) -> OptionType:
        return OptionType.from_is_call(self.is_call_pool)


@dataclass(frozen=True)
class PoolSettings:
    """
    A pool and its series. Premiums and fees reported by the pool are in
    ``collateral_decimals`` units of the collateral token.
    """
    pool_address: str
    key: PoolKey
    collateral_decimals: int = WAD_DECIMALS

    def __post_init__(self):
        object.__setattr__(self, "pool_address", normalize_address(self.pool_address))
        if self.collateral_decimals < 0:
            raise DomainRangeError(
                f"Collateral decimals must be non-negative, got {self.collateral_decimals}"
            )


class TokenPair(NamedTuple):
    """A (base, quote, oracle adapter) triplet a vault is willing to trade."""
    base: str
    quote: str
    oracle_adapter: str

    def matches(self, key: PoolKey) -> bool:
        return (
            same_address(self.base, key.base)
            and same_address(self.quote, key.quote)
            and same_address(self.oracle_adapter, key.oracle_adapter)
        )


# ---------------------------------------------------------------------------
# Raw source answers
# ---------------------------------------------------------------------------

class AmmQuote(NamedTuple):
    """AMM answer: premium excluding the fee, and the fee."""
    premium_net: int
    taker_fee: int


class Signature(NamedTuple):
    v: int
    r: bytes
    s: bytes


@dataclass(frozen=True)
class OrderbookQuote:
    """
    A signed RFQ quote published by a market maker.

    ``is_buy`` is the market maker's side, ``price`` is normalized (a fraction
    of spot for calls, of strike for puts) and ``fillable_size`` is what is
    left of ``size`` after earlier fills.
    """
    quote_id: str
    provider: str
    taker: str
    price: int
    size: int
    is_buy: bool
    deadline: int
    salt: int
    signature: Signature
    fillable_size: int
    created_at: int

    def __post_init__(self):
        object.__setattr__(self, "provider", normalize_address(self.provider))
        object.__setattr__(self, "taker", normalize_address(self.taker))

    def as_abi_tuple(self) -> Tuple[str, str, int, int, bool, int, int]:
        return (
            self.provider,
            self.taker,
            self.price,
            self.size,
            self.is_buy,
            self.deadline,
            self.salt,
        )


# ---------------------------------------------------------------------------
# Normalized output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CandidateQuote:
    """
    One executable quote, normalized across sources.

    ``price`` is the per-contract premium excluding the taker fee (WAD) and
    ``side`` is the taker's side. ``call_data`` settles the trade when sent to
    ``to``; ``approval_amount`` of the collateral token must first be approved
    to ``approval_target``.
    """
    source_id: str
    source: FillSource
    pool_address: str
    price: int
    size: int
    side: TradeSide
    taker_fee: int
    premium_limit: int
    deadline: int
    approval_target: str
    approval_amount: int
    to: str
    call_data: bytes
    taker: str
    created_at: Optional[int] = field(default=None)

    @property
    def is_rfq(self) -> bool:
        return self.created_at is not None

    def is_expired(self, now: int) -> bool:
        return self.deadline <= now


@dataclass(frozen=True)
class QuoteRequest:
    """A taker's trade intent for one pool."""
    pool_address: str
    size: int
    side: TradeSide
    min_size: Optional[int] = None
    max_slippage_percent: Optional[Numeric] = None
    taker: Optional[str] = None
    referrer: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "pool_address", normalize_address(self.pool_address))
        object.__setattr__(self, "side", TradeSide(self.side))
        if self.size <= 0:
            raise DomainRangeError(f"Quote size must be positive, got {self.size}")
        if self.min_size is not None and self.min_size > self.size:
            raise InvalidQuoteError(
                f"Minimum size {self.min_size} cannot be greater than size {self.size}"
            )
        if self.taker is not None:
            object.__setattr__(self, "taker", normalize_address(self.taker))
        if self.referrer is not None:
            object.__setattr__(self, "referrer", normalize_address(self.referrer))
        if self.max_slippage_percent is not None and parse_wad(self.max_slippage_percent) < 0:
            raise DomainRangeError(
                f"Slippage must be non-negative, got {self.max_slippage_percent}"
            )

    @property
    def effective_min_size(self) -> int:
        return self.size if self.min_size is None else self.min_size
