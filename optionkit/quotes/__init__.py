"""
optionkit Quotes

Best-execution quoting across the protocol's liquidity sources:
  - AMM, vault and RFQ orderbook quote sources
  - Concurrent aggregation with per-source failure isolation
  - Generation-fenced live quote streams
"""

from .types import (
    AmmQuote,
    CandidateQuote,
    FillSource,
    OptionType,
    OrderbookQuote,
    PoolKey,
    PoolSettings,
    QuoteRequest,
    Signature,
    TokenPair,
    TradeSide,
)
from .gateways import EventSource, OrderbookGateway, PoolGateway, VaultRegistry
from .comparator import best, better, premium_limit, sort_quotes
from .fees import TakerFeeResolver
from .sources import AmmQuoteSource, OrderbookQuoteSource, QuoteSource, VaultQuoteSource
from .aggregator import QuoteAggregator
from .stream import QuoteStream, StreamSession, Subscription

__all__ = [
    # Types
    "AmmQuote",
    "CandidateQuote",
    "FillSource",
    "OptionType",
    "OrderbookQuote",
    "PoolKey",
    "PoolSettings",
    "QuoteRequest",
    "Signature",
    "TokenPair",
    "TradeSide",
    # Collaborators
    "EventSource",
    "OrderbookGateway",
    "PoolGateway",
    "VaultRegistry",
    # Comparison
    "best",
    "better",
    "premium_limit",
    "sort_quotes",
    # Sources
    "AmmQuoteSource",
    "OrderbookQuoteSource",
    "QuoteSource",
    "TakerFeeResolver",
    "VaultQuoteSource",
    # Aggregation & streaming
    "QuoteAggregator",
    "QuoteStream",
    "StreamSession",
    "Subscription",
]
