"""
Quote comparison and slippage bounds.

Ranking, best first:
  1. price for the taker's side (lowest to buy, highest to sell)
  2. source: AMM, then vault, then RFQ
  3. RFQ quotes: earliest ``created_at`` (first in, first out)
  4. lower taker fee
  5. arrival order
Expired RFQ quotes and quotes smaller than the minimum size never win.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Sequence, Tuple

from optionkit.exceptions import InvalidQuoteError
from optionkit.fixed import Numeric, parse_wad, wmul
from optionkit.quotes.types import CandidateQuote

logger = logging.getLogger(__name__)


def premium_limit(premium: int, max_slippage_percent: Numeric, is_buy: bool) -> int:
    """
    Worst premium the taker accepts.

    *max_slippage_percent* is a fraction of the premium (``"0.05"`` allows 5%
    slippage). Buyers may pay up to ``premium + offset``, sellers accept down
    to ``premium - offset``.
    """
    slippage = parse_wad(max_slippage_percent)
    if slippage < 0:
        raise InvalidQuoteError(f"Slippage must be non-negative, got {max_slippage_percent}")
    offset = wmul(premium, slippage)
    return premium + offset if is_buy else premium - offset


def _rank(quote: CandidateQuote) -> Tuple[int, int, int, int]:
    price_key = quote.price if quote.side.is_buy else -quote.price
    created_at = quote.created_at if quote.created_at is not None else 0
    return price_key, quote.source.priority, created_at, quote.taker_fee


def _usable(quote: CandidateQuote, min_size: int, now: int) -> bool:
    if quote.is_rfq and quote.is_expired(now):
        return False
    return quote.size >= min_size


def _check_sizes(size: int, min_size: Optional[int]) -> int:
    if min_size is not None and min_size > size:
        raise InvalidQuoteError(f"Minimum size {min_size} cannot be greater than size {size}")
    return size if min_size is None else min_size


def _check_same_pool(quotes: Sequence[CandidateQuote]) -> None:
    pools = {q.pool_address for q in quotes}
    if len(pools) > 1:
        logger.warning("Comparing quotes from different pools: %s", ", ".join(sorted(pools)))


def better(
    quote_a: Optional[CandidateQuote],
    quote_b: Optional[CandidateQuote],
    size: int,
    min_size: Optional[int] = None,
    now: Optional[int] = None,
) -> Optional[CandidateQuote]:
    """
    The better of two quotes, or None if neither is usable.

    Equivalent quotes resolve to *quote_a*.

    Raises:
        InvalidQuoteError: if *min_size* exceeds *size* or the quotes are on
            opposite sides
    """
    if quote_a is None:
        return quote_b
    if quote_b is None:
        return quote_a

    minimum = _check_sizes(size, min_size)
    if quote_a.side != quote_b.side:
        raise InvalidQuoteError("Cannot compare quotes with opposite direction")
    _check_same_pool((quote_a, quote_b))

    now = int(time.time()) if now is None else now
    a_ok = _usable(quote_a, minimum, now)
    b_ok = _usable(quote_b, minimum, now)
    if not (a_ok and b_ok):
        return quote_a if a_ok else quote_b if b_ok else None

    return quote_b if _rank(quote_b) < _rank(quote_a) else quote_a


def sort_quotes(
    quotes: Iterable[Optional[CandidateQuote]],
    size: int,
    min_size: Optional[int] = None,
    now: Optional[int] = None,
) -> List[CandidateQuote]:
    """Usable quotes ordered best first."""
    minimum = _check_sizes(size, min_size)
    now = int(time.time()) if now is None else now

    present = [q for q in quotes if q is not None]
    if len({q.side for q in present}) > 1:
        raise InvalidQuoteError("Cannot compare quotes with opposite direction")
    _check_same_pool(present)

    usable = [q for q in present if _usable(q, minimum, now)]
    # sorted() is stable, so arrival order breaks remaining ties
    return sorted(usable, key=_rank)


def best(
    quotes: Iterable[Optional[CandidateQuote]],
    size: int,
    min_size: Optional[int] = None,
    now: Optional[int] = None,
) -> Optional[CandidateQuote]:
    """Best usable quote, or None when nothing clears the filters."""
    ranked = sort_quotes(quotes, size, min_size, now)
    return ranked[0] if ranked else None
