"""
Taker fee model.

Local re-computation of the protocol's taker fee. This is an estimate that
can go stale when fee parameters change on-chain; the quote layer asks the
pool for the authoritative fee first (see ``optionkit.quotes.fees``) and only
uses these formulas when that call fails.
"""

from __future__ import annotations

from optionkit.constants import (
    EXERCISE_NOTIONAL_FEE_PERCENT,
    MAX_EXERCISE_FEE_PERCENT,
    MAX_PREMIUM_FEE_PERCENT,
    NOTIONAL_FEE_PERCENT,
    ORDERBOOK_NOTIONAL_FEE_PERCENT,
    PREMIUM_FEE_PERCENT,
)
from optionkit.exceptions import DomainRangeError
from optionkit.fixed import wmul


def _require_non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise DomainRangeError(f"{name} must be non-negative, got {value}")


def compute_taker_fee(size: int, premium: int, is_orderbook: bool = False) -> int:
    """
    Taker fee for a trade of *size* contracts paying *premium* (both WAD).

    Orderbook trades pay a notional fee capped at a share of the premium.
    AMM trades pay the larger of the notional and premium fees, capped at a
    share of the premium; with a zero premium the cap is the notional fee.
    """
    _require_non_negative(size=size, premium=premium)

    if is_orderbook:
        return min(
            wmul(size, ORDERBOOK_NOTIONAL_FEE_PERCENT),
            wmul(premium, MAX_PREMIUM_FEE_PERCENT),
        )

    size_based = wmul(size, NOTIONAL_FEE_PERCENT)
    premium_based = wmul(premium, PREMIUM_FEE_PERCENT)
    cap = size_based if premium == 0 else wmul(premium, MAX_PREMIUM_FEE_PERCENT)
    return min(max(size_based, premium_based), cap)


def compute_exercise_fee(size: int, exercise_value: int) -> int:
    """Fee charged on exercise: notional fee capped at a share of the payout."""
    _require_non_negative(size=size, exercise_value=exercise_value)
    return min(
        wmul(size, EXERCISE_NOTIONAL_FEE_PERCENT),
        wmul(exercise_value, MAX_EXERCISE_FEE_PERCENT),
    )
