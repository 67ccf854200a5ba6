"""
Tick lattice for range orders.

Pools only accept ranges whose width is one of a fixed set of tick counts
(``VALID_WIDTHS``, all of the form 2^n * 5^m so that prices divide evenly in
decimal). A user-requested range is snapped to the closest valid width while
one bound stays anchored:

  - long-collateral orders keep ``upper`` and move ``lower`` down from it
  - every other order type keeps ``lower`` and moves ``upper`` up from it

When the moved bound would leave the price domain the next-smaller width is
tried once; if that still fails the request cannot be satisfied.
"""

from __future__ import annotations

import logging
from typing import Tuple

from optionkit.constants import MAX_TICK_PRICE, MIN_TICK_DISTANCE, MIN_TICK_PRICE, VALID_WIDTHS
from optionkit.exceptions import DomainRangeError
from optionkit.fixed import closest_index
from optionkit.pricing.types import OrderType, TickRange

logger = logging.getLogger(__name__)

# Valid widths in WAD units
VALID_WIDTHS_WAD: Tuple[int, ...] = tuple(w * MIN_TICK_DISTANCE for w in VALID_WIDTHS)


def is_on_lattice(price: int) -> bool:
    """True when *price* is a non-negative multiple of the minimum tick."""
    return 0 <= price <= MAX_TICK_PRICE and price % MIN_TICK_DISTANCE == 0


def is_valid_range(lower: int, upper: int) -> bool:
    """True when ``[lower, upper]`` is a range the pool accepts as-is."""
    return (
        lower < upper
        and is_on_lattice(lower)
        and is_on_lattice(upper)
        and (upper - lower) in VALID_WIDTHS_WAD
    )


def _bound_ok(lower: int, upper: int, order_type: OrderType) -> bool:
    if order_type.moves_lower_bound:
        return lower >= MIN_TICK_PRICE
    return upper <= MAX_TICK_PRICE


def _apply_width(lower: int, upper: int, width: int, order_type: OrderType) -> TickRange:
    if order_type.moves_lower_bound:
        return TickRange(upper - width, upper)
    return TickRange(lower, lower + width)


def snap_to_valid_range(lower: int, upper: int, order_type: OrderType) -> TickRange:
    """
    Snap ``[lower, upper]`` onto the closest valid range for *order_type*.

    The requested width is matched against ``VALID_WIDTHS_WAD`` by absolute
    difference, lowest index winning ties.

    Args:
        lower: requested lower bound (WAD)
        upper: requested upper bound (WAD)
        order_type: decides which bound is anchored

    Returns:
        TickRange whose width is a valid width and whose moved bound lies in
        ``[MIN_TICK_DISTANCE, MAX_TICK_PRICE]``.

    Raises:
        DomainRangeError: on negative or inverted input, an anchored bound off
            the lattice, or when no valid width fits after one fallback step.
    """
    order_type = OrderType(order_type)

    if lower < 0 or upper < 0:
        raise DomainRangeError(f"Range bounds must be non-negative: ({lower}, {upper})")
    if lower >= upper:
        raise DomainRangeError(f"Lower bound {lower} must be below upper bound {upper}")
    if upper > MAX_TICK_PRICE:
        raise DomainRangeError(f"Upper bound {upper} exceeds MAX_TICK_PRICE {MAX_TICK_PRICE}")

    anchor = upper if order_type.moves_lower_bound else lower
    if anchor % MIN_TICK_DISTANCE != 0:
        raise DomainRangeError(
            f"Anchored bound {anchor} is not a multiple of MIN_TICK_DISTANCE {MIN_TICK_DISTANCE}"
        )

    index = closest_index(upper - lower, VALID_WIDTHS_WAD)
    snapped = _apply_width(lower, upper, VALID_WIDTHS_WAD[index], order_type)

    if not _bound_ok(snapped.lower, snapped.upper, order_type):
        if index == 0:
            raise DomainRangeError(
                f"No valid width fits range ({lower}, {upper}) for {order_type.name}"
            )
        index -= 1
        snapped = _apply_width(lower, upper, VALID_WIDTHS_WAD[index], order_type)
        logger.debug(
            "Width fallback for %s: (%d, %d) -> (%d, %d)",
            order_type.name, lower, upper, snapped.lower, snapped.upper,
        )
        if not _bound_ok(snapped.lower, snapped.upper, order_type):
            raise DomainRangeError(
                f"Range ({lower}, {upper}) cannot be snapped for {order_type.name}: "
                f"fallback width {VALID_WIDTHS[index]} still leaves the price domain"
            )

    return snapped
