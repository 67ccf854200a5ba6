"""
Option breakeven and exercise value.

Call premiums are paid in the base token, so the premium's own value moves
with spot; the call breakeven is therefore the spot level where the payoff,
measured in base tokens, equals the premium paid. Put premiums are paid in
the quote token and the breakeven is linear.
"""

from __future__ import annotations

from optionkit.exceptions import DomainRangeError, SingularComputationError
from optionkit.fixed import wdiv, wmul


def full_price(strike: int, is_call: bool, price: int, spot_price: int) -> int:
    """Premium per contract in quote-token terms from a normalized price."""
    return wmul(price, spot_price) if is_call else wmul(price, strike)


def breakeven_price(
    strike: int,
    is_call: bool,
    price: int,
    spot_price: int,
    is_full_price: bool = False,
) -> int:
    """
    Spot price at which an option bought at *price* breaks even.

    Args:
        strike: option strike (WAD)
        is_call: call or put
        price: premium per contract; normalized (fraction of spot for calls,
            of strike for puts) unless *is_full_price*
        spot_price: spot at purchase (WAD)
        is_full_price: *price* is already denominated in the quote token

    Raises:
        SingularComputationError: for a call whose full premium equals spot
    """
    if strike < 0 or price < 0 or spot_price < 0:
        raise DomainRangeError("strike, price and spot_price must be non-negative")

    full = price if is_full_price else full_price(strike, is_call, price, spot_price)

    if not is_call:
        return strike - full

    denominator = full - spot_price
    if denominator == 0:
        raise SingularComputationError(
            f"Call breakeven undefined: full premium {full} equals spot {spot_price}"
        )
    return strike + full - wdiv(wmul(full, strike + full - spot_price), denominator)


def exercise_value(strike: int, is_call: bool, settlement_price: int) -> int:
    """
    Payout per contract at settlement.

    Calls settle in the base token: ``(settlement - strike) / settlement``.
    Puts settle in the quote token: ``strike - settlement``. Out-of-the-money
    options are worth zero.
    """
    if strike < 0 or settlement_price < 0:
        raise DomainRangeError("strike and settlement_price must be non-negative")

    if is_call:
        if settlement_price <= strike:
            return 0
        return wdiv(settlement_price - strike, settlement_price)

    return strike - settlement_price if strike > settlement_price else 0
