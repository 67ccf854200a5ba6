"""
Fixed-point (WAD) arithmetic.

Every price, size, premium and fee in optionkit is an ``int`` scaled by
10**18. Products and quotients truncate toward zero, the same way the
protocol contracts round, so results match on-chain values bit for bit.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Sequence, Union

from optionkit.constants import WAD, WAD_DECIMALS
from optionkit.exceptions import DomainRangeError, SingularComputationError

Numeric = Union[int, str, Decimal]

# Enough digits for any 256-bit integer
_DECIMAL_PRECISION = 96


def _div_trunc(n: int, d: int) -> int:
    """Integer division rounding toward zero (Python's ``//`` floors)."""
    q = abs(n) // abs(d)
    return -q if (n < 0) != (d < 0) else q


def wmul(a: int, b: int) -> int:
    """``a * b / WAD``, truncated toward zero."""
    return _div_trunc(a * b, WAD)


def wdiv(a: int, b: int) -> int:
    """``a * WAD / b``, truncated toward zero."""
    if b == 0:
        raise SingularComputationError("division by zero in wdiv")
    return _div_trunc(a * WAD, b)


def wabs(x: int) -> int:
    return -x if x < 0 else x


def closest_index(value: int, candidates: Sequence[int]) -> int:
    """
    Index of the candidate with the smallest absolute difference to *value*.

    Ties resolve to the lowest index: a candidate only replaces the current
    choice when it is strictly closer.
    """
    if not candidates:
        raise DomainRangeError("closest_index requires at least one candidate")

    best = 0
    best_diff = wabs(value - candidates[0])
    for i in range(1, len(candidates)):
        diff = wabs(value - candidates[i])
        if diff < best_diff:
            best, best_diff = i, diff
    return best


def parse_wad(value: Numeric, decimals: int = WAD_DECIMALS) -> int:
    """
    Convert a human-readable decimal (``"0.25"``, ``Decimal("1.5")``, ``3``)
    into a fixed-point integer with *decimals* places.

    Digits beyond *decimals* are truncated.
    """
    if isinstance(value, bool):
        raise DomainRangeError(f"cannot parse boolean {value!r} as a fixed-point value")
    if isinstance(value, int):
        return value * 10 ** decimals

    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        try:
            d = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise DomainRangeError(f"not a decimal number: {value!r}") from e
        if not d.is_finite():
            raise DomainRangeError(f"not a finite number: {value!r}")
        scaled = d.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def format_wad(value: int, decimals: int = WAD_DECIMALS) -> str:
    """Render a fixed-point integer as a plain decimal string (``"0.25"``)."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        text = format(Decimal(value).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def convert_decimals(value: int, from_decimals: int, to_decimals: int) -> int:
    """
    Rescale a token amount between decimal precisions.

    Down-scaling truncates toward zero; e.g. an 18-decimal amount converted to
    a 6-decimal stablecoin loses the last 12 digits.
    """
    if from_decimals < 0 or to_decimals < 0:
        raise DomainRangeError("decimals must be non-negative")
    if to_decimals >= from_decimals:
        return value * 10 ** (to_decimals - from_decimals)
    return _div_trunc(value, 10 ** (from_decimals - to_decimals))
