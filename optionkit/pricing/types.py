"""
Value types shared by the pricing modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple


# ---------------------------------------------------------------------------
# Enums (values match the on-chain encodings)
# ---------------------------------------------------------------------------

class OrderType(IntEnum):
    """Range-order collateral style."""
    COLLATERAL_SHORT_USE_PREMIUMS = 0
    COLLATERAL_SHORT = 1
    LONG_COLLATERAL = 2

    @property
    def moves_lower_bound(self) -> bool:
        """Long-collateral orders keep ``upper`` fixed and move ``lower``."""
        return self is OrderType.LONG_COLLATERAL


class TokenType(IntEnum):
    SHORT = 0
    LONG = 1


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

class TickRange(NamedTuple):
    """Price range ``[lower, upper]`` in WAD units."""
    lower: int
    upper: int

    @property
    def width(self) -> int:
        return self.upper - self.lower


@dataclass(frozen=True)
class PositionKey:
    """Identity of a range-order position, as held by the pool."""
    owner: str
    operator: str
    lower: int
    upper: int
    order_type: OrderType
    is_call: bool
    strike: int


@dataclass(frozen=True)
class PositionTokenId:
    """Decoded range-order token id."""
    version: int
    order_type: OrderType
    operator: str
    lower: int
    upper: int


@dataclass(frozen=True)
class OptionTokenId:
    """Decoded option-position token id."""
    token_type: TokenType
    maturity: int
    strike: int
