"""
Position token ids.

Two distinct 256-bit layouts are packed here, each with its own encode/decode
pair. They are not interchangeable.

Range-order position (LSB first)::

    [0, 9]      lower / MIN_TICK_DISTANCE
    [10, 19]    upper / MIN_TICK_DISTANCE
    [20, 179]   operator address
    [180, 183]  order type
    [252, 255]  version

Option position::

    [0, 127]    strike
    [128, 247]  maturity (unix seconds)
    [248, 255]  token type
"""

from __future__ import annotations

from optionkit.address import address_to_int, int_to_address
from optionkit.constants import (
    ADDRESS_BITS,
    MATURITY_BITS,
    MATURITY_OFFSET,
    MIN_TICK_DISTANCE,
    OPERATOR_OFFSET,
    ORDER_TYPE_BITS,
    ORDER_TYPE_OFFSET,
    STRIKE_BITS,
    TICK_INDEX_BITS,
    TOKEN_ID_BITS,
    TOKEN_ID_VERSION,
    TOKEN_TYPE_BITS,
    TOKEN_TYPE_OFFSET,
    UPPER_TICK_OFFSET,
    LOWER_TICK_OFFSET,
    VERSION_BITS,
    VERSION_OFFSET,
)
from optionkit.exceptions import DomainRangeError, OutOfRangeError
from optionkit.pricing.types import (
    OptionTokenId,
    OrderType,
    PositionKey,
    PositionTokenId,
    TokenType,
)


def _mask(bits: int) -> int:
    return (1 << bits) - 1


def _check_field(name: str, value: int, bits: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise OutOfRangeError(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > _mask(bits):
        raise OutOfRangeError(f"{name}={value} does not fit in {bits} bits")
    return value


def _check_token_id(token_id: int) -> int:
    return _check_field("token_id", token_id, TOKEN_ID_BITS)


def price_to_tick_index(price: int) -> int:
    """Tick index of a lattice price; rejects prices between ticks."""
    if price < 0:
        raise OutOfRangeError(f"Tick price must be non-negative, got {price}")
    if price % MIN_TICK_DISTANCE != 0:
        raise OutOfRangeError(
            f"Tick price {price} is not a multiple of MIN_TICK_DISTANCE {MIN_TICK_DISTANCE}"
        )
    return _check_field("tick index", price // MIN_TICK_DISTANCE, TICK_INDEX_BITS)


# ---------------------------------------------------------------------------
# Range-order position
# ---------------------------------------------------------------------------

def encode_position_token_id(
    operator: str,
    lower: int,
    upper: int,
    order_type: OrderType,
    version: int = TOKEN_ID_VERSION,
) -> int:
    """
    Pack a range-order position into its token id.

    Raises:
        OutOfRangeError: if any field does not fit its bit width or a bound is
            not on the tick lattice
        DomainRangeError: if *operator* is not a valid address
    """
    lower_index = price_to_tick_index(lower)
    upper_index = price_to_tick_index(upper)
    order_type_value = _check_field("order_type", int(order_type), ORDER_TYPE_BITS)
    if order_type_value not in OrderType._value2member_map_:
        raise DomainRangeError(f"Unknown order type {order_type_value}")
    version = _check_field("version", version, VERSION_BITS)
    operator_value = address_to_int(operator)

    return (
        (version << VERSION_OFFSET)
        | (order_type_value << ORDER_TYPE_OFFSET)
        | (operator_value << OPERATOR_OFFSET)
        | (upper_index << UPPER_TICK_OFFSET)
        | (lower_index << LOWER_TICK_OFFSET)
    )


def decode_position_token_id(token_id: int) -> PositionTokenId:
    """Unpack a range-order token id. The operator comes back checksummed."""
    token_id = _check_token_id(token_id)

    order_type_value = (token_id >> ORDER_TYPE_OFFSET) & _mask(ORDER_TYPE_BITS)
    try:
        order_type = OrderType(order_type_value)
    except ValueError as e:
        raise DomainRangeError(f"Unknown order type {order_type_value} in token id") from e

    return PositionTokenId(
        version=(token_id >> VERSION_OFFSET) & _mask(VERSION_BITS),
        order_type=order_type,
        operator=int_to_address((token_id >> OPERATOR_OFFSET) & _mask(ADDRESS_BITS)),
        lower=((token_id >> LOWER_TICK_OFFSET) & _mask(TICK_INDEX_BITS)) * MIN_TICK_DISTANCE,
        upper=((token_id >> UPPER_TICK_OFFSET) & _mask(TICK_INDEX_BITS)) * MIN_TICK_DISTANCE,
    )


def token_id_for_key(key: PositionKey, version: int = TOKEN_ID_VERSION) -> int:
    """Token id of a position key; owner, strike and option type are not encoded."""
    return encode_position_token_id(key.operator, key.lower, key.upper, key.order_type, version)


# ---------------------------------------------------------------------------
# Option position
# ---------------------------------------------------------------------------

def encode_option_token_id(token_type: TokenType, maturity: int, strike: int) -> int:
    """Pack an option position (long/short leg of a series) into its token id."""
    token_type_value = _check_field("token_type", int(token_type), TOKEN_TYPE_BITS)
    if token_type_value not in TokenType._value2member_map_:
        raise DomainRangeError(f"Unknown token type {token_type_value}")
    maturity = _check_field("maturity", maturity, MATURITY_BITS)
    strike = _check_field("strike", strike, STRIKE_BITS)

    return (
        (token_type_value << TOKEN_TYPE_OFFSET)
        | (maturity << MATURITY_OFFSET)
        | strike
    )


def decode_option_token_id(token_id: int) -> OptionTokenId:
    token_id = _check_token_id(token_id)

    token_type_value = (token_id >> TOKEN_TYPE_OFFSET) & _mask(TOKEN_TYPE_BITS)
    try:
        token_type = TokenType(token_type_value)
    except ValueError as e:
        raise DomainRangeError(f"Unknown token type {token_type_value} in token id") from e

    return OptionTokenId(
        token_type=token_type,
        maturity=(token_id >> MATURITY_OFFSET) & _mask(MATURITY_BITS),
        strike=token_id & _mask(STRIKE_BITS),
    )
