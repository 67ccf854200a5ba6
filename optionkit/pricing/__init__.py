"""
optionkit Pricing

Pure, synchronous protocol math:
  - Tick lattice snapping for range orders
  - Range-order and option-position token ids
  - Taker and exercise fees
  - Breakeven and exercise value
"""

from .types import (
    OptionTokenId,
    OrderType,
    PositionKey,
    PositionTokenId,
    TickRange,
    TokenType,
)
from .ticks import (
    VALID_WIDTHS_WAD,
    is_on_lattice,
    is_valid_range,
    snap_to_valid_range,
)
from .token_id import (
    decode_option_token_id,
    decode_position_token_id,
    encode_option_token_id,
    encode_position_token_id,
    token_id_for_key,
)
from .fees import compute_exercise_fee, compute_taker_fee
from .breakeven import breakeven_price, exercise_value, full_price

__all__ = [
    # Types
    "OptionTokenId",
    "OrderType",
    "PositionKey",
    "PositionTokenId",
    "TickRange",
    "TokenType",
    # Ticks
    "VALID_WIDTHS_WAD",
    "is_on_lattice",
    "is_valid_range",
    "snap_to_valid_range",
    # Token ids
    "decode_option_token_id",
    "decode_position_token_id",
    "encode_option_token_id",
    "encode_position_token_id",
    "token_id_for_key",
    # Fees
    "compute_exercise_fee",
    "compute_taker_fee",
    # Option math
    "breakeven_price",
    "exercise_value",
    "full_price",
]
