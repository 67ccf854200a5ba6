"""
Test suite for position token ids

Covers:
  - Range-order token id layout, round trip and validation
  - Option-position token id layout, round trip and validation
"""

import pytest
from eth_utils import to_checksum_address

from optionkit.constants import MIN_TICK_DISTANCE, WAD
from optionkit.exceptions import DomainRangeError, OutOfRangeError
from optionkit.pricing import (
    OptionTokenId,
    OrderType,
    PositionKey,
    PositionTokenId,
    TokenType,
    decode_option_token_id,
    decode_position_token_id,
    encode_option_token_id,
    encode_position_token_id,
    token_id_for_key,
)

OPERATOR = "0x" + "ab" * 20
OWNER = "0x" + "cd" * 20
ONE = "0x" + "00" * 19 + "01"


class TestPositionTokenId:
    """Range-order token ids."""

    def test_bit_layout(self):
        token_id = encode_position_token_id(
            ONE, 1 * MIN_TICK_DISTANCE, 5 * MIN_TICK_DISTANCE, OrderType.COLLATERAL_SHORT
        )
        assert token_id == (1 << 252) | (1 << 180) | (1 << 20) | (5 << 10) | 1

    def test_round_trip(self):
        for order_type in OrderType:
            for lower_ticks, upper_ticks in [(0, 1), (1, 5), (160, 800), (201, 841), (999, 1000)]:
                lower = lower_ticks * MIN_TICK_DISTANCE
                upper = upper_ticks * MIN_TICK_DISTANCE
                token_id = encode_position_token_id(OPERATOR, lower, upper, order_type)
                assert decode_position_token_id(token_id) == PositionTokenId(
                    version=1,
                    order_type=order_type,
                    operator=to_checksum_address(OPERATOR),
                    lower=lower,
                    upper=upper,
                )

    def test_decoded_operator_is_checksummed(self):
        token_id = encode_position_token_id(OPERATOR.upper().replace("0X", "0x"), 0, WAD, OrderType.LONG_COLLATERAL)
        assert decode_position_token_id(token_id).operator == to_checksum_address(OPERATOR)

    def test_key_encoding_ignores_owner_and_strike(self):
        key_a = PositionKey(OWNER, OPERATOR, 0, WAD // 2, OrderType.COLLATERAL_SHORT, True, 1000 * WAD)
        key_b = PositionKey(OPERATOR, OPERATOR, 0, WAD // 2, OrderType.COLLATERAL_SHORT, False, 5 * WAD)
        assert token_id_for_key(key_a) == token_id_for_key(key_b)

    def test_custom_version(self):
        token_id = encode_position_token_id(OPERATOR, 0, WAD, OrderType.COLLATERAL_SHORT, version=15)
        assert decode_position_token_id(token_id).version == 15

    def test_tick_index_overflow(self):
        with pytest.raises(OutOfRangeError, match="10 bits"):
            encode_position_token_id(OPERATOR, 0, 1024 * MIN_TICK_DISTANCE, OrderType.COLLATERAL_SHORT)

    def test_tick_off_lattice(self):
        with pytest.raises(OutOfRangeError, match="multiple"):
            encode_position_token_id(OPERATOR, MIN_TICK_DISTANCE // 2, WAD, OrderType.COLLATERAL_SHORT)

    def test_negative_tick(self):
        with pytest.raises(OutOfRangeError):
            encode_position_token_id(OPERATOR, -MIN_TICK_DISTANCE, WAD, OrderType.COLLATERAL_SHORT)

    def test_version_overflow(self):
        with pytest.raises(OutOfRangeError, match="4 bits"):
            encode_position_token_id(OPERATOR, 0, WAD, OrderType.COLLATERAL_SHORT, version=16)

    def test_unknown_order_type(self):
        with pytest.raises(DomainRangeError):
            encode_position_token_id(OPERATOR, 0, WAD, 7)
        with pytest.raises(OutOfRangeError):
            encode_position_token_id(OPERATOR, 0, WAD, 16)

    def test_invalid_operator(self):
        with pytest.raises(DomainRangeError):
            encode_position_token_id("0x1234", 0, WAD, OrderType.COLLATERAL_SHORT)

    def test_decode_rejects_wide_ids(self):
        with pytest.raises(OutOfRangeError):
            decode_position_token_id(1 << 256)
        with pytest.raises(OutOfRangeError):
            decode_position_token_id(-1)

    def test_decode_unknown_order_type(self):
        with pytest.raises(DomainRangeError):
            decode_position_token_id((1 << 252) | (9 << 180))


class TestOptionTokenId:
    """Option-position token ids."""

    def test_bit_layout(self):
        token_id = encode_option_token_id(TokenType.LONG, 1_700_000_000, 2000 * WAD)
        assert token_id == (1 << 248) | (1_700_000_000 << 128) | (2000 * WAD)

    def test_round_trip(self):
        for token_type in TokenType:
            for maturity, strike in [(0, 0), (1_700_000_000, 1500 * WAD), ((1 << 120) - 1, (1 << 128) - 1)]:
                token_id = encode_option_token_id(token_type, maturity, strike)
                assert decode_option_token_id(token_id) == OptionTokenId(token_type, maturity, strike)

    def test_strike_overflow(self):
        with pytest.raises(OutOfRangeError, match="128 bits"):
            encode_option_token_id(TokenType.SHORT, 1, 1 << 128)

    def test_maturity_overflow(self):
        with pytest.raises(OutOfRangeError, match="120 bits"):
            encode_option_token_id(TokenType.SHORT, 1 << 120, WAD)

    def test_layouts_are_distinct(self):
        position_id = encode_position_token_id(OPERATOR, 0, WAD, OrderType.COLLATERAL_SHORT)
        # version nibble 1 lands in the token-type byte as 16, which is not a token type
        with pytest.raises(DomainRangeError):
            decode_option_token_id(position_id)
