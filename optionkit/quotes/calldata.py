"""
Settlement call data.

ABI encoding of the pool and vault entry points a quote settles through.
Each quote embeds its ``premium_limit`` so the trade reverts if the premium
moves past the taker's slippage bound.
"""

from __future__ import annotations

from typing import List

from eth_abi import encode
from eth_utils import keccak

from optionkit.quotes.types import OrderbookQuote, PoolKey

POOL_KEY_TUPLE = "(address,address,address,uint256,uint256,bool)"
QUOTE_OB_TUPLE = "(address,address,uint256,uint256,bool,uint256,uint256)"
SIGNATURE_TUPLE = "(uint8,bytes32,bytes32)"

POOL_TRADE_SIGNATURE = "trade(uint256,bool,uint256,address)"
VAULT_TRADE_SIGNATURE = f"trade({POOL_KEY_TUPLE},uint256,bool,uint256,address)"
FILL_QUOTE_OB_SIGNATURE = f"fillQuoteOB({QUOTE_OB_TUPLE},uint256,{SIGNATURE_TUPLE},address)"


def compute_function_selector(function_signature: str) -> bytes:
    """
    Compute a function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: canonical signature like "trade(uint256,bool,uint256,address)"

    Returns:
        4-byte function selector
    """
    return keccak(function_signature.encode('utf-8'))[:4]


def split_argument_types(function_signature: str) -> List[str]:
    """
    Top-level argument types of a canonical signature.

    Commas nested inside tuple types do not split, so
    ``f((address,uint256),bool)`` yields ``["(address,uint256)", "bool"]``.
    """
    args = function_signature[function_signature.index('(') + 1:function_signature.rindex(')')]
    types: List[str] = []
    depth = 0
    current = ""
    for ch in args:
        if ch == "," and depth == 0:
            types.append(current.strip())
            current = ""
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        current += ch
    if current.strip():
        types.append(current.strip())
    return types


def encode_function_call(function_signature: str, *args) -> bytes:
    """Encode call data: selector followed by the ABI-encoded arguments."""
    selector = compute_function_selector(function_signature)
    arg_types = split_argument_types(function_signature)
    if not arg_types:
        return selector
    return selector + encode(arg_types, list(args))


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def encode_pool_trade(size: int, is_buy: bool, premium_limit: int, referrer: str) -> bytes:
    """``pool.trade``: trade against the pool's AMM liquidity."""
    return encode_function_call(POOL_TRADE_SIGNATURE, size, is_buy, premium_limit, referrer)


def encode_vault_trade(
    pool_key: PoolKey, size: int, is_buy: bool, premium_limit: int, referrer: str
) -> bytes:
    """``vault.trade``: trade against a vault quoting the pool's series."""
    return encode_function_call(
        VAULT_TRADE_SIGNATURE,
        pool_key.as_abi_tuple(),
        size,
        is_buy,
        premium_limit,
        referrer,
    )


def encode_fill_quote_ob(quote: OrderbookQuote, size: int, referrer: str) -> bytes:
    """``pool.fillQuoteOB``: fill a signed RFQ quote."""
    signature = quote.signature
    return encode_function_call(
        FILL_QUOTE_OB_SIGNATURE,
        quote.as_abi_tuple(),
        size,
        (signature.v, signature.r, signature.s),
        referrer,
    )
