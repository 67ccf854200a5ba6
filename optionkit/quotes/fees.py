"""
Taker fee lookup for quotes.

The pool's own fee computation is authoritative; the local formula in
``optionkit.pricing.fees`` is only used when the pool cannot be asked.
"""

from __future__ import annotations

import logging

from optionkit.constants import WAD_DECIMALS, ZERO_ADDRESS
from optionkit.fixed import convert_decimals
from optionkit.pricing.fees import compute_taker_fee
from optionkit.quotes.gateways import PoolGateway

logger = logging.getLogger(__name__)


class TakerFeeResolver:
    """Authoritative-first taker fee lookup with a local fallback."""

    def __init__(self, pools: PoolGateway):
        self._pools = pools

    async def taker_fee(
        self,
        pool_address: str,
        size: int,
        premium: int,
        is_premium_normalized: bool = True,
        is_orderbook: bool = False,
        taker: str = ZERO_ADDRESS,
        decimals: int = WAD_DECIMALS,
    ) -> int:
        """
        Taker fee for a trade of *size* contracts paying *premium*, in
        *decimals* units of the collateral token.

        Falls back to ``compute_taker_fee`` when the pool call fails.
        """
        try:
            return await self._pools.get_taker_fee(
                pool_address, size, premium, is_premium_normalized, is_orderbook, taker
            )
        except Exception as e:
            logger.warning(
                "Fee lookup on pool %s failed (%s), using local fee estimate",
                pool_address, e,
            )
            return convert_decimals(
                compute_taker_fee(size, premium, is_orderbook), WAD_DECIMALS, decimals
            )
