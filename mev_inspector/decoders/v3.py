"""
Uniswap V3 style decoder for concentrated-liquidity pool Swap events.

V3 reports signed net deltas from the pool's perspective: a positive amount
flowed into the pool, a negative amount flowed out. Deltas are split into
V2-style In/Out fields so both protocols share one normalized shape.
"""

from typing import Any, Dict, Tuple

from ..constants import FEE_SELECTOR, UNISWAP_V3_SWAP_TOPIC, WORD_SIZE
from ..exceptions import PoolMetadataError
from ..types import Protocol
from .base import BaseSwapDecoder, read_int, read_uint


def split_signed_amount(amount: int) -> Tuple[int, int]:
    """Return (amount_in, amount_out) for a signed pool delta."""
    if amount > 0:
        return amount, 0
    return 0, -amount


class UniswapV3Decoder(BaseSwapDecoder):
    """Decodes Uniswap V3 swap events."""

    protocol = Protocol.UNISWAP_V3
    swap_topic = UNISWAP_V3_SWAP_TOPIC
    # amount0, amount1, sqrtPriceX96, liquidity, tick
    min_data_length = 5 * WORD_SIZE

    def decode_data(self, data: bytes) -> Dict[str, Any]:
        amount0_in, amount0_out = split_signed_amount(read_int(data, 0))
        amount1_in, amount1_out = split_signed_amount(read_int(data, 1))

        return {
            "amount0_in": amount0_in,
            "amount1_in": amount1_in,
            "amount0_out": amount0_out,
            "amount1_out": amount1_out,
            "sqrt_price_x96": read_uint(data, 2),
            "liquidity": read_uint(data, 3),
            "tick": read_int(data, 4),
        }

    async def fetch_fee(self, pool: str) -> int:
        result = await self.call_view(pool, FEE_SELECTOR, "fee")
        return read_uint(result[-WORD_SIZE:], 0)

    async def is_pool(self, address: str) -> bool:
        """Only V3 pools expose fee()."""
        try:
            await self.fetch_fee(address)
        except PoolMetadataError:
            return False
        return True
