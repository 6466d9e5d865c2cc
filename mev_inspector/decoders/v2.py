"""
Uniswap V2 style decoder for constant-product pair Swap events.

The event reports four unsigned amounts directly:
amount0In, amount1In, amount0Out, amount1Out.
"""

from typing import Any, Dict, Tuple

from ..constants import (
    GET_RESERVES_SELECTOR,
    TOKEN0_SELECTOR,
    TOKEN1_SELECTOR,
    UNISWAP_V2_SWAP_TOPIC,
    WORD_SIZE,
)
from ..exceptions import PoolMetadataError
from ..types import Protocol
from .base import BaseSwapDecoder, read_uint


class UniswapV2Decoder(BaseSwapDecoder):
    """Decodes Uniswap V2 (and forks such as Sushiswap) swap events."""

    protocol = Protocol.UNISWAP_V2
    swap_topic = UNISWAP_V2_SWAP_TOPIC
    min_data_length = 4 * WORD_SIZE

    def decode_data(self, data: bytes) -> Dict[str, Any]:
        return {
            "amount0_in": read_uint(data, 0),
            "amount1_in": read_uint(data, 1),
            "amount0_out": read_uint(data, 2),
            "amount1_out": read_uint(data, 3),
        }

    async def get_reserves(self, pool: str) -> Tuple[int, int]:
        """
        Fetch current reserves of a pair.

        Reserves change with every swap, so they are read on demand and
        never cached.

        Raises:
            PoolMetadataError: If the call fails or returns fewer than 64 bytes
        """
        result = await self.call_view(pool, GET_RESERVES_SELECTOR, "getReserves")
        if len(result) < 2 * WORD_SIZE:
            raise PoolMetadataError(
                f"invalid getReserves response from pool {pool}", pool=pool
            )
        return read_uint(result, 0), read_uint(result, 1)

    async def is_pool(self, address: str) -> bool:
        """A V2 pair answers both token0() and token1()."""
        try:
            await self.call_view(address, TOKEN0_SELECTOR, "token0")
            await self.call_view(address, TOKEN1_SELECTOR, "token1")
        except PoolMetadataError:
            return False
        return True
