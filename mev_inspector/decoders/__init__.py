"""
Swap event decoders for the supported DEX protocol families.
"""

from .base import BaseSwapDecoder, read_int, read_uint
from .unified import UnifiedDecoder
from .v2 import UniswapV2Decoder
from .v3 import UniswapV3Decoder, split_signed_amount

__all__ = [
    "BaseSwapDecoder",
    "UnifiedDecoder",
    "UniswapV2Decoder",
    "UniswapV3Decoder",
    "read_int",
    "read_uint",
    "split_signed_amount",
]
