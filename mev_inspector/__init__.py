"""
MEV Inspector.

Watches an EVM chain for swap events from Uniswap V2 and V3 style pools,
normalizes them, and detects realized arbitrage (cyclic and cross-DEX)
executed inside single transactions, with gross and net-of-gas profit.
"""

PROJECT_NAME = "mev-inspector"

from mev_inspector.version import __version__ as VERSION

# Export main components for easier imports
from mev_inspector.config import InspectorConfig, load_config
from mev_inspector.decoders import UnifiedDecoder, UniswapV2Decoder, UniswapV3Decoder
from mev_inspector.detector import ArbitrageDetector
from mev_inspector.exceptions import (
    ConfigurationError,
    DecodeError,
    MevInspectorError,
    PoolMetadataError,
    RangeProcessingError,
    RPCError,
)
from mev_inspector.pipeline import Inspector, InspectorState
from mev_inspector.reporter import InspectorReporter
from mev_inspector.rpc import ChainClient, RetryPolicy
from mev_inspector.types import (
    Arbitrage,
    ArbitrageType,
    NormalizedSwap,
    PoolMetadata,
    Protocol,
    RawLog,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "InspectorConfig",
    "load_config",
    "UnifiedDecoder",
    "UniswapV2Decoder",
    "UniswapV3Decoder",
    "ArbitrageDetector",
    "ConfigurationError",
    "DecodeError",
    "MevInspectorError",
    "PoolMetadataError",
    "RangeProcessingError",
    "RPCError",
    "Inspector",
    "InspectorState",
    "InspectorReporter",
    "ChainClient",
    "RetryPolicy",
    "Arbitrage",
    "ArbitrageType",
    "NormalizedSwap",
    "PoolMetadata",
    "Protocol",
    "RawLog",
]
