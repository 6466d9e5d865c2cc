"""
Core data types for swap decoding and arbitrage detection.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Protocol(str, Enum):
    """Supported DEX protocol families."""

    UNISWAP_V2 = "uniswap_v2"
    UNISWAP_V3 = "uniswap_v3"


class ArbitrageType(str, Enum):
    """Kind of arbitrage detected within a transaction."""

    CYCLIC = "cyclic"  # A -> B -> C -> A
    CROSS_DEX = "cross_dex"  # same pair, different pools


@dataclass(frozen=True)
class RawLog:
    """
    An event log as returned by eth_getLogs.

    Attributes:
        tx_hash: 0x-prefixed transaction hash
        block_number: Block the log was emitted in
        log_index: Position of the log within the block
        address: Checksum address of the emitting contract
        topics: Indexed topics, each 32 raw bytes
        data: Non-indexed ABI-encoded payload
    """

    tx_hash: str
    block_number: int
    log_index: int
    address: str
    topics: Tuple[bytes, ...]
    data: bytes


@dataclass(frozen=True)
class NormalizedSwap:
    """
    A single decoded swap, in V2-style in/out form for both protocols.

    Amounts are never negative: V3 signed deltas are split into the In/Out
    fields at decode time. sqrt_price_x96, liquidity and tick are only set
    for V3 swaps.
    """

    tx_hash: str
    block_number: int
    log_index: int
    pool: str
    protocol: Protocol
    sender: str
    recipient: str
    token0: str
    token1: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    sqrt_price_x96: Optional[int] = None
    liquidity: Optional[int] = None
    tick: Optional[int] = None


@dataclass(frozen=True)
class PoolMetadata:
    """
    Immutable on-chain facts about a pool.

    Attributes:
        token0: Checksum address of token0
        token1: Checksum address of token1
        fee: V3 fee tier (e.g. 3000 for 0.3%), None for V2 pairs
    """

    token0: str
    token1: str
    fee: Optional[int] = None


@dataclass(frozen=True)
class TokenFlow:
    """Direction and size of one swap from the trader's point of view."""

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


@dataclass(frozen=True)
class Arbitrage:
    """
    A detected arbitrage within one transaction.

    Attributes:
        type: Cyclic or cross-DEX
        tx_hash: Transaction the swaps belong to
        block_number: Block of the transaction
        arbitrageur: Sender of the first swap (approximation of the searcher)
        path: Swaps making up the arbitrage, in execution order
        token_start: Token the path starts with
        token_end: Token the path ends with
        amount_in: Amount of token_start spent
        amount_out: Amount of token_end received
        profit: Gross profit (amount_out - amount_in), always positive
        profit_token: Token the profit is denominated in
        gas_used: Receipt gas used, when available
        gas_price: Transaction gas price in wei, when available
        net_profit: profit - gas_used * gas_price, when gas data is available
    """

    type: ArbitrageType
    tx_hash: str
    block_number: int
    arbitrageur: str
    path: Tuple[NormalizedSwap, ...]
    token_start: str
    token_end: str
    amount_in: int
    amount_out: int
    profit: int
    profit_token: str
    gas_used: Optional[int] = None
    gas_price: Optional[int] = None
    net_profit: Optional[int] = None

    @property
    def hops(self) -> int:
        return len(self.path)

    @property
    def is_profitable(self) -> bool:
        """Net profit sign when gas data is known, gross profit sign otherwise."""
        if self.net_profit is None:
            return self.profit > 0
        return self.net_profit > 0


@dataclass(frozen=True)
class TransactionReceipt:
    gas_used: int


@dataclass(frozen=True)
class TransactionInfo:
    gas_price: int


@dataclass(frozen=True)
class SkippedLog:
    """A log that could not be turned into a swap, with the reason why."""

    log: RawLog
    reason: str


@dataclass
class TransactionSwaps:
    """Decoding outcome for all swap logs of one transaction."""

    tx_hash: str
    swaps: List[NormalizedSwap] = field(default_factory=list)
    skipped: List[SkippedLog] = field(default_factory=list)


@dataclass
class RangeResult:
    """Outcome of processing one block range."""

    from_block: int
    to_block: int
    swap_count: int = 0
    arbitrages: List[Arbitrage] = field(default_factory=list)
    skipped: List[SkippedLog] = field(default_factory=list)
    duration: float = 0.0

    @property
    def block_count(self) -> int:
        return self.to_block - self.from_block + 1


@dataclass
class InspectorStats:
    """Running counters reported on the statistics tick."""

    blocks_processed: int = 0
    swaps_detected: int = 0
    arbitrages_found: int = 0
    total_profit_wei: int = 0
    total_net_profit_wei: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    @property
    def blocks_per_second(self) -> float:
        elapsed = self.elapsed
        if elapsed <= 0:
            return 0.0
        return self.blocks_processed / elapsed
