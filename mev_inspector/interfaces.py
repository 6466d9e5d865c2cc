"""
Dependency injection interfaces for the inspection pipeline.

The decode/detect core only depends on these protocols, so it can be driven
by the web3-backed ChainClient in production and by in-memory fakes in tests.
"""

import time
from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

from .types import (
    Arbitrage,
    NormalizedSwap,
    RangeResult,
    RawLog,
    SkippedLog,
    TransactionInfo,
    TransactionReceipt,
)


@runtime_checkable
class ChainReader(Protocol):
    """Read-only chain RPC operations used by the core.

    Implementations retry internally and raise RPCError once the retry
    budget is exhausted.
    """

    async def block_number(self) -> int:
        """Current chain head."""
        ...

    async def get_logs(
        self, from_block: int, to_block: int, topics: Sequence[Sequence[bytes]]
    ) -> List[RawLog]:
        """Logs in [from_block, to_block] matching the topic filter."""
        ...

    async def call(self, to: str, data: bytes) -> bytes:
        """Read-only eth_call against the latest block."""
        ...

    async def get_transaction_receipt(self, tx_hash: str) -> TransactionReceipt:
        ...

    async def get_transaction(self, tx_hash: str) -> TransactionInfo:
        ...


@runtime_checkable
class ArbitrageSink(Protocol):
    """Output collaborator. Calls are fire-and-forget and must not fail."""

    def log_arbitrage(self, arb: Arbitrage) -> None:
        ...

    def log_swap(self, swap: NormalizedSwap) -> None:
        ...

    def log_block_range_complete(self, result: RangeResult) -> None:
        ...

    def log_range_failed(
        self, from_block: int, to_block: int, error: BaseException
    ) -> None:
        ...

    def log_stats(self) -> Dict[str, Any]:
        ...

    def log_error(self, error: BaseException, context: str) -> None:
        ...

    def log_skipped(self, skipped: SkippedLog) -> None:
        ...


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for time-related operations."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        ...

    def monotonic(self) -> float:
        """Monotonic clock reading in seconds, for scheduling."""
        ...


class SystemTimeProvider:
    """Production time provider using system time."""

    def current_timestamp(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()


class DeterministicTimeProvider:
    """Deterministic time provider for testing."""

    def __init__(self, start_time: float = 1640995200.0):  # 2022-01-01
        self._current_time = start_time

    def current_timestamp(self) -> float:
        return self._current_time

    def monotonic(self) -> float:
        return self._current_time

    def advance_time(self, seconds: float) -> None:
        """Manually advance time by specified seconds."""
        self._current_time += seconds
