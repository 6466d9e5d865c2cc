"""
Shared machinery for protocol swap decoders.

Each decoder owns a pool-metadata cache keyed by pool address. Entries are
inserted once and never mutated or evicted: token identities and fee tiers
are immutable for a pool's lifetime. The cache has a single writer (the
pipeline's control loop), so it is not locked.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from web3 import Web3

from ..constants import TOKEN0_SELECTOR, TOKEN1_SELECTOR, UINT256_MODULUS, WORD_SIZE
from ..exceptions import DecodeError, PoolMetadataError, RPCError
from ..interfaces import ChainReader
from ..types import NormalizedSwap, PoolMetadata, Protocol, RawLog

logger = logging.getLogger(__name__)

# event signature + two indexed addresses
MIN_TOPICS = 3


def read_uint(data: bytes, index: int) -> int:
    """Read the index-th 32-byte word as an unsigned big-endian integer."""
    start = index * WORD_SIZE
    return int.from_bytes(data[start : start + WORD_SIZE], "big")


def read_int(data: bytes, index: int) -> int:
    """Read the index-th 32-byte word as a two's-complement signed integer."""
    value = read_uint(data, index)
    if data[index * WORD_SIZE] & 0x80:
        value -= UINT256_MODULUS
    return value


def topic_to_address(topic: bytes) -> str:
    """Indexed address topics hold the address in their low 20 bytes."""
    return Web3.to_checksum_address(topic[-20:])


def word_to_address(result: bytes) -> str:
    """Address returned by a view call: low 20 bytes of the last word."""
    return Web3.to_checksum_address(result[-WORD_SIZE:][-20:])


class BaseSwapDecoder(ABC):
    """Decodes one protocol's Swap event into a NormalizedSwap."""

    protocol: Protocol
    swap_topic: bytes
    min_data_length: int

    def __init__(self, chain: ChainReader):
        self.chain = chain
        self.pool_cache: Dict[str, PoolMetadata] = {}

    async def get_swap_logs(self, from_block: int, to_block: int) -> List[RawLog]:
        """Fetch this protocol's swap logs in [from_block, to_block].

        RPC failures propagate: without the logs the range can't be processed.
        """
        return await self.chain.get_logs(from_block, to_block, [[self.swap_topic]])

    async def decode_swap_log(self, log: RawLog) -> NormalizedSwap:
        """
        Decode a single swap log.

        Raises:
            DecodeError: Wrong topic count, foreign signature or short payload
            PoolMetadataError: token0/token1/fee could not be resolved
        """
        if len(log.topics) < MIN_TOPICS:
            raise DecodeError(
                f"invalid swap log: expected {MIN_TOPICS} topics, got {len(log.topics)}",
                tx_hash=log.tx_hash,
                log_index=log.log_index,
            )

        if log.topics[0] != self.swap_topic:
            raise DecodeError(
                f"not a {self.protocol.value} swap event",
                tx_hash=log.tx_hash,
                log_index=log.log_index,
            )

        if len(log.data) < self.min_data_length:
            raise DecodeError(
                f"invalid swap log data length: expected {self.min_data_length} bytes, "
                f"got {len(log.data)}",
                tx_hash=log.tx_hash,
                log_index=log.log_index,
            )

        sender = topic_to_address(log.topics[1])
        recipient = topic_to_address(log.topics[2])
        fields = self.decode_data(log.data)

        metadata = await self.get_pool_metadata(log.address)

        return NormalizedSwap(
            tx_hash=log.tx_hash,
            block_number=log.block_number,
            log_index=log.log_index,
            pool=log.address,
            protocol=self.protocol,
            sender=sender,
            recipient=recipient,
            token0=metadata.token0,
            token1=metadata.token1,
            **fields,
        )

    @abstractmethod
    def decode_data(self, data: bytes) -> Dict[str, Any]:
        """Decode the non-indexed payload into NormalizedSwap amount fields."""

    @abstractmethod
    async def is_pool(self, address: str) -> bool:
        """Best-effort check whether address answers this protocol's calls."""

    async def fetch_fee(self, pool: str) -> Optional[int]:
        """Protocol-specific static fee; None when the protocol has none."""
        return None

    async def get_pool_metadata(self, pool: str) -> PoolMetadata:
        """
        Return cached metadata for pool, resolving it on first use.

        A failure of any of the underlying calls fails the whole lookup and
        leaves the cache untouched.
        """
        cached = self.pool_cache.get(pool)
        if cached is not None:
            return cached

        token0 = word_to_address(await self.call_view(pool, TOKEN0_SELECTOR, "token0"))
        token1 = word_to_address(await self.call_view(pool, TOKEN1_SELECTOR, "token1"))
        fee = await self.fetch_fee(pool)

        metadata = PoolMetadata(token0=token0, token1=token1, fee=fee)
        self.pool_cache[pool] = metadata

        logger.debug(
            f"Cached {self.protocol.value} pool info pool={pool} "
            f"token0={token0} token1={token1} fee={fee}"
        )
        return metadata

    async def call_view(self, pool: str, selector: bytes, name: str) -> bytes:
        """Run a no-argument view call, requiring at least one 32-byte word."""
        try:
            result = await self.chain.call(pool, selector)
        except RPCError as e:
            raise PoolMetadataError(
                f"failed to get {name} for pool {pool}: {e}", pool=pool
            ) from e

        if len(result) < WORD_SIZE:
            raise PoolMetadataError(
                f"invalid {name} response from pool {pool}: {len(result)} bytes",
                pool=pool,
            )
        return result
