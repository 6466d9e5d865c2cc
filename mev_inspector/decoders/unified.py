"""
Unified decoder combining all enabled protocol decoders.
"""

import logging
from typing import Dict, List, Optional

from ..exceptions import DecodeError
from ..interfaces import ChainReader
from ..types import NormalizedSwap, Protocol, RawLog, SkippedLog, TransactionSwaps
from .base import BaseSwapDecoder
from .v2 import UniswapV2Decoder
from .v3 import UniswapV3Decoder

logger = logging.getLogger(__name__)


class UnifiedDecoder:
    """
    Fans log retrieval and decoding out to every enabled protocol decoder.

    Logs are returned in (block_number, log_index) order, which later stages
    rely on to reconstruct execution order within a transaction.
    """

    def __init__(self, chain: ChainReader, enable_v2: bool = True, enable_v3: bool = True):
        self.v2_decoder: Optional[UniswapV2Decoder] = (
            UniswapV2Decoder(chain) if enable_v2 else None
        )
        self.v3_decoder: Optional[UniswapV3Decoder] = (
            UniswapV3Decoder(chain) if enable_v3 else None
        )
        self._by_topic: Dict[bytes, BaseSwapDecoder] = {
            decoder.swap_topic: decoder for decoder in self.decoders
        }

    @property
    def decoders(self) -> List[BaseSwapDecoder]:
        return [d for d in (self.v2_decoder, self.v3_decoder) if d is not None]

    async def get_all_swap_logs(self, from_block: int, to_block: int) -> List[RawLog]:
        """
        Fetch swap logs of all enabled protocols, sorted by (block, log index).

        A failed fetch propagates so the whole range is retried later rather
        than processed with one protocol missing.
        """
        all_logs: List[RawLog] = []
        for decoder in self.decoders:
            logs = await decoder.get_swap_logs(from_block, to_block)
            logger.debug(
                f"Fetched {len(logs)} {decoder.protocol.value} swap logs "
                f"for blocks {from_block}-{to_block}"
            )
            all_logs.extend(logs)

        all_logs.sort(key=lambda log: (log.block_number, log.log_index))
        return all_logs

    async def decode_swap_log(self, log: RawLog) -> Optional[NormalizedSwap]:
        """
        Route a log to the decoder matching its event signature.

        Returns None for logs of unknown or disabled protocols.

        Raises:
            DecodeError: If the matching decoder rejects the log
        """
        if not log.topics:
            return None

        decoder = self._by_topic.get(log.topics[0])
        if decoder is None:
            return None
        return await decoder.decode_swap_log(log)

    @staticmethod
    def group_swaps_by_transaction(logs: List[RawLog]) -> Dict[str, List[RawLog]]:
        """Group logs by transaction hash, keeping log order within a group."""
        groups: Dict[str, List[RawLog]] = {}
        for log in logs:
            groups.setdefault(log.tx_hash, []).append(log)
        return groups

    async def decode_swaps_for_transaction(
        self, tx_hash: str, logs: List[RawLog]
    ) -> TransactionSwaps:
        """
        Decode every swap log of one transaction.

        Each log either yields a swap or a SkippedLog with the reason, so one
        malformed log never hides its siblings. Swaps are sorted by log index.
        """
        result = TransactionSwaps(tx_hash=tx_hash)

        for log in logs:
            try:
                swap = await self.decode_swap_log(log)
            except DecodeError as e:
                result.skipped.append(SkippedLog(log=log, reason=str(e)))
                continue
            if swap is not None:
                result.swaps.append(swap)

        result.swaps.sort(key=lambda swap: swap.log_index)
        return result

    async def classify_pool(self, address: str) -> Optional[Protocol]:
        """
        Guess which protocol a pool speaks.

        V3 is checked first since every V3 pool also answers the V2 probes.
        """
        for decoder in (self.v3_decoder, self.v2_decoder):
            if decoder is not None and await decoder.is_pool(address):
                return decoder.protocol
        return None
