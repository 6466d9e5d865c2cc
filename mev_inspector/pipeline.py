"""
Block-range inspection pipeline.

A single control loop owns the watermark (last fully processed block),
picks the next block range, and multiplexes the poll timer, the stats timer
and shutdown requests so only one of them is acted on at a time. Ranges are
processed with at-least-once semantics: the watermark only moves after a
range completes, so a failed or cancelled range is processed again.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from .config import InspectorConfig, InspectorSettings
from .decoders import UnifiedDecoder
from .detector import ArbitrageDetector
from .exceptions import MevInspectorError, RangeProcessingError
from .interfaces import ArbitrageSink, ChainReader, SystemTimeProvider, TimeProvider
from .metrics import InspectorMetrics
from .reporter import InspectorReporter
from .types import Arbitrage, RangeResult

logger = logging.getLogger(__name__)


class InspectorState(Enum):
    INITIALIZING = "initializing"
    POLLING = "polling"
    SHUTTING_DOWN = "shutting_down"


class Inspector:
    """
    MEV inspection engine.

    Wires the unified decoder and arbitrage detector to the output sink and
    drives them over consecutive block ranges.
    """

    def __init__(
        self,
        settings: InspectorSettings,
        chain: ChainReader,
        decoder: UnifiedDecoder,
        detector: ArbitrageDetector,
        sink: ArbitrageSink,
        time_provider: Optional[TimeProvider] = None,
    ):
        self.settings = settings
        self.chain = chain
        self.decoder = decoder
        self.detector = detector
        self.sink = sink
        self.time_provider = time_provider or SystemTimeProvider()

        self.state = InspectorState.INITIALIZING
        self._last_block = 0
        self._lock = threading.Lock()
        self._stop_event: Optional[asyncio.Event] = None

    @classmethod
    def from_config(
        cls,
        config: InspectorConfig,
        chain: ChainReader,
        metrics: Optional[InspectorMetrics] = None,
    ) -> "Inspector":
        settings = config.inspector
        decoder = UnifiedDecoder(
            chain,
            enable_v2=settings.enable_uniswap_v2,
            enable_v3=settings.enable_uniswap_v3,
        )
        detector = ArbitrageDetector(chain)
        return cls(settings, chain, decoder, detector, InspectorReporter(metrics))

    @property
    def last_block(self) -> int:
        with self._lock:
            return self._last_block

    def _set_last_block(self, block: int) -> None:
        with self._lock:
            self._last_block = block

    async def initialize(self) -> None:
        """Resolve the chain head and position the watermark."""
        current_block = await self.chain.block_number()

        if self.settings.start_block > 0:
            self._set_last_block(self.settings.start_block - 1)
        else:
            self._set_last_block(current_block - 1)

        self.state = InspectorState.POLLING
        logger.info(
            f"Inspector initialized start_block={self.last_block + 1} "
            f"current_block={current_block}"
        )

    def next_range(self, head: int) -> Optional[Tuple[int, int]]:
        """Next block range to process, or None when caught up."""
        last_block = self.last_block
        from_block = last_block + 1
        if head < from_block:
            return None
        return from_block, min(head, last_block + self.settings.batch_size)

    async def poll_once(self) -> Optional[RangeResult]:
        """
        Process the next range if the chain has advanced.

        Raises:
            RPCError: If the chain head can't be fetched
            RangeProcessingError: If the range was abandoned (watermark unchanged)
        """
        head = await self.chain.block_number()
        block_range = self.next_range(head)
        if block_range is None:
            return None

        from_block, to_block = block_range
        logger.debug(f"Processing block range {from_block}-{to_block}")

        try:
            result = await self.process_block_range(from_block, to_block)
        except Exception as e:
            raise RangeProcessingError(
                f"Failed to process blocks {from_block}-{to_block}: {e}",
                from_block=from_block,
                to_block=to_block,
            ) from e

        self._set_last_block(to_block)
        return result

    async def process_block_range(self, from_block: int, to_block: int) -> RangeResult:
        """
        Fetch, decode and inspect every swap in [from_block, to_block].

        Logs that fail to decode are reported and skipped. Findings go to the
        sink as they are found; a retried range re-emits them.
        """
        started = self.time_provider.monotonic()
        result = RangeResult(from_block=from_block, to_block=to_block)

        logs = await self.decoder.get_all_swap_logs(from_block, to_block)
        tx_logs = self.decoder.group_swaps_by_transaction(logs)

        for tx_hash, logs_for_tx in tx_logs.items():
            decoded = await self.decoder.decode_swaps_for_transaction(tx_hash, logs_for_tx)

            for skipped in decoded.skipped:
                result.skipped.append(skipped)
                self._emit(self.sink.log_skipped, skipped)

            result.swap_count += len(decoded.swaps)
            for swap in decoded.swaps:
                self._emit(self.sink.log_swap, swap)

            arbitrages = await self.detector.detect_arbitrage(tx_hash, decoded.swaps)
            for arb in arbitrages:
                if self.settings.only_profitable and not arb.is_profitable:
                    continue
                result.arbitrages.append(arb)
                self._emit(self.sink.log_arbitrage, arb)

        result.duration = self.time_provider.monotonic() - started
        self._emit(self.sink.log_block_range_complete, result)
        return result

    async def process_single_block(self, block_number: int) -> List[Arbitrage]:
        """Inspect one block without touching the watermark or the sink."""
        logs = await self.decoder.get_all_swap_logs(block_number, block_number)

        arbitrages: List[Arbitrage] = []
        for tx_hash, logs_for_tx in self.decoder.group_swaps_by_transaction(logs).items():
            decoded = await self.decoder.decode_swaps_for_transaction(tx_hash, logs_for_tx)
            arbitrages.extend(
                await self.detector.detect_arbitrage(tx_hash, decoded.swaps)
            )
        return arbitrages

    def stop(self) -> None:
        """Request shutdown of a running loop."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Main loop: poll ranges and report stats until stop_event is set.

        The first poll happens immediately; afterwards poll and stats ticks
        fire on their own intervals. Missed ticks are dropped, never queued.
        """
        self._stop_event = stop_event or asyncio.Event()

        if self.state is InspectorState.INITIALIZING:
            await self.initialize()

        logger.info("Starting MEV Inspector...")

        now = self.time_provider.monotonic()
        next_poll = now
        next_stats = now + self.settings.stats_interval

        while not self._stop_event.is_set():
            now = self.time_provider.monotonic()

            if now >= next_poll:
                await self._poll_tick()
                next_poll = self._next_tick(next_poll, self.settings.poll_interval)
                continue

            if now >= next_stats:
                self._emit(self.sink.log_stats)
                next_stats = self._next_tick(next_stats, self.settings.stats_interval)
                continue

            timeout = min(next_poll, next_stats) - now
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass

        self.state = InspectorState.SHUTTING_DOWN
        logger.info(f"Shutting down inspector at block {self.last_block}")

    def _next_tick(self, previous: float, interval: float) -> float:
        next_tick = previous + interval
        now = self.time_provider.monotonic()
        while next_tick <= now:
            next_tick += interval
        return next_tick

    async def _poll_tick(self) -> None:
        """Run one poll, abandoning it if shutdown is requested meanwhile."""
        poll = asyncio.create_task(self.poll_once())
        stopped = asyncio.create_task(self._stop_event.wait())

        done, _ = await asyncio.wait({poll, stopped}, return_when=asyncio.FIRST_COMPLETED)

        if poll not in done:
            poll.cancel()
            try:
                await poll
            except asyncio.CancelledError:
                pass
            logger.info(
                f"Shutdown requested mid-range; resuming from block {self.last_block + 1}"
            )
            return

        stopped.cancel()
        try:
            poll.result()
        except RangeProcessingError as e:
            self._emit(self.sink.log_range_failed, e.from_block, e.to_block, e.__cause__ or e)
        except MevInspectorError as e:
            self._emit(self.sink.log_error, e, "processing new blocks")

    def _emit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Call a sink method; sink failures never stop the pipeline."""
        try:
            fn(*args)
        except Exception as e:
            logger.error(f"Output sink {fn.__name__} failed: {e}", exc_info=True)
