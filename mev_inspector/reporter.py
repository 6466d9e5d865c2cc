"""
Output sink for inspection results.

Logs findings, swaps and range completions, keeps the running statistics
reported on the stats tick, and feeds the optional Prometheus metrics.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from .detector import derive_token_flow
from .metrics import InspectorMetrics
from .types import Arbitrage, InspectorStats, NormalizedSwap, RangeResult, SkippedLog
from .utils import format_duration, short_hex, wei_to_ether

logger = logging.getLogger(__name__)


def build_path_string(swaps: Sequence[NormalizedSwap]) -> str:
    """Human-readable token route, e.g. '0xC02aaA39 -> 0xA0b86991 -> 0xC02aaA39'."""
    if not swaps:
        return ""

    tokens = []
    for swap in swaps:
        flow = derive_token_flow(swap)
        token_in, token_out = (
            (flow.token_in, flow.token_out) if flow else (swap.token0, swap.token1)
        )
        if not tokens:
            tokens.append(short_hex(token_in))
        tokens.append(short_hex(token_out))
    return " -> ".join(tokens)


class InspectorReporter:
    """Logging sink with running statistics."""

    def __init__(self, metrics: Optional[InspectorMetrics] = None):
        self.metrics = metrics
        self.stats = InspectorStats()

    def log_arbitrage(self, arb: Arbitrage) -> None:
        self.stats.arbitrages_found += 1
        self.stats.total_profit_wei += arb.profit
        net_profit = "N/A"
        if arb.net_profit is not None:
            self.stats.total_net_profit_wei += arb.net_profit
            net_profit = wei_to_ether(arb.net_profit)

        if self.metrics:
            self.metrics.record_arbitrage(arb.type.value, arb.profit, arb.net_profit)

        logger.info(
            f"ARBITRAGE DETECTED [{arb.type.value}] tx={arb.tx_hash} block={arb.block_number} "
            f"arbitrageur={arb.arbitrageur} profit={wei_to_ether(arb.profit)} "
            f"net={net_profit} gas_used={arb.gas_used} hops={arb.hops} "
            f"path={build_path_string(arb.path)}",
            extra={
                "arb_type": arb.type.value,
                "tx_hash": arb.tx_hash,
                "block": arb.block_number,
                "profit_wei": str(arb.profit),
                "net_profit_wei": None if arb.net_profit is None else str(arb.net_profit),
                "profit_token": arb.profit_token,
            },
        )

    def log_swap(self, swap: NormalizedSwap) -> None:
        if self.metrics:
            self.metrics.record_swap(swap.protocol.value)
        logger.debug(
            f"Swap tx={swap.tx_hash} pool={swap.pool} protocol={swap.protocol.value} "
            f"token0={swap.token0} token1={swap.token1}"
        )

    def log_skipped(self, skipped: SkippedLog) -> None:
        if self.metrics:
            self.metrics.record_skipped_log()
        logger.warning(
            f"Skipped log tx={skipped.log.tx_hash} index={skipped.log.log_index} "
            f"pool={skipped.log.address}: {skipped.reason}"
        )

    def log_block_range_complete(self, result: RangeResult) -> None:
        self.stats.blocks_processed += result.block_count
        self.stats.swaps_detected += result.swap_count

        if self.metrics:
            self.metrics.record_range(result.to_block, result.block_count, result.duration)

        logger.info(
            f"Blocks {result.from_block}-{result.to_block} processed: "
            f"swaps={result.swap_count} arbitrages={len(result.arbitrages)} "
            f"skipped={len(result.skipped)} duration={format_duration(result.duration)}"
        )

    def log_range_failed(self, from_block: int, to_block: int, error: BaseException) -> None:
        if self.metrics:
            self.metrics.record_range_failure()
        logger.error(
            f"Blocks {from_block}-{to_block} failed, will retry on next poll: {error}"
        )

    def log_error(self, error: BaseException, context: str) -> None:
        logger.error(f"Error occurred while {context}: {error}")

    def log_stats(self) -> Dict[str, Any]:
        stats = self.stats
        snapshot = {
            "blocks_processed": stats.blocks_processed,
            "swaps_detected": stats.swaps_detected,
            "arbitrages_found": stats.arbitrages_found,
            "total_profit_eth": wei_to_ether(stats.total_profit_wei),
            "total_net_profit_eth": wei_to_ether(stats.total_net_profit_wei),
            "blocks_per_sec": round(stats.blocks_per_second, 3),
            "uptime": format_duration(stats.elapsed),
        }
        logger.info(
            "MEV Inspector Stats: "
            + " ".join(f"{key}={value}" for key, value in snapshot.items())
        )
        return snapshot
