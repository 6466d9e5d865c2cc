"""
Prometheus metrics for the MEV inspector.

Exposes block processing, decoding and detection counters. Updated by the
reporter, so metric collection never affects pipeline control flow.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from .constants import WEI_PER_ETHER

logger = logging.getLogger(__name__)


class InspectorMetrics:
    """
    Prometheus-compatible metrics for:
    - Block ranges processed and failed
    - Swaps decoded and logs skipped
    - Arbitrages detected and realized profit
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        self._app = None
        self._runner = None
        self._site = None

        self._lock = threading.RLock()

    def _initialize_metrics(self):
        # === BLOCK METRICS ===
        self.blocks_processed_total = Counter(
            "mev_inspector_blocks_processed_total",
            "Total number of blocks fully processed",
            registry=self.registry,
        )

        self.range_failures_total = Counter(
            "mev_inspector_range_failures_total",
            "Block ranges abandoned for retry",
            registry=self.registry,
        )

        self.last_processed_block = Gauge(
            "mev_inspector_last_processed_block",
            "Highest block number fully processed",
            registry=self.registry,
        )

        self.range_duration_seconds = Histogram(
            "mev_inspector_range_duration_seconds",
            "Time spent processing one block range",
            buckets=[0.1, 0.5, 1, 2.5, 5, 10, 30, 60],
            registry=self.registry,
        )

        # === DECODING METRICS ===
        self.swaps_decoded_total = Counter(
            "mev_inspector_swaps_decoded_total",
            "Total swaps decoded",
            ["protocol"],
            registry=self.registry,
        )

        self.logs_skipped_total = Counter(
            "mev_inspector_logs_skipped_total",
            "Swap logs that failed to decode",
            registry=self.registry,
        )

        # === ARBITRAGE METRICS ===
        self.arbitrages_detected_total = Counter(
            "mev_inspector_arbitrages_detected_total",
            "Total arbitrages detected",
            ["type"],
            registry=self.registry,
        )

        self.gross_profit_eth_total = Counter(
            "mev_inspector_gross_profit_eth_total",
            "Cumulative gross profit of detected arbitrages (profit token units / 1e18)",
            ["type"],
            registry=self.registry,
        )

        self.net_profit_eth = Gauge(
            "mev_inspector_net_profit_eth",
            "Cumulative net profit after gas (profit token units / 1e18)",
            registry=self.registry,
        )

    # Recorders

    def record_range(self, to_block: int, block_count: int, duration_seconds: float):
        with self._lock:
            self.blocks_processed_total.inc(block_count)
            self.last_processed_block.set(to_block)
            self.range_duration_seconds.observe(duration_seconds)

    def record_range_failure(self):
        with self._lock:
            self.range_failures_total.inc()

    def record_swap(self, protocol: str):
        with self._lock:
            self.swaps_decoded_total.labels(protocol=protocol).inc()

    def record_skipped_log(self):
        with self._lock:
            self.logs_skipped_total.inc()

    def record_arbitrage(
        self, arb_type: str, profit_wei: int, net_profit_wei: Optional[int] = None
    ):
        with self._lock:
            self.arbitrages_detected_total.labels(type=arb_type).inc()
            self.gross_profit_eth_total.labels(type=arb_type).inc(
                profit_wei / WEI_PER_ETHER
            )
            if net_profit_wei is not None:
                self.net_profit_eth.inc(net_profit_wei / WEI_PER_ETHER)

    # HTTP exposition

    async def start_server(
        self, port: int = 8000, host: str = "0.0.0.0", path: str = "/metrics"
    ) -> bool:
        """
        Serve the registry at `path` plus a `/health` probe.

        Returns False when the port cannot be bound; the inspector keeps running
        without an exporter in that case.
        """
        try:
            self._app = web.Application()
            self._app.router.add_get(path, self._metrics_handler)
            self._app.router.add_get("/health", self._health_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(f"Prometheus metrics server started on http://{host}:{port}{path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self):
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        logger.info("Metrics server stopped")

    async def _metrics_handler(self, request):
        payload = generate_latest(self.registry)
        # aiohttp sets the charset itself
        content_type = CONTENT_TYPE_LATEST.split(";")[0]
        return web.Response(text=payload.decode("utf-8"), content_type=content_type)

    async def _health_handler(self, request):
        return web.Response(
            text='{"status": "healthy", "service": "mev_inspector"}',
            content_type="application/json",
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Point-in-time view of the headline series, for logs and debugging."""
        sample = self.registry.get_sample_value
        return {
            "metrics_available": True,
            "blocks_processed": sample("mev_inspector_blocks_processed_total") or 0.0,
            "last_processed_block": sample("mev_inspector_last_processed_block"),
            "range_failures": sample("mev_inspector_range_failures_total") or 0.0,
            "timestamp": time.time(),
        }
