"""
Unit tests for Prometheus metrics
"""

import aiohttp
import aiohttp.test_utils
import pytest
import pytest_asyncio
from aiohttp import web
from prometheus_client import generate_latest


class TestInspectorMetrics:
    """Test InspectorMetrics functionality"""

    def test_initialization(self, metrics):
        assert metrics.registry is not None
        assert hasattr(metrics, "blocks_processed_total")
        assert hasattr(metrics, "arbitrages_detected_total")
        assert hasattr(metrics, "range_duration_seconds")

    def test_range_metrics(self, metrics):
        metrics.record_range(to_block=18_000_009, block_count=10, duration_seconds=1.5)
        metrics.record_range(to_block=18_000_019, block_count=10, duration_seconds=0.3)
        metrics.record_range_failure()

        metric_output = generate_latest(metrics.registry).decode("utf-8")

        assert "mev_inspector_blocks_processed_total 20.0" in metric_output
        assert metrics.registry.get_sample_value("mev_inspector_last_processed_block") == 18_000_019
        assert "mev_inspector_range_failures_total 1.0" in metric_output
        assert "mev_inspector_range_duration_seconds_count 2.0" in metric_output

    def test_arbitrage_metrics(self, metrics):
        metrics.record_arbitrage("cyclic", 5 * 10**15, net_profit_wei=10**15)
        metrics.record_arbitrage("cross_dex", 10**16)

        metric_output = generate_latest(metrics.registry).decode("utf-8")

        assert 'mev_inspector_arbitrages_detected_total{type="cyclic"} 1.0' in metric_output
        assert 'mev_inspector_arbitrages_detected_total{type="cross_dex"} 1.0' in metric_output
        assert 'mev_inspector_gross_profit_eth_total{type="cross_dex"} 0.01' in metric_output
        assert "mev_inspector_net_profit_eth 0.001" in metric_output

    def test_negative_net_profit_lowers_gauge(self, metrics):
        metrics.record_arbitrage("cyclic", 10**15, net_profit_wei=-(3 * 10**15))

        assert metrics.registry.get_sample_value("mev_inspector_net_profit_eth") == pytest.approx(
            -0.003
        )

    def test_decoding_metrics(self, metrics):
        metrics.record_swap("uniswap_v2")
        metrics.record_swap("uniswap_v3")
        metrics.record_swap("uniswap_v3")
        metrics.record_skipped_log()

        assert (
            metrics.registry.get_sample_value(
                "mev_inspector_swaps_decoded_total", {"protocol": "uniswap_v3"}
            )
            == 2.0
        )
        assert metrics.registry.get_sample_value("mev_inspector_logs_skipped_total") == 1.0

    @pytest.mark.asyncio
    async def test_server_start_and_stop(self, metrics):
        started = await metrics.start_server(port=0, host="127.0.0.1")

        # Binding can be refused in sandboxed environments
        if started:
            assert metrics._site is not None
            await metrics.stop_server()

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, metrics):
        await metrics.stop_server()
        assert metrics._runner is None

    def test_summary_tracks_progress(self, metrics):
        metrics.record_range(to_block=500, block_count=4, duration_seconds=0.1)
        metrics.record_range_failure()

        summary = metrics.get_metrics_summary()

        assert summary["metrics_available"] is True
        assert summary["blocks_processed"] == 4.0
        assert summary["last_processed_block"] == 500.0
        assert summary["range_failures"] == 1.0
        assert summary["timestamp"] > 0


@pytest_asyncio.fixture
async def exporter_client(metrics):
    app = web.Application()
    app.router.add_get("/metrics", metrics._metrics_handler)
    app.router.add_get("/health", metrics._health_handler)
    async with aiohttp.test_utils.TestClient(aiohttp.test_utils.TestServer(app)) as client:
        yield client


@pytest.mark.asyncio
async def test_exporter_serves_registry(metrics, exporter_client):
    metrics.record_swap("uniswap_v2")

    response = await exporter_client.get("/metrics")

    assert response.status == 200
    assert response.content_type == "text/plain"
    body = await response.text()
    assert 'mev_inspector_swaps_decoded_total{protocol="uniswap_v2"} 1.0' in body


@pytest.mark.asyncio
async def test_health_probe(exporter_client):
    response = await exporter_client.get("/health")

    assert response.status == 200
    assert (await response.json()) == {"status": "healthy", "service": "mev_inspector"}
