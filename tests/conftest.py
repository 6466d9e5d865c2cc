"""
Shared pytest fixtures.
"""

import pytest
from prometheus_client import CollectorRegistry

from mev_inspector.config import InspectorSettings
from mev_inspector.decoders import UnifiedDecoder
from mev_inspector.detector import ArbitrageDetector
from mev_inspector.interfaces import DeterministicTimeProvider
from mev_inspector.metrics import InspectorMetrics
from mev_inspector.pipeline import Inspector
from mev_inspector.reporter import InspectorReporter

from tests.chain_fixtures import FakeChain


@pytest.fixture
def fake_chain():
    return FakeChain(head=100)


@pytest.fixture
def test_registry():
    """Create a test-specific registry"""
    return CollectorRegistry()


@pytest.fixture
def metrics(test_registry):
    return InspectorMetrics(test_registry)


@pytest.fixture
def reporter():
    return InspectorReporter()


@pytest.fixture
def settings():
    return InspectorSettings(poll_interval=0.01, stats_interval=60, batch_size=10)


@pytest.fixture
def inspector(fake_chain, settings, reporter):
    return Inspector(
        settings,
        fake_chain,
        UnifiedDecoder(fake_chain),
        ArbitrageDetector(fake_chain),
        reporter,
        time_provider=DeterministicTimeProvider(),
    )
