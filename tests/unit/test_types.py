"""Tests for core data types and interfaces."""

import dataclasses

import pytest

from mev_inspector import VERSION
from mev_inspector.interfaces import ChainReader, DeterministicTimeProvider
from mev_inspector.types import InspectorStats, PoolMetadata, Protocol, RangeResult
from mev_inspector.version import version_info

from tests.chain_fixtures import FakeChain, USDC, WETH, make_swap


def test_protocol_values():
    assert Protocol.UNISWAP_V2.value == "uniswap_v2"
    assert Protocol.UNISWAP_V3.value == "uniswap_v3"


def test_swap_is_immutable():
    swap = make_swap(WETH, USDC, amount0_in=1, amount1_out=2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        swap.amount0_in = 5


def test_pool_metadata_fee_optional():
    assert PoolMetadata(WETH, USDC).fee is None


def test_range_result_block_count():
    assert RangeResult(100, 100).block_count == 1
    assert RangeResult(100, 199).block_count == 100


def test_inspector_stats_rates():
    stats = InspectorStats(blocks_processed=50, start_time=0)
    assert stats.elapsed > 0
    assert stats.blocks_per_second > 0
    assert stats.blocks_per_second == pytest.approx(50 / stats.elapsed, rel=0.01)


def test_fake_chain_satisfies_protocol():
    assert isinstance(FakeChain(), ChainReader)


def test_deterministic_time_provider():
    clock = DeterministicTimeProvider(start_time=1000.0)
    clock.advance_time(2.5)
    assert clock.current_timestamp() == 1002.5
    assert clock.monotonic() == 1002.5


def test_version():
    assert VERSION == "0.1.0"
    assert version_info == (0, 1, 0)
    assert version_info.minor == 1
