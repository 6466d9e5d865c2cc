"""Tests for the exceptions module."""

import pytest

from mev_inspector.exceptions import (
    ConfigurationError,
    DecodeError,
    MevInspectorError,
    PoolMetadataError,
    RangeProcessingError,
    RPCError,
)


def test_base_exception():
    """Test the base exception class."""
    error = MevInspectorError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = MevInspectorError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    error = ConfigurationError("Config error", {"config_file": "inspector.yaml"})
    assert str(error) == "Config error"
    assert error.details["config_file"] == "inspector.yaml"
    assert isinstance(error, MevInspectorError)


def test_decode_error():
    error = DecodeError("short payload", tx_hash="0xabc", log_index=4)
    assert error.tx_hash == "0xabc"
    assert error.log_index == 4
    assert isinstance(error, MevInspectorError)


def test_pool_metadata_error_is_decode_error():
    error = PoolMetadataError("token0 reverted", pool="0xPool")
    assert error.pool == "0xPool"
    assert error.log_index is None
    assert isinstance(error, DecodeError)


def test_rpc_error():
    error = RPCError("eth_getLogs failed", method="eth_getLogs", attempts=3)
    assert error.method == "eth_getLogs"
    assert error.attempts == 3
    assert not isinstance(error, DecodeError)


def test_range_processing_error():
    error = RangeProcessingError("range abandoned", from_block=10, to_block=19)
    assert (error.from_block, error.to_block) == (10, 19)
    assert error.details == {}


def test_exception_chaining():
    """Errors keep the underlying cause."""
    try:
        try:
            raise ConnectionError("connection reset")
        except ConnectionError as e:
            raise RPCError("eth_call failed", method="eth_call") from e
    except RPCError as e:
        assert isinstance(e.__cause__, ConnectionError)


@pytest.mark.parametrize(
    "error_class",
    [ConfigurationError, DecodeError, PoolMetadataError, RPCError],
)
def test_all_errors_catchable_as_base(error_class):
    with pytest.raises(MevInspectorError):
        raise error_class("failure")
