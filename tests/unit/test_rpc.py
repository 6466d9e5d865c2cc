"""
Unit tests for the retry policy and the web3-backed chain client
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest
from web3.datastructures import AttributeDict

from mev_inspector.config import RPCConfig
from mev_inspector.constants import TOKEN0_SELECTOR, UNISWAP_V2_SWAP_TOPIC
from mev_inspector.exceptions import RPCError
from mev_inspector.rpc import ChainClient, RetryPolicy, to_raw_log

from tests.chain_fixtures import address


def flaky(failures, result="ok", error=ConnectionError):
    """Async operation failing `failures` times before returning result."""
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error(f"attempt {calls['count']} failed")
        return result

    return operation, calls


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        operation, calls = flaky(2)
        policy = RetryPolicy(max_attempts=3, delay=0)

        assert await policy.run(operation, "eth_blockNumber") == "ok"
        assert calls["count"] == 3

    @pytest.mark.asyncio
    async def test_exhaustion_raises_rpc_error(self):
        operation, calls = flaky(5)
        policy = RetryPolicy(max_attempts=3, delay=0)

        with pytest.raises(RPCError) as exc_info:
            await policy.run(operation, "eth_getLogs")

        assert calls["count"] == 3
        assert exc_info.value.method == "eth_getLogs"
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert "attempt 3 failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_fixed_delay_between_attempts(self):
        operation, _ = flaky(5)
        policy = RetryPolicy(max_attempts=3, delay=0.5)

        with patch("mev_inspector.rpc.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(RPCError):
                await policy.run(operation, "eth_call")

        # No sleep after the final attempt, no backoff
        assert [c.args for c in sleep.await_args_list] == [(0.5,), (0.5,)]

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self):
        operation, calls = flaky(5, error=asyncio.CancelledError)
        policy = RetryPolicy(max_attempts=3, delay=0)

        with pytest.raises(asyncio.CancelledError):
            await policy.run(operation, "eth_getLogs")
        assert calls["count"] == 1

    def test_from_config(self):
        policy = RetryPolicy.from_config(RPCConfig(retry_attempts=5, retry_delay="250ms"))
        assert policy.max_attempts == 5
        assert policy.delay == 0.25

    def test_no_retry(self):
        assert RetryPolicy.no_retry().max_attempts == 1


class TestToRawLog:
    def test_converts_web3_entry(self):
        pool = "0x" + "ab" * 20
        entry = AttributeDict(
            {
                "transactionHash": bytes.fromhex("CD" * 32),
                "blockNumber": 18_000_000,
                "logIndex": 42,
                "address": pool,
                "topics": [UNISWAP_V2_SWAP_TOPIC, "0x" + "00" * 12 + "11" * 20],
                "data": "0x" + "00" * 128,
            }
        )

        log = to_raw_log(entry)

        assert log.tx_hash == "0x" + "cd" * 32
        assert log.block_number == 18_000_000
        assert log.log_index == 42
        assert log.address == address("ab")
        assert log.topics[0] == UNISWAP_V2_SWAP_TOPIC
        assert log.topics[1] == bytes(12) + b"\x11" * 20
        assert log.data == bytes(128)

    def test_string_hash_is_lowercased(self):
        entry = {
            "transactionHash": "0x" + "AB" * 32,
            "blockNumber": 1,
            "logIndex": 0,
            "address": address("11"),
            "topics": [],
            "data": b"",
        }
        assert to_raw_log(entry).tx_hash == "0x" + "ab" * 32


@pytest.fixture
def web3():
    return Mock()


@pytest.fixture
def client(web3):
    return ChainClient(web3, RetryPolicy(max_attempts=2, delay=0))


class TestChainClient:
    @pytest.mark.asyncio
    async def test_block_number(self, client, web3):
        web3.eth.block_number = 18_000_123
        assert await client.block_number() == 18_000_123

    @pytest.mark.asyncio
    async def test_get_logs_builds_filter(self, client, web3):
        web3.eth.get_logs.return_value = [
            {
                "transactionHash": "0x" + "ab" * 32,
                "blockNumber": 10,
                "logIndex": 1,
                "address": address("11"),
                "topics": [UNISWAP_V2_SWAP_TOPIC],
                "data": b"",
            }
        ]

        logs = await client.get_logs(10, 12, [[UNISWAP_V2_SWAP_TOPIC]])

        web3.eth.get_logs.assert_called_once_with(
            {
                "fromBlock": 10,
                "toBlock": 12,
                "topics": [["0x" + UNISWAP_V2_SWAP_TOPIC.hex()]],
            }
        )
        assert len(logs) == 1
        assert logs[0].block_number == 10

    @pytest.mark.asyncio
    async def test_call_returns_bytes(self, client, web3):
        web3.eth.call.return_value = bytearray(32)

        result = await client.call(address("11"), TOKEN0_SELECTOR)

        assert result == bytes(32)
        web3.eth.call.assert_called_once_with(
            {"to": address("11"), "data": "0x0dfe1681"}
        )

    @pytest.mark.asyncio
    async def test_gas_lookups(self, client, web3):
        web3.eth.get_transaction_receipt.return_value = {"gasUsed": 150_000}
        web3.eth.get_transaction.return_value = {"gasPrice": 20 * 10**9}

        receipt = await client.get_transaction_receipt("0x" + "ab" * 32)
        tx = await client.get_transaction("0x" + "ab" * 32)

        assert receipt.gas_used == 150_000
        assert tx.gas_price == 20 * 10**9

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, client, web3):
        web3.eth.get_transaction.side_effect = [
            ConnectionError("reset by peer"),
            {"gasPrice": 7},
        ]

        tx = await client.get_transaction("0x" + "ab" * 32)

        assert tx.gas_price == 7
        assert web3.eth.get_transaction.call_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, client, web3):
        web3.eth.get_transaction_receipt.side_effect = ConnectionError("down")

        with pytest.raises(RPCError) as exc_info:
            await client.get_transaction_receipt("0x" + "ab" * 32)

        assert exc_info.value.method == "eth_getTransactionReceipt"
        assert web3.eth.get_transaction_receipt.call_count == 2


class TestConnect:
    def test_unreachable_node(self):
        with patch("mev_inspector.rpc.Web3") as web3_cls:
            web3_cls.return_value.is_connected.return_value = False

            with pytest.raises(RPCError, match="Failed to connect"):
                ChainClient.connect(RPCConfig(url="http://node.invalid:8545"))

    def test_connected(self):
        with patch("mev_inspector.rpc.Web3") as web3_cls:
            instance = web3_cls.return_value
            instance.is_connected.return_value = True
            instance.eth.chain_id = 1

            client = ChainClient.connect(
                RPCConfig(url="http://localhost:8545", retry_attempts=4, retry_delay=2)
            )

        assert client.web3 is instance
        assert client.retry_policy == RetryPolicy(max_attempts=4, delay=2.0)
        web3_cls.HTTPProvider.assert_called_once_with(
            "http://localhost:8545", request_kwargs={"timeout": 30.0}
        )
