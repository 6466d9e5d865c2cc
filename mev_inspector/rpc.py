"""
Chain RPC client with a fixed-delay bounded retry policy.

Wraps a synchronous web3 instance; blocking calls run in the default
executor so the event loop stays responsive and a cancelled task stops
waiting on them immediately.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

from web3 import Web3

from .config import RPCConfig
from .exceptions import RPCError
from .types import RawLog, TransactionInfo, TransactionReceipt

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with a fixed delay between attempts.

    No exponential backoff and no circuit breaker: a call is attempted
    max_attempts times, then RPCError is raised chained from the last error.
    Task cancellation is never retried.
    """

    max_attempts: int = 3
    delay: float = 1.0

    @classmethod
    def from_config(cls, rpc_config: RPCConfig) -> "RetryPolicy":
        return cls(max_attempts=rpc_config.retry_attempts, delay=rpc_config.retry_delay)

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1, delay=0.0)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str) -> T:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(
                    f"{description} failed (attempt {attempt}/{self.max_attempts}): {e}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.delay)

        raise RPCError(
            f"{description} failed after {self.max_attempts} attempts: {last_error}",
            method=description,
            attempts=self.max_attempts,
        ) from last_error


def _to_bytes(value: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return Web3.to_bytes(hexstr=value)


def _to_hash(value: Union[bytes, bytearray, str]) -> str:
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else "0x" + value.lower()
    return Web3.to_hex(bytes(value))


def to_raw_log(entry: Any) -> RawLog:
    """Convert a web3 log entry (AttributeDict or plain dict) to a RawLog."""
    return RawLog(
        tx_hash=_to_hash(entry["transactionHash"]),
        block_number=int(entry["blockNumber"]),
        log_index=int(entry["logIndex"]),
        address=Web3.to_checksum_address(entry["address"]),
        topics=tuple(_to_bytes(topic) for topic in entry["topics"]),
        data=_to_bytes(entry["data"]),
    )


class ChainClient:
    """Retrying, async facade over a web3 HTTP connection."""

    def __init__(self, web3: Web3, retry_policy: Optional[RetryPolicy] = None):
        self.web3 = web3
        self.retry_policy = retry_policy or RetryPolicy()

    @classmethod
    def connect(cls, rpc_config: RPCConfig) -> "ChainClient":
        """
        Build a client for the configured endpoint and verify connectivity.

        Raises:
            RPCError: If the node is unreachable
        """
        provider = Web3.HTTPProvider(
            rpc_config.url, request_kwargs={"timeout": rpc_config.request_timeout}
        )
        web3 = Web3(provider)
        if not web3.is_connected():
            raise RPCError(
                f"Failed to connect to RPC at {rpc_config.url}", method="connect"
            )

        client = cls(web3, RetryPolicy.from_config(rpc_config))
        logger.info(f"Connected to RPC {rpc_config.url} (chain id {web3.eth.chain_id})")
        return client

    async def _run_sync(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def _request(self, description: str, fn: Callable[..., T], *args: Any) -> T:
        return await self.retry_policy.run(
            lambda: self._run_sync(fn, *args), description
        )

    async def chain_id(self) -> int:
        return await self._request("eth_chainId", lambda: self.web3.eth.chain_id)

    async def block_number(self) -> int:
        return await self._request("eth_blockNumber", lambda: self.web3.eth.block_number)

    async def get_logs(
        self, from_block: int, to_block: int, topics: Sequence[Sequence[bytes]]
    ) -> List[RawLog]:
        params = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": [[Web3.to_hex(topic) for topic in group] for group in topics],
        }
        entries = await self._request("eth_getLogs", self.web3.eth.get_logs, params)
        return [to_raw_log(entry) for entry in entries]

    async def call(self, to: str, data: bytes) -> bytes:
        tx = {"to": Web3.to_checksum_address(to), "data": Web3.to_hex(data)}
        result = await self._request("eth_call", self.web3.eth.call, tx)
        return bytes(result)

    async def get_transaction_receipt(self, tx_hash: str) -> TransactionReceipt:
        receipt = await self._request(
            "eth_getTransactionReceipt", self.web3.eth.get_transaction_receipt, tx_hash
        )
        return TransactionReceipt(gas_used=int(receipt["gasUsed"]))

    async def get_transaction(self, tx_hash: str) -> TransactionInfo:
        tx = await self._request(
            "eth_getTransactionByHash", self.web3.eth.get_transaction, tx_hash
        )
        return TransactionInfo(gas_price=int(tx["gasPrice"]))
