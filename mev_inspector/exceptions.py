"""
Exception hierarchy for the MEV inspector.

Errors local to a single log or swap (DecodeError, PoolMetadataError) are
recorded and skipped; RPCError raised while establishing a view of a block
range aborts that range so it is retried on the next poll.
"""

from typing import Optional, Dict, Any


class MevInspectorError(Exception):
    """Base exception for all MEV inspector related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(MevInspectorError):
    """Raised when there are configuration-related issues."""

    pass


class DecodeError(MevInspectorError):
    """Raised when a swap log cannot be decoded (bad topics, short payload)."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        log_index: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
        self.log_index = log_index


class PoolMetadataError(DecodeError):
    """Raised when token0/token1/fee cannot be resolved for a pool."""

    def __init__(
        self,
        message: str,
        pool: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.pool = pool


class RPCError(MevInspectorError):
    """Raised when a chain RPC call fails after all retry attempts."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        attempts: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.attempts = attempts


class RangeProcessingError(MevInspectorError):
    """Raised when a block range is abandoned; the watermark stays put."""

    def __init__(
        self,
        message: str,
        from_block: int,
        to_block: int,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.from_block = from_block
        self.to_block = to_block
