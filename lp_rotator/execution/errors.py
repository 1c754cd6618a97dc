"""
Error Taxonomy
==============
Standardized error codes and exceptions for chain and API failures.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Standardized error codes for execution failures."""

    # Network errors
    RATE_LIMITED = "RATE_LIMITED"
    RPC_ERROR = "RPC_ERROR"
    TIMEOUT = "TIMEOUT"
    BLOCKHASH_EXPIRED = "BLOCKHASH_EXPIRED"
    NETWORK_ERROR = "NETWORK_ERROR"

    # Execution errors
    SLIPPAGE_EXCEEDED = "SLIPPAGE_EXCEEDED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    TX_FAILED = "TX_FAILED"

    # General
    UNKNOWN = "UNKNOWN"


# Substring -> code, checked in order against the lowercased error text
_PATTERNS = (
    ("http 429", ErrorCode.RATE_LIMITED),
    ("too many requests", ErrorCode.RATE_LIMITED),
    ("blockhash not found", ErrorCode.BLOCKHASH_EXPIRED),
    ("block height exceeded", ErrorCode.BLOCKHASH_EXPIRED),
    ("blockheightexceeded", ErrorCode.BLOCKHASH_EXPIRED),
    ("exceeds desired slippage limit", ErrorCode.SLIPPAGE_EXCEEDED),
    ("custom program error: 0x1e", ErrorCode.SLIPPAGE_EXCEEDED),  # Raydium AMM
    ("'custom': 30}", ErrorCode.SLIPPAGE_EXCEEDED),
    ("0x1771", ErrorCode.SLIPPAGE_EXCEEDED),  # Jupiter
    ("0x1788", ErrorCode.SLIPPAGE_EXCEEDED),
    ("insufficient funds", ErrorCode.INSUFFICIENT_BALANCE),
    ("insufficient lamports", ErrorCode.INSUFFICIENT_BALANCE),
    ("timed out", ErrorCode.TIMEOUT),
    ("timeout", ErrorCode.TIMEOUT),
)


class RotatorError(Exception):
    """Base class for rotator failures."""

    code = ErrorCode.UNKNOWN


class RpcError(RotatorError):
    """JSON-RPC or HTTP failure talking to the chain or an API."""

    code = ErrorCode.RPC_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class RateLimitedError(RpcError):
    code = ErrorCode.RATE_LIMITED


class BlockhashExpiredError(RpcError):
    code = ErrorCode.BLOCKHASH_EXPIRED


class TransactionError(RotatorError):
    """A transaction was rejected, failed on-chain, or ran out of attempts."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_FAILED,
        signature: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.signature = signature

    @property
    def is_slippage(self) -> bool:
        return self.code == ErrorCode.SLIPPAGE_EXCEEDED


class SwapError(RotatorError):
    """No route or no swap transaction from the aggregator."""


class WalletMismatchError(RotatorError):
    """Configured keypair does not match the configured public key."""


def classify_error(error) -> ErrorCode:
    """Map an exception or raw error text onto an ErrorCode."""
    if isinstance(error, RotatorError) and error.code not in (
        ErrorCode.UNKNOWN,
        ErrorCode.RPC_ERROR,
        ErrorCode.TX_FAILED,
    ):
        return error.code

    text = str(error).lower()
    for needle, code in _PATTERNS:
        if needle in text:
            return code

    if isinstance(error, RotatorError):
        return error.code
    return ErrorCode.UNKNOWN
