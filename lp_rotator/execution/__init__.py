"""
Execution Layer
===============
Wallet access, transaction submission and swap routing.
"""

from lp_rotator.execution.errors import (
    ErrorCode,
    RotatorError,
    RpcError,
    RateLimitedError,
    BlockhashExpiredError,
    TransactionError,
    SwapError,
    WalletMismatchError,
    classify_error,
)

__all__ = [
    "ErrorCode",
    "RotatorError",
    "RpcError",
    "RateLimitedError",
    "BlockhashExpiredError",
    "TransactionError",
    "SwapError",
    "WalletMismatchError",
    "classify_error",
]
