"""
LP Rotator Test Mocks
=====================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockRpcClient, parsed_token_account
from tests.mocks.mock_wallet import MockWalletManager

__all__ = [
    "MockRpcClient",
    "MockWalletManager",
    "parsed_token_account",
]
