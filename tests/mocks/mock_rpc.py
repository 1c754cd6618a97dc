"""
Mock RPC Client
===============
Scripted stand-in for SolanaRpcClient.
"""

from typing import Any, Dict, List, Optional, Tuple

from solders.hash import Hash
from solders.transaction import VersionedTransaction


class MockRpcClient:
    """
    Fake Solana RPC client with scripted responses.

    Usage:
        rpc = MockRpcClient()
        rpc.send_results = [RateLimitedError("HTTP 429"), None]
        rpc.statuses = [None, {"confirmationStatus": "confirmed", "err": None}]
    """

    def __init__(self):
        self.send_results: List[Optional[Exception]] = []
        self.statuses: List[Optional[Dict[str, Any]]] = []
        self.default_status: Optional[Dict[str, Any]] = None
        self.sent: List[bytes] = []
        self.blockhashes: List[Hash] = []
        self.status_queries: List[str] = []
        self.balances: Dict[str, int] = {}
        self.token_accounts: Dict[str, List[Dict[str, Any]]] = {}
        self.token_balances: Dict[str, Dict[str, Any]] = {}
        self.supplies: Dict[str, Dict[str, Any]] = {}
        self.call_count = 0
        self._height = 1000

    async def get_latest_blockhash(self) -> Tuple[Hash, int]:
        self.call_count += 1
        blockhash = Hash.new_unique()
        self.blockhashes.append(blockhash)
        self._height += 150
        return blockhash, self._height

    async def send_transaction(self, tx: VersionedTransaction) -> str:
        self.call_count += 1
        self.sent.append(bytes(tx))
        if self.send_results:
            result = self.send_results.pop(0)
            if result is not None:
                raise result
        return str(tx.signatures[0])

    async def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        self.call_count += 1
        self.status_queries.append(signature)
        if self.statuses:
            return self.statuses.pop(0)
        return self.default_status

    async def get_balance(self, pubkey: str) -> int:
        self.call_count += 1
        return self.balances.get(pubkey, 0)

    async def get_token_accounts_by_owner(self, owner: str, program_id: str) -> List[Dict[str, Any]]:
        self.call_count += 1
        return self.token_accounts.get(program_id, [])

    async def get_token_account_balance(self, address: str) -> Dict[str, Any]:
        self.call_count += 1
        return self.token_balances[address]

    async def get_token_supply(self, mint: str) -> Dict[str, Any]:
        self.call_count += 1
        return self.supplies[mint]

    async def close(self) -> None:
        pass


def parsed_token_account(pubkey: str, mint: str, amount: int, decimals: int) -> Dict[str, Any]:
    """One getTokenAccountsByOwner jsonParsed entry."""
    return {
        "pubkey": pubkey,
        "account": {
            "data": {
                "parsed": {
                    "info": {
                        "mint": mint,
                        "tokenAmount": {
                            "amount": str(amount),
                            "decimals": decimals,
                            "uiAmount": amount / (10 ** decimals),
                        },
                    },
                    "type": "account",
                },
                "program": "spl-token",
            }
        },
    }
