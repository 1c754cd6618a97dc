"""
Solana JSON-RPC Client
======================
Thin async wrapper over the handful of RPC methods the rotator needs.

HTTP 429 and JSON-RPC errors are raised as typed exceptions so the
TransactionExecutor can decide between resend, rebuild and give up.
"""

import base64
import itertools
from typing import Any, Dict, List, Optional, Tuple

import httpx
from solders.hash import Hash
from solders.transaction import VersionedTransaction

from lp_rotator.config.settings import Settings
from lp_rotator.execution.errors import (
    ErrorCode,
    RateLimitedError,
    BlockhashExpiredError,
    RpcError,
    classify_error,
)


TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"


class SolanaRpcClient:
    """Async JSON-RPC client bound to one endpoint."""

    def __init__(
        self,
        rpc_url: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url or Settings.RPC_URL
        self._client = client or httpx.AsyncClient(
            timeout=timeout or Settings.RPC_TIMEOUT_S
        )
        self._ids = itertools.count(1)
        self.request_count = 0

    async def close(self) -> None:
        await self._client.aclose()

    # ═══════════════════════════════════════════════════════════════════
    # TRANSPORT
    # ═══════════════════════════════════════════════════════════════════

    async def _call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        self.request_count += 1

        try:
            resp = await self._client.post(self.rpc_url, json=payload)
        except httpx.TimeoutException as e:
            raise RpcError(f"{method} timed out: {e}", ErrorCode.TIMEOUT) from e
        except httpx.TransportError as e:
            raise RpcError(f"{method} transport error: {e}", ErrorCode.NETWORK_ERROR) from e

        if resp.status_code == 429:
            raise RateLimitedError(f"{method}: HTTP 429 Too Many Requests")
        if resp.status_code != 200:
            raise RpcError(f"{method}: HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise RpcError(f"{method}: invalid JSON response") from e
        if not isinstance(body, dict):
            raise RpcError(f"{method}: unexpected response payload")

        error = body.get("error")
        if error:
            raise self._error_from_payload(method, error)
        return body.get("result")

    @staticmethod
    def _error_from_payload(method: str, error: Dict[str, Any]) -> RpcError:
        message = error.get("message", "unknown error")
        data = error.get("data") or {}
        logs = data.get("logs") if isinstance(data, dict) else None
        detail = f"{method}: {message}"
        if isinstance(data, dict) and data.get("err") is not None:
            detail += f" err={data['err']}"
        if logs:
            detail += " | " + " | ".join(logs[-5:])

        code = classify_error(detail)
        if error.get("code") == 429:
            code = ErrorCode.RATE_LIMITED
        if code == ErrorCode.RATE_LIMITED:
            return RateLimitedError(detail)
        if code == ErrorCode.BLOCKHASH_EXPIRED:
            return BlockhashExpiredError(detail)
        return RpcError(detail, code)

    # ═══════════════════════════════════════════════════════════════════
    # METHODS
    # ═══════════════════════════════════════════════════════════════════

    async def get_balance(self, pubkey: str) -> int:
        """Lamport balance of an account."""
        result = await self._call("getBalance", [pubkey, {"commitment": "confirmed"}])
        return int(result["value"])

    async def get_latest_blockhash(self) -> Tuple[Hash, int]:
        result = await self._call(
            "getLatestBlockhash", [{"commitment": "confirmed"}]
        )
        value = result["value"]
        return Hash.from_string(value["blockhash"]), int(value["lastValidBlockHeight"])

    async def send_transaction(self, tx: VersionedTransaction) -> str:
        encoded = base64.b64encode(bytes(tx)).decode("ascii")
        return await self._call(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": False,
                    "preflightCommitment": "confirmed",
                    "maxRetries": 0,
                },
            ],
        )

    async def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        """Status dict for one signature, or None if the cluster hasn't seen it."""
        result = await self._call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        statuses = (result or {}).get("value") or [None]
        return statuses[0]

    async def get_token_accounts_by_owner(
        self, owner: str, program_id: str = TOKEN_PROGRAM_ID
    ) -> List[Dict[str, Any]]:
        result = await self._call(
            "getTokenAccountsByOwner",
            [owner, {"programId": program_id}, {"encoding": "jsonParsed", "commitment": "confirmed"}],
        )
        return (result or {}).get("value", [])

    async def get_token_account_balance(self, address: str) -> Dict[str, Any]:
        """{"amount": str, "decimals": int, ...} for a token account."""
        result = await self._call(
            "getTokenAccountBalance", [address, {"commitment": "confirmed"}]
        )
        return result["value"]

    async def get_token_supply(self, mint: str) -> Dict[str, Any]:
        result = await self._call("getTokenSupply", [mint, {"commitment": "confirmed"}])
        return result["value"]
