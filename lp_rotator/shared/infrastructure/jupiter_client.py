"""
Jupiter Aggregator Client
=========================
Quote + swap-transaction endpoints of the Jupiter v6 API.
"""

import base64
from typing import Any, Dict, Optional

import httpx
from solders.transaction import VersionedTransaction

from lp_rotator.config.settings import Settings
from lp_rotator.execution.errors import SwapError


class JupiterClient:
    def __init__(
        self,
        quote_url: str = None,
        swap_url: str = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.quote_url = quote_url or Settings.JUPITER_QUOTE_URL
        self.swap_url = swap_url or Settings.JUPITER_SWAP_URL
        self._client = client or httpx.AsyncClient(timeout=30)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
    ) -> Dict[str, Any]:
        """Best route for `amount` smallest units of input_mint."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": slippage_bps,
        }
        try:
            resp = await self._client.get(self.quote_url, params=params)
        except httpx.HTTPError as e:
            raise SwapError(f"quote request failed: {e}") from e

        if resp.status_code != 200:
            raise SwapError(f"quote failed: HTTP {resp.status_code} {resp.text[:200]}")

        try:
            quote = resp.json()
        except ValueError as e:
            raise SwapError("quote response is not JSON") from e
        if not isinstance(quote, dict) or "outAmount" not in quote:
            raise SwapError(f"no route {input_mint[:8]} -> {output_mint[:8]}")
        return quote

    async def get_swap_transaction(
        self, quote: Dict[str, Any], user_public_key: str
    ) -> VersionedTransaction:
        """Unsigned swap transaction for a previously fetched quote."""
        payload = {
            "quoteResponse": quote,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
            "prioritizationFeeLamports": "auto",
        }
        try:
            resp = await self._client.post(self.swap_url, json=payload)
        except httpx.HTTPError as e:
            raise SwapError(f"swap request failed: {e}") from e

        if resp.status_code != 200:
            raise SwapError(f"swap API error: HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise SwapError("swap response is not JSON") from e
        swap_tx = body.get("swapTransaction") if isinstance(body, dict) else None
        if not swap_tx:
            raise SwapError("no swap transaction returned")
        return VersionedTransaction.from_bytes(base64.b64decode(swap_tx))
