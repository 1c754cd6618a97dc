"""
Raydium API v3 Client
=====================
Read-only access to pool metadata, pool account keys and the token list.
"""

from typing import Any, Dict, List, Optional

import httpx

from lp_rotator.config.settings import Settings
from lp_rotator.execution.errors import RpcError


class RaydiumApiClient:
    def __init__(self, base_url: str = None, client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or Settings.RAYDIUM_API_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=30)

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: Dict[str, Any] = None) -> Any:
        try:
            resp = await self._client.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as e:
            raise RpcError(f"raydium {path}: {e}") from e

        if resp.status_code != 200:
            raise RpcError(f"raydium {path}: HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise RpcError(f"raydium {path}: invalid JSON") from e
        if not isinstance(body, dict):
            raise RpcError(f"raydium {path}: unexpected payload")
        if not body.get("success", True):
            raise RpcError(f"raydium {path}: {body.get('msg', 'request failed')}")
        return body.get("data")

    async def get_pools_by_mints(self, mint_a: str, mint_b: str) -> List[Dict[str, Any]]:
        """Standard pools holding both mints, deepest liquidity first."""
        data = await self._get(
            "/pools/info/mint",
            {
                "mint1": mint_a,
                "mint2": mint_b,
                "poolType": "standard",
                "poolSortField": "liquidity",
                "sortType": "desc",
                "pageSize": 100,
                "page": 1,
            },
        )
        return _list(data, "data")

    async def get_pools_by_lp_mints(self, lp_mints: List[str]) -> List[Dict[str, Any]]:
        data = await self._get("/pools/info/lps", {"lps": ",".join(lp_mints)})
        return _list(data)

    async def get_pool_keys(self, pool_id: str) -> Optional[Dict[str, Any]]:
        """Account keys needed to build AMM v4 instructions."""
        data = await self._get("/pools/key/ids", {"ids": pool_id})
        pools = _list(data)
        return pools[0] if pools else None

    async def get_token_list(self) -> List[Dict[str, Any]]:
        data = await self._get("/mint/list")
        return _list(data, "mintList")


def _list(data: Any, key: str = None) -> List[Dict[str, Any]]:
    """Non-empty dict entries of a list payload, optionally nested under `key`."""
    if key is not None:
        data = data.get(key) if isinstance(data, dict) else None
    if data is None:
        return []
    if not isinstance(data, list):
        raise RpcError(f"raydium: expected a list, got {type(data).__name__}")
    return [item for item in data if isinstance(item, dict) and item]
