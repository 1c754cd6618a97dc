"""
DefiLlama Yields Client
=======================
Fetches the raw pool list from the yields aggregator.
"""

from typing import Any, Dict, List, Optional

import httpx

from lp_rotator.config.settings import Settings
from lp_rotator.shared.system.logging import Logger


class DefiLlamaClient:
    def __init__(self, url: str = None, client: Optional[httpx.AsyncClient] = None):
        self.url = url or Settings.DEFILLAMA_POOLS_URL
        self._client = client or httpx.AsyncClient(timeout=30)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_pools(self) -> List[Dict[str, Any]]:
        """
        Return the aggregator's pool records.

        Any transport failure or a payload without a "data" list yields [],
        which discovery treats as "nothing to do this cycle".
        """
        try:
            resp = await self._client.get(self.url)
        except httpx.HTTPError as e:
            Logger.warning(f"[DISCOVERY] Yield aggregator unreachable: {e}")
            return []

        if resp.status_code != 200:
            Logger.warning(f"[DISCOVERY] Yield aggregator HTTP {resp.status_code}")
            return []

        try:
            body = resp.json()
        except ValueError:
            Logger.warning("[DISCOVERY] Yield aggregator returned invalid JSON")
            return []

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            Logger.warning("[DISCOVERY] Yield aggregator payload has no data list")
            return []
        return data
