"""
Pool Discovery
==============
Picks the single best SOL-paired Raydium standard pool from the yield
aggregator, then resolves it to an on-chain pool id through the registry.

Eligibility:
    project == TARGET_PROJECT, chain == TARGET_CHAIN
    symbol contains SOL or WSOL as a token
    tvlUsd >= MIN_TVL_USD, volumeUsd7d >= MIN_VOLUME_7D_USD
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from lp_rotator.config.settings import Settings
from lp_rotator.execution.errors import RotatorError
from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry, pool_mint
from lp_rotator.liquidity.types import PoolCandidate
from lp_rotator.shared.infrastructure.defillama_client import DefiLlamaClient
from lp_rotator.shared.system.logging import Logger


NATIVE_SYMBOL_RE = re.compile(r"\b(?:SOL|WSOL)\b", re.IGNORECASE)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def is_eligible(
    pool: Dict[str, Any],
    project: str = Settings.TARGET_PROJECT,
    chain: str = Settings.TARGET_CHAIN,
    min_tvl_usd: float = Settings.MIN_TVL_USD,
    min_volume_7d_usd: float = Settings.MIN_VOLUME_7D_USD,
) -> bool:
    if not isinstance(pool, dict):
        return False
    if pool.get("project") != project:
        return False
    if chain and pool.get("chain") not in (None, chain):
        return False
    if not NATIVE_SYMBOL_RE.search(str(pool.get("symbol") or "")):
        return False

    tvl = _number(pool.get("tvlUsd"))
    volume = _number(pool.get("volumeUsd7d"))
    apy = _number(pool.get("apy"))
    if tvl is None or volume is None or apy is None:
        return False
    return tvl >= min_tvl_usd and volume >= min_volume_7d_usd


def filter_eligible_pools(pools: List[Dict[str, Any]], **criteria) -> List[Dict[str, Any]]:
    return [p for p in pools if is_eligible(p, **criteria)]


def select_best_pool(pools: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Highest APY; on a tie the earlier record wins."""
    best = None
    for pool in pools:
        if best is None or pool["apy"] > best["apy"]:
            best = pool
    return best


class PoolDiscoveryService:
    """
    Queries the yield aggregator each cycle and returns one PoolCandidate.

    Returns None (never raises) when the aggregator is down, nothing is
    eligible, or the winner cannot be matched to a SOL-paired AMM pool.
    """

    def __init__(
        self,
        aggregator: DefiLlamaClient,
        registry: RaydiumPoolRegistry,
        project: str = Settings.TARGET_PROJECT,
        chain: str = Settings.TARGET_CHAIN,
        min_tvl_usd: float = Settings.MIN_TVL_USD,
        min_volume_7d_usd: float = Settings.MIN_VOLUME_7D_USD,
    ):
        self.aggregator = aggregator
        self.registry = registry
        self.criteria = {
            "project": project,
            "chain": chain,
            "min_tvl_usd": min_tvl_usd,
            "min_volume_7d_usd": min_volume_7d_usd,
        }

    async def find_best_pool(self) -> Optional[PoolCandidate]:
        pools = await self.aggregator.fetch_pools()
        if not pools:
            Logger.warning("[DISCOVERY] No pool data this cycle")
            return None

        eligible = filter_eligible_pools(pools, **self.criteria)
        Logger.info(f"[DISCOVERY] {len(eligible)}/{len(pools)} pools pass filters")
        best = select_best_pool(eligible)
        if best is None:
            return None

        Logger.info(
            f"[DISCOVERY] Top pool {best['symbol']} APY={best['apy']:.2f}% "
            f"TVL=${best['tvlUsd'] / 1e6:.1f}M"
        )

        try:
            pool = await self._resolve_pool(best)
        except RotatorError as e:
            Logger.warning(f"[DISCOVERY] Pool resolution failed for {best['symbol']}: {e}")
            return None

        if pool is None:
            Logger.warning(f"[DISCOVERY] No Raydium AMM pool for {best['symbol']}")
            return None
        if not self.registry.pool_contains_native(pool):
            Logger.warning(f"[DISCOVERY] Pool {pool.get('id')} does not hold SOL, skipping")
            return None

        return PoolCandidate(
            pool_id=pool["id"],
            symbol=best["symbol"],
            apy=float(best["apy"]),
            tvl_usd=float(best["tvlUsd"]),
            volume_7d_usd=float(best["volumeUsd7d"]),
            mint_a=pool_mint(pool, "A"),
            mint_b=pool_mint(pool, "B"),
        )

    async def _resolve_pool(self, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        mints = self._underlying_mints(record)
        if mints is None:
            mints = await self.registry.get_mints_for_symbol(record["symbol"])
        if mints is None:
            return None
        return await self.registry.find_pool_by_mints(*mints)

    @staticmethod
    def _underlying_mints(record: Dict[str, Any]) -> Optional[Tuple[str, str]]:
        tokens = record.get("underlyingTokens")
        if isinstance(tokens, list) and len(tokens) == 2 and all(tokens):
            return tokens[0], tokens[1]
        return None
