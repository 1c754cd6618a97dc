"""
Raydium Pool Registry
=====================
Resolves symbols, mint pairs and LP mints to Raydium standard AMM pools,
and reads live pool reserves from the vault accounts.

LP-mint lookups are cached for LP_REGISTRY_TTL_S; clear_cache() drops
everything so a failed migration starts the next cycle from fresh data.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from lp_rotator.config.settings import Settings
from lp_rotator.liquidity.types import PoolReserves, WithdrawEstimate
from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient
from lp_rotator.shared.infrastructure.rpc_client import SolanaRpcClient
from lp_rotator.shared.system.logging import Logger


LP_LOOKUP_CHUNK = 50


class RaydiumPoolRegistry:
    def __init__(
        self,
        api: RaydiumApiClient,
        rpc: SolanaRpcClient,
        ttl_seconds: float = Settings.LP_REGISTRY_TTL_S,
        native_mint: str = Settings.WSOL_MINT,
        program_id: str = Settings.RAYDIUM_AMM_V4_PROGRAM,
        clock: Callable[[], float] = time.time,
    ):
        self.api = api
        self.rpc = rpc
        self.ttl_seconds = ttl_seconds
        self.native_mint = native_mint
        self.program_id = program_id
        self._clock = clock

        # lp_mint -> (fetched_at, pool_info or None for "not an LP mint")
        self._lp_cache: Dict[str, Tuple[float, Optional[Dict[str, Any]]]] = {}
        self._keys_cache: Dict[str, Dict[str, Any]] = {}
        self._symbol_index: Optional[Dict[str, str]] = None

    def clear_cache(self) -> None:
        self._lp_cache.clear()
        self._keys_cache.clear()
        self._symbol_index = None
        Logger.debug("[RAYDIUM] Registry cache cleared")

    # ═══════════════════════════════════════════════════════════════════
    # POOL LOOKUP
    # ═══════════════════════════════════════════════════════════════════

    def _is_amm_v4(self, pool: Dict[str, Any]) -> bool:
        program = pool.get("programId")
        return program is None or program == self.program_id

    async def find_pool_by_mints(self, mint_a: str, mint_b: str) -> Optional[Dict[str, Any]]:
        """Deepest standard AMM v4 pool for the pair, either orientation."""
        pools = await self.api.get_pools_by_mints(mint_a, mint_b)
        for pool in pools:
            if not self._is_amm_v4(pool):
                continue
            mints = {pool_mint(pool, "A"), pool_mint(pool, "B")}
            if mints == {mint_a, mint_b}:
                return pool
        return None

    def pool_contains_native(self, pool: Dict[str, Any]) -> bool:
        """One side must be the native mint by address."""
        return self.native_mint in (pool_mint(pool, "A"), pool_mint(pool, "B"))

    async def get_mints_for_symbol(self, symbol: str) -> Optional[Tuple[str, str]]:
        """
        "RAY-WSOL" -> (RAY mint, WSOL mint) using the Raydium token list.

        Returns None unless the symbol has exactly two parts and both resolve.
        """
        parts = [p.strip().upper() for p in symbol.split("-") if p.strip()]
        if len(parts) != 2:
            return None

        index = await self._get_symbol_index()
        mints = []
        for part in parts:
            if part in Settings.NATIVE_SYMBOLS:
                mints.append(self.native_mint)
                continue
            mint = index.get(part)
            if not mint:
                Logger.debug(f"[RAYDIUM] No mint for symbol {part}")
                return None
            mints.append(mint)
        return mints[0], mints[1]

    async def _get_symbol_index(self) -> Dict[str, str]:
        if self._symbol_index is None:
            index: Dict[str, str] = {}
            for token in await self.api.get_token_list():
                sym = str(token.get("symbol", "")).upper()
                # First listing wins; the list is ordered by Raydium's own ranking
                if sym and sym not in index:
                    index[sym] = token.get("address")
            self._symbol_index = index
        return self._symbol_index

    # ═══════════════════════════════════════════════════════════════════
    # LP MINT REGISTRY
    # ═══════════════════════════════════════════════════════════════════

    async def lookup_lp_mints(self, mints: List[str]) -> Dict[str, Dict[str, Any]]:
        """Map each mint that is a standard-pool LP mint to its pool info."""
        now = self._clock()
        stale = [
            m for m in dict.fromkeys(mints)
            if m not in self._lp_cache or now - self._lp_cache[m][0] > self.ttl_seconds
        ]

        for i in range(0, len(stale), LP_LOOKUP_CHUNK):
            chunk = stale[i:i + LP_LOOKUP_CHUNK]
            found = {}
            for pool in await self.api.get_pools_by_lp_mints(chunk):
                lp = (pool.get("lpMint") or {}).get("address")
                if lp and self._is_amm_v4(pool):
                    found[lp] = pool
            for mint in chunk:
                self._lp_cache[mint] = (now, found.get(mint))

        return {m: self._lp_cache[m][1] for m in mints if self._lp_cache.get(m, (0, None))[1]}

    # ═══════════════════════════════════════════════════════════════════
    # KEYS / RESERVES
    # ═══════════════════════════════════════════════════════════════════

    async def get_pool_keys(self, pool_id: str) -> Dict[str, Any]:
        if pool_id not in self._keys_cache:
            keys = await self.api.get_pool_keys(pool_id)
            if not keys:
                raise ValueError(f"no pool keys for {pool_id}")
            self._keys_cache[pool_id] = keys
        return self._keys_cache[pool_id]

    async def get_reserves(self, pool_id: str) -> PoolReserves:
        """Live vault balances plus LP supply, all in smallest units."""
        keys = await self.get_pool_keys(pool_id)
        vault = keys["vault"]
        bal_a = await self.rpc.get_token_account_balance(vault["A"])
        bal_b = await self.rpc.get_token_account_balance(vault["B"])
        lp_mint = keys["mintLp"]["address"]
        supply = await self.rpc.get_token_supply(lp_mint)

        return PoolReserves(
            pool_id=pool_id,
            mint_a=keys["mintA"]["address"],
            mint_b=keys["mintB"]["address"],
            reserve_a=int(bal_a["amount"]),
            reserve_b=int(bal_b["amount"]),
            decimals_a=int(bal_a.get("decimals", keys["mintA"].get("decimals", 9))),
            decimals_b=int(bal_b.get("decimals", keys["mintB"].get("decimals", 9))),
            lp_mint=lp_mint,
            lp_supply=int(supply["amount"]),
        )


def pool_mint(pool: Dict[str, Any], side: str) -> str:
    return (pool.get(f"mint{side}") or {}).get("address", "")


def estimate_withdraw(reserves: PoolReserves, lp_amount: int) -> WithdrawEstimate:
    """Pro-rata share of both vaults for burning lp_amount."""
    if reserves.lp_supply <= 0:
        return WithdrawEstimate(0, 0)
    return WithdrawEstimate(
        amount_a=lp_amount * reserves.reserve_a // reserves.lp_supply,
        amount_b=lp_amount * reserves.reserve_b // reserves.lp_supply,
    )
