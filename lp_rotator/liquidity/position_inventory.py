"""
Position Inventory
==================
Lists the wallet's Raydium LP holdings with a non-zero balance.
"""

from typing import List

from lp_rotator.execution.wallet import WalletManager
from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry
from lp_rotator.liquidity.types import Position
from lp_rotator.shared.system.logging import Logger


class PositionInventory:
    def __init__(self, registry: RaydiumPoolRegistry):
        self.registry = registry

    async def list_positions(self, wallet: WalletManager) -> List[Position]:
        """
        Snapshot of LP positions. Balances may be stale by the time a
        removal lands; callers treat removal failures as non-fatal.
        """
        holdings = [h for h in await wallet.get_token_holdings() if h.raw_amount > 0]
        if not holdings:
            return []

        pools = await self.registry.lookup_lp_mints([h.mint for h in holdings])

        positions = []
        for holding in holdings:
            pool = pools.get(holding.mint)
            if not pool:
                continue
            positions.append(
                Position(
                    pool_id=pool["id"],
                    lp_mint=holding.mint,
                    raw_balance=holding.raw_amount,
                    decimals=holding.decimals,
                )
            )

        Logger.info(f"[INVENTORY] {len(positions)} LP position(s) across {len(holdings)} token account(s)")
        for pos in positions:
            Logger.info(f"[INVENTORY]   {pos.pool_id[:8]}... {pos.ui_balance:.6f} LP")
        return positions
