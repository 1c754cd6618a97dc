"""
Liquidity Package
=================
Raydium standard AMM pool discovery, positions and deposit sizing.

Components:
- pool_discovery.py: yield aggregator filtering and best-pool selection
- switch_decision.py: whether a candidate justifies a migration
- position_inventory.py: LP holdings of the wallet
- amount_calculator.py: integer deposit sizing
- pool_registry.py: symbol/mint/LP lookups and live reserves
- raydium_amm.py: AMM v4 add/remove liquidity
"""

from lp_rotator.liquidity.types import (
    FixedSide,
    LiquidityAmounts,
    MigrationPlan,
    PoolCandidate,
    PoolReserves,
    Position,
    TokenHolding,
)
from lp_rotator.liquidity.amount_calculator import compute_deposit, compute_native_fixed_deposit
from lp_rotator.liquidity.switch_decision import should_switch

__all__ = [
    # Types
    "FixedSide",
    "LiquidityAmounts",
    "MigrationPlan",
    "PoolCandidate",
    "PoolReserves",
    "Position",
    "TokenHolding",
    # Pure logic
    "compute_deposit",
    "compute_native_fixed_deposit",
    "should_switch",
]
