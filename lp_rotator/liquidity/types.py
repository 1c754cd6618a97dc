"""
Liquidity Types
===============
Value objects passed between discovery, inventory and the migration steps.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class FixedSide(Enum):
    """Which side of an AMM v4 deposit is exact; the other side is a maximum."""

    BASE = 0   # pool mint A ("coin")
    QUOTE = 1  # pool mint B ("pc")


@dataclass(frozen=True)
class PoolCandidate:
    """
    Best eligible pool from one discovery pass.

    Immutable and discarded after one switch decision.
    """
    pool_id: str                    # AMM pool address
    symbol: str                     # Aggregator symbol, e.g. "RAY-WSOL"
    apy: float                      # Percent, e.g. 40.0
    tvl_usd: float
    volume_7d_usd: float
    mint_a: str                     # Pool base mint
    mint_b: str                     # Pool quote mint

    def other_mint(self, native_mint: str) -> str:
        """The non-native mint of the pair."""
        return self.mint_b if self.mint_a == native_mint else self.mint_a

    def __repr__(self):
        return (
            f"<PoolCandidate {self.symbol} {self.pool_id[:8]}... "
            f"APY={self.apy:.2f}% TVL=${self.tvl_usd / 1e6:.1f}M>"
        )


@dataclass(frozen=True)
class Position:
    """A wallet's LP stake in one pool, read fresh from chain."""
    pool_id: str
    lp_mint: str
    raw_balance: int                # LP tokens in smallest units
    decimals: int

    @property
    def ui_balance(self) -> float:
        return self.raw_balance / (10 ** self.decimals)

    def __repr__(self):
        return f"<Position pool={self.pool_id[:8]}... lp={self.ui_balance:.6f}>"


@dataclass(frozen=True)
class TokenHolding:
    """One SPL token account balance owned by the wallet."""
    mint: str
    account: str
    raw_amount: int
    decimals: int


@dataclass(frozen=True)
class PoolReserves:
    """Vault balances of a pool in smallest units."""
    pool_id: str
    mint_a: str
    mint_b: str
    reserve_a: int
    reserve_b: int
    decimals_a: int = 9
    decimals_b: int = 9
    lp_mint: str = ""
    lp_supply: int = 0


@dataclass(frozen=True)
class LiquidityAmounts:
    """
    Deposit amounts in pool orientation (base = mint A, quote = mint B).

    The fixed side is deposited exactly; the other side is the most the pool
    may take.
    """
    base_amount: int
    quote_amount: int
    fixed_side: FixedSide
    required_counter: int = 0      # ratio-matched counter amount, before buffer

    @property
    def fixed_amount(self) -> int:
        return self.base_amount if self.fixed_side == FixedSide.BASE else self.quote_amount

    @property
    def counter_amount(self) -> int:
        return self.quote_amount if self.fixed_side == FixedSide.BASE else self.base_amount


@dataclass(frozen=True)
class WithdrawEstimate:
    """Expected token amounts for burning an LP balance."""
    amount_a: int
    amount_b: int


@dataclass
class MigrationPlan:
    """What one migration will touch; built after inventory."""
    candidate: PoolCandidate
    positions_to_remove: List[Position] = field(default_factory=list)
    other_token_mint: str = ""
    base_mint: str = ""

    @property
    def has_positions(self) -> bool:
        return bool(self.positions_to_remove)
