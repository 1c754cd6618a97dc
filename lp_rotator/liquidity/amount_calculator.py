"""
Liquidity Amount Calculator
===========================
Pure deposit sizing for constant-product pools. No I/O.

All math is integer, in smallest on-chain units, so amounts match the
integer balances the AMM program checks against.
"""

from lp_rotator.config.settings import Settings
from lp_rotator.liquidity.types import FixedSide, LiquidityAmounts, PoolReserves


def _orient(reserves: PoolReserves, native_mint: str):
    """Return (native_reserve, other_reserve, native_is_base)."""
    if reserves.mint_a == native_mint:
        native_reserve, other_reserve, native_is_base = reserves.reserve_a, reserves.reserve_b, True
    elif reserves.mint_b == native_mint:
        native_reserve, other_reserve, native_is_base = reserves.reserve_b, reserves.reserve_a, False
    else:
        raise ValueError(f"pool {reserves.pool_id} does not contain {native_mint}")

    if native_reserve <= 0 or other_reserve <= 0:
        raise ValueError(f"pool {reserves.pool_id} has an empty reserve")
    return native_reserve, other_reserve, native_is_base


def _pack(
    native_amount: int,
    other_amount: int,
    native_is_base: bool,
    fix_native: bool,
    required: int,
) -> LiquidityAmounts:
    if native_is_base:
        base, quote = native_amount, other_amount
        fixed = FixedSide.BASE if fix_native else FixedSide.QUOTE
    else:
        base, quote = other_amount, native_amount
        fixed = FixedSide.QUOTE if fix_native else FixedSide.BASE
    return LiquidityAmounts(
        base_amount=base, quote_amount=quote, fixed_side=fixed, required_counter=required
    )


def required_counter(other_amount: int, native_reserve: int, other_reserve: int) -> int:
    """Native units matching `other_amount` at the pool's current ratio."""
    return other_amount * native_reserve // other_reserve


def compute_deposit(
    reserves: PoolReserves,
    other_token_balance: int,
    native_balance: int,
    min_native_reserve: int,
    native_mint: str = Settings.WSOL_MINT,
    buffer_pct: int = Settings.COUNTER_BUFFER_PCT,
) -> LiquidityAmounts:
    """
    Fix the non-native side at the full held balance and size the native side.

    The native maximum is the ratio-matched amount plus a buffer for reserve
    drift. It is trimmed to what the wallet can spend above the fee reserve,
    but never below the ratio-matched amount, so the native side always lies
    in [required, required * buffer_pct / 100].
    """
    if other_token_balance <= 0:
        raise ValueError("no non-native balance to deposit")

    native_reserve, other_reserve, native_is_base = _orient(reserves, native_mint)

    required = required_counter(other_token_balance, native_reserve, other_reserve)
    buffered = required * buffer_pct // 100
    spendable = max(0, native_balance - min_native_reserve)
    counter = min(buffered, max(required, spendable))

    return _pack(counter, other_token_balance, native_is_base, fix_native=False, required=required)


def compute_native_fixed_deposit(
    reserves: PoolReserves,
    other_token_balance: int,
    native_balance: int,
    min_native_reserve: int,
    native_mint: str = Settings.WSOL_MINT,
    spend_fraction: float = Settings.DEPOSIT_RETRY_SOL_FRACTION,
    buffer_pct: int = Settings.COUNTER_BUFFER_PCT,
) -> LiquidityAmounts:
    """
    Alternate sizing used after a slippage rejection: fix the native side.

    Spends `spend_fraction` of the native balance above the fee reserve and
    derives the counter amount from reserves. When that exceeds the held
    non-native balance, both sides shrink to what the balance supports.
    """
    native_reserve, other_reserve, native_is_base = _orient(reserves, native_mint)

    spendable = native_balance - min_native_reserve
    if spendable <= 0:
        raise ValueError("native balance at or below reserve")

    # Fraction applied via integer per-mille to stay in integer space
    native_amount = spendable * int(round(spend_fraction * 1000)) // 1000
    other_amount = native_amount * other_reserve // native_reserve

    if other_amount > other_token_balance:
        other_amount = other_token_balance
        native_amount = required_counter(other_amount, native_reserve, other_reserve)

    if native_amount <= 0 or other_amount <= 0:
        raise ValueError("deposit amounts round to zero")

    other_max = min(other_amount * buffer_pct // 100, other_token_balance)
    return _pack(native_amount, other_max, native_is_base, fix_native=True, required=other_amount)


def min_counter_amount(amounts: LiquidityAmounts, slippage_pct: float) -> int:
    """Least the pool may take on the non-fixed side before the deposit aborts."""
    keep_bps = int(round((100.0 - slippage_pct) * 100))
    return max(0, amounts.required_counter * keep_bps // 10_000)
