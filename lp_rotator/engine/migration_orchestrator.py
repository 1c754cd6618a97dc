"""
Liquidity Migration Orchestrator
================================
Moves the wallet's liquidity into a new pool:

    Inventory -> Withdraw* -> Consolidate* -> Rebalance -> Deposit

Withdraw and Consolidate are best effort per position / per token.
Rebalance and Deposit are all-or-nothing for the migration. Nothing here
touches EngineState; the caller applies the returned MigrationOutcome.
"""

import asyncio
import random
from typing import Awaitable, Callable, List, Optional

from lp_rotator.config.settings import Settings
from lp_rotator.engine.types import EngineState, MigrationOutcome, MigrationStep
from lp_rotator.execution.errors import TransactionError
from lp_rotator.execution.swapper import JupiterSwapper
from lp_rotator.execution.wallet import LAMPORTS_PER_SOL, WalletManager
from lp_rotator.liquidity.amount_calculator import compute_deposit, compute_native_fixed_deposit
from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry
from lp_rotator.liquidity.position_inventory import PositionInventory
from lp_rotator.liquidity.raydium_amm import RaydiumLiquidity
from lp_rotator.liquidity.types import LiquidityAmounts, MigrationPlan, PoolCandidate
from lp_rotator.shared.system.logging import Logger


async def random_step_delay(
    low: float = Settings.STEP_DELAY_MIN_S, high: float = Settings.STEP_DELAY_MAX_S
) -> None:
    await asyncio.sleep(random.uniform(low, high))


def _sol(lamports: int) -> str:
    return f"{lamports / LAMPORTS_PER_SOL:.4f} SOL"


class LiquidityMigrationOrchestrator:
    def __init__(
        self,
        inventory: PositionInventory,
        registry: RaydiumPoolRegistry,
        liquidity: RaydiumLiquidity,
        swapper: JupiterSwapper,
        native_mint: str = Settings.WSOL_MINT,
        min_sol_reserve: float = Settings.MIN_SOL_RESERVE,
        withdraw_slippage_pct: float = Settings.WITHDRAW_SLIPPAGE_PCT,
        deposit_slippage_pct: float = Settings.DEPOSIT_SLIPPAGE_PCT,
        deposit_retry_slippage_pct: float = Settings.DEPOSIT_RETRY_SLIPPAGE_PCT,
        step_delay: Callable[[], Awaitable[None]] = random_step_delay,
    ):
        self.inventory = inventory
        self.registry = registry
        self.liquidity = liquidity
        self.swapper = swapper
        self.native_mint = native_mint
        self.min_reserve_lamports = int(round(min_sol_reserve * LAMPORTS_PER_SOL))
        self.withdraw_slippage_pct = withdraw_slippage_pct
        self.deposit_slippage_pct = deposit_slippage_pct
        self.deposit_retry_slippage_pct = deposit_retry_slippage_pct
        self._step_delay = step_delay

    async def migrate(self, candidate: PoolCandidate, wallet: WalletManager) -> MigrationOutcome:
        Logger.section(f"Migration -> {candidate.symbol}")
        signatures: List[str] = []

        # --- Inventory ---
        try:
            positions = await self.inventory.list_positions(wallet)
        except Exception as e:
            Logger.error(f"[ROTATOR] Inventory failed: {e}")
            return MigrationOutcome.failure(MigrationStep.INVENTORY, str(e))

        plan = MigrationPlan(
            candidate=candidate,
            positions_to_remove=[p for p in positions if p.raw_balance > 0],
            other_token_mint=candidate.other_mint(self.native_mint),
            base_mint=self.native_mint,
        )

        if plan.has_positions:
            await self._withdraw_all(plan, wallet, signatures)
            await self._consolidate(plan, wallet, signatures)
        else:
            Logger.info("[ROTATOR] No existing positions, skipping withdraw/consolidate")

        # --- Rebalance ---
        reason = await self._rebalance(plan, wallet, signatures)
        if reason:
            return MigrationOutcome.failure(MigrationStep.REBALANCE, reason, tuple(signatures))

        # --- Deposit ---
        reason = await self._deposit(plan, wallet, signatures)
        if reason:
            return MigrationOutcome.failure(MigrationStep.DEPOSIT, reason, tuple(signatures))

        Logger.success(f"[ROTATOR] Now providing liquidity to {candidate.symbol} ({candidate.apy:.2f}% APY)")
        return MigrationOutcome(
            succeeded=True,
            new_state=EngineState(current_pool_id=candidate.pool_id, current_apy=candidate.apy),
            signatures=tuple(signatures),
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # STEPS
    # ═══════════════════════════════════════════════════════════════════════════

    async def _withdraw_all(self, plan: MigrationPlan, wallet, signatures: List[str]) -> None:
        for i, position in enumerate(plan.positions_to_remove):
            if i:
                await self._step_delay()
            try:
                receipt = await self.liquidity.remove_liquidity(wallet, position, self.withdraw_slippage_pct)
                signatures.append(receipt.signature)
                Logger.success(f"[ROTATOR] Withdrew {position.ui_balance:.6f} LP from {position.pool_id[:8]}...")
            except Exception as e:
                Logger.error(f"[ROTATOR] Withdraw from {position.pool_id[:8]}... failed, continuing: {e}")
        await self._step_delay()

    async def _consolidate(self, plan: MigrationPlan, wallet, signatures: List[str]) -> None:
        try:
            holdings = await wallet.get_token_holdings()
        except Exception as e:
            Logger.error(f"[ROTATOR] Could not list token holdings, skipping consolidate: {e}")
            return

        lp_mints = {p.lp_mint for p in plan.positions_to_remove}
        to_swap = [
            h for h in holdings
            if h.raw_amount > 0 and h.mint != self.native_mint and h.mint not in lp_mints
        ]
        Logger.info(f"[ROTATOR] Consolidating {len(to_swap)} token(s) into SOL")

        for holding in to_swap:
            try:
                sol_before = await wallet.get_sol_balance()
                result = await self.swapper.swap(
                    wallet, holding.mint, self.native_mint, holding.raw_amount,
                    label=f"consolidate {holding.mint[:6]}",
                )
                signatures.append(result.signature)
                sol_after = await wallet.get_sol_balance()
                Logger.info(f"[ROTATOR] SOL {_sol(sol_before)} -> {_sol(sol_after)}")
            except Exception as e:
                Logger.error(f"[ROTATOR] Swap of {holding.mint[:8]}... failed, skipping: {e}")
            await self._step_delay()

    async def _rebalance(self, plan: MigrationPlan, wallet, signatures: List[str]) -> Optional[str]:
        """Swap half the spendable SOL into the pool's other token. Returns a failure reason."""
        try:
            sol = await wallet.get_sol_balance()
        except Exception as e:
            Logger.error(f"[ROTATOR] SOL balance unavailable: {e}")
            return str(e)

        if sol <= self.min_reserve_lamports:
            reason = f"SOL balance {_sol(sol)} at or below reserve {_sol(self.min_reserve_lamports)}"
            Logger.error(f"[ROTATOR] Aborting migration: {reason}")
            return reason

        amount = (sol - self.min_reserve_lamports) // 2
        Logger.info(f"[ROTATOR] Rebalance: swapping {_sol(amount)} of {_sol(sol)} to {plan.other_token_mint[:8]}...")
        try:
            result = await self.swapper.swap(
                wallet, self.native_mint, plan.other_token_mint, amount, label="rebalance"
            )
            signatures.append(result.signature)
        except Exception as e:
            Logger.error(f"[ROTATOR] Rebalance swap failed: {e}")
            return str(e)

        await self._step_delay()
        return None

    async def _deposit(self, plan: MigrationPlan, wallet, signatures: List[str]) -> Optional[str]:
        pool_id = plan.candidate.pool_id
        try:
            amounts = await self._size_deposit(plan, wallet, native_fixed=False)
            receipt = await self.liquidity.add_liquidity(wallet, pool_id, amounts, self.deposit_slippage_pct)
        except TransactionError as e:
            if not e.is_slippage:
                Logger.error(f"[ROTATOR] Deposit failed: {e}")
                return str(e)
            Logger.warning(f"[ROTATOR] Deposit exceeded slippage, retrying with SOL side fixed: {e}")
            receipt = None
        except Exception as e:
            Logger.error(f"[ROTATOR] Deposit failed: {e}")
            return str(e)

        if receipt is None:
            await self._step_delay()
            try:
                amounts = await self._size_deposit(plan, wallet, native_fixed=True)
                receipt = await self.liquidity.add_liquidity(
                    wallet, pool_id, amounts, self.deposit_retry_slippage_pct
                )
            except Exception as e:
                Logger.error(f"[ROTATOR] Alternate deposit failed, giving up this cycle: {e}")
                return str(e)

        signatures.append(receipt.signature)
        await self._log_lp_balance(plan, wallet)
        return None

    async def _size_deposit(self, plan: MigrationPlan, wallet, native_fixed: bool) -> LiquidityAmounts:
        reserves = await self.registry.get_reserves(plan.candidate.pool_id)
        other_balance = await wallet.get_token_balance(plan.other_token_mint)
        sol = await wallet.get_sol_balance()
        Logger.info(
            f"[ROTATOR] Balances: {_sol(sol)}, other={other_balance} | "
            f"reserves A={reserves.reserve_a} B={reserves.reserve_b}"
        )
        calc = compute_native_fixed_deposit if native_fixed else compute_deposit
        return calc(
            reserves, other_balance, sol, self.min_reserve_lamports, native_mint=self.native_mint
        )

    async def _log_lp_balance(self, plan: MigrationPlan, wallet) -> None:
        try:
            reserves = await self.registry.get_reserves(plan.candidate.pool_id)
            lp = await wallet.get_token_balance(reserves.lp_mint)
            Logger.info(f"[ROTATOR] LP balance in {plan.candidate.symbol}: {lp}")
        except Exception as e:
            Logger.debug(f"[ROTATOR] LP balance check failed: {e}")
