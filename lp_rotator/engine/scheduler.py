"""
Rotation Scheduler
==================
Owns EngineState and runs one scan -> decide -> migrate cycle per tick.

A cycle always runs to completion; shutdown is only observed between
cycles so no transaction is left half-submitted.
"""

import asyncio
import random
from typing import Callable, Optional

from lp_rotator.config.settings import Settings
from lp_rotator.engine.migration_orchestrator import LiquidityMigrationOrchestrator
from lp_rotator.engine.types import CycleReport, EngineState, MigrationOutcome
from lp_rotator.execution.wallet import WalletManager
from lp_rotator.liquidity.pool_discovery import PoolDiscoveryService
from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry
from lp_rotator.liquidity.position_inventory import PositionInventory
from lp_rotator.liquidity.switch_decision import should_switch
from lp_rotator.liquidity.types import PoolCandidate
from lp_rotator.shared.system.logging import Logger


class RotationScheduler:
    def __init__(
        self,
        discovery: PoolDiscoveryService,
        orchestrator: LiquidityMigrationOrchestrator,
        wallet: WalletManager,
        registry: Optional[RaydiumPoolRegistry] = None,
        inventory: Optional[PositionInventory] = None,
        interval_seconds: float = Settings.SCAN_INTERVAL_SECONDS,
        jitter_seconds: float = Settings.SCAN_JITTER_SECONDS,
        threshold_pct: float = Settings.APY_IMPROVEMENT_THRESHOLD,
        require_apy_gain: bool = False,
        state: Optional[EngineState] = None,
        rng: Callable[[float, float], float] = random.uniform,
    ):
        self.discovery = discovery
        self.orchestrator = orchestrator
        self.wallet = wallet
        self.registry = registry
        self.inventory = inventory
        self.interval_seconds = interval_seconds
        self.jitter_seconds = jitter_seconds
        self.threshold_pct = threshold_pct
        self.require_apy_gain = require_apy_gain
        self.state = state or EngineState()
        self.last_report: Optional[CycleReport] = None
        self.cycles = 0
        self._rng = rng

    # ═══════════════════════════════════════════════════════════════════════════
    # ONE CYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    async def run_cycle(self) -> CycleReport:
        self.cycles += 1
        report = CycleReport()
        self.last_report = report
        Logger.info(
            f"[SCHEDULER] Cycle {self.cycles}: holding "
            f"{self.state.current_pool_id or 'nothing'} @ {self.state.current_apy:.2f}%"
        )

        try:
            candidate = await self.discovery.find_best_pool()
        except Exception as e:
            Logger.error(f"[SCHEDULER] Discovery failed: {e}")
            report.error = str(e)
            return report

        report.candidate = candidate
        if candidate is None:
            Logger.info("[SCHEDULER] No eligible pool this cycle")
            return report

        if await self._adopt_existing(candidate, report):
            return report

        if not should_switch(
            self.state.current_pool_id,
            candidate.pool_id,
            self.state.current_apy,
            candidate.apy,
            self.threshold_pct,
            self.require_apy_gain,
        ):
            Logger.info(f"[SCHEDULER] Staying put; {candidate.symbol} at {candidate.apy:.2f}% is not worth a move")
            return report

        report.switched = True
        outcome = await self.orchestrator.migrate(candidate, self.wallet)
        report.outcome = outcome
        self._apply(outcome)
        return report

    def _apply(self, outcome: MigrationOutcome) -> None:
        if outcome.succeeded and outcome.new_state is not None:
            self.state = outcome.new_state
            Logger.success(
                f"[SCHEDULER] State -> {self.state.current_pool_id} @ {self.state.current_apy:.2f}%"
            )
            return

        step = outcome.failed_step.value if outcome.failed_step else "?"
        Logger.warning(f"[SCHEDULER] Migration failed at {step}: {outcome.reason}")
        self.reset_cache()

    async def _adopt_existing(self, candidate: PoolCandidate, report: CycleReport) -> bool:
        """
        After a restart the state is empty. If the wallet's only LP position
        is already in the candidate pool, take that as the current state
        instead of migrating into the pool we are already in.
        """
        if self.state.current_pool_id or self.inventory is None:
            return False
        try:
            positions = await self.inventory.list_positions(self.wallet)
        except Exception as e:
            Logger.debug(f"[SCHEDULER] Startup inventory check failed: {e}")
            return False

        pools = {p.pool_id for p in positions}
        if pools != {candidate.pool_id}:
            return False

        self.state = EngineState(current_pool_id=candidate.pool_id, current_apy=candidate.apy)
        report.notes.append("adopted existing position")
        Logger.info(f"[SCHEDULER] Already in {candidate.symbol}, adopting it as current pool")
        return True

    def reset_cache(self) -> None:
        """Drop cached registry data so the next cycle starts from fresh reads."""
        if self.registry is not None:
            self.registry.clear_cache()
        self.last_report = None

    # ═══════════════════════════════════════════════════════════════════════════
    # LOOP
    # ═══════════════════════════════════════════════════════════════════════════

    def next_wait(self) -> float:
        return max(0.0, self.interval_seconds + self._rng(0.0, self.jitter_seconds))

    async def run_forever(self, shutdown: Optional[asyncio.Event] = None, max_cycles: Optional[int] = None) -> None:
        shutdown = shutdown or asyncio.Event()
        Logger.info(
            f"[SCHEDULER] Started (interval {self.interval_seconds:.0f}s + up to {self.jitter_seconds:.0f}s jitter)"
        )

        while not shutdown.is_set():
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                Logger.info("[SCHEDULER] Cancellation received")
                raise
            except Exception as e:
                Logger.error(f"[SCHEDULER] Cycle crashed: {e}")
                self.reset_cache()

            if max_cycles is not None and self.cycles >= max_cycles:
                break

            wait = self.next_wait()
            Logger.info(f"[SCHEDULER] Next scan in {wait / 60:.1f} min")
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=wait)
            except asyncio.TimeoutError:
                pass

        Logger.info("[SCHEDULER] Stopped")
