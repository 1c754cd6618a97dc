"""
LP Rotator - CLI Entrypoint
===========================
    python -m lp_rotator run              # scan every SCAN_INTERVAL_SECONDS
    python -m lp_rotator run --once       # one cycle, then exit
    python -m lp_rotator discover         # print the best eligible pool
    python -m lp_rotator positions        # list LP positions in the wallet
"""

import argparse
import asyncio
import signal
import sys
from dataclasses import dataclass, field
from typing import List

from lp_rotator.config.settings import Settings
from lp_rotator.engine.migration_orchestrator import LiquidityMigrationOrchestrator
from lp_rotator.engine.scheduler import RotationScheduler
from lp_rotator.execution.errors import RotatorError, WalletMismatchError
from lp_rotator.execution.swapper import JupiterSwapper
from lp_rotator.execution.transaction_executor import TransactionExecutor
from lp_rotator.execution.wallet import WalletManager
from lp_rotator.liquidity.pool_discovery import PoolDiscoveryService
from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry
from lp_rotator.liquidity.position_inventory import PositionInventory
from lp_rotator.liquidity.raydium_amm import RaydiumLiquidity
from lp_rotator.shared.infrastructure.defillama_client import DefiLlamaClient
from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient
from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient
from lp_rotator.shared.infrastructure.rpc_client import SolanaRpcClient
from lp_rotator.shared.system.logging import Logger


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lp-rotator",
        description="Rotate Raydium SOL liquidity into the best-paying pool",
    )
    parser.add_argument("--quiet", action="store_true", help="File log only, no console output")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the rotation loop")
    run_parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    run_parser.add_argument(
        "--interval", type=int, default=Settings.SCAN_INTERVAL_SECONDS,
        help=f"Seconds between scans (default: {Settings.SCAN_INTERVAL_SECONDS})",
    )
    run_parser.add_argument(
        "--threshold", type=float, default=Settings.APY_IMPROVEMENT_THRESHOLD,
        help="APY improvement in percentage points that justifies a move",
    )
    run_parser.add_argument(
        "--require-apy-gain", action="store_true",
        help="Do not move on a pool change alone; require the APY threshold too",
    )

    subparsers.add_parser("discover", help="Print the best eligible pool")
    subparsers.add_parser("positions", help="List LP positions held by the wallet")
    return parser


@dataclass
class Clients:
    rpc: SolanaRpcClient = field(default_factory=SolanaRpcClient)
    llama: DefiLlamaClient = field(default_factory=DefiLlamaClient)
    jupiter: JupiterClient = field(default_factory=JupiterClient)
    raydium: RaydiumApiClient = field(default_factory=RaydiumApiClient)

    async def close(self) -> None:
        for client in (self.rpc, self.llama, self.jupiter, self.raydium):
            await client.close()


def build_scheduler(clients: Clients, wallet: WalletManager, args: argparse.Namespace) -> RotationScheduler:
    registry = RaydiumPoolRegistry(clients.raydium, clients.rpc)
    inventory = PositionInventory(registry)
    executor = TransactionExecutor(clients.rpc)
    orchestrator = LiquidityMigrationOrchestrator(
        inventory=inventory,
        registry=registry,
        liquidity=RaydiumLiquidity(registry, executor),
        swapper=JupiterSwapper(clients.jupiter, executor),
    )
    return RotationScheduler(
        discovery=PoolDiscoveryService(clients.llama, registry),
        orchestrator=orchestrator,
        wallet=wallet,
        registry=registry,
        inventory=inventory,
        interval_seconds=args.interval,
        threshold_pct=args.threshold,
        require_apy_gain=args.require_apy_gain,
    )


async def cmd_run(args: argparse.Namespace, clients: Clients) -> int:
    try:
        wallet = WalletManager(clients.rpc)
    except WalletMismatchError as e:
        Logger.critical(f"[WALLET] {e}")
        return 2
    await wallet.check_connectivity()

    scheduler = build_scheduler(clients, wallet, args)
    if args.once:
        report = await scheduler.run_cycle()
        return 1 if report.outcome is not None and not report.outcome.succeeded else 0

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # Windows event loops: Ctrl+C raises KeyboardInterrupt instead
            pass

    await scheduler.run_forever(shutdown)
    return 0


async def cmd_discover(args: argparse.Namespace, clients: Clients) -> int:
    registry = RaydiumPoolRegistry(clients.raydium, clients.rpc)
    candidate = await PoolDiscoveryService(clients.llama, registry).find_best_pool()
    if candidate is None:
        Logger.warning("[DISCOVERY] No eligible pool")
        return 1
    Logger.success(f"[DISCOVERY] {candidate!r}")
    Logger.info(f"[DISCOVERY] pool={candidate.pool_id} mints={candidate.mint_a} / {candidate.mint_b}")
    return 0


async def cmd_positions(args: argparse.Namespace, clients: Clients) -> int:
    wallet = WalletManager(clients.rpc)
    registry = RaydiumPoolRegistry(clients.raydium, clients.rpc)
    positions = await PositionInventory(registry).list_positions(wallet)
    if not positions:
        Logger.info("[INVENTORY] No LP positions")
    return 0


async def main(argv: List[str] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    Logger.set_silent(args.quiet)
    Logger.section("LP Rotator")

    handlers = {
        "run": cmd_run,
        "discover": cmd_discover,
        "positions": cmd_positions,
    }
    clients = Clients()
    try:
        return await handlers[args.command](args, clients)
    except RotatorError as e:
        Logger.critical(f"[SYSTEM] {e}")
        return 1
    finally:
        await clients.close()


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        Logger.info("[SYSTEM] Interrupted")


if __name__ == "__main__":
    run()
