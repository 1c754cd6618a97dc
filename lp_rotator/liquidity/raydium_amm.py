"""
Raydium AMM v4 Liquidity
========================
Instruction building (pure) and the add/remove liquidity operations.

Instruction layouts (AMM v4 program):
    deposit   (3): u8 tag, u64 max_coin, u64 max_pc, u64 base_side[, u64 other_min]
    withdraw  (4): u8 tag, u64 lp_amount[, u64 min_coin, u64 min_pc]

Native SOL sides go through a temporary wrapped-SOL ATA that is closed at
the end of the same transaction.
"""

import struct
from typing import Any, Dict, List, Optional

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    close_account,
    create_idempotent_associated_token_account,
    get_associated_token_address,
    sync_native,
)
from spl.token.models import CloseAccountParams, SyncNativeParams

from lp_rotator.config.settings import Settings
from lp_rotator.liquidity.amount_calculator import min_counter_amount
from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry, estimate_withdraw
from lp_rotator.liquidity.types import FixedSide, LiquidityAmounts, Position
from lp_rotator.shared.system.logging import Logger


DEPOSIT_TAG = 3
WITHDRAW_TAG = 4


def _pk(value: str) -> Pubkey:
    return Pubkey.from_string(value)


def _w(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=False, is_writable=True)


def _r(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=False, is_writable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# INSTRUCTION DATA
# ═══════════════════════════════════════════════════════════════════════════════

def encode_deposit_data(
    max_coin: int, max_pc: int, fixed_side: FixedSide, other_min: Optional[int] = None
) -> bytes:
    data = struct.pack("<BQQQ", DEPOSIT_TAG, max_coin, max_pc, fixed_side.value)
    if other_min is not None:
        data += struct.pack("<Q", other_min)
    return data


def encode_withdraw_data(
    lp_amount: int, min_coin: Optional[int] = None, min_pc: Optional[int] = None
) -> bytes:
    data = struct.pack("<BQ", WITHDRAW_TAG, lp_amount)
    if min_coin is not None and min_pc is not None:
        data += struct.pack("<QQ", min_coin, min_pc)
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# INSTRUCTION BUILDER
# ═══════════════════════════════════════════════════════════════════════════════

class RaydiumAmmInstructions:
    """
    Pure instruction builder for one owner. No RPC.

    `keys` is the pool-keys record returned by the Raydium API.
    """

    def __init__(
        self,
        owner: Pubkey,
        native_mint: str = Settings.WSOL_MINT,
        compute_units: int = Settings.COMPUTE_UNIT_LIMIT,
        priority_fee: int = Settings.PRIORITY_FEE_MICRO_LAMPORTS,
    ):
        self.owner = owner
        self.native_mint = _pk(native_mint)
        self.compute_units = compute_units
        self.priority_fee = priority_fee

    def compute_budget(self) -> List[Instruction]:
        return [
            set_compute_unit_limit(self.compute_units),
            set_compute_unit_price(self.priority_fee),
        ]

    def ata(self, mint: Pubkey) -> Pubkey:
        return get_associated_token_address(self.owner, mint)

    def ensure_ata(self, mint: Pubkey) -> Instruction:
        return create_idempotent_associated_token_account(self.owner, self.owner, mint)

    def wrap_sol(self, lamports: int) -> List[Instruction]:
        wsol_ata = self.ata(self.native_mint)
        return [
            self.ensure_ata(self.native_mint),
            transfer(TransferParams(from_pubkey=self.owner, to_pubkey=wsol_ata, lamports=lamports)),
            sync_native(SyncNativeParams(program_id=TOKEN_PROGRAM_ID, account=wsol_ata)),
        ]

    def unwrap_sol(self) -> Instruction:
        return close_account(
            CloseAccountParams(
                program_id=TOKEN_PROGRAM_ID,
                account=self.ata(self.native_mint),
                dest=self.owner,
                owner=self.owner,
                signers=[],
            )
        )

    def deposit(self, keys: Dict[str, Any], amounts: LiquidityAmounts, other_min: Optional[int]) -> Instruction:
        mint_a = _pk(keys["mintA"]["address"])
        mint_b = _pk(keys["mintB"]["address"])
        lp_mint = _pk(keys["mintLp"]["address"])
        accounts = [
            _r(TOKEN_PROGRAM_ID),
            _w(_pk(keys["id"])),
            _r(_pk(keys["authority"])),
            _r(_pk(keys["openOrders"])),
            _w(_pk(keys["targetOrders"])),
            _w(lp_mint),
            _w(_pk(keys["vault"]["A"])),
            _w(_pk(keys["vault"]["B"])),
            _r(_pk(keys["marketId"])),
            _w(self.ata(mint_a)),
            _w(self.ata(mint_b)),
            _w(self.ata(lp_mint)),
            AccountMeta(pubkey=self.owner, is_signer=True, is_writable=False),
            _r(_pk(keys["marketEventQueue"])),
        ]
        data = encode_deposit_data(amounts.base_amount, amounts.quote_amount, amounts.fixed_side, other_min)
        return Instruction(_pk(keys["programId"]), data, accounts)

    def withdraw(self, keys: Dict[str, Any], lp_amount: int, min_a: int, min_b: int) -> Instruction:
        mint_a = _pk(keys["mintA"]["address"])
        mint_b = _pk(keys["mintB"]["address"])
        lp_mint = _pk(keys["mintLp"]["address"])
        accounts = [
            _r(TOKEN_PROGRAM_ID),
            _w(_pk(keys["id"])),
            _r(_pk(keys["authority"])),
            _w(_pk(keys["openOrders"])),
            _w(_pk(keys["targetOrders"])),
            _w(lp_mint),
            _w(_pk(keys["vault"]["A"])),
            _w(_pk(keys["vault"]["B"])),
            _r(_pk(keys["marketProgramId"])),
            _w(_pk(keys["marketId"])),
            _w(_pk(keys["marketBaseVault"])),
            _w(_pk(keys["marketQuoteVault"])),
            _r(_pk(keys["marketAuthority"])),
            _w(self.ata(lp_mint)),
            _w(self.ata(mint_a)),
            _w(self.ata(mint_b)),
            AccountMeta(pubkey=self.owner, is_signer=True, is_writable=False),
            _w(_pk(keys["marketEventQueue"])),
            _w(_pk(keys["marketBids"])),
            _w(_pk(keys["marketAsks"])),
        ]
        return Instruction(_pk(keys["programId"]), encode_withdraw_data(lp_amount, min_a, min_b), accounts)

    # ═══════════════════════════════════════════════════════════════════════════
    # FULL TRANSACTIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def add_liquidity_instructions(
        self, keys: Dict[str, Any], amounts: LiquidityAmounts, other_min: Optional[int]
    ) -> List[Instruction]:
        mint_a = _pk(keys["mintA"]["address"])
        mint_b = _pk(keys["mintB"]["address"])
        ixs = self.compute_budget()

        native_side = None
        if mint_a == self.native_mint:
            native_side = amounts.base_amount
        elif mint_b == self.native_mint:
            native_side = amounts.quote_amount

        for mint in (mint_a, mint_b):
            if mint != self.native_mint:
                ixs.append(self.ensure_ata(mint))
        if native_side is not None:
            ixs.extend(self.wrap_sol(native_side))
        ixs.append(self.ensure_ata(_pk(keys["mintLp"]["address"])))
        ixs.append(self.deposit(keys, amounts, other_min))
        if native_side is not None:
            ixs.append(self.unwrap_sol())
        return ixs

    def remove_liquidity_instructions(
        self, keys: Dict[str, Any], lp_amount: int, min_a: int, min_b: int
    ) -> List[Instruction]:
        mint_a = _pk(keys["mintA"]["address"])
        mint_b = _pk(keys["mintB"]["address"])
        ixs = self.compute_budget()
        ixs.append(self.ensure_ata(mint_a))
        ixs.append(self.ensure_ata(mint_b))
        ixs.append(self.withdraw(keys, lp_amount, min_a, min_b))
        if self.native_mint in (mint_a, mint_b):
            ixs.append(self.unwrap_sol())
        return ixs


# ═══════════════════════════════════════════════════════════════════════════════
# OPERATIONS
# ═══════════════════════════════════════════════════════════════════════════════

class RaydiumLiquidity:
    """Add/remove liquidity for a wallet, landed through the TransactionExecutor."""

    def __init__(self, registry: RaydiumPoolRegistry, executor):
        self.registry = registry
        self.executor = executor

    async def remove_liquidity(self, wallet, position: Position, slippage_pct: float):
        """Burn the full LP balance of `position`. Raises on failure."""
        keys = await self.registry.get_pool_keys(position.pool_id)
        builder = RaydiumAmmInstructions(wallet.pubkey)

        async def build(blockhash: Hash) -> MessageV0:
            reserves = await self.registry.get_reserves(position.pool_id)
            est = estimate_withdraw(reserves, position.raw_balance)
            keep_bps = int(round((100.0 - slippage_pct) * 100))
            min_a = est.amount_a * keep_bps // 10_000
            min_b = est.amount_b * keep_bps // 10_000
            Logger.info(
                f"[RAYDIUM] Withdraw {position.ui_balance:.6f} LP from {position.pool_id[:8]}... "
                f"est A={est.amount_a} B={est.amount_b} (min {min_a}/{min_b})"
            )
            ixs = builder.remove_liquidity_instructions(keys, position.raw_balance, min_a, min_b)
            return MessageV0.try_compile(wallet.pubkey, ixs, [], blockhash)

        return await self.executor.submit_and_confirm(build, wallet, f"withdraw {position.pool_id[:8]}")

    async def add_liquidity(self, wallet, pool_id: str, amounts: LiquidityAmounts, slippage_pct: float):
        """Deposit `amounts`; the pool rejects it if the counter side falls under the slippage floor."""
        keys = await self.registry.get_pool_keys(pool_id)
        builder = RaydiumAmmInstructions(wallet.pubkey)
        other_min = min_counter_amount(amounts, slippage_pct)

        async def build(blockhash: Hash) -> MessageV0:
            ixs = builder.add_liquidity_instructions(keys, amounts, other_min)
            return MessageV0.try_compile(wallet.pubkey, ixs, [], blockhash)

        Logger.info(
            f"[RAYDIUM] Deposit into {pool_id[:8]}... base={amounts.base_amount} "
            f"quote={amounts.quote_amount} fixed={amounts.fixed_side.name} "
            f"other_min={other_min} slippage={slippage_pct}%"
        )
        return await self.executor.submit_and_confirm(build, wallet, f"deposit {pool_id[:8]}")
