"""
Jupiter Swapper
===============
Routes a swap through Jupiter and lands it with the TransactionExecutor.

Every (re)build fetches a fresh quote, so a blockhash refresh also
refreshes the price the route was computed against.
"""

from dataclasses import dataclass
from typing import Any, Dict

from solders.hash import Hash
from solders.message import MessageV0

from lp_rotator.config.settings import Settings
from lp_rotator.execution.transaction_executor import TransactionExecutor, TransactionReceipt
from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient
from lp_rotator.shared.system.logging import Logger


def rebind_blockhash(message: MessageV0, blockhash: Hash) -> MessageV0:
    """Same message, different recent blockhash."""
    return MessageV0(
        message.header,
        message.account_keys,
        blockhash,
        message.instructions,
        message.address_table_lookups,
    )


@dataclass
class SwapResult:
    input_mint: str
    output_mint: str
    in_amount: int
    quoted_out_amount: int
    receipt: TransactionReceipt

    @property
    def signature(self) -> str:
        return self.receipt.signature


class JupiterSwapper:
    def __init__(
        self,
        jupiter: JupiterClient,
        executor: TransactionExecutor,
        slippage_bps: int = Settings.SWAP_SLIPPAGE_BPS,
    ):
        self.jupiter = jupiter
        self.executor = executor
        self.slippage_bps = slippage_bps

    async def swap(
        self,
        wallet,
        input_mint: str,
        output_mint: str,
        amount: int,
        label: str = "swap",
    ) -> SwapResult:
        """Swap `amount` smallest units of input_mint. Raises SwapError / TransactionError."""
        last_quote: Dict[str, Any] = {}

        async def build(blockhash: Hash) -> MessageV0:
            quote = await self.jupiter.get_quote(input_mint, output_mint, amount, self.slippage_bps)
            last_quote.clear()
            last_quote.update(quote)
            Logger.info(
                f"[SWAP] Quote {quote.get('inAmount')} {input_mint[:6]} -> "
                f"{quote.get('outAmount')} {output_mint[:6]} (impact {quote.get('priceImpactPct', '0')}%)"
            )
            tx = await self.jupiter.get_swap_transaction(quote, wallet.public_key)
            return rebind_blockhash(tx.message, blockhash)

        receipt = await self.executor.submit_and_confirm(build, wallet, label)
        return SwapResult(
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=int(last_quote.get("inAmount", amount)),
            quoted_out_amount=int(last_quote.get("outAmount", 0)),
            receipt=receipt,
        )
