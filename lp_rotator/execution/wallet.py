import json
from typing import List, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from lp_rotator.config.settings import Settings
from lp_rotator.execution.errors import RotatorError, WalletMismatchError
from lp_rotator.liquidity.types import TokenHolding
from lp_rotator.shared.infrastructure.rpc_client import (
    SolanaRpcClient,
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
)
from lp_rotator.shared.system.logging import Logger


LAMPORTS_PER_SOL = 1_000_000_000


def load_keypair(secret: str) -> Keypair:
    """Base58 secret key, or a JSON byte array as written by solana-keygen."""
    secret = (secret or "").strip()
    if not secret:
        raise RotatorError("SOLANA_PRIVATE_KEY is not set")
    if secret.startswith("["):
        return Keypair.from_bytes(bytes(json.loads(secret)))
    return Keypair.from_base58_string(secret)


class WalletManager:
    """
    Keypair ownership and balance reads.

    The keypair is checked against the configured public key at construction;
    a mismatch raises WalletMismatchError before anything can be signed.
    """

    def __init__(
        self,
        rpc: SolanaRpcClient,
        keypair: Optional[Keypair] = None,
        expected_public_key: Optional[str] = None,
    ):
        self.rpc = rpc
        self.keypair = keypair or load_keypair(Settings.WALLET_PRIVATE_KEY)
        expected = expected_public_key if expected_public_key is not None else Settings.WALLET_PUBLIC_KEY
        self._verify(expected)

    def _verify(self, expected_public_key: str) -> None:
        actual = str(self.keypair.pubkey())
        if expected_public_key and expected_public_key != actual:
            raise WalletMismatchError(
                f"private key belongs to {actual}, configured public key is {expected_public_key}"
            )

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    @property
    def public_key(self) -> str:
        return str(self.keypair.pubkey())

    async def get_sol_balance(self) -> int:
        """Native balance in lamports."""
        return await self.rpc.get_balance(self.public_key)

    async def get_token_holdings(self) -> List[TokenHolding]:
        """Every SPL / Token-2022 account the wallet owns, zero balances included."""
        holdings = []
        for program_id in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
            accounts = await self.rpc.get_token_accounts_by_owner(self.public_key, program_id)
            for entry in accounts:
                info = entry["account"]["data"]["parsed"]["info"]
                amount = info["tokenAmount"]
                holdings.append(
                    TokenHolding(
                        mint=info["mint"],
                        account=entry["pubkey"],
                        raw_amount=int(amount["amount"]),
                        decimals=int(amount["decimals"]),
                    )
                )
        return holdings

    async def get_token_balance(self, mint: str) -> int:
        """Summed raw balance of `mint` across the wallet's token accounts."""
        return sum(h.raw_amount for h in await self.get_token_holdings() if h.mint == mint)

    async def check_connectivity(self) -> int:
        lamports = await self.get_sol_balance()
        Logger.info(f"[WALLET] {self.public_key} balance {lamports / LAMPORTS_PER_SOL:.4f} SOL")
        return lamports
