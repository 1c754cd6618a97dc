"""
Raydium / Jupiter Client Tests
==============================
Response decoding and failure mapping for the off-chain APIs, plus
discovery and swap flows wired through them.
"""

import base64

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from tests.mocks import MockRpcClient, MockWalletManager


WSOL = "So11111111111111111111111111111111111111112"
RAY = "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
AMM_V4 = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"


def swap_transaction_for(payer):
    """Jupiter-style v0 transaction that loads its recipient through a lookup table."""
    recipient = Pubkey.new_unique()
    table = AddressLookupTableAccount(Pubkey.new_unique(), [recipient])
    ix = transfer(TransferParams(from_pubkey=payer.pubkey(), to_pubkey=recipient, lamports=1))
    message = MessageV0.try_compile(payer.pubkey(), [ix], [table], Hash.new_unique())
    return VersionedTransaction(message, [payer])


# ============================================================================
# RAYDIUM API
# ============================================================================


@pytest.mark.integration
class TestRaydiumApi:
    @pytest.mark.asyncio
    async def test_pools_by_mints_unwraps_page(self, recording_transport):
        from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient

        pool = {"id": "P1", "programId": AMM_V4, "mintA": {"address": RAY}, "mintB": {"address": WSOL}}
        transport = recording_transport(lambda request: httpx.Response(200, json={
            "id": "x", "success": True, "data": {"count": 1, "data": [pool], "hasNextPage": False},
        }))
        api = RaydiumApiClient(base_url="https://api.test", client=transport.client())

        assert await api.get_pools_by_mints(RAY, WSOL) == [pool]
        params = transport.requests[0].url.params
        assert params["mint1"] == RAY
        assert params["poolType"] == "standard"

    @pytest.mark.asyncio
    async def test_non_json_is_rpc_error(self, recording_transport):
        from lp_rotator.execution.errors import RpcError
        from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient

        transport = recording_transport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        api = RaydiumApiClient(base_url="https://api.test", client=transport.client())

        with pytest.raises(RpcError, match="invalid JSON"):
            await api.get_token_list()

    @pytest.mark.asyncio
    async def test_wrong_shape_is_rpc_error(self, recording_transport):
        from lp_rotator.execution.errors import RpcError
        from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient

        transport = recording_transport(lambda request: httpx.Response(200, json=["not", "an", "envelope"]))
        api = RaydiumApiClient(base_url="https://api.test", client=transport.client())

        with pytest.raises(RpcError):
            await api.get_pools_by_lp_mints(["LP1"])

        transport.handler = lambda request: httpx.Response(200, json={"success": True, "data": {"oops": 1}})
        with pytest.raises(RpcError, match="expected a list"):
            await api.get_pool_keys("P1")

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope(self, recording_transport):
        from lp_rotator.execution.errors import RpcError
        from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient

        transport = recording_transport(lambda request: httpx.Response(200, json={"success": False, "msg": "bad ids"}))
        api = RaydiumApiClient(base_url="https://api.test", client=transport.client())

        with pytest.raises(RpcError, match="bad ids"):
            await api.get_pool_keys("P1")


@pytest.mark.integration
class TestDiscoveryOverRaydiumApi:
    def _aggregator(self, symbol, tokens):
        aggregator = MagicMock()
        aggregator.fetch_pools = AsyncMock(return_value=[{
            "project": "raydium-amm",
            "chain": "Solana",
            "symbol": symbol,
            "apy": 50.0,
            "tvlUsd": 30_000_000,
            "volumeUsd7d": 2_000_000,
            "underlyingTokens": tokens,
        }])
        return aggregator

    @pytest.mark.asyncio
    async def test_malformed_registry_response_is_no_candidate(self, recording_transport):
        from lp_rotator.liquidity.pool_discovery import PoolDiscoveryService
        from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry
        from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient

        transport = recording_transport(lambda request: httpx.Response(200, text="{truncated"))
        registry = RaydiumPoolRegistry(RaydiumApiClient(base_url="https://api.test", client=transport.client()), MockRpcClient())
        service = PoolDiscoveryService(self._aggregator("RAY-WSOL", [RAY, WSOL]), registry)

        assert await service.find_best_pool() is None

    @pytest.mark.asyncio
    async def test_token_named_sol_with_foreign_mint_is_no_candidate(self, recording_transport):
        from lp_rotator.liquidity.pool_discovery import PoolDiscoveryService
        from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry
        from lp_rotator.shared.infrastructure.raydium_api import RaydiumApiClient

        fake_sol = str(Pubkey.new_unique())
        pool = {
            "id": "PoolX",
            "programId": AMM_V4,
            "mintA": {"address": fake_sol, "symbol": "SOL"},
            "mintB": {"address": USDC, "symbol": "USDC"},
        }
        transport = recording_transport(lambda request: httpx.Response(200, json={
            "success": True, "data": {"count": 1, "data": [pool]},
        }))
        registry = RaydiumPoolRegistry(RaydiumApiClient(base_url="https://api.test", client=transport.client()), MockRpcClient())
        service = PoolDiscoveryService(self._aggregator("SOL-USDC", [fake_sol, USDC]), registry)

        assert await service.find_best_pool() is None


# ============================================================================
# JUPITER
# ============================================================================


QUOTE = {
    "inputMint": WSOL,
    "outputMint": RAY,
    "inAmount": "1000000",
    "outAmount": "20000",
    "priceImpactPct": "0.01",
    "routePlan": [],
}


@pytest.mark.integration
class TestJupiterClient:
    @pytest.mark.asyncio
    async def test_quote_params(self, recording_transport):
        from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient

        transport = recording_transport(lambda request: httpx.Response(200, json=QUOTE))
        jupiter = JupiterClient("https://jup.test/quote", "https://jup.test/swap", client=transport.client())

        quote = await jupiter.get_quote(WSOL, RAY, 1_000_000, 50)

        assert quote["outAmount"] == "20000"
        params = transport.requests[0].url.params
        assert params["amount"] == "1000000"
        assert params["slippageBps"] == "50"

    @pytest.mark.asyncio
    async def test_no_route(self, recording_transport):
        from lp_rotator.execution.errors import SwapError
        from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient

        transport = recording_transport(lambda request: httpx.Response(200, json={"error": "No routes found"}))
        jupiter = JupiterClient("https://jup.test/quote", "https://jup.test/swap", client=transport.client())

        with pytest.raises(SwapError, match="no route"):
            await jupiter.get_quote(WSOL, RAY, 1, 50)

    @pytest.mark.asyncio
    async def test_swap_transaction_decoded(self, recording_transport):
        from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient

        payer = Keypair()
        tx = swap_transaction_for(payer)
        encoded = base64.b64encode(bytes(tx)).decode("ascii")
        transport = recording_transport(lambda request: httpx.Response(200, json={"swapTransaction": encoded}))
        jupiter = JupiterClient("https://jup.test/quote", "https://jup.test/swap", client=transport.client())

        decoded = await jupiter.get_swap_transaction(QUOTE, str(payer.pubkey()))

        assert bytes(decoded) == bytes(tx)
        body = transport.bodies()[0]
        assert body["userPublicKey"] == str(payer.pubkey())
        assert body["wrapAndUnwrapSol"] is True

    @pytest.mark.asyncio
    async def test_swap_http_error(self, recording_transport):
        from lp_rotator.execution.errors import SwapError
        from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient

        transport = recording_transport(lambda request: httpx.Response(500))
        jupiter = JupiterClient("https://jup.test/quote", "https://jup.test/swap", client=transport.client())

        with pytest.raises(SwapError):
            await jupiter.get_swap_transaction(QUOTE, "W")


@pytest.mark.integration
class TestSwapperFlow:
    @pytest.mark.asyncio
    async def test_swap_signed_on_executor_blockhash(self, recording_transport):
        from lp_rotator.execution.swapper import JupiterSwapper
        from lp_rotator.execution.transaction_executor import TransactionExecutor
        from lp_rotator.shared.infrastructure.jupiter_client import JupiterClient

        wallet = MockWalletManager()
        jupiter_tx = swap_transaction_for(wallet.keypair)
        encoded = base64.b64encode(bytes(jupiter_tx)).decode("ascii")

        def handler(request):
            if request.method == "GET":
                return httpx.Response(200, json=QUOTE)
            return httpx.Response(200, json={"swapTransaction": encoded})

        transport = recording_transport(handler)
        jupiter = JupiterClient("https://jup.test/quote", "https://jup.test/swap", client=transport.client())
        rpc = MockRpcClient()
        rpc.statuses = [{"confirmationStatus": "confirmed", "err": None, "slot": 7}]

        async def no_sleep(seconds):
            return None

        swapper = JupiterSwapper(jupiter, TransactionExecutor(rpc, sleep=no_sleep), slippage_bps=50)
        result = await swapper.swap(wallet, WSOL, RAY, 1_000_000, label="rebalance")

        assert result.receipt.confirmed
        assert result.quoted_out_amount == 20_000

        sent = VersionedTransaction.from_bytes(rpc.sent[0])
        assert sent.message.recent_blockhash == rpc.blockhashes[0]
        original_lookups = jupiter_tx.message.address_table_lookups
        assert len(sent.message.address_table_lookups) == 1
        assert sent.message.address_table_lookups[0].account_key == original_lookups[0].account_key
        assert bytes(sent.message.address_table_lookups[0].writable_indexes) == bytes(
            original_lookups[0].writable_indexes
        )
