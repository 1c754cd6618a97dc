"""
Raydium Pool Registry Tests
===========================
Symbol/mint resolution, LP-mint cache and reserve reads with a mocked API.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from tests.mocks import MockRpcClient


WSOL = "So11111111111111111111111111111111111111112"
RAY = "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"
AMM_V4 = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"


def pool_info(pool_id, mint_a, mint_b, lp_mint="LP1", program=AMM_V4, sym_a="RAY", sym_b="WSOL"):
    return {
        "id": pool_id,
        "programId": program,
        "mintA": {"address": mint_a, "symbol": sym_a},
        "mintB": {"address": mint_b, "symbol": sym_b},
        "lpMint": {"address": lp_mint},
    }


@pytest.fixture
def api():
    api = MagicMock()
    api.get_token_list = AsyncMock(return_value=[
        {"symbol": "RAY", "address": RAY},
        {"symbol": "RAY", "address": "FakeRayImpostor11111111111111111111111111"},
        {"symbol": "USDC", "address": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"},
    ])
    api.get_pools_by_mints = AsyncMock(return_value=[])
    api.get_pools_by_lp_mints = AsyncMock(return_value=[])
    api.get_pool_keys = AsyncMock(return_value=None)
    return api


@pytest.fixture
def clock():
    now = {"t": 1_000.0}

    def tick():
        return now["t"]

    tick.now = now
    return tick


@pytest.fixture
def registry(api, clock):
    from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry

    return RaydiumPoolRegistry(api, MockRpcClient(), ttl_seconds=300, clock=clock)


class TestSymbolResolution:
    @pytest.mark.asyncio
    async def test_resolves_both_parts(self, registry):
        assert await registry.get_mints_for_symbol("RAY-WSOL") == (RAY, WSOL)
        assert await registry.get_mints_for_symbol("sol-ray") == (WSOL, RAY)

    @pytest.mark.asyncio
    async def test_unknown_part(self, registry):
        assert await registry.get_mints_for_symbol("NOPE-SOL") is None

    @pytest.mark.asyncio
    async def test_needs_exactly_two_parts(self, registry):
        assert await registry.get_mints_for_symbol("RAY-SOL-USDC") is None
        assert await registry.get_mints_for_symbol("SOL") is None

    @pytest.mark.asyncio
    async def test_token_list_fetched_once(self, registry, api):
        await registry.get_mints_for_symbol("RAY-SOL")
        await registry.get_mints_for_symbol("USDC-SOL")
        assert api.get_token_list.await_count == 1


class TestPoolLookup:
    @pytest.mark.asyncio
    async def test_find_pool_either_orientation(self, registry, api):
        api.get_pools_by_mints.return_value = [
            pool_info("CLMM", RAY, WSOL, program="CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK"),
            pool_info("AMM", WSOL, RAY),
        ]

        pool = await registry.find_pool_by_mints(RAY, WSOL)

        assert pool["id"] == "AMM"

    @pytest.mark.asyncio
    async def test_find_pool_none(self, registry):
        assert await registry.find_pool_by_mints(RAY, WSOL) is None

    def test_pool_contains_native(self, registry):
        assert registry.pool_contains_native(pool_info("P", RAY, WSOL))
        assert registry.pool_contains_native(pool_info("P", WSOL, RAY, sym_a="WSOL", sym_b="RAY"))
        assert not registry.pool_contains_native(pool_info("P", RAY, "Other", sym_b="USDC"))

    def test_native_symbol_on_foreign_mint_is_rejected(self, registry):
        spoofed = pool_info("P", "FakeSolMint1111111111111111111111111111111", RAY, sym_a="SOL", sym_b="RAY")
        assert not registry.pool_contains_native(spoofed)
        assert not registry.pool_contains_native(pool_info("P", RAY, "FakeWsol", sym_b="WSOL"))


class TestLpRegistry:
    @pytest.mark.asyncio
    async def test_lookup_filters_to_lp_mints(self, registry, api):
        api.get_pools_by_lp_mints.return_value = [pool_info("P1", RAY, WSOL, lp_mint="LP1")]

        found = await registry.lookup_lp_mints(["LP1", "NOT_LP"])

        assert list(found) == ["LP1"]
        assert found["LP1"]["id"] == "P1"

    @pytest.mark.asyncio
    async def test_cached_until_ttl(self, registry, api, clock):
        api.get_pools_by_lp_mints.return_value = [pool_info("P1", RAY, WSOL, lp_mint="LP1")]

        await registry.lookup_lp_mints(["LP1", "X"])
        await registry.lookup_lp_mints(["LP1", "X"])
        assert api.get_pools_by_lp_mints.await_count == 1

        clock.now["t"] += 301
        await registry.lookup_lp_mints(["LP1"])
        assert api.get_pools_by_lp_mints.await_count == 2

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, registry, api):
        await registry.lookup_lp_mints(["LP1"])
        registry.clear_cache()
        await registry.lookup_lp_mints(["LP1"])
        assert api.get_pools_by_lp_mints.await_count == 2


class TestReserves:
    @pytest.mark.asyncio
    async def test_reads_vaults_and_supply(self, api, pool_keys):
        from lp_rotator.liquidity.pool_registry import RaydiumPoolRegistry

        rpc = MockRpcClient()
        rpc.token_balances = {
            pool_keys["vault"]["A"]: {"amount": "1000000000", "decimals": 6},
            pool_keys["vault"]["B"]: {"amount": "50000000000", "decimals": 9},
        }
        rpc.supplies = {pool_keys["mintLp"]["address"]: {"amount": "5000000000", "decimals": 6}}
        api.get_pool_keys.return_value = pool_keys

        reserves = await RaydiumPoolRegistry(api, rpc).get_reserves(pool_keys["id"])

        assert reserves.reserve_a == 1_000_000_000
        assert reserves.reserve_b == 50_000_000_000
        assert reserves.decimals_a == 6
        assert reserves.lp_supply == 5_000_000_000

    @pytest.mark.asyncio
    async def test_missing_keys(self, registry):
        with pytest.raises(ValueError, match="no pool keys"):
            await registry.get_pool_keys("Unknown")

    def test_estimate_withdraw(self, sample_reserves):
        from lp_rotator.liquidity.pool_registry import estimate_withdraw

        est = estimate_withdraw(sample_reserves, sample_reserves.lp_supply // 10)
        assert est.amount_a == 100_000_000
        assert est.amount_b == 5_000_000_000
