"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP)
- File system (except tmp_path)
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies."
        )

    monkeypatch.setattr("httpx.AsyncClient.get", block_network)
    monkeypatch.setattr("httpx.AsyncClient.post", block_network)


# ============================================================================
# POOL FIXTURES
# ============================================================================


@pytest.fixture
def pool_record():
    """One eligible DefiLlama pool record."""
    return {
        "pool": "llama-uuid-1",
        "project": "raydium-amm",
        "chain": "Solana",
        "symbol": "RAY-WSOL",
        "apy": 40.0,
        "tvlUsd": 30_000_000,
        "volumeUsd7d": 2_000_000,
    }


@pytest.fixture
def sample_reserves(wsol_mint, ray_mint):
    """RAY/SOL pool: 1,000 RAY (6 dp) against 50 SOL."""
    from lp_rotator.liquidity.types import PoolReserves

    return PoolReserves(
        pool_id="AVs9TA4nWDzfPJE9gGVNJMVhcQy3V9PGazuz33BfG2RA",
        mint_a=ray_mint,
        mint_b=wsol_mint,
        reserve_a=1_000_000_000,
        reserve_b=50_000_000_000,
        decimals_a=6,
        decimals_b=9,
        lp_mint="89ZKE4aoyfLBe2RuV6jM3JGNhaV18Nxh8eNtjRcndBip",
        lp_supply=5_000_000_000,
    )


@pytest.fixture
def pool_keys():
    """Raydium API pool-keys record with unique placeholder addresses."""
    from solders.pubkey import Pubkey

    def pk():
        return str(Pubkey.new_unique())

    return {
        "programId": "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
        "id": pk(),
        "mintA": {"address": "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R", "decimals": 6},
        "mintB": {"address": "So11111111111111111111111111111111111111112", "decimals": 9},
        "mintLp": {"address": pk(), "decimals": 6},
        "vault": {"A": pk(), "B": pk()},
        "authority": pk(),
        "openOrders": pk(),
        "targetOrders": pk(),
        "marketProgramId": pk(),
        "marketId": pk(),
        "marketAuthority": pk(),
        "marketBaseVault": pk(),
        "marketQuoteVault": pk(),
        "marketBids": pk(),
        "marketAsks": pk(),
        "marketEventQueue": pk(),
    }


@pytest.fixture
def recorded_sleep():
    """Async sleep replacement that records requested delays."""
    delays = []

    async def sleep(seconds):
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def mock_registry(sample_reserves):
    registry = MagicMock()
    registry.get_reserves = AsyncMock(return_value=sample_reserves)
    registry.clear_cache = MagicMock()
    return registry
