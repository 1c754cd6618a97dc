"""
LP Rotator Test Configuration
=============================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep console and log files clean while tests run."""
    from lp_rotator.shared.system.logging import Logger

    Logger.set_silent(True)
    Logger.set_file_logging(False)
    yield
    Logger.set_silent(False)
    Logger.set_file_logging(True)


@pytest.fixture
def wsol_mint():
    return "So11111111111111111111111111111111111111112"


@pytest.fixture
def ray_mint():
    return "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"
