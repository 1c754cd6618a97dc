"""
LP Rotator
==========
Yield-seeking liquidity rotation for Raydium standard AMM pools on Solana.
"""

__version__ = "0.1.0"
