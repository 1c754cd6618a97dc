"""
Switch Decision
===============
Whether a discovered pool is worth a migration.
"""

from typing import Optional

from lp_rotator.config.settings import Settings


def should_switch(
    current_pool_id: Optional[str],
    candidate_pool_id: str,
    current_apy: float,
    candidate_apy: float,
    threshold_pct: float = Settings.APY_IMPROVEMENT_THRESHOLD,
    require_apy_gain: bool = False,
) -> bool:
    """
    True when nothing is held, the pool changed, or APY improved by more
    than threshold_pct percentage points.

    With require_apy_gain a pool change alone is not enough; the candidate
    must also beat the current APY by the threshold.
    """
    if not current_pool_id:
        return True

    apy_gain = candidate_apy - current_apy > threshold_pct
    if require_apy_gain:
        return apy_gain

    return current_pool_id != candidate_pool_id or apy_gain
