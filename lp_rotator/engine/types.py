"""
Engine Types
============
State owned by the scheduler and the values the orchestrator hands back.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from lp_rotator.liquidity.types import PoolCandidate


class MigrationStep(Enum):
    INVENTORY = "INVENTORY"
    WITHDRAW = "WITHDRAW"
    CONSOLIDATE = "CONSOLIDATE"
    REBALANCE = "REBALANCE"
    DEPOSIT = "DEPOSIT"


@dataclass(frozen=True)
class EngineState:
    """Which pool the engine believes it is in. In memory only."""
    current_pool_id: Optional[str] = None
    current_apy: float = 0.0


@dataclass(frozen=True)
class MigrationOutcome:
    succeeded: bool
    new_state: Optional[EngineState] = None
    failed_step: Optional[MigrationStep] = None
    reason: str = ""
    signatures: tuple = ()

    @classmethod
    def failure(cls, step: MigrationStep, reason: str, signatures: tuple = ()) -> "MigrationOutcome":
        return cls(succeeded=False, failed_step=step, reason=reason, signatures=signatures)


@dataclass
class CycleReport:
    """What one scheduler tick did."""
    started_at: float = field(default_factory=time.time)
    candidate: Optional[PoolCandidate] = None
    switched: bool = False
    outcome: Optional[MigrationOutcome] = None
    error: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def transacted(self) -> bool:
        return self.outcome is not None
