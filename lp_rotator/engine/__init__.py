"""
Rotation Engine
===============
Migration state machine and the periodic scan loop that drives it.
"""

from lp_rotator.engine.types import EngineState, MigrationOutcome, MigrationStep, CycleReport

__all__ = ["EngineState", "MigrationOutcome", "MigrationStep", "CycleReport"]
