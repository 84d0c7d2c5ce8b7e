from .results import (
    BalanceIssue,
    BalanceReport,
    CombatStats,
    GenerationSummary,
    GroupStats,
    PlayerSummary,
)
from .simulation import AgentDistribution, BatchConfig, SimulationConfig

__all__ = [
    "AgentDistribution",
    "BalanceIssue",
    "BalanceReport",
    "BatchConfig",
    "CombatStats",
    "GenerationSummary",
    "GroupStats",
    "PlayerSummary",
    "SimulationConfig",
]
