"""Simulated player strategies."""

from __future__ import annotations

from nemeths.domain.enums import AgentType
from nemeths.utils.rng import SeededRandom

from .aggressive import AggressiveAgent
from .balanced import BalancedAgent
from .base import AgentAction, AgentContext, AgentPolicy, BaseAgent
from .defensive import DefensiveAgent
from .economic import EconomicAgent
from .random_agent import RandomAgent

AGENT_CLASSES: dict[AgentType, type[BaseAgent]] = {
    AgentType.RANDOM: RandomAgent,
    AgentType.AGGRESSIVE: AggressiveAgent,
    AgentType.DEFENSIVE: DefensiveAgent,
    AgentType.ECONOMIC: EconomicAgent,
    AgentType.BALANCED: BalancedAgent,
}


def create_agent(agent_type: AgentType, rng: SeededRandom) -> AgentPolicy:
    """Instantiate the strategy for ``agent_type``.

    Raises:
        KeyError: If the agent type is unknown
    """
    return AGENT_CLASSES[AgentType(agent_type)](rng)


__all__ = [
    "AGENT_CLASSES",
    "AgentAction",
    "AgentContext",
    "AgentPolicy",
    "AggressiveAgent",
    "BalancedAgent",
    "BaseAgent",
    "DefensiveAgent",
    "EconomicAgent",
    "RandomAgent",
    "create_agent",
]
