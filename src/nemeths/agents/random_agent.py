"""Baseline strategy that acts at random."""

from __future__ import annotations

from nemeths.domain.enums import AgentType, Phase

from .base import AgentAction, AgentContext, BaseAgent, sort_actions


class RandomAgent(BaseAgent):
    agent_type = AgentType.RANDOM

    def decide(self, context: AgentContext) -> list[AgentAction]:
        actions: list[AgentAction] = []
        rng = self.rng

        if rng.chance(0.4) and context.territories:
            available = self.available_buildings(context)
            if available:
                building_type = rng.pick(available)
                territory = self.best_build_territory(context, building_type)
                if territory is not None:
                    actions.append(
                        AgentAction.build(building_type, territory.id, rng.randint(1, 10))
                    )

        if rng.chance(0.5):
            units = self.available_units(context)
            if units:
                unit_type = rng.pick(units).unit_type
                quantity = rng.randint(1, 5)
                actions.append(AgentAction.train(unit_type, quantity, rng.randint(1, 10)))

        if context.phase != Phase.PLANNING and rng.chance(0.3):
            targets = self.attack_targets(context)
            if targets:
                target = rng.pick(targets)
                actions.append(AgentAction.attack(target.id, rng.randint(1, 10)))

        if not actions or rng.chance(0.2):
            actions.append(AgentAction.wait())

        return sort_actions(actions)
