"""Economic strategy: production first, military only once wealthy."""

from __future__ import annotations

import math

from nemeths.domain.enums import AgentType, BuildingType, Phase, UnitRole

from .base import AgentAction, AgentContext, BaseAgent, sort_actions


class EconomicAgent(BaseAgent):
    agent_type = AgentType.ECONOMIC

    def decide(self, context: AgentContext) -> list[AgentAction]:
        actions: list[AgentAction] = []
        player = context.player
        territories = context.territories
        day = context.day
        owned = len(territories)

        def completed(building_type: BuildingType) -> int:
            return self.count_buildings(territories, building_type, completed_only=True)

        if completed(BuildingType.FARM) < min(6, math.ceil(owned / 2)):
            self.propose_build(context, BuildingType.FARM, 10, actions)
        mines = completed(BuildingType.MINE)
        if mines < min(4, math.ceil(owned / 3)):
            self.propose_build(context, BuildingType.MINE, 9, actions)
        if completed(BuildingType.LUMBERMILL) < 2:
            self.propose_build(context, BuildingType.LUMBERMILL, 8, actions)
        if mines >= 1 and completed(BuildingType.MARKET) < 2:
            self.propose_build(context, BuildingType.MARKET, 7, actions)
        if day > 20 and completed(BuildingType.WAREHOUSE) < 2:
            self.propose_build(context, BuildingType.WAREHOUSE, 6, actions)
        if day > 10 and not self.has_building(territories, BuildingType.BARRACKS):
            self.propose_build(context, BuildingType.BARRACKS, 6, actions)

        if day > 15 and player.resources.gold > 1000:
            available = self.available_units(context)
            if available and self.has_enough_food(context):
                gold = player.resources.gold
                defenders = [unit for unit in available if unit.role == UnitRole.DEFENDER]
                self.propose_train(defenders, min(10, (gold - 500) // 40), 5, actions)
                attackers = [unit for unit in available if unit.role == UnitRole.ATTACKER]
                if gold > 800:
                    self.propose_train(attackers, min(5, (gold - 600) // 50), 4, actions)

        if day > 30 and player.resources.gold > 2000:
            if not self.has_building(territories, BuildingType.WARHALL):
                self.propose_build(context, BuildingType.WARHALL, 5, actions)
            elites = self.units_with_role(context, UnitRole.ELITE)
            self.propose_train(elites, min(5, (player.resources.gold - 1500) // 100), 4, actions)

        if context.phase != Phase.PLANNING:
            strength = self.army_strength(player)
            targets = self.attack_targets(context)
            weak = [
                target
                for target in targets
                if target.is_forsaken and target.forsaken_strength < strength * 0.4
            ]
            if weak:
                actions.append(AgentAction.attack(weak[0].id, 3))
            if day > 35 and strength > 500:
                enemies = self.player_targets(targets, player.id)
                if enemies:
                    actions.append(AgentAction.attack(enemies[0].id, 4))

        return sort_actions(actions)
