"""Defensive strategy: fortify borders, garrison heavily, expand cautiously."""

from __future__ import annotations

from nemeths.domain import economy
from nemeths.domain.enums import AgentType, BuildingType, Phase, UnitRole

from .base import AgentAction, AgentContext, BaseAgent, sort_actions


class DefensiveAgent(BaseAgent):
    agent_type = AgentType.DEFENSIVE

    def decide(self, context: AgentContext) -> list[AgentAction]:
        actions: list[AgentAction] = []
        player = context.player
        territories = context.territories
        day = context.day
        gold = player.resources.gold

        if day <= 15:
            if self.count_buildings(territories, BuildingType.FARM) < 2:
                self.propose_build(context, BuildingType.FARM, 9, actions)
            if self.count_buildings(territories, BuildingType.MINE) < 1:
                self.propose_build(context, BuildingType.MINE, 8, actions)
            if not self.has_building(territories, BuildingType.BARRACKS):
                self.propose_build(context, BuildingType.BARRACKS, 7, actions)

        if day > 10:
            border = [
                territory
                for territory in territories
                if any(
                    neighbour.owner_id != player.id
                    for neighbour in context.map.neighbors(territory)
                )
            ]
            unwalled = [
                territory
                for territory in border
                if territory.count_buildings(BuildingType.WALL) == 0
            ]
            wall_cost = economy.building_cost(player, BuildingType.WALL)
            if unwalled and economy.can_afford(player.resources, wall_cost):
                actions.append(AgentAction.build(BuildingType.WALL, unwalled[0].id, 8))

            if self.count_buildings(territories, BuildingType.WATCHTOWER) < 3:
                self.propose_build(context, BuildingType.WATCHTOWER, 6, actions)
            if day > 15 and not self.has_building(territories, BuildingType.ARMORY):
                self.propose_build(context, BuildingType.ARMORY, 7, actions)

        available = self.available_units(context)
        defenders = [unit for unit in available if unit.role == UnitRole.DEFENDER]
        if defenders and self.has_enough_food(context):
            self.propose_train(defenders, min(15, gold // 35), 8, actions)
        attackers = [unit for unit in available if unit.role == UnitRole.ATTACKER]
        if attackers and gold > 300:
            self.propose_train(attackers, min(8, (gold - 200) // 45), 6, actions)

        if context.phase != Phase.PLANNING:
            targets = self.attack_targets(context)
            strength = self.army_strength(player)
            beatable = [
                target
                for target in targets
                if target.is_forsaken and target.forsaken_strength < strength * 0.7
            ]
            if beatable:
                actions.append(AgentAction.attack(beatable[0].id, 6))

            if context.phase == Phase.ENDGAME and strength > 300:
                for target in self.player_targets(targets, player.id):
                    enemy = context.players[target.owner_id]
                    if self.army_strength(enemy) < strength * 0.4:
                        actions.append(AgentAction.attack(target.id, 5))
                        break

        if day > 30:
            if not self.has_building(territories, BuildingType.MARKET):
                self.propose_build(context, BuildingType.MARKET, 5, actions)
            walled = [
                territory
                for territory in territories
                if territory.has_completed(BuildingType.WALL)
                and territory.count_buildings(BuildingType.GATE) == 0
            ]
            if walled:
                actions.append(AgentAction.build(BuildingType.GATE, walled[0].id, 4))

        return sort_actions(actions)
