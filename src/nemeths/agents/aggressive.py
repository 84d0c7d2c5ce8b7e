"""Aggressive strategy: quick barracks, attackers first, constant pressure."""

from __future__ import annotations

from nemeths.domain.enums import AgentType, BuildingType, Phase, UnitRole

from .base import AgentAction, AgentContext, BaseAgent, sort_actions


class AggressiveAgent(BaseAgent):
    agent_type = AgentType.AGGRESSIVE

    def decide(self, context: AgentContext) -> list[AgentAction]:
        actions: list[AgentAction] = []
        player = context.player
        territories = context.territories
        gold = player.resources.gold

        if context.day <= 10:
            if not self.has_building(territories, BuildingType.BARRACKS):
                self.propose_build(context, BuildingType.BARRACKS, 10, actions)
            if not self.has_building(territories, BuildingType.FARM) and not self.has_enough_food(
                context
            ):
                self.propose_build(context, BuildingType.FARM, 8, actions)

        available = self.available_units(context)
        attackers = [unit for unit in available if unit.role == UnitRole.ATTACKER]
        if attackers and self.has_enough_food(context):
            self.propose_train(attackers, min(10, gold // 50), 9, actions)
        if not attackers and available:
            self.propose_train(available, min(5, gold // 40), 7, actions)

        if context.phase != Phase.PLANNING:
            targets = self.attack_targets(context)
            strength = self.army_strength(player)

            beatable = [
                target
                for target in targets
                if target.is_forsaken and target.forsaken_strength < strength * 0.8
            ]
            if beatable:
                actions.append(AgentAction.attack(beatable[0].id, 10))

            enemies = self.player_targets(targets, player.id)
            if enemies and strength > 200:
                weakest = enemies[0]
                weakest_strength = self.army_strength(context.players[weakest.owner_id])
                for target in enemies[1:]:
                    candidate = self.army_strength(context.players[target.owner_id])
                    if candidate < weakest_strength:
                        weakest, weakest_strength = target, candidate
                if strength > weakest_strength * 1.2:
                    actions.append(AgentAction.attack(weakest.id, 8))

        if context.day > 15 and not self.has_building(territories, BuildingType.ARMORY):
            self.propose_build(context, BuildingType.ARMORY, 6, actions)
        if context.day > 20 and not self.has_building(territories, BuildingType.WARHALL):
            self.propose_build(context, BuildingType.WARHALL, 5, actions)

        return sort_actions(actions)
