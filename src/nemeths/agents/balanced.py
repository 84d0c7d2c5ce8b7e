"""Balanced strategy that adapts to its economy and to nearby threats."""

from __future__ import annotations

from nemeths.domain.catalog import ZONE_MULTIPLIERS
from nemeths.domain.enums import AgentType, BuildingType, Phase, Race, UnitRole

from .base import AgentAction, AgentContext, BaseAgent, sort_actions

PRODUCTION_BUILDINGS = frozenset(
    {BuildingType.FARM, BuildingType.MINE, BuildingType.LUMBERMILL, BuildingType.MARKET}
)


class BalancedAgent(BaseAgent):
    agent_type = AgentType.BALANCED

    def decide(self, context: AgentContext) -> list[AgentAction]:
        actions: list[AgentAction] = []
        strength = self.army_strength(context.player)
        threat = self.threat_level(context)

        if context.day <= 10:
            self._early_game(context, actions)
        elif context.day <= 35:
            self._mid_game(context, actions, self.economy_score(context), threat)
        else:
            self._late_game(context, actions)

        self._consider_training(context, actions, threat)
        if context.phase != Phase.PLANNING:
            self._consider_expansion(context, actions, strength, threat)

        return sort_actions(actions)

    # --- assessments --------------------------------------------------------------

    @staticmethod
    def economy_score(context: AgentContext) -> float:
        """Completed production buildings relative to three per territory."""

        built = sum(
            1
            for territory in context.territories
            for building in territory.completed_buildings()
            if building.building_type in PRODUCTION_BUILDINGS
        )
        return min(1.0, built / max(1, len(context.territories) * 3))

    def threat_level(self, context: AgentContext) -> float:
        """Strongest bordering enemy relative to our own strength, capped at 1."""

        own = self.army_strength(context.player)
        threat = 0.0
        for territory in context.territories:
            for neighbour in context.map.neighbors(territory):
                if neighbour.owner_id is None or neighbour.owner_id == context.player.id:
                    continue
                enemy = context.players[neighbour.owner_id]
                threat = max(threat, self.army_strength(enemy) / max(1.0, own))
        return min(1.0, threat)

    # --- phases -------------------------------------------------------------------

    def _early_game(self, context: AgentContext, actions: list[AgentAction]) -> None:
        territories = context.territories
        if not self.has_building(territories, BuildingType.FARM):
            self.propose_build(context, BuildingType.FARM, 10, actions)
        elif not self.has_building(territories, BuildingType.BARRACKS):
            self.propose_build(context, BuildingType.BARRACKS, 9, actions)
        elif not self.has_building(territories, BuildingType.MINE):
            self.propose_build(context, BuildingType.MINE, 8, actions)
        elif self.count_buildings(territories, BuildingType.FARM) < 2:
            self.propose_build(context, BuildingType.FARM, 7, actions)

    def _mid_game(
        self,
        context: AgentContext,
        actions: list[AgentAction],
        economy_score: float,
        threat: float,
    ) -> None:
        territories = context.territories
        if threat > 0.6:
            if not self.has_building(territories, BuildingType.WALL):
                self.propose_build(context, BuildingType.WALL, 9, actions)
            if self.count_buildings(territories, BuildingType.WATCHTOWER) < 2:
                self.propose_build(context, BuildingType.WATCHTOWER, 8, actions)
        elif economy_score < 0.5:
            mines = self.count_buildings(territories, BuildingType.MINE)
            if mines < 2:
                self.propose_build(context, BuildingType.MINE, 8, actions)
            if mines >= 1 and not self.has_building(territories, BuildingType.MARKET):
                self.propose_build(context, BuildingType.MARKET, 7, actions)
        else:
            if not self.has_building(territories, BuildingType.WARHALL):
                self.propose_build(context, BuildingType.WARHALL, 7, actions)
            if not self.has_building(territories, BuildingType.ARMORY):
                self.propose_build(context, BuildingType.ARMORY, 6, actions)

    def _late_game(self, context: AgentContext, actions: list[AgentAction]) -> None:
        territories = context.territories
        if (
            context.player.race != Race.SYLVAETH
            and not self.has_building(territories, BuildingType.SIEGEWORKSHOP)
        ):
            self.propose_build(context, BuildingType.SIEGEWORKSHOP, 7, actions)
        if not self.has_building(territories, BuildingType.MAGETOWER):
            self.propose_build(context, BuildingType.MAGETOWER, 6, actions)

    def _consider_training(
        self, context: AgentContext, actions: list[AgentAction], threat: float
    ) -> None:
        available = self.available_units(context)
        if not available or not self.has_enough_food(context):
            return
        gold = context.player.resources.gold
        defenders = [unit for unit in available if unit.role == UnitRole.DEFENDER]
        attackers = [unit for unit in available if unit.role == UnitRole.ATTACKER]
        elites = [unit for unit in available if unit.role == UnitRole.ELITE]

        if threat > 0.5 and defenders:
            self.propose_train(defenders, min(8, gold // 40), 7, actions)
            return
        if gold > 300:
            self.propose_train(attackers, min(5, (gold - 200) // 50), 5, actions)
        if gold > 200:
            self.propose_train(defenders, min(4, (gold - 100) // 40), 4, actions)
        if gold > 800:
            self.propose_train(elites, min(3, (gold - 600) // 100), 4, actions)

    def _consider_expansion(
        self,
        context: AgentContext,
        actions: list[AgentAction],
        strength: float,
        threat: float,
    ) -> None:
        if threat > 0.7:
            return
        targets = self.attack_targets(context)
        beatable = [
            target
            for target in targets
            if target.is_forsaken and target.forsaken_strength < strength * 0.6
        ]
        if beatable:
            beatable.sort(key=lambda target: -ZONE_MULTIPLIERS[target.zone])
            actions.append(AgentAction.attack(beatable[0].id, 6))

        if context.day > 20 and strength > 300 and threat < 0.4:
            for target in self.player_targets(targets, context.player.id):
                enemy = context.players[target.owner_id]
                if strength > self.army_strength(enemy) * 1.5:
                    actions.append(AgentAction.attack(target.id, 5))
                    break
