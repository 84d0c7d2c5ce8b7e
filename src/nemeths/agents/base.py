"""Shared agent vocabulary and helpers.

An agent looks at an :class:`AgentContext` snapshot and proposes a list of
:class:`AgentAction` values sorted by descending priority.  The scheduler
executes the top few; anything illegal by the time it runs is skipped.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Protocol

from nemeths.domain import economy
from nemeths.domain.catalog import BUILDINGS, UnitDefinition
from nemeths.domain.enums import (
    ActionType,
    AgentType,
    BuildingType,
    Phase,
    UnitRole,
    UnitType,
    Zone,
)
from nemeths.domain.models import Player, PlayerID, Territory, TerritoryID
from nemeths.utils.rng import SeededRandom

if TYPE_CHECKING:
    from nemeths.domain.map import MapGenerator

ZONE_ORDER: dict[Zone, int] = {Zone.HEART: 0, Zone.INNER: 1, Zone.MIDDLE: 2, Zone.OUTER: 3}


@dataclass(frozen=True, slots=True)
class AgentAction:
    """One proposed action; unused fields stay None."""

    action_type: ActionType
    priority: int = 0
    building_type: BuildingType | None = None
    territory_id: TerritoryID | None = None
    unit_type: UnitType | None = None
    quantity: int = 0
    target_id: TerritoryID | None = None

    @classmethod
    def build(
        cls, building_type: BuildingType, territory_id: TerritoryID, priority: int
    ) -> AgentAction:
        return cls(
            ActionType.BUILD,
            priority,
            building_type=building_type,
            territory_id=territory_id,
        )

    @classmethod
    def train(cls, unit_type: UnitType, quantity: int, priority: int) -> AgentAction:
        return cls(ActionType.TRAIN, priority, unit_type=unit_type, quantity=quantity)

    @classmethod
    def attack(cls, target_id: TerritoryID, priority: int) -> AgentAction:
        return cls(ActionType.ATTACK, priority, target_id=target_id)

    @classmethod
    def wait(cls) -> AgentAction:
        return cls(ActionType.WAIT, 0)


@dataclass(slots=True)
class AgentContext:
    """Read-only view of the generation handed to an agent each tick."""

    player: Player
    territories: list[Territory]
    day: int
    phase: Phase
    players: Sequence[Player]
    map: MapGenerator
    rng: SeededRandom


class AgentPolicy(Protocol):
    agent_type: AgentType

    def decide(self, context: AgentContext) -> list[AgentAction]: ...


def sort_actions(actions: list[AgentAction]) -> list[AgentAction]:
    """Stable sort by descending priority, with a wait fallback."""

    if not actions:
        return [AgentAction.wait()]
    return sorted(actions, key=lambda action: -action.priority)


class BaseAgent:
    """Helpers shared by every strategy."""

    agent_type: ClassVar[AgentType]

    def __init__(self, rng: SeededRandom) -> None:
        self.rng = rng

    def decide(self, context: AgentContext) -> list[AgentAction]:
        raise NotImplementedError

    # --- buildings ----------------------------------------------------------------

    def available_buildings(self, context: AgentContext) -> list[BuildingType]:
        """Building types legal somewhere in the player's territory."""

        available: list[BuildingType] = []
        for building_type in BUILDINGS:
            for territory in context.territories:
                if economy.can_build(context.player, territory, building_type).can_build:
                    available.append(building_type)
                    break
        return available

    def best_build_territory(
        self, context: AgentContext, building_type: BuildingType
    ) -> Territory | None:
        """First legal territory, heart zone first."""

        ordered = sorted(context.territories, key=lambda territory: ZONE_ORDER[territory.zone])
        for territory in ordered:
            if economy.can_build(context.player, territory, building_type).can_build:
                return territory
        return None

    def propose_build(
        self,
        context: AgentContext,
        building_type: BuildingType,
        priority: int,
        actions: list[AgentAction],
    ) -> None:
        territory = self.best_build_territory(context, building_type)
        if territory is not None:
            actions.append(AgentAction.build(building_type, territory.id, priority))

    @staticmethod
    def count_buildings(
        territories: Sequence[Territory],
        building_type: BuildingType,
        *,
        completed_only: bool = False,
    ) -> int:
        return sum(
            territory.count_buildings(building_type, completed_only=completed_only)
            for territory in territories
        )

    @classmethod
    def has_building(cls, territories: Sequence[Territory], building_type: BuildingType) -> bool:
        return cls.count_buildings(territories, building_type) > 0

    # --- units --------------------------------------------------------------------

    def available_units(self, context: AgentContext) -> list[UnitDefinition]:
        """Unlocked units the player can afford at least one of."""

        return [
            definition
            for definition in economy.available_units(context.player, context.territories)
            if economy.can_afford(context.player.resources, economy.unit_cost(definition.unit_type))
        ]

    def units_with_role(self, context: AgentContext, role: UnitRole) -> list[UnitDefinition]:
        return [
            definition for definition in self.available_units(context) if definition.role == role
        ]

    def propose_train(
        self,
        units: Sequence[UnitDefinition],
        quantity: int,
        priority: int,
        actions: list[AgentAction],
    ) -> None:
        if units and quantity > 0:
            actions.append(AgentAction.train(self.rng.pick(units).unit_type, quantity, priority))

    # --- military -----------------------------------------------------------------

    def attack_targets(self, context: AgentContext) -> list[Territory]:
        """Forsaken first (weakest first), then other tiles by zone value."""

        targets = context.map.expansion_targets(context.player.id, context.player.territories)

        def key(territory: Territory) -> tuple[int, int]:
            if territory.is_forsaken:
                return (0, territory.forsaken_strength)
            return (1, ZONE_ORDER[territory.zone])

        return sorted(targets, key=key)

    @staticmethod
    def army_strength(player: Player) -> float:
        """Attack-weighted strength of every army, scaled by health."""

        return sum(army.total_strength for army in player.armies)

    @staticmethod
    def player_targets(targets: Sequence[Territory], player_id: PlayerID) -> list[Territory]:
        return [
            territory
            for territory in targets
            if not territory.is_forsaken
            and territory.owner_id is not None
            and territory.owner_id != player_id
        ]

    def has_enough_food(self, context: AgentContext) -> bool:
        consumption = economy.food_consumption(context.player)
        production = economy.daily_production(context.player, context.territories)
        return production.food >= consumption or context.player.resources.food > consumption * 5
