"""Resource production, upkeep, costs and build/train eligibility.

All functions are pure with respect to the catalog: they read player and
territory models and only mutate what their name says they mutate
(``spend``, ``apply_daily_tick``, ``apply_starvation``, ``recover_morale``).
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .catalog import (
    MAX_BUILDINGS_PER_TERRITORY,
    ROLE_BUILDING,
    UNITS,
    ZONE_MULTIPLIERS,
    ZONE_SCORE,
    UnitDefinition,
    get_building,
    get_race,
    get_unit,
    race_units,
    siege_units,
)
from .enums import BuildingType, CaptainClass, CaptainSkill, Race, UnitType
from .models import RESOURCE_NAMES, Player, Resources, Territory, UnitStack
from .rules_config import DEFAULT_RULES, EconomyRules

_DEFAULT_ECONOMY = DEFAULT_RULES.economy


@dataclass(frozen=True, slots=True)
class BuildCheck:
    can_build: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class TrainCheck:
    can_train: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class EconomyReport:
    """Result of one player's daily economy tick."""

    production: Resources
    consumption: int
    net_food: int


# --- production and upkeep -------------------------------------------------------


def daily_production(
    player: Player,
    territories: Iterable[Territory],
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> Resources:
    """Resources produced per day by ``territories`` for ``player``."""

    totals = dict.fromkeys(RESOURCE_NAMES, 0.0)
    race = get_race(player.race)
    for territory in territories:
        multiplier = ZONE_MULTIPLIERS[territory.zone]
        totals["gold"] += rules.base_gold_per_territory * multiplier
        totals["food"] += rules.base_food_per_territory * multiplier
        for building in territory.completed_buildings():
            yields = get_building(building.building_type).produces
            race_modifier = race.building_modifiers.get(building.building_type, 1.0)
            for resource, amount in yields.items():
                totals[resource] += amount * multiplier * race_modifier

    if player.race == Race.SYLVAETH:
        for resource in totals:
            totals[resource] *= rules.sylvaeth_production_bonus
    elif player.race == Race.VAELTHIR:
        totals["mana"] *= rules.vaelthir_mana_bonus

    return Resources(**{name: math.floor(value) for name, value in totals.items()})


def _raw_upkeep(player: Player) -> float:
    rate = get_race(player.race).food_consumption_rate
    return sum(army.food_upkeep(rate) for army in player.armies)


def _apply_upkeep_discount(
    player: Player, consumption: float, rules: EconomyRules
) -> int:
    if player.captain_class == CaptainClass.MERCHANTPRINCE:
        consumption *= rules.merchantprince_food_discount
    return math.ceil(consumption)


def food_consumption(player: Player, *, rules: EconomyRules = _DEFAULT_ECONOMY) -> int:
    """Daily food eaten by every army of ``player``."""

    return _apply_upkeep_discount(player, _raw_upkeep(player), rules)


def projected_food_consumption(
    player: Player,
    unit_type: UnitType,
    quantity: int,
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> int:
    """Daily consumption after ``quantity`` more ``unit_type`` units."""

    rate = get_race(player.race).food_consumption_rate
    consumption = _raw_upkeep(player) + UNITS[unit_type].food_upkeep * quantity * rate
    return _apply_upkeep_discount(player, consumption, rules)


# --- costs --------------------------------------------------------------------------


def building_cost(
    player: Player,
    building_type: BuildingType,
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> Resources:
    """Catalog cost, with the Vaelthir surcharge rounded up per resource."""

    cost = get_building(building_type).cost.as_dict()
    if player.race == Race.VAELTHIR:
        cost = {
            name: math.ceil(amount * rules.vaelthir_building_surcharge) if amount else 0
            for name, amount in cost.items()
        }
    return Resources(**cost)


def unit_cost(unit_type: UnitType, quantity: int = 1) -> Resources:
    definition = get_unit(unit_type)
    return Resources(gold=definition.gold_cost * quantity, mana=definition.mana_cost * quantity)


def can_afford(resources: Resources, cost: Resources) -> bool:
    return all(getattr(resources, name) >= getattr(cost, name) for name in RESOURCE_NAMES)


def spend(resources: Resources, cost: Resources) -> bool:
    """Deduct ``cost`` if affordable.  Either everything is paid or nothing."""

    if not can_afford(resources, cost):
        return False
    for name in RESOURCE_NAMES:
        setattr(resources, name, getattr(resources, name) - getattr(cost, name))
    return True


def add_resources(resources: Resources, addition: Resources) -> None:
    for name in RESOURCE_NAMES:
        setattr(resources, name, getattr(resources, name) + getattr(addition, name))


# --- eligibility --------------------------------------------------------------------


def can_build(
    player: Player,
    territory: Territory,
    building_type: BuildingType,
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> BuildCheck:
    """Check slot limits, prerequisites, race restrictions and cost.

    Raises:
        KeyError: If ``building_type`` is not in the catalog
    """
    definition = get_building(building_type)
    if len(territory.buildings) >= MAX_BUILDINGS_PER_TERRITORY:
        return BuildCheck(False, "Territory building limit reached")
    if territory.count_buildings(building_type) >= definition.max_per_territory:
        return BuildCheck(False, "Max buildings of this type reached")
    if definition.requires is not None and not territory.has_completed(definition.requires):
        return BuildCheck(False, f"Requires {definition.requires}")
    if building_type in get_race(player.race).restricted_buildings:
        return BuildCheck(False, "Race restriction")
    if not can_afford(player.resources, building_cost(player, building_type, rules=rules)):
        return BuildCheck(False, "Cannot afford")
    return BuildCheck(True)


def _completed_types(territories: Iterable[Territory]) -> set[BuildingType]:
    return {
        building.building_type
        for territory in territories
        for building in territory.completed_buildings()
    }


def available_units(
    player: Player, territories: Iterable[Territory]
) -> list[UnitDefinition]:
    """Race and siege units whose role building stands somewhere completed."""

    completed = _completed_types(territories)
    return [
        definition
        for definition in (*race_units(player.race), *siege_units())
        if ROLE_BUILDING[definition.role] in completed
    ]


def can_train(
    player: Player,
    territories: Sequence[Territory],
    unit_type: UnitType,
    quantity: int,
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> TrainCheck:
    if quantity <= 0:
        return TrainCheck(False, "Invalid quantity")
    unlocked = {definition.unit_type for definition in available_units(player, territories)}
    if unit_type not in unlocked:
        return TrainCheck(False, "Unit unavailable")
    if not can_afford(player.resources, unit_cost(unit_type, quantity)):
        return TrainCheck(False, "Cannot afford")
    if player.resources.food < projected_food_consumption(player, unit_type, quantity, rules=rules):
        return TrainCheck(False, "Insufficient food")
    return TrainCheck(True)


def build_completion_day(
    player: Player,
    building_type: BuildingType,
    day: int,
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> int:
    hours: float = get_building(building_type).build_hours
    if player.captain_skill == CaptainSkill.ARTIFICER:
        hours *= rules.artificer_build_time_factor
    return day + math.ceil(hours / 24)


# --- score and daily tick -------------------------------------------------------------


def calculate_score(
    player: Player,
    territories: Iterable[Territory],
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> int:
    score = 0
    for territory in territories:
        score += ZONE_SCORE[territory.zone]
        score += len(territory.completed_buildings()) * rules.score_per_building
    for army in player.armies:
        for stack in army.units:
            score += (UNITS[stack.unit_type].gold_cost * stack.quantity) // rules.score_unit_divisor
    score += player.battles_won * rules.score_per_battle_won
    return score


def apply_daily_tick(
    player: Player,
    territories: Iterable[Territory],
    *,
    rules: EconomyRules = _DEFAULT_ECONOMY,
) -> EconomyReport:
    """Add production and subtract upkeep.  Food may go negative."""

    production = daily_production(player, territories, rules=rules)
    consumption = food_consumption(player, rules=rules)
    add_resources(player.resources, production)
    player.resources.food -= consumption
    return EconomyReport(production, consumption, production.food - consumption)


def scale_stack(stack: UnitStack, lost: int) -> None:
    """Remove ``lost`` units from ``stack``, scaling hit points to match."""

    lost = min(lost, stack.quantity)
    if lost <= 0:
        return
    remaining = stack.quantity - lost
    stack.current_hp = stack.current_hp * remaining / stack.quantity if stack.quantity else 0.0
    stack.quantity = remaining


def apply_starvation(player: Player, *, rules: EconomyRules = _DEFAULT_ECONOMY) -> int:
    """Morale loss and desertion for an unfed day; returns deserters."""

    player.morale = max(0, player.morale - rules.starvation_morale_loss)
    deserters = 0
    for army in player.armies:
        for stack in army.units:
            lost = math.ceil(stack.quantity * rules.starvation_desertion_rate)
            scale_stack(stack, lost)
            deserters += lost
        army.units = [stack for stack in army.units if stack.quantity > 0]
    player.resources.food = 0
    return deserters


def recover_morale(player: Player, *, rules: EconomyRules = _DEFAULT_ECONOMY) -> None:
    player.morale = min(rules.max_morale, player.morale + rules.morale_recovery_per_day)
