"""Static game catalog: buildings, units, races, captains, zones and terrain.

These tables are fixed reference data.  Anything a balance pass might want
to tune lives in :mod:`nemeths.domain.rules_config` instead.  Lookups of
unknown keys raise ``KeyError`` so invalid content fails fast.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .enums import (
    BuildingType,
    CaptainClass,
    CaptainSkill,
    EntryTier,
    Race,
    Terrain,
    UnitRole,
    UnitType,
    Zone,
)

MAX_BUILDINGS_PER_TERRITORY = 6


@dataclass(frozen=True, slots=True)
class Cost:
    """Resource cost of a building or unit."""

    gold: int = 0
    stone: int = 0
    wood: int = 0
    food: int = 0
    mana: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "gold": self.gold,
            "stone": self.stone,
            "wood": self.wood,
            "food": self.food,
            "mana": self.mana,
        }


@dataclass(frozen=True, slots=True)
class BuildingDefinition:
    building_type: BuildingType
    cost: Cost
    build_hours: int
    max_per_territory: int
    requires: BuildingType | None = None
    # Per-day yield of a completed building before zone and race modifiers.
    produces: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UnitDefinition:
    unit_type: UnitType
    race: Race | None  # None for universal siege engines
    role: UnitRole
    attack: int
    defense: int
    hp: int
    gold_cost: int
    food_upkeep: int
    mana_cost: int = 0


@dataclass(frozen=True, slots=True)
class RaceDefinition:
    race: Race
    food_consumption_rate: float
    attack_modifier: float = 1.0
    defense_modifier: float = 1.0
    death_save_bonus: int = 0
    building_modifiers: Mapping[BuildingType, float] = field(default_factory=dict)
    restricted_buildings: frozenset[BuildingType] = frozenset()


@dataclass(frozen=True, slots=True)
class ClassDefinition:
    captain_class: CaptainClass
    skills: tuple[CaptainSkill, CaptainSkill]
    attack_modifier: float = 1.0
    defense_modifier: float = 1.0
    death_save_bonus: int = 0


@dataclass(frozen=True, slots=True)
class SkillDefinition:
    skill: CaptainSkill
    captain_class: CaptainClass
    attack_modifier: float = 1.0
    defense_modifier: float = 1.0


@dataclass(frozen=True, slots=True)
class EntryTierDefinition:
    tier: EntryTier
    plots: int
    resources: Cost


def _freeze(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


BUILDINGS: Mapping[BuildingType, BuildingDefinition] = _freeze(
    {
        BuildingType.FARM: BuildingDefinition(
            BuildingType.FARM, Cost(gold=100, wood=50), 4, 2, produces={"food": 50}
        ),
        BuildingType.MINE: BuildingDefinition(
            BuildingType.MINE, Cost(gold=150, stone=75), 6, 2, produces={"gold": 40}
        ),
        BuildingType.LUMBERMILL: BuildingDefinition(
            BuildingType.LUMBERMILL, Cost(gold=150, wood=75), 6, 2, produces={"wood": 40}
        ),
        BuildingType.MARKET: BuildingDefinition(
            BuildingType.MARKET,
            Cost(gold=300, stone=100),
            8,
            1,
            requires=BuildingType.MINE,
            produces={"gold": 100},
        ),
        BuildingType.BARRACKS: BuildingDefinition(
            BuildingType.BARRACKS, Cost(gold=200, wood=100), 6, 1
        ),
        BuildingType.WARHALL: BuildingDefinition(
            BuildingType.WARHALL,
            Cost(gold=400, stone=200),
            10,
            1,
            requires=BuildingType.BARRACKS,
        ),
        BuildingType.SIEGEWORKSHOP: BuildingDefinition(
            BuildingType.SIEGEWORKSHOP,
            Cost(gold=500, wood=300),
            12,
            1,
            requires=BuildingType.BARRACKS,
        ),
        BuildingType.ARMORY: BuildingDefinition(
            BuildingType.ARMORY,
            Cost(gold=350, stone=150),
            8,
            1,
            requires=BuildingType.BARRACKS,
        ),
        BuildingType.WALL: BuildingDefinition(
            BuildingType.WALL, Cost(gold=400, stone=500), 12, 1
        ),
        BuildingType.WATCHTOWER: BuildingDefinition(
            BuildingType.WATCHTOWER, Cost(gold=150, wood=100), 4, 2
        ),
        BuildingType.GATE: BuildingDefinition(
            BuildingType.GATE,
            Cost(gold=250, stone=200),
            6,
            1,
            requires=BuildingType.WALL,
        ),
        BuildingType.MAGETOWER: BuildingDefinition(
            BuildingType.MAGETOWER,
            Cost(gold=400, stone=200),
            10,
            1,
            produces={"mana": 20},
        ),
        BuildingType.SHRINE: BuildingDefinition(
            BuildingType.SHRINE,
            Cost(gold=200, stone=150),
            6,
            1,
            requires=BuildingType.MAGETOWER,
            produces={"mana": 10},
        ),
        BuildingType.WAREHOUSE: BuildingDefinition(
            BuildingType.WAREHOUSE,
            Cost(gold=250, wood=150),
            6,
            1,
            requires=BuildingType.MINE,
        ),
    }
)


def _unit(
    unit_type: UnitType,
    race: Race | None,
    role: UnitRole,
    stats: tuple[int, int, int, int, int],
    mana_cost: int = 0,
) -> UnitDefinition:
    attack, defense, hp, gold_cost, food_upkeep = stats
    return UnitDefinition(
        unit_type=unit_type,
        race=race,
        role=role,
        attack=attack,
        defense=defense,
        hp=hp,
        gold_cost=gold_cost,
        food_upkeep=food_upkeep,
        mana_cost=mana_cost,
    )


# (attack, defense, hp, gold, food)
UNITS: Mapping[UnitType, UnitDefinition] = _freeze(
    {
        definition.unit_type: definition
        for definition in (
            _unit(UnitType.STONESHIELD, Race.IRONVELD, UnitRole.DEFENDER, (8, 25, 60, 30, 1)),
            _unit(UnitType.HAMMERER, Race.IRONVELD, UnitRole.ATTACKER, (20, 12, 45, 45, 1)),
            _unit(UnitType.SIEGEANVIL, Race.IRONVELD, UnitRole.ELITE, (15, 35, 100, 100, 2)),
            _unit(UnitType.BLOODWARDEN, Race.VAELTHIR, UnitRole.DEFENDER, (10, 18, 35, 40, 1)),
            _unit(UnitType.CRIMSONBLADE, Race.VAELTHIR, UnitRole.ATTACKER, (28, 6, 25, 50, 1)),
            _unit(
                UnitType.MAGISTER, Race.VAELTHIR, UnitRole.ELITE, (40, 5, 30, 120, 2), mana_cost=50
            ),
            _unit(UnitType.WARSHIELD, Race.KORRATH, UnitRole.DEFENDER, (12, 15, 40, 25, 1)),
            _unit(UnitType.RAGEBORN, Race.KORRATH, UnitRole.ATTACKER, (25, 5, 35, 35, 2)),
            _unit(UnitType.WARCHIEF, Race.KORRATH, UnitRole.ELITE, (35, 20, 70, 90, 3)),
            _unit(UnitType.VEILGUARD, Race.SYLVAETH, UnitRole.DEFENDER, (8, 20, 35, 35, 1)),
            _unit(UnitType.FADESTRIKER, Race.SYLVAETH, UnitRole.ATTACKER, (22, 8, 30, 45, 1)),
            _unit(
                UnitType.DREAMWEAVER,
                Race.SYLVAETH,
                UnitRole.ELITE,
                (15, 15, 40, 80, 1),
                mana_cost=30,
            ),
            _unit(UnitType.CINDERGUARD, Race.ASHBORN, UnitRole.DEFENDER, (12, 18, 45, 35, 0)),
            _unit(UnitType.ASHSTRIKER, Race.ASHBORN, UnitRole.ATTACKER, (22, 10, 35, 40, 0)),
            _unit(UnitType.PYREKNIGHT, Race.ASHBORN, UnitRole.ELITE, (30, 15, 50, 85, 0)),
            _unit(UnitType.GALEGUARD, Race.BREATHBORN, UnitRole.DEFENDER, (10, 16, 30, 30, 1)),
            _unit(UnitType.ZEPHYR, Race.BREATHBORN, UnitRole.ATTACKER, (18, 8, 25, 40, 1)),
            _unit(UnitType.STORMHERALD, Race.BREATHBORN, UnitRole.ELITE, (25, 18, 45, 95, 2)),
            _unit(UnitType.BATTERINGRAM, None, UnitRole.SIEGE, (5, 25, 80, 100, 0)),
            _unit(UnitType.CATAPULT, None, UnitRole.SIEGE, (10, 10, 50, 200, 0)),
            _unit(UnitType.TREBUCHET, None, UnitRole.SIEGE, (15, 5, 40, 400, 0)),
        )
    }
)

RACES: Mapping[Race, RaceDefinition] = _freeze(
    {
        Race.IRONVELD: RaceDefinition(
            Race.IRONVELD,
            food_consumption_rate=0.5,
            defense_modifier=1.20,
            building_modifiers=_freeze({BuildingType.MINE: 1.15}),
        ),
        Race.VAELTHIR: RaceDefinition(
            Race.VAELTHIR,
            food_consumption_rate=1.0,
            attack_modifier=1.10,
            building_modifiers=_freeze({BuildingType.MAGETOWER: 1.30}),
        ),
        Race.KORRATH: RaceDefinition(
            Race.KORRATH, food_consumption_rate=1.0, attack_modifier=1.35
        ),
        Race.SYLVAETH: RaceDefinition(
            Race.SYLVAETH,
            food_consumption_rate=0.8,
            attack_modifier=0.95,
            restricted_buildings=frozenset({BuildingType.SIEGEWORKSHOP}),
        ),
        Race.ASHBORN: RaceDefinition(
            Race.ASHBORN,
            food_consumption_rate=0.0,
            defense_modifier=1.10,
            death_save_bonus=2,
            building_modifiers=_freeze({BuildingType.FARM: 0.80}),
        ),
        Race.BREATHBORN: RaceDefinition(
            Race.BREATHBORN, food_consumption_rate=0.7, defense_modifier=1.05
        ),
    }
)

CLASSES: Mapping[CaptainClass, ClassDefinition] = _freeze(
    {
        CaptainClass.WARLORD: ClassDefinition(
            CaptainClass.WARLORD,
            (CaptainSkill.VANGUARD, CaptainSkill.FORTRESS),
            attack_modifier=1.10,
            defense_modifier=1.05,
            death_save_bonus=2,
        ),
        CaptainClass.ARCHMAGE: ClassDefinition(
            CaptainClass.ARCHMAGE, (CaptainSkill.DESTRUCTION, CaptainSkill.PROTECTION)
        ),
        CaptainClass.HIGHPRIEST: ClassDefinition(
            CaptainClass.HIGHPRIEST,
            (CaptainSkill.CRUSADER, CaptainSkill.ORACLE),
            defense_modifier=1.10,
        ),
        CaptainClass.SHADOWMASTER: ClassDefinition(
            CaptainClass.SHADOWMASTER,
            (CaptainSkill.ASSASSIN, CaptainSkill.SABOTEUR),
            death_save_bonus=3,
        ),
        CaptainClass.MERCHANTPRINCE: ClassDefinition(
            CaptainClass.MERCHANTPRINCE, (CaptainSkill.PROFITEER, CaptainSkill.ARTIFICER)
        ),
        CaptainClass.BEASTLORD: ClassDefinition(
            CaptainClass.BEASTLORD, (CaptainSkill.PACKALPHA, CaptainSkill.WARDEN)
        ),
    }
)

SKILLS: Mapping[CaptainSkill, SkillDefinition] = _freeze(
    {
        skill: SkillDefinition(
            skill,
            definition.captain_class,
            attack_modifier={
                CaptainSkill.VANGUARD: 1.15,
                CaptainSkill.DESTRUCTION: 1.10,
                CaptainSkill.PACKALPHA: 1.08,
                CaptainSkill.ASSASSIN: 1.05,
            }.get(skill, 1.0),
            defense_modifier={
                CaptainSkill.FORTRESS: 1.30,
                CaptainSkill.PROTECTION: 1.20,
                CaptainSkill.WARDEN: 1.10,
                CaptainSkill.ORACLE: 1.08,
            }.get(skill, 1.0),
        )
        for definition in CLASSES.values()
        for skill in definition.skills
    }
)

ENTRY_TIERS: Mapping[EntryTier, EntryTierDefinition] = _freeze(
    {
        EntryTier.FREE: EntryTierDefinition(
            EntryTier.FREE, 2, Cost(gold=1000, stone=400, wood=400, food=200)
        ),
        EntryTier.PREMIUM: EntryTierDefinition(
            EntryTier.PREMIUM, 10, Cost(gold=5000, stone=2000, wood=2000, food=1000)
        ),
    }
)

ZONE_MULTIPLIERS: Mapping[Zone, float] = _freeze(
    {Zone.OUTER: 1.0, Zone.MIDDLE: 1.5, Zone.INNER: 2.0, Zone.HEART: 3.0}
)

# Score awarded per held tile, by zone.
ZONE_SCORE: Mapping[Zone, int] = _freeze(
    {Zone.HEART: 100, Zone.INNER: 5, Zone.MIDDLE: 2, Zone.OUTER: 1}
)

TERRAIN_DEFENSE: Mapping[Terrain, float] = _freeze(
    {
        Terrain.PLAINS: 1.0,
        Terrain.FOREST: 1.20,
        Terrain.MOUNTAIN: 1.35,
        Terrain.RIVER: 1.10,
        Terrain.RUINS: 1.15,
        Terrain.CORRUPTION: 0.90,
    }
)

WATER_TERRAIN: frozenset[Terrain] = frozenset({Terrain.RIVER})

# Completed building that unlocks training for each unit role.
ROLE_BUILDING: Mapping[UnitRole, BuildingType] = _freeze(
    {
        UnitRole.DEFENDER: BuildingType.BARRACKS,
        UnitRole.ATTACKER: BuildingType.BARRACKS,
        UnitRole.ELITE: BuildingType.WARHALL,
        UnitRole.SIEGE: BuildingType.SIEGEWORKSHOP,
    }
)


def get_building(building_type: BuildingType) -> BuildingDefinition:
    return BUILDINGS[building_type]


def get_unit(unit_type: UnitType) -> UnitDefinition:
    return UNITS[unit_type]


def get_race(race: Race) -> RaceDefinition:
    return RACES[race]


def get_class(captain_class: CaptainClass) -> ClassDefinition:
    return CLASSES[captain_class]


def get_skill(skill: CaptainSkill) -> SkillDefinition:
    return SKILLS[skill]


def race_units(race: Race) -> list[UnitDefinition]:
    """Units trainable only by ``race``, in defender/attacker/elite order."""

    return [definition for definition in UNITS.values() if definition.race == race]


def siege_units() -> list[UnitDefinition]:
    return [definition for definition in UNITS.values() if definition.race is None]


def race_unit_for_role(race: Race, role: UnitRole) -> UnitDefinition:
    """Return the race's unit for ``role``.

    Raises:
        KeyError: If the race has no unit with that role
    """
    for definition in race_units(race):
        if definition.role == role:
            return definition
    raise KeyError(f"{race} has no {role} unit")


def is_water(terrain: Terrain) -> bool:
    return terrain in WATER_TERRAIN
