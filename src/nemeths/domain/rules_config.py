"""Declarative rule configuration for the simulation domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .enums import AgentType, BuildingType, Race, Terrain, UnitRole, Zone


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


@dataclass(frozen=True, slots=True)
class ForsakenTier:
    """Garrison tier drawn when seeding Forsaken territories."""

    name: str
    weight: int
    min_strength: int
    max_strength: int


@dataclass(frozen=True, slots=True)
class MapRules:
    """Map layout, terrain and Forsaken seeding constants."""

    heart_radius_fraction: float = 0.10
    inner_radius_fraction: float = 0.40
    middle_radius_fraction: float = 0.70
    noise_scale: float = 15.0
    terrain_jitter_min: float = 0.8
    terrain_jitter_span: float = 0.4
    terrain_weights: Mapping[Zone, Mapping[Terrain, float]] = field(
        default_factory=lambda: _frozen(
            {
                Zone.HEART: _frozen(
                    {Terrain.CORRUPTION: 5.0, Terrain.MOUNTAIN: 0.5, Terrain.PLAINS: 0.3}
                ),
                Zone.INNER: _frozen(
                    {
                        Terrain.CORRUPTION: 2.0,
                        Terrain.MOUNTAIN: 2.0,
                        Terrain.RUINS: 1.5,
                        Terrain.PLAINS: 1.0,
                        Terrain.FOREST: 0.8,
                    }
                ),
                Zone.MIDDLE: _frozen(
                    {
                        Terrain.PLAINS: 1.5,
                        Terrain.FOREST: 1.5,
                        Terrain.MOUNTAIN: 1.0,
                        Terrain.RUINS: 1.0,
                        Terrain.RIVER: 1.0,
                    }
                ),
                Zone.OUTER: _frozen(
                    {
                        Terrain.PLAINS: 2.0,
                        Terrain.FOREST: 1.5,
                        Terrain.RUINS: 0.8,
                        Terrain.RIVER: 0.8,
                        Terrain.MOUNTAIN: 0.3,
                        Terrain.CORRUPTION: 0.1,
                    }
                ),
            }
        )
    )
    forsaken_density: Mapping[Zone, float] = field(
        default_factory=lambda: _frozen(
            {Zone.OUTER: 0.15, Zone.MIDDLE: 0.25, Zone.INNER: 0.35, Zone.HEART: 0.50}
        )
    )
    forsaken_tiers: tuple[ForsakenTier, ...] = (
        ForsakenTier("hamlet", 50, 20, 50),
        ForsakenTier("village", 30, 50, 150),
        ForsakenTier("town", 15, 150, 400),
        ForsakenTier("stronghold", 5, 400, 1000),
    )
    forsaken_zone_multipliers: Mapping[Zone, float] = field(
        default_factory=lambda: _frozen(
            {Zone.OUTER: 0.8, Zone.MIDDLE: 1.0, Zone.INNER: 1.3, Zone.HEART: 1.6}
        )
    )
    heartbeat_interval_days: int = 7
    heartbeat_growth: float = 1.2
    heartbeat_cap_multiplier: float = 1.5
    heartbeat_spawn_fraction: float = 0.10
    zone_strength_caps: Mapping[Zone, int] = field(
        default_factory=lambda: _frozen(
            {Zone.OUTER: 150, Zone.MIDDLE: 300, Zone.INNER: 500, Zone.HEART: 800}
        )
    )
    starting_min_distance: int = 5
    starting_edge_buffer: int = 3


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Production, upkeep and eligibility constants."""

    base_gold_per_territory: int = 10
    base_food_per_territory: int = 5
    sylvaeth_production_bonus: float = 1.10
    vaelthir_mana_bonus: float = 1.5
    vaelthir_building_surcharge: float = 1.15
    merchantprince_food_discount: float = 0.9
    artificer_build_time_factor: float = 0.75
    score_per_building: int = 5
    score_unit_divisor: int = 100
    score_per_battle_won: int = 10
    starvation_morale_loss: int = 10
    starvation_desertion_rate: float = 0.10
    morale_recovery_per_day: int = 10
    max_morale: int = 100


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Strength, outcome, casualty and captain death constants."""

    attacker_role_bonus: float = 1.15
    defender_role_bonus: float = 1.20
    elite_defense_bonus: float = 1.10
    min_hp_ratio: float = 0.1
    morale_base: float = 0.7
    morale_span: float = 0.6
    base_territory_bonus: float = 1.5
    wall_bonus: float = 1.5
    ironveld_wall_bonus: float = 1.15
    gate_bonus: float = 1.10
    watchtower_bonus_per: float = 0.05
    armory_bonus: float = 1.15
    crit_win_ratio: float = 0.5
    crit_hold_ratio: float = 2.0
    decisive_ratio: float = 1.5
    losing_ratio: float = 0.9
    tiebreak_base_chance: float = 0.1
    tiebreak_draw_threshold: float = 0.85
    casualty_rates: Mapping[str, tuple[float, float]] = field(
        default_factory=lambda: _frozen(
            {
                "attacker_victory": (0.10, 0.35),
                "defender_victory": (0.40, 0.15),
                "draw": (0.25, 0.20),
            }
        )
    )
    crit_own_factor: float = 0.5
    crit_opponent_factor: float = 1.3
    fumble_own_factor: float = 1.5
    roll_factor_base: float = 1.3
    roll_factor_divisor: float = 30.0
    min_casualty_rate: float = 0.05
    max_casualty_rate: float = 0.80
    army_destroyed_threshold: float = 0.7
    assassination_chance: float = 0.12
    death_save_threshold: int = 10
    death_save_modifier_cap: int = 5
    trigger_modifiers: Mapping[str, int] = field(
        default_factory=lambda: _frozen(
            {"critical_hit": -1, "army_destroyed": 0, "assassination": -3}
        )
    )
    ashborn_reform_rate: float = 0.25
    forsaken_min_units: int = 5
    forsaken_strength_per_unit: int = 8
    forsaken_defender_share: float = 0.6
    forsaken_attacker_share: float = 0.4
    forsaken_defender_hp_factor: float = 2.0
    forsaken_attacker_hp_factor: float = 1.5


@dataclass(frozen=True, slots=True)
class SchedulerRules:
    """Phase thresholds, turn limits and attack commitment."""

    planning_end_day: int = 5
    active_end_day: int = 45
    actions_per_turn: int = 3
    premium_chance: float = 0.3
    starter_army_size: int = 10
    starter_army_role: UnitRole = UnitRole.DEFENDER
    relaxed_min_distances: tuple[int, ...] = (2, 0)
    # last resort on small maps where the edge buffer swallows the outer band
    relaxed_edge_buffer: int = 0
    # (base ratio, decay per owned territory, floor)
    commit_ratios: Mapping[AgentType, tuple[float, float, float]] = field(
        default_factory=lambda: _frozen(
            {
                AgentType.AGGRESSIVE: (0.7, 0.02, 0.5),
                AgentType.DEFENSIVE: (0.4, 0.02, 0.25),
                AgentType.BALANCED: (0.55, 0.015, 0.4),
            }
        )
    )
    default_commit_ratio: tuple[float, float, float] = (0.5, 0.015, 0.35)
    militia_by_zone: Mapping[Zone, int] = field(
        default_factory=lambda: _frozen(
            {Zone.HEART: 80, Zone.INNER: 60, Zone.MIDDLE: 40, Zone.OUTER: 25}
        )
    )
    militia_building_bonus: Mapping[BuildingType, int] = field(
        default_factory=lambda: _frozen(
            {
                BuildingType.BARRACKS: 40,
                BuildingType.WALL: 30,
                BuildingType.WATCHTOWER: 15,
                BuildingType.ARMORY: 20,
                BuildingType.WARHALL: 25,
            }
        )
    )
    militia_race_multiplier: Mapping[Race, float] = field(
        default_factory=lambda: _frozen({Race.IRONVELD: 1.3, Race.ASHBORN: 1.15})
    )
    garrison_share_min: float = 0.15
    garrison_share_max: float = 0.6


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    map: MapRules = MapRules()
    economy: EconomyRules = EconomyRules()
    combat: CombatRules = CombatRules()
    scheduler: SchedulerRules = SchedulerRules()


DEFAULT_RULES = RulesConfig()
