"""D20 weighted combat resolution.

A battle compares the attacker's attack strength against the defender's
defense strength.  Each side rolls the weighted d20, whose face maps to an
effectiveness percentage; the defender additionally multiplies in the
territorial bonus from terrain and fortifications.  Natural 20s and natural
1s take priority over the strength ratio when deciding the outcome, and
also shape casualty rates and captain death saves.

``resolve_combat`` does not mutate players or forces.  It returns a
:class:`CombatResult` whose record carries net casualties (after Ashborn
reformation) and captain deaths; the scheduler applies them.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from nemeths.utils.rng import SeededRandom, WeightedRoll

from .catalog import TERRAIN_DEFENSE, UNITS, get_class, get_race, get_skill
from .economy import scale_stack
from .enums import (
    BuildingType,
    CaptainSkill,
    CombatOutcome,
    DeathSaveTrigger,
    Race,
    UnitRole,
    UnitType,
)
from .models import CombatID, CombatRecord, Player, Territory, UnitStack
from .rules_config import DEFAULT_RULES, CombatRules

_DEFAULT_COMBAT = DEFAULT_RULES.combat


@dataclass(slots=True)
class Force:
    """Units committed to one side of a battle."""

    units: list[UnitStack]
    has_captain: bool = False

    @property
    def total_units(self) -> int:
        return sum(stack.quantity for stack in self.units)


@dataclass(slots=True)
class CombatContext:
    combat_id: CombatID
    day: int
    attacker: Player
    defender: Player | None  # None when fighting a Forsaken garrison
    attacking_force: Force
    defending_force: Force
    territory: Territory
    forsaken: bool = False


@dataclass(frozen=True, slots=True)
class CombatResult:
    record: CombatRecord
    territory_changed_owner: bool
    attacker_reformed: int
    defender_reformed: int


# --- modifiers ------------------------------------------------------------------


def attack_modifier(player: Player, *, rules: CombatRules = _DEFAULT_COMBAT) -> float:
    """Race, captain and morale multiplier on attack strength."""

    modifier = get_race(player.race).attack_modifier
    if player.captain_alive:
        modifier *= get_class(player.captain_class).attack_modifier
        modifier *= get_skill(player.captain_skill).attack_modifier
    modifier *= rules.morale_base + (player.morale / 100) * rules.morale_span
    return modifier


def defense_modifier(player: Player) -> float:
    """Race and captain multiplier on defense strength."""

    modifier = get_race(player.race).defense_modifier
    if player.captain_alive:
        modifier *= get_class(player.captain_class).defense_modifier
        modifier *= get_skill(player.captain_skill).defense_modifier
    return modifier


def _hp_factor(stack: UnitStack, rules: CombatRules) -> float:
    max_hp = UNITS[stack.unit_type].hp * stack.quantity
    if max_hp <= 0:
        return 0.0
    return max(rules.min_hp_ratio, stack.current_hp / max_hp)


def attack_strength(
    units: Iterable[UnitStack],
    player: Player | None,
    *,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> int:
    total = 0.0
    for stack in units:
        definition = UNITS[stack.unit_type]
        strength = definition.attack * stack.quantity * _hp_factor(stack, rules)
        if definition.role == UnitRole.ATTACKER:
            strength *= rules.attacker_role_bonus
        total += strength
    if player is not None:
        total *= attack_modifier(player, rules=rules)
    return math.floor(total)


def defense_strength(
    units: Iterable[UnitStack],
    player: Player | None,
    *,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> int:
    total = 0.0
    for stack in units:
        definition = UNITS[stack.unit_type]
        strength = (definition.attack + definition.defense * 2) * stack.quantity / 2
        strength *= _hp_factor(stack, rules)
        if definition.role == UnitRole.DEFENDER:
            strength *= rules.defender_role_bonus
        elif definition.role == UnitRole.ELITE:
            strength *= rules.elite_defense_bonus
        total += strength
    if player is not None:
        total *= defense_modifier(player)
    return math.floor(total)


def territory_defense_bonus(
    territory: Territory,
    defender: Player | None,
    *,
    forsaken: bool = False,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> float:
    """Home advantage from terrain and completed fortifications."""

    bonus = rules.base_territory_bonus * TERRAIN_DEFENSE[territory.terrain]
    if forsaken:
        return bonus
    if territory.has_completed(BuildingType.WALL):
        bonus *= rules.wall_bonus
        if defender is not None and defender.race == Race.IRONVELD:
            bonus *= rules.ironveld_wall_bonus
        if territory.has_completed(BuildingType.GATE):
            bonus *= rules.gate_bonus
    watchtowers = territory.count_buildings(BuildingType.WATCHTOWER, completed_only=True)
    if watchtowers:
        bonus *= 1 + watchtowers * rules.watchtower_bonus_per
    if territory.has_completed(BuildingType.ARMORY):
        bonus *= rules.armory_bonus
    return bonus


# --- outcome and casualties ---------------------------------------------------------


def determine_outcome(
    attacker_roll: WeightedRoll,
    defender_roll: WeightedRoll,
    attacker_effective: int,
    defender_effective: int,
    rng: SeededRandom,
    *,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> CombatOutcome:
    """Apply critical rolls first, then the strength ratio bands."""

    ratio = attacker_effective / max(1, defender_effective)
    if attacker_roll.is_critical and not defender_roll.is_critical:
        if ratio > rules.crit_win_ratio:
            return CombatOutcome.ATTACKER_VICTORY
        return CombatOutcome.DRAW
    if defender_roll.is_critical and not attacker_roll.is_critical:
        if ratio < rules.crit_hold_ratio:
            return CombatOutcome.DEFENDER_VICTORY
        return CombatOutcome.DRAW
    if attacker_roll.is_fumble:
        return CombatOutcome.DEFENDER_VICTORY if defender_effective > 0 else CombatOutcome.DRAW
    if defender_roll.is_fumble:
        return CombatOutcome.ATTACKER_VICTORY if attacker_effective > 0 else CombatOutcome.DRAW
    if ratio > rules.decisive_ratio:
        return CombatOutcome.ATTACKER_VICTORY
    if ratio < rules.losing_ratio:
        return CombatOutcome.DEFENDER_VICTORY

    tiebreak = rng.random()
    band = rules.decisive_ratio - rules.losing_ratio
    attacker_chance = rules.tiebreak_base_chance + (ratio - rules.losing_ratio) * (0.5 / band)
    if tiebreak < attacker_chance:
        return CombatOutcome.ATTACKER_VICTORY
    if tiebreak > rules.tiebreak_draw_threshold:
        return CombatOutcome.DRAW
    return CombatOutcome.DEFENDER_VICTORY


def casualty_rates(
    outcome: CombatOutcome,
    attacker_roll: WeightedRoll,
    defender_roll: WeightedRoll,
    *,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> tuple[float, float]:
    """Return clamped (attacker, defender) casualty rates."""

    attacker_rate, defender_rate = rules.casualty_rates[outcome.value]
    if attacker_roll.is_critical:
        attacker_rate *= rules.crit_own_factor
        defender_rate *= rules.crit_opponent_factor
    if defender_roll.is_critical:
        defender_rate *= rules.crit_own_factor
        attacker_rate *= rules.crit_opponent_factor
    if attacker_roll.is_fumble:
        attacker_rate *= rules.fumble_own_factor
    if defender_roll.is_fumble:
        defender_rate *= rules.fumble_own_factor
    attacker_rate *= rules.roll_factor_base - attacker_roll.roll / rules.roll_factor_divisor
    defender_rate *= rules.roll_factor_base - defender_roll.roll / rules.roll_factor_divisor

    def clamp(rate: float) -> float:
        return max(rules.min_casualty_rate, min(rules.max_casualty_rate, rate))

    return clamp(attacker_rate), clamp(defender_rate)


def death_save(
    player: Player,
    trigger: DeathSaveTrigger,
    rng: SeededRandom,
    *,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> bool:
    """Roll a captain death save; True means the captain survives."""

    modifier = (
        get_race(player.race).death_save_bonus
        + get_class(player.captain_class).death_save_bonus
        + rules.trigger_modifiers[trigger.value]
    )
    cap = rules.death_save_modifier_cap
    modifier = max(-cap, min(cap, modifier))
    return rng.d20() + modifier >= rules.death_save_threshold


def apply_casualties(units: list[UnitStack], casualties: int) -> int:
    """Remove casualties stack by stack in order; returns units removed.

    Hit points shrink in proportion to the units lost and empty stacks are
    pruned in place.
    """
    remaining = casualties
    for stack in units:
        if remaining <= 0:
            break
        lost = min(stack.quantity, remaining)
        scale_stack(stack, lost)
        remaining -= lost
    units[:] = [stack for stack in units if stack.quantity > 0]
    return casualties - max(0, remaining)


def forsaken_force(strength: int, *, rules: CombatRules = _DEFAULT_COMBAT) -> Force:
    """Synthesize the defending army of a Forsaken garrison."""

    count = max(rules.forsaken_min_units, strength // rules.forsaken_strength_per_unit)
    return Force(
        units=[
            UnitStack(
                UnitType.WARSHIELD,
                math.floor(count * rules.forsaken_defender_share),
                strength * rules.forsaken_defender_hp_factor,
            ),
            UnitStack(
                UnitType.RAGEBORN,
                math.floor(count * rules.forsaken_attacker_share),
                strength * rules.forsaken_attacker_hp_factor,
            ),
        ],
        has_captain=False,
    )


# --- resolution -------------------------------------------------------------------------


def _reformed(player: Player | None, casualties: int, rules: CombatRules) -> int:
    if player is None or player.race != Race.ASHBORN or casualties <= 0:
        return 0
    return math.floor(casualties * rules.ashborn_reform_rate)


def resolve_combat(
    context: CombatContext,
    rng: SeededRandom,
    *,
    rules: CombatRules = _DEFAULT_COMBAT,
) -> CombatResult:
    """Resolve one battle.

    Random draws happen in a fixed order: attacker roll, defender roll, the
    tiebreak (only in the close band), attacker then defender death saves,
    then the assassination attempt and its save.
    """
    attacker = context.attacker
    defender = None if context.forsaken else context.defender
    attacking = context.attacking_force
    defending = context.defending_force

    raw_attack = attack_strength(attacking.units, attacker, rules=rules)
    raw_defense = defense_strength(defending.units, defender, rules=rules)
    bonus = territory_defense_bonus(
        context.territory, defender, forsaken=context.forsaken, rules=rules
    )

    attacker_roll = rng.weighted_d20()
    defender_roll = rng.weighted_d20()
    attacker_effective = math.floor(raw_attack * attacker_roll.modifier / 100)
    defender_effective = math.floor(raw_defense * defender_roll.modifier * bonus / 100)

    outcome = determine_outcome(
        attacker_roll, defender_roll, attacker_effective, defender_effective, rng, rules=rules
    )
    attacker_rate, defender_rate = casualty_rates(
        outcome, attacker_roll, defender_roll, rules=rules
    )
    attacker_units = attacking.total_units
    defender_units = defending.total_units
    attacker_casualties = math.floor(attacker_units * attacker_rate)
    defender_casualties = math.floor(defender_units * defender_rate)

    attacker_captain_died = False
    if attacking.has_captain and attacker.captain_alive:
        heavy = attacker_casualties >= attacker_units * rules.army_destroyed_threshold
        if attacker_roll.is_fumble:
            attacker_captain_died = not death_save(
                attacker, DeathSaveTrigger.CRITICAL_HIT, rng, rules=rules
            )
        elif outcome == CombatOutcome.DEFENDER_VICTORY and heavy:
            attacker_captain_died = not death_save(
                attacker, DeathSaveTrigger.ARMY_DESTROYED, rng, rules=rules
            )

    defender_captain_died = False
    if defender is not None and defending.has_captain and defender.captain_alive:
        heavy = defender_casualties >= defender_units * rules.army_destroyed_threshold
        if defender_roll.is_fumble:
            defender_captain_died = not death_save(
                defender, DeathSaveTrigger.CRITICAL_HIT, rng, rules=rules
            )
        elif outcome == CombatOutcome.ATTACKER_VICTORY and heavy:
            defender_captain_died = not death_save(
                defender, DeathSaveTrigger.ARMY_DESTROYED, rng, rules=rules
            )

    assassination_attempted = False
    if (
        defender is not None
        and attacking.has_captain
        and attacker.captain_alive
        and not attacker_captain_died
        and attacker.captain_skill == CaptainSkill.ASSASSIN
        and defender.captain_alive
        and not defender_captain_died
        and rng.chance(rules.assassination_chance)
    ):
        assassination_attempted = True
        defender_captain_died = not death_save(
            defender, DeathSaveTrigger.ASSASSINATION, rng, rules=rules
        )

    attacker_reformed = _reformed(attacker, attacker_casualties, rules)
    defender_reformed = _reformed(defender, defender_casualties, rules)

    record = CombatRecord(
        id=context.combat_id,
        day=context.day,
        territory_id=context.territory.id,
        attacker_id=attacker.id,
        defender_id=defender.id if defender is not None else None,
        attacker_strength=raw_attack,
        defender_strength=raw_defense,
        attacker_effective=attacker_effective,
        defender_effective=defender_effective,
        attacker_roll=attacker_roll.roll,
        defender_roll=defender_roll.roll,
        attacker_modifier=attacker_roll.modifier,
        defender_modifier=math.floor(defender_roll.modifier * bonus),
        territory_bonus=bonus,
        outcome=outcome,
        attacker_casualties=attacker_casualties - attacker_reformed,
        defender_casualties=defender_casualties - defender_reformed,
        attacker_reformed=attacker_reformed,
        defender_reformed=defender_reformed,
        attacker_captain_died=attacker_captain_died,
        defender_captain_died=defender_captain_died,
        assassination_attempted=assassination_attempted,
    )
    return CombatResult(
        record=record,
        territory_changed_owner=outcome == CombatOutcome.ATTACKER_VICTORY,
        attacker_reformed=attacker_reformed,
        defender_reformed=defender_reformed,
    )
