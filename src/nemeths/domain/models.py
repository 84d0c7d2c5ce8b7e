"""Dataclasses describing every entity of a Nemeths generation.

The simulation keeps its whole state in memory for the lifetime of a
generation.  Territories live in a dense list indexed by
``TerritoryID == x * size + y`` so lookups by id or coordinate are O(1);
players and armies are likewise allocated densely from zero.  Combat
records and events are append-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NewType

from .catalog import UNITS
from .enums import (
    AgentType,
    BuildingType,
    CaptainClass,
    CaptainSkill,
    CombatOutcome,
    EventType,
    Phase,
    Race,
    Terrain,
    UnitType,
    Zone,
)

# --- Strongly typed identifiers -------------------------------------------------

TerritoryID = NewType("TerritoryID", int)
PlayerID = NewType("PlayerID", int)
ArmyID = NewType("ArmyID", int)
CombatID = NewType("CombatID", int)

RESOURCE_NAMES: tuple[str, ...] = ("gold", "stone", "wood", "food", "mana")


# --- Core dataclasses -----------------------------------------------------------


@dataclass(slots=True)
class Resources:
    """Resource stockpile (or cost/production bundle)."""

    gold: int = 0
    stone: int = 0
    wood: int = 0
    food: int = 0
    mana: int = 0

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in RESOURCE_NAMES}

    def copy(self) -> Resources:
        return Resources(**self.as_dict())


@dataclass(slots=True)
class Building:
    """Building queued or standing in a territory."""

    building_type: BuildingType
    territory_id: TerritoryID
    completed: bool = False
    completion_day: int = 0


@dataclass(slots=True)
class Territory:
    """Single map tile."""

    id: TerritoryID
    x: int
    y: int
    zone: Zone
    terrain: Terrain
    owner_id: PlayerID | None = None
    is_forsaken: bool = False
    forsaken_strength: int = 0
    buildings: list[Building] = field(default_factory=list)

    def completed_buildings(self) -> list[Building]:
        return [building for building in self.buildings if building.completed]

    def count_buildings(self, building_type: BuildingType, *, completed_only: bool = False) -> int:
        return sum(
            1
            for building in self.buildings
            if building.building_type == building_type
            and (building.completed or not completed_only)
        )

    def has_completed(self, building_type: BuildingType) -> bool:
        return self.count_buildings(building_type, completed_only=True) > 0


@dataclass(slots=True)
class UnitStack:
    """Quantity of one unit type with its pooled hit points."""

    unit_type: UnitType
    quantity: int
    current_hp: float

    @classmethod
    def full_strength(cls, unit_type: UnitType, quantity: int) -> UnitStack:
        return cls(unit_type, quantity, float(UNITS[unit_type].hp * quantity))

    @property
    def hp_ratio(self) -> float:
        """Fraction of full hit points left, 0 for an empty stack."""

        max_hp = UNITS[self.unit_type].hp * self.quantity
        if max_hp <= 0:
            return 0.0
        return self.current_hp / max_hp


@dataclass(slots=True)
class Army:
    """A player's army.  Never destroyed, may hold zero units."""

    id: ArmyID
    owner_id: PlayerID
    territory_id: TerritoryID
    units: list[UnitStack] = field(default_factory=list)
    has_captain: bool = False

    @property
    def total_units(self) -> int:
        return sum(stack.quantity for stack in self.units)

    @property
    def total_strength(self) -> float:
        """Attack of every unit, scaled by the health of its stack."""

        return sum(
            UNITS[stack.unit_type].attack * stack.quantity * stack.hp_ratio
            for stack in self.units
            if stack.quantity > 0
        )

    def food_upkeep(self, rate: float = 1.0) -> float:
        """Daily food eaten by the army at a race food ``rate``."""

        return sum(
            UNITS[stack.unit_type].food_upkeep * stack.quantity * rate for stack in self.units
        )

    def add_units(self, unit_type: UnitType, quantity: int) -> None:
        """Merge freshly trained units into the matching stack."""

        hp = float(UNITS[unit_type].hp * quantity)
        for stack in self.units:
            if stack.unit_type == unit_type:
                stack.quantity += quantity
                stack.current_hp += hp
                return
        self.units.append(UnitStack(unit_type, quantity, hp))


@dataclass(slots=True)
class Player:
    """Simulated player with its captain, stockpile and holdings."""

    id: PlayerID
    race: Race
    captain_class: CaptainClass
    captain_skill: CaptainSkill
    agent_type: AgentType
    resources: Resources = field(default_factory=Resources)
    is_premium: bool = False
    captain_alive: bool = True
    territories: set[TerritoryID] = field(default_factory=set)
    armies: list[Army] = field(default_factory=list)
    morale: int = 100
    battles_won: int = 0
    battles_lost: int = 0
    total_kills: int = 0
    total_deaths: int = 0
    score: int = 0
    is_eliminated: bool = False
    eliminated_day: int | None = None

    @property
    def is_active(self) -> bool:
        return not self.is_eliminated

    @property
    def main_army(self) -> Army | None:
        return self.armies[0] if self.armies else None

    @property
    def total_units(self) -> int:
        return sum(army.total_units for army in self.armies)


@dataclass(frozen=True, slots=True)
class CombatRecord:
    """Immutable log entry of one resolved battle."""

    id: CombatID
    day: int
    territory_id: TerritoryID
    attacker_id: PlayerID
    defender_id: PlayerID | None
    attacker_strength: int
    defender_strength: int
    attacker_effective: int
    defender_effective: int
    attacker_roll: int
    defender_roll: int
    attacker_modifier: int
    defender_modifier: int
    territory_bonus: float
    outcome: CombatOutcome
    attacker_casualties: int
    defender_casualties: int
    attacker_reformed: int = 0
    defender_reformed: int = 0
    attacker_captain_died: bool = False
    defender_captain_died: bool = False
    assassination_attempted: bool = False


@dataclass(frozen=True, slots=True)
class SimEvent:
    """Append-only event log entry."""

    day: int
    event_type: EventType
    player_id: PlayerID | None = None
    data: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class SimulationState:
    """Complete mutable state of one generation, owned by its engine."""

    size: int
    territories: list[Territory]
    players: list[Player] = field(default_factory=list)
    day: int = 0
    phase: Phase = Phase.PLANNING
    combat_log: list[CombatRecord] = field(default_factory=list)
    events: list[SimEvent] = field(default_factory=list)

    def territory(self, territory_id: TerritoryID) -> Territory:
        return self.territories[territory_id]

    def player(self, player_id: PlayerID) -> Player:
        return self.players[player_id]

    def active_players(self) -> list[Player]:
        return [player for player in self.players if player.is_active]

    def owned_territories(self, player: Player) -> list[Territory]:
        """Territories of ``player`` in id order."""

        return [self.territories[tid] for tid in sorted(player.territories)]


@dataclass(slots=True)
class GenerationResult:
    """Outcome of one finished generation."""

    seed: int
    winner_id: PlayerID | None
    final_day: int
    players: list[Player]
    combat_log: list[CombatRecord]
    events: list[SimEvent]
    territory_count_by_zone: dict[Zone, int] = field(default_factory=dict)

    @property
    def winner(self) -> Player | None:
        if self.winner_id is None:
            return None
        return self.players[self.winner_id]
