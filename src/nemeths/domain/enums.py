"""Enumerations shared by the Nemeths simulation domain."""

from __future__ import annotations

from enum import StrEnum


class Zone(StrEnum):
    """Concentric map bands, innermost first."""

    HEART = "heart"
    INNER = "inner"
    MIDDLE = "middle"
    OUTER = "outer"


class Terrain(StrEnum):
    """Per-tile biome types. ``RIVER`` is the only water terrain."""

    PLAINS = "plains"
    FOREST = "forest"
    MOUNTAIN = "mountain"
    RIVER = "river"
    RUINS = "ruins"
    CORRUPTION = "corruption"


class Race(StrEnum):
    """Playable races."""

    IRONVELD = "ironveld"
    VAELTHIR = "vaelthir"
    KORRATH = "korrath"
    SYLVAETH = "sylvaeth"
    ASHBORN = "ashborn"
    BREATHBORN = "breathborn"


class CaptainClass(StrEnum):
    """Captain classes, each with two skills."""

    WARLORD = "warlord"
    ARCHMAGE = "archmage"
    HIGHPRIEST = "highpriest"
    SHADOWMASTER = "shadowmaster"
    MERCHANTPRINCE = "merchantprince"
    BEASTLORD = "beastlord"


class CaptainSkill(StrEnum):
    """Captain skills (two per class)."""

    VANGUARD = "vanguard"
    FORTRESS = "fortress"
    DESTRUCTION = "destruction"
    PROTECTION = "protection"
    CRUSADER = "crusader"
    ORACLE = "oracle"
    ASSASSIN = "assassin"
    SABOTEUR = "saboteur"
    PROFITEER = "profiteer"
    ARTIFICER = "artificer"
    PACKALPHA = "packalpha"
    WARDEN = "warden"


class BuildingType(StrEnum):
    """Buildings that can be queued in a territory."""

    FARM = "farm"
    MINE = "mine"
    LUMBERMILL = "lumbermill"
    MARKET = "market"
    BARRACKS = "barracks"
    WARHALL = "warhall"
    SIEGEWORKSHOP = "siegeworkshop"
    ARMORY = "armory"
    WALL = "wall"
    WATCHTOWER = "watchtower"
    GATE = "gate"
    MAGETOWER = "magetower"
    SHRINE = "shrine"
    WAREHOUSE = "warehouse"


class UnitRole(StrEnum):
    """Combat role of a unit type."""

    DEFENDER = "defender"
    ATTACKER = "attacker"
    ELITE = "elite"
    SIEGE = "siege"


class UnitType(StrEnum):
    """Trainable unit types: three per race plus universal siege engines."""

    STONESHIELD = "stoneshield"
    HAMMERER = "hammerer"
    SIEGEANVIL = "siegeanvil"
    BLOODWARDEN = "bloodwarden"
    CRIMSONBLADE = "crimsonblade"
    MAGISTER = "magister"
    WARSHIELD = "warshield"
    RAGEBORN = "rageborn"
    WARCHIEF = "warchief"
    VEILGUARD = "veilguard"
    FADESTRIKER = "fadestriker"
    DREAMWEAVER = "dreamweaver"
    CINDERGUARD = "cinderguard"
    ASHSTRIKER = "ashstriker"
    PYREKNIGHT = "pyreknight"
    GALEGUARD = "galeguard"
    ZEPHYR = "zephyr"
    STORMHERALD = "stormherald"
    BATTERINGRAM = "batteringram"
    CATAPULT = "catapult"
    TREBUCHET = "trebuchet"


class Phase(StrEnum):
    """Generation phases, advanced strictly by day thresholds."""

    PLANNING = "planning"
    ACTIVE = "active"
    ENDGAME = "endgame"
    ENDED = "ended"


class AgentType(StrEnum):
    """Strategy driving a simulated player."""

    RANDOM = "random"
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    ECONOMIC = "economic"
    BALANCED = "balanced"


class ActionType(StrEnum):
    """Actions an agent may propose for a tick."""

    BUILD = "build"
    TRAIN = "train"
    ATTACK = "attack"
    WAIT = "wait"


class CombatOutcome(StrEnum):
    """Result category of a resolved battle."""

    ATTACKER_VICTORY = "attacker_victory"
    DEFENDER_VICTORY = "defender_victory"
    DRAW = "draw"


class DeathSaveTrigger(StrEnum):
    """Reason a captain must roll a death save."""

    CRITICAL_HIT = "critical_hit"
    ARMY_DESTROYED = "army_destroyed"
    ASSASSINATION = "assassination"


class EventType(StrEnum):
    """Entries of the append-only generation event log."""

    PLAYER_JOINED = "player_joined"
    BUILDING_COMPLETED = "building_completed"
    COMBAT = "combat"
    TERRITORY_CLAIMED = "territory_claimed"
    TERRITORY_LOST = "territory_lost"
    CAPTAIN_DIED = "captain_died"
    PLAYER_ELIMINATED = "player_eliminated"
    FORSAKEN_SPAWNED = "forsaken_spawned"
    STARVATION = "starvation"
    PHASE_CHANGED = "phase_changed"


class EntryTier(StrEnum):
    """Registration tier deciding starting plots and resources."""

    FREE = "free"
    PREMIUM = "premium"


class IssueSeverity(StrEnum):
    """Severity attached to a detected balance issue."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
