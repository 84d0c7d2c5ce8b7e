"""Map generation, Forsaken seeding and territory queries.

The map is a square grid split into concentric zone bands around the
centre.  Terrain comes from one seeded noise layer per terrain type,
weighted by zone.  After terrain is placed every land tile is made reachable
from every other land tile by converting the water on the shortest joining
path to plains.  Unclaimed land is then seeded with Forsaken garrisons,
which the weekly heartbeat strengthens and spreads.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from nemeths.utils.grid import (
    chebyshev_distance,
    coord_to_id,
    id_to_coord,
    in_bounds,
    is_near_edge,
    neighbors4,
)
from nemeths.utils.noise import ValueNoise
from nemeths.utils.rng import SeededRandom, derive_seed

from .catalog import is_water
from .enums import Terrain, Zone
from .models import PlayerID, Territory, TerritoryID
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ZoneStats:
    """Tile counts for one zone band."""

    total: int = 0
    claimed: int = 0
    forsaken: int = 0


def is_connected(territories: Sequence[Territory], size: int | None = None) -> bool:
    """Return True when every land tile is 4-reachable from every other.

    Args:
        territories: Dense territory list indexed by id
        size: Grid side length, derived from the list length when omitted
    """
    if size is None:
        size = math.isqrt(len(territories))
    land = [territory for territory in territories if not is_water(territory.terrain)]
    if not land:
        return True
    seen = {land[0].id}
    queue = deque([land[0]])
    while queue:
        current = queue.popleft()
        for nx, ny in neighbors4(current.x, current.y, size):
            neighbour = territories[coord_to_id(nx, ny, size)]
            if neighbour.id not in seen and not is_water(neighbour.terrain):
                seen.add(neighbour.id)
                queue.append(neighbour)
    return len(seen) == len(land)


class MapGenerator:
    """Builds and owns the territory grid of one generation."""

    def __init__(
        self,
        size: int,
        rng: SeededRandom,
        *,
        seed: int,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        if size < 1:
            raise ValueError(f"map size must be positive, got {size}")
        self.size = size
        self.rng = rng
        self.seed = seed
        self.rules = rules
        half = size // 2
        self.center = (half, half)
        map_rules = rules.map
        self.heart_radius = round(map_rules.heart_radius_fraction * half)
        self.inner_radius = round(map_rules.inner_radius_fraction * half)
        self.middle_radius = round(map_rules.middle_radius_fraction * half)
        self.territories: list[Territory] = []

    # --- generation ------------------------------------------------------------

    def generate(self) -> list[Territory]:
        """Generate terrain, repair connectivity and seed Forsaken garrisons."""

        self.territories = self._generate_terrain()
        converted = self._repair_connectivity()
        seeded = self.seed_forsaken()
        logger.debug(
            "Generated %dx%d map: %d water tiles converted, %d Forsaken garrisons",
            self.size,
            self.size,
            converted,
            seeded,
        )
        return self.territories

    def zone_for(self, x: int, y: int) -> Zone:
        distance = chebyshev_distance(x, y, *self.center)
        if distance <= self.heart_radius:
            return Zone.HEART
        if distance <= self.inner_radius:
            return Zone.INNER
        if distance <= self.middle_radius:
            return Zone.MIDDLE
        return Zone.OUTER

    def _generate_terrain(self) -> list[Territory]:
        map_rules = self.rules.map
        layers = {
            terrain: ValueNoise(derive_seed(self.seed, "terrain", terrain.value)).sample_grid(
                self.size, self.size, map_rules.noise_scale
            )
            for terrain in Terrain
        }
        territories: list[Territory] = []
        for x in range(self.size):
            for y in range(self.size):
                zone = self.zone_for(x, y)
                weights = map_rules.terrain_weights[zone]
                best_terrain = Terrain.PLAINS
                best_score = 0.0
                for terrain in Terrain:
                    weight = weights.get(terrain, 0.0)
                    if weight <= 0:
                        continue
                    jitter = map_rules.terrain_jitter_min + (
                        self.rng.random() * map_rules.terrain_jitter_span
                    )
                    score = float(layers[terrain][x, y]) * weight * jitter
                    if score > best_score:
                        best_terrain = terrain
                        best_score = score
                territories.append(
                    Territory(
                        id=TerritoryID(coord_to_id(x, y, self.size)),
                        x=x,
                        y=y,
                        zone=zone,
                        terrain=best_terrain,
                    )
                )
        return territories

    def _flood_fill(self, start: Territory, reached: set[TerritoryID]) -> None:
        """Mark every land tile 4-reachable from ``start`` as reached."""

        reached.add(start.id)
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbour in self.neighbors(current):
                if neighbour.id in reached or is_water(neighbour.terrain):
                    continue
                reached.add(neighbour.id)
                queue.append(neighbour)

    def _path_to_reached(
        self, start: Territory, reached: set[TerritoryID]
    ) -> list[Territory]:
        """Shortest 4-directional path over any terrain to a reached tile."""

        parents: dict[TerritoryID, TerritoryID | None] = {start.id: None}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            if current.id in reached:
                path: list[Territory] = []
                step: TerritoryID | None = current.id
                while step is not None:
                    path.append(self.territories[step])
                    step = parents[step]
                return path
            for neighbour in self.neighbors(current):
                if neighbour.id not in parents:
                    parents[neighbour.id] = current.id
                    queue.append(neighbour)
        return []

    def _repair_connectivity(self) -> int:
        """Join isolated land regions; returns the number of converted tiles."""

        land = [territory for territory in self.territories if not is_water(territory.terrain)]
        if not land:
            return 0
        reached: set[TerritoryID] = set()
        self._flood_fill(land[0], reached)
        converted = 0
        for territory in land:
            if territory.id in reached:
                continue
            for step in self._path_to_reached(territory, reached):
                if is_water(step.terrain):
                    step.terrain = Terrain.PLAINS
                    converted += 1
            self._flood_fill(territory, reached)
        return converted

    # --- Forsaken -------------------------------------------------------------

    def roll_garrison(self, zone: Zone) -> int:
        """Draw a tier and a zone-scaled garrison strength."""

        map_rules = self.rules.map
        tiers = map_rules.forsaken_tiers
        tier = self.rng.weighted_pick(tiers, [tier.weight for tier in tiers])
        base = tier.min_strength + self.rng.random() * (tier.max_strength - tier.min_strength)
        return math.floor(base * map_rules.forsaken_zone_multipliers[zone])

    def seed_forsaken(self) -> int:
        """Seed garrisons on unowned land by zone density; returns the count."""

        seeded = 0
        for territory in self.territories:
            if is_water(territory.terrain) or territory.owner_id is not None:
                continue
            if self.rng.chance(self.rules.map.forsaken_density[territory.zone]):
                territory.is_forsaken = True
                territory.forsaken_strength = self.roll_garrison(territory.zone)
                seeded += 1
        return seeded

    def heartbeat(self, day: int) -> list[TerritoryID]:
        """Strengthen existing garrisons and spread new ones.

        Returns:
            Ids of newly garrisoned territories
        """
        map_rules = self.rules.map
        for territory in self.territories:
            if not territory.is_forsaken:
                continue
            cap = map_rules.zone_strength_caps[territory.zone] * map_rules.heartbeat_cap_multiplier
            grown = math.floor(min(territory.forsaken_strength * map_rules.heartbeat_growth, cap))
            territory.forsaken_strength = max(territory.forsaken_strength, grown)

        candidates = [
            territory
            for territory in self.territories
            if territory.owner_id is None
            and not territory.is_forsaken
            and not is_water(territory.terrain)
        ]
        to_spawn = self.rng.shuffle(candidates)[
            : math.floor(len(candidates) * map_rules.heartbeat_spawn_fraction)
        ]
        for territory in to_spawn:
            territory.is_forsaken = True
            territory.forsaken_strength = self.roll_garrison(territory.zone)
        logger.debug("Heartbeat on day %d spawned %d Forsaken garrisons", day, len(to_spawn))
        return [territory.id for territory in to_spawn]

    # --- starting positions ---------------------------------------------------

    def _is_start_candidate(
        self,
        territory: Territory,
        occupied: Sequence[tuple[int, int]],
        min_distance: int,
        edge_buffer: int,
    ) -> bool:
        if territory.zone != Zone.OUTER or is_water(territory.terrain):
            return False
        if territory.owner_id is not None or territory.is_forsaken:
            return False
        if is_near_edge(territory.x, territory.y, self.size, edge_buffer):
            return False
        return all(
            chebyshev_distance(territory.x, territory.y, ox, oy) >= min_distance
            for ox, oy in occupied
        )

    def find_starting_positions(
        self,
        plots: int,
        occupied: Iterable[TerritoryID],
        *,
        min_distance: int | None = None,
        edge_buffer: int | None = None,
    ) -> list[TerritoryID] | None:
        """Find a contiguous outer-zone cluster of ``plots`` free tiles.

        Args:
            plots: Number of tiles the player starts with
            occupied: Territories already taken by other players
            min_distance: Minimum Chebyshev distance from any occupied tile
            edge_buffer: Minimum distance from the map edge

        Returns:
            Territory ids in discovery order, or None when no anchor works
        """
        if min_distance is None:
            min_distance = self.rules.map.starting_min_distance
        if edge_buffer is None:
            edge_buffer = self.rules.map.starting_edge_buffer
        occupied_coords = [id_to_coord(tid, self.size) for tid in occupied]

        def ok(territory: Territory) -> bool:
            return self._is_start_candidate(territory, occupied_coords, min_distance, edge_buffer)

        anchors = [territory for territory in self.territories if ok(territory)]
        for anchor in self.rng.shuffle(anchors):
            region = [anchor.id]
            seen = {anchor.id}
            queue = deque([anchor])
            while queue and len(region) < plots:
                current = queue.popleft()
                for neighbour in self.neighbors(current):
                    if neighbour.id in seen:
                        continue
                    seen.add(neighbour.id)
                    if not ok(neighbour):
                        continue
                    region.append(neighbour.id)
                    queue.append(neighbour)
                    if len(region) >= plots:
                        break
            if len(region) >= plots:
                return region[:plots]
        return None

    # --- accessors ------------------------------------------------------------

    def territory_at(self, x: int, y: int) -> Territory | None:
        if not in_bounds(x, y, self.size):
            return None
        return self.territories[coord_to_id(x, y, self.size)]

    def neighbors(self, territory: Territory) -> list[Territory]:
        """4-directional neighbours in north, south, west, east order."""

        return [
            self.territories[coord_to_id(nx, ny, self.size)]
            for nx, ny in neighbors4(territory.x, territory.y, self.size)
        ]

    def expansion_targets(
        self, player_id: PlayerID, owned: Iterable[TerritoryID]
    ) -> list[Territory]:
        """Land tiles bordering ``owned`` that the player does not hold, by id."""

        targets: dict[TerritoryID, Territory] = {}
        for territory_id in owned:
            for neighbour in self.neighbors(self.territories[territory_id]):
                if neighbour.owner_id == player_id or is_water(neighbour.terrain):
                    continue
                targets[neighbour.id] = neighbour
        return [targets[tid] for tid in sorted(targets)]

    def is_adjacent_to(self, territory: Territory, owned: set[TerritoryID]) -> bool:
        return any(neighbour.id in owned for neighbour in self.neighbors(territory))

    def claim(self, territory: Territory, player_id: PlayerID) -> None:
        territory.owner_id = player_id
        territory.is_forsaken = False
        territory.forsaken_strength = 0

    def zone_counts(self) -> dict[Zone, int]:
        counts = {zone: 0 for zone in Zone}
        for territory in self.territories:
            counts[territory.zone] += 1
        return counts

    def zone_stats(self) -> dict[Zone, ZoneStats]:
        stats = {zone: ZoneStats() for zone in Zone}
        for territory in self.territories:
            entry = stats[territory.zone]
            entry.total += 1
            if territory.owner_id is not None:
                entry.claimed += 1
            elif territory.is_forsaken:
                entry.forsaken += 1
        return stats
