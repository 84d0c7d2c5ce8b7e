"""Map generation, Forsaken seeding and starting positions."""

from __future__ import annotations

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from nemeths.domain.catalog import is_water
from nemeths.domain.enums import Terrain, Zone
from nemeths.domain.map import MapGenerator, is_connected
from nemeths.domain.models import PlayerID, Territory, TerritoryID
from nemeths.utils.grid import chebyshev_distance, coord_to_id, edge_distance
from nemeths.utils.rng import SeededRandom


def _generate(size: int, seed: int) -> MapGenerator:
    generator = MapGenerator(size, SeededRandom(seed), seed=seed)
    generator.generate()
    return generator


def _grid(rows: list[str]) -> list[Territory]:
    """Build territories from rows of ``.`` (plains) and ``~`` (river), indexed [x][y]."""

    size = len(rows)
    territories = []
    for x in range(size):
        for y in range(size):
            terrain = Terrain.RIVER if rows[x][y] == "~" else Terrain.PLAINS
            territories.append(
                Territory(TerritoryID(coord_to_id(x, y, size)), x, y, Zone.OUTER, terrain)
            )
    return territories


@pytest.fixture(scope="module")
def generated() -> MapGenerator:
    return _generate(60, 12345)


class TestConnectivity:
    def test_split_grid_is_not_connected(self):
        assert not is_connected(_grid(["..~..", "..~..", "..~..", "..~..", "..~.."]))

    def test_grid_joined_by_one_tile_is_connected(self):
        assert is_connected(_grid(["..~..", "..~..", ".....", "..~..", "..~.."]))

    def test_all_water_counts_as_connected(self):
        assert is_connected(_grid(["~~", "~~"]))

    @settings(max_examples=15, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    @given(seed=st.integers(min_value=0, max_value=2**31), size=st.sampled_from([16, 24, 33]))
    def test_generated_land_is_always_connected(self, seed, size):
        generator = _generate(size, seed)
        assert is_connected(generator.territories, size)


class TestLayout:
    def test_dense_ids(self, generated):
        assert len(generated.territories) == 60 * 60
        assert all(territory.id == index for index, territory in enumerate(generated.territories))

    def test_same_seed_same_map(self, generated):
        again = _generate(60, 12345)
        assert [t.terrain for t in again.territories] == [t.terrain for t in generated.territories]
        assert [t.forsaken_strength for t in again.territories] == [
            t.forsaken_strength for t in generated.territories
        ]

    def test_zone_bands(self):
        generator = MapGenerator(100, SeededRandom(1), seed=1)
        assert (generator.heart_radius, generator.inner_radius, generator.middle_radius) == (
            5,
            20,
            35,
        )
        assert generator.zone_for(50, 50) == Zone.HEART
        assert generator.zone_for(50, 55) == Zone.HEART
        assert generator.zone_for(50, 56) == Zone.INNER
        assert generator.zone_for(50, 71) == Zone.MIDDLE
        assert generator.zone_for(50, 86) == Zone.OUTER
        assert generator.zone_for(0, 0) == Zone.OUTER

    def test_zones_are_concentric(self, generated):
        order = [Zone.HEART, Zone.INNER, Zone.MIDDLE, Zone.OUTER]
        center = generated.center
        for territory in generated.territories:
            for neighbour in generated.neighbors(territory):
                closer = chebyshev_distance(neighbour.x, neighbour.y, *center) < chebyshev_distance(
                    territory.x, territory.y, *center
                )
                if closer:
                    assert order.index(neighbour.zone) <= order.index(territory.zone)

    def test_zone_counts_cover_the_map(self, generated):
        assert sum(generated.zone_counts().values()) == 60 * 60

    def test_territory_at(self, generated):
        assert generated.territory_at(3, 4).id == coord_to_id(3, 4, 60)
        assert generated.territory_at(-1, 4) is None
        assert generated.territory_at(60, 0) is None


class TestForsaken:
    def test_never_on_water_and_always_positive(self, generated):
        garrisons = [t for t in generated.territories if t.is_forsaken]
        assert garrisons
        for territory in garrisons:
            assert not is_water(territory.terrain)
            assert territory.owner_id is None
            assert territory.forsaken_strength > 0

    def test_heartbeat_grows_and_spreads(self):
        generator = _generate(40, 99)
        before = {t.id: t.forsaken_strength for t in generator.territories if t.is_forsaken}
        free_land = [
            t
            for t in generator.territories
            if not t.is_forsaken and t.owner_id is None and not is_water(t.terrain)
        ]

        spawned = generator.heartbeat(7)

        assert len(spawned) == len(free_land) // 10
        for territory_id, strength in before.items():
            territory = generator.territories[territory_id]
            cap = generator.rules.map.zone_strength_caps[territory.zone] * 1.5
            assert territory.forsaken_strength >= strength
            assert territory.forsaken_strength <= max(strength, cap)
        for territory_id in spawned:
            territory = generator.territories[territory_id]
            assert territory.is_forsaken
            assert not is_water(territory.terrain)

    def test_claim_clears_garrison(self):
        generator = _generate(30, 4)
        territory = next(t for t in generator.territories if t.is_forsaken)
        generator.claim(territory, PlayerID(0))
        assert territory.owner_id == 0
        assert not territory.is_forsaken
        assert territory.forsaken_strength == 0


class TestStartingPositions:
    def test_cluster_is_valid(self):
        generator = _generate(100, 2024)
        positions = generator.find_starting_positions(10, [])
        assert positions is not None
        assert len(positions) == 10 == len(set(positions))
        for territory_id in positions:
            territory = generator.territories[territory_id]
            assert territory.zone == Zone.OUTER
            assert not is_water(territory.terrain)
            assert not territory.is_forsaken
            assert edge_distance(territory.x, territory.y, 100) >= 3
        # contiguous: every tile after the anchor touches an earlier one
        for index, territory_id in enumerate(positions[1:], start=1):
            territory = generator.territories[territory_id]
            assert generator.is_adjacent_to(territory, set(positions[:index]))

    def test_respects_minimum_distance(self):
        generator = _generate(100, 2024)
        first = generator.find_starting_positions(2, [])
        second = generator.find_starting_positions(2, first, min_distance=5)
        assert second is not None
        for a in first:
            for b in second:
                ax, ay = divmod(a, 100)
                bx, by = divmod(b, 100)
                assert chebyshev_distance(ax, ay, bx, by) >= 5

    def test_returns_none_when_nothing_fits(self):
        generator = _generate(16, 5)
        assert generator.find_starting_positions(500, []) is None


def test_expansion_targets_skip_own_and_water():
    territories = _grid([".~.", "...", "..."])
    generator = MapGenerator(3, SeededRandom(0), seed=0)
    generator.territories = territories
    own = generator.territory_at(0, 0)
    generator.claim(own, PlayerID(1))

    targets = generator.expansion_targets(PlayerID(1), [own.id])

    assert [t.id for t in targets] == [coord_to_id(1, 0, 3)]
