"""Scheduler helpers and action execution of the game engine."""

from __future__ import annotations

import pytest

from nemeths.agents import AgentAction
from nemeths.domain.catalog import is_water
from nemeths.domain.enums import (
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
from nemeths.domain.game import (
    GameEngine,
    StartingPositionError,
    commit_ratio,
    garrison_share,
    militia_size,
    phase_for_day,
    split_stacks,
)
from nemeths.domain.models import Building, Player, PlayerID, Territory, TerritoryID, UnitStack
from nemeths.schemas import SimulationConfig


def _engine(seed: int = 5, players: int = 4) -> GameEngine:
    engine = GameEngine(SimulationConfig(map_size=40, players=players, days=30, seed=seed))
    engine.initialize()
    return engine


def _activate(engine: GameEngine) -> None:
    engine.state.day = 6
    engine.state.phase = Phase.ACTIVE


def _border_target(engine: GameEngine, player: Player) -> Territory:
    """A land tile next to ``player`` nobody owns."""

    for territory in engine.map.expansion_targets(player.id, player.territories):
        if territory.owner_id is None:
            return territory
    raise AssertionError("player is boxed in")


def _player(player_id: int = 0) -> Player:
    return Player(
        id=PlayerID(player_id),
        race=Race.KORRATH,
        captain_class=CaptainClass.WARLORD,
        captain_skill=CaptainSkill.VANGUARD,
        agent_type=AgentType.BALANCED,
    )


class TestSchedulerHelpers:
    @pytest.mark.parametrize(
        ("day", "phase"),
        [(1, Phase.PLANNING), (5, Phase.PLANNING), (6, Phase.ACTIVE), (45, Phase.ACTIVE)]
        + [(46, Phase.ENDGAME), (50, Phase.ENDGAME)],
    )
    def test_phase_for_day(self, day, phase):
        assert phase_for_day(day) == phase

    def test_commit_ratio_shrinks_to_floor(self):
        assert commit_ratio(AgentType.AGGRESSIVE, 2) == pytest.approx(0.66)
        assert commit_ratio(AgentType.AGGRESSIVE, 100) == pytest.approx(0.5)
        assert commit_ratio(AgentType.DEFENSIVE, 0) == pytest.approx(0.38)
        assert commit_ratio(AgentType.RANDOM, 10) == pytest.approx(0.35)

    @pytest.mark.parametrize(("owned", "share"), [(1, 0.6), (4, 0.5), (16, 0.25), (400, 0.15)])
    def test_garrison_share(self, owned, share):
        assert garrison_share(owned) == pytest.approx(share)

    def test_militia_size(self):
        territory = Territory(TerritoryID(0), 0, 0, Zone.OUTER, Terrain.PLAINS)
        assert militia_size(territory, Race.KORRATH) == 25
        assert militia_size(territory, Race.IRONVELD) == 32
        territory.buildings = [
            Building(BuildingType.BARRACKS, territory.id, completed=True),
            Building(BuildingType.WALL, territory.id, completed=True),
            Building(BuildingType.WATCHTOWER, territory.id, completed=False),
        ]
        assert militia_size(territory, Race.KORRATH) == 95

    def test_split_stacks_leaves_source_untouched(self):
        source = [
            UnitStack(UnitType.WARSHIELD, 10, 400.0),
            UnitStack(UnitType.RAGEBORN, 1, 35.0),
        ]
        detached = split_stacks(source, 0.5)
        assert detached == [UnitStack(UnitType.WARSHIELD, 5, 200)]
        assert source[0].quantity == 10
        assert source[1].quantity == 1

    def test_winner_is_highest_active_score_lowest_id(self):
        players = [_player(index) for index in range(4)]
        players[0].score = 50
        players[1].score = 80
        players[2].score = 80
        players[3].score = 200
        players[3].is_eliminated = True
        assert GameEngine.determine_winner(players).id == 1
        for player in players:
            player.is_eliminated = True
        assert GameEngine.determine_winner(players) is None


class TestInitialize:
    def test_players_start_in_outer_zone(self):
        engine = _engine()
        state = engine.state
        assert len(state.players) == 4
        assert state.day == 0
        assert state.phase == Phase.PLANNING
        taken: set[TerritoryID] = set()
        for player in state.players:
            assert len(player.territories) == (10 if player.is_premium else 2)
            assert not taken & player.territories
            taken |= player.territories
            for territory in state.owned_territories(player):
                assert territory.zone == Zone.OUTER
                assert territory.owner_id == player.id
            army = player.main_army
            assert army.has_captain
            assert army.total_units == 10
            assert army.territory_id in player.territories
            assert player.score > 0
        joined = [e for e in state.events if e.event_type == EventType.PLAYER_JOINED]
        assert len(joined) == 4

    def test_crowded_small_map_raises(self):
        engine = GameEngine(SimulationConfig(map_size=16, players=120, days=5, seed=1))
        with pytest.raises(StartingPositionError):
            engine.initialize()

    def test_advance_before_initialize_fails(self):
        engine = GameEngine(SimulationConfig(map_size=20, players=2, days=5, seed=1))
        with pytest.raises(RuntimeError):
            engine.advance_day()


class TestActions:
    def test_build_queues_and_pays(self):
        engine = _engine()
        player = engine.state.players[0]
        territory_id = min(player.territories)
        gold = player.resources.gold

        assert engine.execute_action(
            player, AgentAction.build(BuildingType.FARM, territory_id, 5)
        )

        building = engine.state.territory(territory_id).buildings[-1]
        assert building.building_type == BuildingType.FARM
        assert not building.completed
        assert building.completion_day == 1
        assert player.resources.gold < gold

    def test_build_elsewhere_is_skipped(self):
        engine = _engine()
        player, other = engine.state.players[:2]
        gold = player.resources.gold
        action = AgentAction.build(BuildingType.FARM, min(other.territories), 5)
        assert not engine.execute_action(player, action)
        assert not engine.execute_action(
            player, AgentAction.build(BuildingType.FARM, TerritoryID(10**6), 5)
        )
        assert player.resources.gold == gold

    def test_train_requires_barracks(self):
        engine = _engine()
        player = engine.state.players[0]
        before = player.main_army.total_units
        action = AgentAction.train(player.main_army.units[0].unit_type, 2, 5)
        assert not engine.execute_action(player, action)
        assert player.main_army.total_units == before

    def test_train_adds_to_main_army(self):
        engine = _engine()
        player = engine.state.players[0]
        territory = engine.state.territory(min(player.territories))
        territory.buildings.append(
            Building(BuildingType.BARRACKS, territory.id, completed=True)
        )
        unit_type = player.main_army.units[0].unit_type
        assert engine.execute_action(player, AgentAction.train(unit_type, 2, 5))
        assert player.main_army.total_units == 12

    def test_no_attacks_while_planning(self):
        engine = _engine()
        player = engine.state.players[0]
        target = _border_target(engine, player)
        assert not engine.execute_action(player, AgentAction.attack(target.id, 5))
        assert engine.state.combat_log == []

    def test_invalid_attack_targets(self):
        engine = _engine()
        _activate(engine)
        player = engine.state.players[0]
        own = min(player.territories)
        assert not engine.execute_action(player, AgentAction.attack(own, 5))
        far = next(
            t
            for t in engine.state.territories
            if not is_water(t.terrain)
            and t.owner_id is None
            and not engine.map.is_adjacent_to(t, player.territories)
        )
        assert not engine.execute_action(player, AgentAction.attack(far.id, 5))
        water = next((t for t in engine.state.territories if is_water(t.terrain)), None)
        if water is not None:
            assert not engine.execute_action(player, AgentAction.attack(water.id, 5))

    def test_empty_land_is_claimed_without_combat(self):
        engine = _engine()
        _activate(engine)
        player = engine.state.players[0]
        target = _border_target(engine, player)
        target.is_forsaken = False
        target.forsaken_strength = 0

        assert engine.execute_action(player, AgentAction.attack(target.id, 5))

        assert target.owner_id == player.id
        assert target.id in player.territories
        assert engine.state.combat_log == []
        claimed = engine.state.events[-1]
        assert claimed.event_type == EventType.TERRITORY_CLAIMED
        assert claimed.data["territory_id"] == target.id

    def test_forsaken_battle_is_logged(self):
        engine = _engine()
        _activate(engine)
        player = engine.state.players[0]
        target = _border_target(engine, player)
        target.is_forsaken = True
        target.forsaken_strength = 1000

        assert engine.execute_action(player, AgentAction.attack(target.id, 5))

        record = engine.state.combat_log[-1]
        assert record.defender_id is None
        assert player.battles_won + player.battles_lost == 1
        if target.owner_id is None:
            assert target.forsaken_strength >= 1
        assert player.main_army is not None

    @pytest.mark.parametrize("seed", [5, 6, 7, 8, 9, 10])
    def test_player_battle_keeps_ownership_consistent(self, seed):
        engine = _engine(seed)
        _activate(engine)
        attacker, defender = engine.state.players[:2]
        target = _border_target(engine, attacker)
        engine.map.claim(target, defender.id)
        defender.territories.add(target.id)
        assert target.owner_id == defender.id

        assert engine.execute_action(attacker, AgentAction.attack(target.id, 5))

        record = engine.state.combat_log[-1]
        assert record.defender_id == defender.id
        captured = record.outcome == CombatOutcome.ATTACKER_VICTORY
        assert (target.owner_id == attacker.id) == captured
        assert (target.id in defender.territories) != captured
        owners = [p.id for p in (attacker, defender) if target.id in p.territories]
        assert owners == [target.owner_id]
        assert attacker.battles_won + attacker.battles_lost == 1
        assert defender.battles_won + defender.battles_lost == 1

    def test_wait_is_always_legal(self):
        engine = _engine()
        assert engine.execute_action(engine.state.players[0], AgentAction.wait())
