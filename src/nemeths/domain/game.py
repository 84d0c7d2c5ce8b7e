"""Day-by-day scheduler for one Nemeths generation.

The engine owns a :class:`SimulationState` and a single :class:`SeededRandom`
that every subsystem draws from in a fixed order, so a configuration and seed
always replay to the same :class:`GenerationResult`.

Each day runs the players in id order (economy, starvation or recovery,
building completion, agent turn, score), then eliminations, then the weekly
Forsaken heartbeat.
"""

from __future__ import annotations

import logging
import math

from nemeths.agents import AgentAction, AgentContext, AgentPolicy, create_agent
from nemeths.schemas.simulation import SimulationConfig
from nemeths.utils.rng import SeededRandom

from . import economy
from .catalog import CLASSES, ENTRY_TIERS, is_water, race_unit_for_role
from .combat import CombatContext, Force, apply_casualties, forsaken_force, resolve_combat
from .enums import (
    ActionType,
    AgentType,
    CaptainClass,
    CombatOutcome,
    EntryTier,
    EventType,
    Phase,
    Race,
    Zone,
)
from .map import MapGenerator
from .models import (
    Army,
    ArmyID,
    Building,
    CombatID,
    CombatRecord,
    GenerationResult,
    Player,
    PlayerID,
    Resources,
    SimEvent,
    SimulationState,
    Territory,
    TerritoryID,
    UnitStack,
)
from .rules_config import DEFAULT_RULES, RulesConfig, SchedulerRules

logger = logging.getLogger(__name__)


class StartingPositionError(RuntimeError):
    """Raised when a player cannot be placed even with relaxed spacing."""


def phase_for_day(day: int, rules: SchedulerRules = DEFAULT_RULES.scheduler) -> Phase:
    if day <= rules.planning_end_day:
        return Phase.PLANNING
    if day <= rules.active_end_day:
        return Phase.ACTIVE
    return Phase.ENDGAME


def commit_ratio(
    agent_type: AgentType, owned: int, rules: SchedulerRules = DEFAULT_RULES.scheduler
) -> float:
    """Share of the main army an attacker sends out; shrinks as its realm grows."""

    base, decay, floor = rules.commit_ratios.get(agent_type, rules.default_commit_ratio)
    return max(floor, base - max(1, owned) * decay)


def garrison_share(owned: int, rules: SchedulerRules = DEFAULT_RULES.scheduler) -> float:
    """Share of the main army available to defend any one territory."""

    share = 1.0 / math.sqrt(max(1, owned))
    return max(rules.garrison_share_min, min(rules.garrison_share_max, share))


def militia_size(
    territory: Territory, race: Race, rules: SchedulerRules = DEFAULT_RULES.scheduler
) -> int:
    """Free local militia defending a player-owned territory."""

    size = rules.militia_by_zone[territory.zone]
    for building_type, bonus in rules.militia_building_bonus.items():
        if territory.has_completed(building_type):
            size += bonus
    return math.floor(size * rules.militia_race_multiplier.get(race, 1.0))


def split_stacks(stacks: list[UnitStack], ratio: float) -> list[UnitStack]:
    """Detach ``ratio`` of every stack without touching the source."""

    detached: list[UnitStack] = []
    for stack in stacks:
        quantity = math.floor(stack.quantity * ratio)
        if quantity <= 0:
            continue
        hp = math.floor(stack.current_hp * ratio)
        detached.append(UnitStack(stack.unit_type, quantity, hp))
    return detached


class GameEngine:
    """Runs one generation from an empty map to a winner."""

    def __init__(self, config: SimulationConfig, *, rules: RulesConfig = DEFAULT_RULES) -> None:
        self.config = config
        self.rules = rules
        self.rng = SeededRandom(config.seed)
        self.map = MapGenerator(config.map_size, self.rng, seed=config.seed, rules=rules)
        self.state: SimulationState | None = None
        self.agents: dict[PlayerID, AgentPolicy] = {}
        self._next_army_id = 0

    # --- lifecycle ----------------------------------------------------------------

    def run(self) -> GenerationResult:
        """Initialise if needed, play every day and return the result."""

        state = self.state if self.state is not None else self.initialize()
        while state.day < self.config.days and state.phase != Phase.ENDED:
            self.advance_day()
            if len(state.active_players()) < 2:
                logger.debug(
                    "Generation seed=%d ended early on day %d", self.config.seed, state.day
                )
                break
        return self.finish()

    def initialize(self) -> SimulationState:
        """Generate the map, create the players and place them."""

        territories = self.map.generate()
        state = SimulationState(size=self.config.map_size, territories=territories)
        self.state = state
        logger.info(
            "Starting generation seed=%d: %d players on a %dx%d map for %d days",
            self.config.seed,
            self.config.players,
            self.config.map_size,
            self.config.map_size,
            self.config.days,
        )
        for index in range(self.config.players):
            self._create_player(state, PlayerID(index))
        self._assign_starting_territories(state)
        return state

    def advance_day(self) -> None:
        """Play one full day."""

        state = self._require_state()
        state.day += 1
        phase = phase_for_day(state.day, self.rules.scheduler)
        if phase != state.phase:
            self._emit(EventType.PHASE_CHANGED, data={"from": state.phase, "to": phase})
            state.phase = phase

        for player in state.players:
            if player.is_eliminated:
                continue
            self._player_turn(state, player)

        self._check_eliminations(state)

        if state.day % self.rules.map.heartbeat_interval_days == 0:
            spawned = self.map.heartbeat(state.day)
            self._emit(EventType.FORSAKEN_SPAWNED, data={"count": len(spawned)})

        if self.config.verbose:
            logger.debug(
                "Day %d (%s): %d active players, %d combats so far",
                state.day,
                state.phase,
                len(state.active_players()),
                len(state.combat_log),
            )

    def finish(self) -> GenerationResult:
        """Close the generation and pick the winner."""

        state = self._require_state()
        if state.phase != Phase.ENDED:
            self._emit(EventType.PHASE_CHANGED, data={"from": state.phase, "to": Phase.ENDED})
            state.phase = Phase.ENDED
        winner = self.determine_winner(state.players)
        zone_stats = self.map.zone_stats()
        result = GenerationResult(
            seed=self.config.seed,
            winner_id=winner.id if winner is not None else None,
            final_day=state.day,
            players=state.players,
            combat_log=state.combat_log,
            events=state.events,
            territory_count_by_zone={zone: zone_stats[zone].claimed for zone in Zone},
        )
        if winner is not None:
            logger.info(
                "Generation seed=%d finished on day %d: player %d (%s %s) wins with %d points",
                self.config.seed,
                state.day,
                winner.id,
                winner.race,
                winner.captain_class,
                winner.score,
            )
        else:
            logger.info(
                "Generation seed=%d finished on day %d without a winner",
                self.config.seed,
                state.day,
            )
        return result

    @staticmethod
    def determine_winner(players: list[Player]) -> Player | None:
        """Highest score among active players; the lowest id wins ties."""

        winner: Player | None = None
        for player in players:
            if player.is_eliminated:
                continue
            if winner is None or player.score > winner.score:
                winner = player
        return winner

    # --- setup --------------------------------------------------------------------

    def _create_player(self, state: SimulationState, player_id: PlayerID) -> Player:
        weights = self.config.agent_distribution.weights()
        agent_type = self.rng.weighted_pick(list(weights), list(weights.values()))
        race = self.rng.pick(list(Race))
        captain_class = self.rng.pick(list(CaptainClass))
        captain_skill = self.rng.pick(CLASSES[captain_class].skills)
        is_premium = self.rng.chance(self.rules.scheduler.premium_chance)
        tier = ENTRY_TIERS[EntryTier.PREMIUM if is_premium else EntryTier.FREE]

        player = Player(
            id=player_id,
            race=race,
            captain_class=captain_class,
            captain_skill=captain_skill,
            agent_type=agent_type,
            resources=Resources(**tier.resources.as_dict()),
            is_premium=is_premium,
        )
        state.players.append(player)
        self.agents[player_id] = create_agent(agent_type, self.rng)
        self._emit(
            EventType.PLAYER_JOINED,
            player_id,
            {
                "race": race,
                "captain_class": captain_class,
                "captain_skill": captain_skill,
                "agent_type": agent_type,
                "is_premium": is_premium,
            },
        )
        return player

    def _assign_starting_territories(self, state: SimulationState) -> None:
        occupied: list[TerritoryID] = []
        scheduler = self.rules.scheduler
        for player in state.players:
            tier = ENTRY_TIERS[EntryTier.PREMIUM if player.is_premium else EntryTier.FREE]
            positions = self._find_positions(tier.plots, occupied)
            for territory_id in positions:
                self.map.claim(state.territory(territory_id), player.id)
                player.territories.add(territory_id)
            occupied.extend(positions)

            unit = race_unit_for_role(player.race, scheduler.starter_army_role)
            player.armies.append(
                Army(
                    id=self._allocate_army_id(),
                    owner_id=player.id,
                    territory_id=positions[0],
                    units=[UnitStack.full_strength(unit.unit_type, scheduler.starter_army_size)],
                    has_captain=True,
                )
            )
            player.score = economy.calculate_score(
                player, state.owned_territories(player), rules=self.rules.economy
            )

    def _find_positions(self, plots: int, occupied: list[TerritoryID]) -> list[TerritoryID]:
        """Place a cluster, relaxing spacing and then the edge buffer."""

        distances = (
            self.rules.map.starting_min_distance,
            *self.rules.scheduler.relaxed_min_distances,
        )
        for min_distance in distances:
            positions = self.map.find_starting_positions(
                plots, occupied, min_distance=min_distance
            )
            if positions is not None:
                return positions
        positions = self.map.find_starting_positions(
            plots,
            occupied,
            min_distance=distances[-1],
            edge_buffer=self.rules.scheduler.relaxed_edge_buffer,
        )
        if positions is None:
            raise StartingPositionError(
                f"no room for a {plots}-plot start on a {self.config.map_size} map "
                f"with {len(occupied)} tiles already taken"
            )
        return positions

    def _allocate_army_id(self) -> ArmyID:
        army_id = ArmyID(self._next_army_id)
        self._next_army_id += 1
        return army_id

    # --- daily tick ---------------------------------------------------------------

    def _player_turn(self, state: SimulationState, player: Player) -> None:
        economy_rules = self.rules.economy
        territories = state.owned_territories(player)

        report = economy.apply_daily_tick(player, territories, rules=economy_rules)
        if player.resources.food < 0:
            deserters = economy.apply_starvation(player, rules=economy_rules)
            player.total_deaths += deserters
            self._emit(
                EventType.STARVATION,
                player.id,
                {"deserters": deserters, "morale": player.morale, "net_food": report.net_food},
            )
        else:
            economy.recover_morale(player, rules=economy_rules)

        for territory in territories:
            for building in territory.buildings:
                if not building.completed and building.completion_day <= state.day:
                    building.completed = True
                    self._emit(
                        EventType.BUILDING_COMPLETED,
                        player.id,
                        {"building_type": building.building_type, "territory_id": territory.id},
                    )

        context = AgentContext(
            player=player,
            territories=territories,
            day=state.day,
            phase=state.phase,
            players=state.players,
            map=self.map,
            rng=self.rng,
        )
        actions = self.agents[player.id].decide(context)
        for action in actions[: self.rules.scheduler.actions_per_turn]:
            self.execute_action(player, action)

        player.score = economy.calculate_score(
            player, state.owned_territories(player), rules=economy_rules
        )

    def _check_eliminations(self, state: SimulationState) -> None:
        for player in state.players:
            if player.is_eliminated or player.territories:
                continue
            player.is_eliminated = True
            player.eliminated_day = state.day
            self._emit(EventType.PLAYER_ELIMINATED, player.id, {"reason": "no_territories"})

    # --- actions --------------------------------------------------------------------

    def execute_action(self, player: Player, action: AgentAction) -> bool:
        """Carry out one action; returns False when it was illegal and skipped."""

        if action.action_type == ActionType.BUILD:
            return self._execute_build(player, action)
        if action.action_type == ActionType.TRAIN:
            return self._execute_train(player, action)
        if action.action_type == ActionType.ATTACK:
            return self._execute_attack(player, action)
        return True

    def _lookup(self, territory_id: TerritoryID | None) -> Territory | None:
        state = self._require_state()
        if territory_id is None or not 0 <= territory_id < len(state.territories):
            return None
        return state.territory(territory_id)

    def _execute_build(self, player: Player, action: AgentAction) -> bool:
        territory = self._lookup(action.territory_id)
        if territory is None or action.building_type is None or territory.owner_id != player.id:
            logger.debug("Player %d build skipped: not its territory", player.id)
            return False
        check = economy.can_build(player, territory, action.building_type, rules=self.rules.economy)
        if not check.can_build:
            logger.debug(
                "Player %d cannot build %s: %s", player.id, action.building_type, check.reason
            )
            return False
        cost = economy.building_cost(player, action.building_type, rules=self.rules.economy)
        if not economy.spend(player.resources, cost):
            return False
        day = self._require_state().day
        territory.buildings.append(
            Building(
                building_type=action.building_type,
                territory_id=territory.id,
                completion_day=economy.build_completion_day(
                    player, action.building_type, day, rules=self.rules.economy
                ),
            )
        )
        return True

    def _execute_train(self, player: Player, action: AgentAction) -> bool:
        army = player.main_army
        if action.unit_type is None or army is None:
            return False
        territories = self._require_state().owned_territories(player)
        check = economy.can_train(
            player, territories, action.unit_type, action.quantity, rules=self.rules.economy
        )
        if not check.can_train:
            logger.debug(
                "Player %d cannot train %s: %s", player.id, action.unit_type, check.reason
            )
            return False
        cost = economy.unit_cost(action.unit_type, action.quantity)
        if not economy.spend(player.resources, cost):
            return False
        army.add_units(action.unit_type, action.quantity)
        return True

    def _execute_attack(self, player: Player, action: AgentAction) -> bool:
        state = self._require_state()
        army = player.main_army
        target = self._lookup(action.target_id)
        if state.phase == Phase.PLANNING or army is None or army.total_units == 0:
            return False
        if target is None or target.owner_id == player.id or is_water(target.terrain):
            return False
        if not self.map.is_adjacent_to(target, player.territories):
            logger.debug("Player %d attack on %d skipped: not adjacent", player.id, target.id)
            return False

        if target.is_forsaken:
            return self._attack_forsaken(state, player, army, target)
        if target.owner_id is None:
            self._take_territory(state, player, target, None)
            return True
        defender = state.player(target.owner_id)
        if defender.is_eliminated:
            return False
        return self._attack_player(state, player, army, defender, target)

    def _attacking_force(self, player: Player, army: Army) -> Force:
        ratio = commit_ratio(player.agent_type, len(player.territories), self.rules.scheduler)
        return Force(split_stacks(army.units, ratio), has_captain=army.has_captain)

    def _attack_forsaken(
        self, state: SimulationState, player: Player, army: Army, target: Territory
    ) -> bool:
        attacking = self._attacking_force(player, army)
        if attacking.total_units == 0:
            return False
        defending = forsaken_force(target.forsaken_strength, rules=self.rules.combat)
        defending_units = defending.total_units
        result = resolve_combat(
            CombatContext(
                combat_id=CombatID(len(state.combat_log)),
                day=state.day,
                attacker=player,
                defender=None,
                attacking_force=attacking,
                defending_force=defending,
                territory=target,
                forsaken=True,
            ),
            self.rng,
            rules=self.rules.combat,
        )
        record = result.record
        self._apply_attacker_losses(player, army, record)
        if result.territory_changed_owner:
            player.battles_won += 1
            self._take_territory(state, player, target, None)
        else:
            player.battles_lost += 1
            losses = math.floor(
                target.forsaken_strength * record.defender_casualties / max(1, defending_units)
            )
            target.forsaken_strength = max(1, target.forsaken_strength - losses)
        self._log_combat(state, player, record)
        return True

    def _attack_player(
        self,
        state: SimulationState,
        player: Player,
        army: Army,
        defender: Player,
        target: Territory,
    ) -> bool:
        attacking = self._attacking_force(player, army)
        if attacking.total_units == 0:
            return False

        militia_unit = race_unit_for_role(defender.race, self.rules.scheduler.starter_army_role)
        militia = militia_size(target, defender.race, self.rules.scheduler)
        defending_units = [UnitStack.full_strength(militia_unit.unit_type, militia)]
        defender_army = defender.main_army
        contributed = 0
        has_captain = False
        if defender_army is not None and defender_army.total_units > 0:
            share = garrison_share(len(defender.territories), self.rules.scheduler)
            for stack in split_stacks(defender_army.units, share):
                contributed += stack.quantity
                merged = next(
                    (unit for unit in defending_units if unit.unit_type == stack.unit_type), None
                )
                if merged is None:
                    defending_units.append(stack)
                else:
                    merged.quantity += stack.quantity
                    merged.current_hp += stack.current_hp
            has_captain = defender_army.has_captain
        defending = Force(defending_units, has_captain=has_captain)
        total_defenders = defending.total_units

        result = resolve_combat(
            CombatContext(
                combat_id=CombatID(len(state.combat_log)),
                day=state.day,
                attacker=player,
                defender=defender,
                attacking_force=attacking,
                defending_force=defending,
                territory=target,
            ),
            self.rng,
            rules=self.rules.combat,
        )
        record = result.record
        self._apply_attacker_losses(player, army, record)

        lost_from_army = 0
        if defender_army is not None and contributed:
            lost_from_army = apply_casualties(
                defender_army.units,
                math.floor(record.defender_casualties * contributed / max(1, total_defenders)),
            )
        defender.total_deaths += lost_from_army
        defender.total_kills += record.attacker_casualties
        if record.defender_captain_died:
            self._kill_captain(defender, record)

        if result.territory_changed_owner:
            player.battles_won += 1
            defender.battles_lost += 1
            self._take_territory(state, player, target, defender)
        else:
            player.battles_lost += 1
            defender.battles_won += 1
        self._log_combat(state, player, record)
        return True

    def _apply_attacker_losses(self, player: Player, army: Army, record: CombatRecord) -> None:
        apply_casualties(army.units, record.attacker_casualties)
        player.total_deaths += record.attacker_casualties
        player.total_kills += record.defender_casualties
        if record.attacker_captain_died:
            self._kill_captain(player, record)

    def _kill_captain(self, player: Player, record: CombatRecord) -> None:
        player.captain_alive = False
        for army in player.armies:
            army.has_captain = False
        self._emit(
            EventType.CAPTAIN_DIED,
            player.id,
            {"combat_id": record.id, "assassinated": record.assassination_attempted},
        )

    def _take_territory(
        self,
        state: SimulationState,
        player: Player,
        target: Territory,
        previous_owner: Player | None,
    ) -> None:
        if previous_owner is not None:
            previous_owner.territories.discard(target.id)
            self._emit(
                EventType.TERRITORY_LOST,
                previous_owner.id,
                {"territory_id": target.id, "by": player.id},
            )
        self.map.claim(target, player.id)
        player.territories.add(target.id)
        self._emit(
            EventType.TERRITORY_CLAIMED,
            player.id,
            {
                "territory_id": target.id,
                "zone": target.zone,
                "from": previous_owner.id if previous_owner is not None else None,
            },
        )

    def _log_combat(self, state: SimulationState, player: Player, record: CombatRecord) -> None:
        state.combat_log.append(record)
        self._emit(
            EventType.COMBAT,
            player.id,
            {
                "combat_id": record.id,
                "territory_id": record.territory_id,
                "defender_id": record.defender_id,
                "outcome": record.outcome,
            },
        )
        if record.outcome == CombatOutcome.ATTACKER_VICTORY:
            logger.debug(
                "Day %d: player %d took territory %d", state.day, player.id, record.territory_id
            )

    # --- helpers --------------------------------------------------------------------

    def _emit(
        self,
        event_type: EventType,
        player_id: PlayerID | None = None,
        data: dict[str, object] | None = None,
    ) -> None:
        state = self._require_state()
        state.events.append(SimEvent(state.day, event_type, player_id, data or {}))

    def _require_state(self) -> SimulationState:
        if self.state is None:
            raise RuntimeError("GameEngine.initialize() has not been called")
        return self.state


def run_generation(
    config: SimulationConfig, *, rules: RulesConfig = DEFAULT_RULES
) -> GenerationResult:
    """Convenience wrapper: build an engine and run it to completion."""

    return GameEngine(config, rules=rules).run()


__all__ = [
    "GameEngine",
    "StartingPositionError",
    "commit_ratio",
    "garrison_share",
    "militia_size",
    "phase_for_day",
    "run_generation",
    "split_stacks",
]
