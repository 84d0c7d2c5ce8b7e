from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from nemeths.domain.enums import (
    AgentType,
    CaptainClass,
    CaptainSkill,
    CombatOutcome,
    EventType,
    IssueSeverity,
    Race,
    Zone,
)
from nemeths.domain.models import GenerationResult, Player

from .simulation import SimulationConfig


class PlayerSummary(BaseModel):
    id: int = Field(..., description="Player id within the generation")
    race: Race
    captain_class: CaptainClass
    captain_skill: CaptainSkill
    agent_type: AgentType
    is_premium: bool = False
    captain_alive: bool = True
    territories: int = Field(default=0, ge=0, description="Territories held at the end")
    total_units: int = Field(default=0, ge=0, description="Units left in every army")
    score: int = 0
    morale: int = Field(default=100, ge=0, le=100)
    battles_won: int = Field(default=0, ge=0)
    battles_lost: int = Field(default=0, ge=0)
    total_kills: int = Field(default=0, ge=0)
    total_deaths: int = Field(default=0, ge=0)
    is_eliminated: bool = False
    eliminated_day: int | None = None

    @classmethod
    def from_player(cls, player: Player) -> PlayerSummary:
        return cls(
            id=int(player.id),
            race=player.race,
            captain_class=player.captain_class,
            captain_skill=player.captain_skill,
            agent_type=player.agent_type,
            is_premium=player.is_premium,
            captain_alive=player.captain_alive,
            territories=len(player.territories),
            total_units=player.total_units,
            score=player.score,
            morale=player.morale,
            battles_won=player.battles_won,
            battles_lost=player.battles_lost,
            total_kills=player.total_kills,
            total_deaths=player.total_deaths,
            is_eliminated=player.is_eliminated,
            eliminated_day=player.eliminated_day,
        )


class GenerationSummary(BaseModel):
    """JSON-friendly projection of one finished generation."""

    id: int | None = Field(None, description="Repository id, assigned when stored")
    seed: int
    winner_id: int | None = None
    final_day: int = Field(..., ge=0)
    players: list[PlayerSummary] = Field(default_factory=list)
    combat_count: int = Field(default=0, ge=0)
    outcome_counts: dict[CombatOutcome, int] = Field(default_factory=dict)
    event_counts: dict[EventType, int] = Field(default_factory=dict)
    territory_count_by_zone: dict[Zone, int] = Field(default_factory=dict)
    config: SimulationConfig | None = Field(None, description="Configuration that produced it")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def winner(self) -> PlayerSummary | None:
        if self.winner_id is None:
            return None
        return next((player for player in self.players if player.id == self.winner_id), None)

    @classmethod
    def from_result(
        cls, result: GenerationResult, config: SimulationConfig | None = None
    ) -> GenerationSummary:
        outcome_counts: dict[CombatOutcome, int] = {}
        for record in result.combat_log:
            outcome_counts[record.outcome] = outcome_counts.get(record.outcome, 0) + 1
        event_counts: dict[EventType, int] = {}
        for event in result.events:
            event_counts[event.event_type] = event_counts.get(event.event_type, 0) + 1
        return cls(
            seed=result.seed,
            winner_id=None if result.winner_id is None else int(result.winner_id),
            final_day=result.final_day,
            players=[PlayerSummary.from_player(player) for player in result.players],
            combat_count=len(result.combat_log),
            outcome_counts=outcome_counts,
            event_counts=event_counts,
            territory_count_by_zone=dict(result.territory_count_by_zone),
            config=config,
        )


class GroupStats(BaseModel):
    wins: int = Field(default=0, ge=0)
    plays: int = Field(default=0, ge=0)
    win_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class CombatStats(BaseModel):
    total_combats: int = 0
    attacker_win_rate: float = 0.0
    defender_win_rate: float = 0.0
    draw_rate: float = 0.0
    critical_hit_rate: float = Field(0.0, description="Share of rolls that were natural 20s")
    critical_miss_rate: float = Field(0.0, description="Share of rolls that were natural 1s")
    average_attacker_casualties: float = 0.0
    average_defender_casualties: float = 0.0
    captain_deaths: int = 0


class BalanceIssue(BaseModel):
    severity: IssueSeverity
    category: str = Field(..., description="race, class, combat or dice")
    message: str
    value: float = Field(..., description="Observed value")
    expected: float | None = Field(None, description="Expected value, when one applies")


class BalanceReport(BaseModel):
    """Aggregated metrics over a batch of generations."""

    id: int | None = Field(None, description="Repository id, assigned when stored")
    generations: int = Field(default=0, ge=0)
    balance_score: float = Field(default=100.0, ge=0.0, le=100.0)
    race_stats: dict[Race, GroupStats] = Field(default_factory=dict)
    class_stats: dict[CaptainClass, GroupStats] = Field(default_factory=dict)
    skill_stats: dict[CaptainSkill, GroupStats] = Field(default_factory=dict)
    agent_stats: dict[AgentType, GroupStats] = Field(default_factory=dict)
    roll_distribution: dict[int, int] = Field(default_factory=dict)
    combat_stats: CombatStats = Field(default_factory=CombatStats)
    average_final_day: float = 0.0
    average_winner_score: float = 0.0
    issues: list[BalanceIssue] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def has_critical_issue(self) -> bool:
        return any(issue.severity == IssueSeverity.CRITICAL for issue in self.issues)
