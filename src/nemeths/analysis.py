"""Balance metrics aggregated over many generations."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import TypeVar

import numpy as np

from nemeths.domain.catalog import CLASSES
from nemeths.domain.enums import (
    AgentType,
    CaptainClass,
    CaptainSkill,
    CombatOutcome,
    IssueSeverity,
    Race,
)
from nemeths.domain.models import CombatRecord, GenerationResult
from nemeths.schemas import BalanceIssue, BalanceReport, CombatStats, GroupStats

# Win-rate statistics are only judged once a group has this many plays.
MIN_PLAYS_FOR_RELIABILITY = 50
MIN_COMBATS_FOR_COMBAT_ISSUES = 100
ATTACKER_WIN_RATE_BAND = (0.35, 0.6)
CRIT_RATE_BAND = (0.03, 0.07)

KeyT = TypeVar("KeyT", bound=StrEnum)


def balance_score(win_rates: Sequence[float]) -> float:
    """Score 0-100: 100 when every group wins equally often.

    The variance of the win rates is compared with the square of the
    expected rate, which is the variance when one group wins everything.
    """
    if not win_rates:
        return 100.0
    expected = 1 / len(win_rates)
    variance = float(np.var(np.asarray(win_rates, dtype=float)))
    return float(round(max(0.0, 100 * (1 - variance / expected**2)), 2))


def _group_stats(
    wins: Counter[KeyT], plays: Counter[KeyT], keys: Iterable[KeyT]
) -> dict[KeyT, GroupStats]:
    stats: dict[KeyT, GroupStats] = {}
    for key in keys:
        played = plays[key]
        stats[key] = GroupStats(
            wins=wins[key], plays=played, win_rate=wins[key] / played if played else 0.0
        )
    return stats


class BalanceAnalyzer:
    """Accumulates finished generations and derives balance metrics."""

    def __init__(self) -> None:
        self.generations = 0
        self.race_wins: Counter[Race] = Counter()
        self.race_plays: Counter[Race] = Counter()
        self.class_wins: Counter[CaptainClass] = Counter()
        self.class_plays: Counter[CaptainClass] = Counter()
        self.skill_wins: Counter[CaptainSkill] = Counter()
        self.skill_plays: Counter[CaptainSkill] = Counter()
        self.agent_wins: Counter[AgentType] = Counter()
        self.agent_plays: Counter[AgentType] = Counter()
        self.roll_distribution: Counter[int] = Counter({face: 0 for face in range(1, 21)})
        self.final_days: list[int] = []
        self.winner_scores: list[int] = []
        self._outcomes: Counter[CombatOutcome] = Counter()
        self._attacker_casualties = 0
        self._defender_casualties = 0
        self._captain_deaths = 0

    def add_result(self, result: GenerationResult) -> None:
        self.generations += 1
        self.final_days.append(result.final_day)
        for player in result.players:
            self.race_plays[player.race] += 1
            self.class_plays[player.captain_class] += 1
            self.skill_plays[player.captain_skill] += 1
            self.agent_plays[player.agent_type] += 1

        winner = result.winner
        if winner is not None:
            self.race_wins[winner.race] += 1
            self.class_wins[winner.captain_class] += 1
            self.skill_wins[winner.captain_skill] += 1
            self.agent_wins[winner.agent_type] += 1
            self.winner_scores.append(winner.score)

        for record in result.combat_log:
            self._add_combat(record)

    def add_results(self, results: Iterable[GenerationResult]) -> None:
        for result in results:
            self.add_result(result)

    def _add_combat(self, record: CombatRecord) -> None:
        self._outcomes[record.outcome] += 1
        self.roll_distribution[record.attacker_roll] += 1
        self.roll_distribution[record.defender_roll] += 1
        self._attacker_casualties += record.attacker_casualties
        self._defender_casualties += record.defender_casualties
        self._captain_deaths += record.attacker_captain_died + record.defender_captain_died

    # --- metrics ----------------------------------------------------------------------

    @property
    def total_combats(self) -> int:
        return sum(self._outcomes.values())

    def race_stats(self) -> dict[Race, GroupStats]:
        return _group_stats(self.race_wins, self.race_plays, Race)

    def class_stats(self) -> dict[CaptainClass, GroupStats]:
        return _group_stats(self.class_wins, self.class_plays, CLASSES)

    def skill_stats(self) -> dict[CaptainSkill, GroupStats]:
        return _group_stats(self.skill_wins, self.skill_plays, CaptainSkill)

    def agent_stats(self) -> dict[AgentType, GroupStats]:
        return _group_stats(self.agent_wins, self.agent_plays, AgentType)

    def combat_stats(self) -> CombatStats:
        total = self.total_combats
        if total == 0:
            return CombatStats()
        rolls = sum(self.roll_distribution.values())
        return CombatStats(
            total_combats=total,
            attacker_win_rate=self._outcomes[CombatOutcome.ATTACKER_VICTORY] / total,
            defender_win_rate=self._outcomes[CombatOutcome.DEFENDER_VICTORY] / total,
            draw_rate=self._outcomes[CombatOutcome.DRAW] / total,
            critical_hit_rate=self.roll_distribution[20] / rolls if rolls else 0.0,
            critical_miss_rate=self.roll_distribution[1] / rolls if rolls else 0.0,
            average_attacker_casualties=self._attacker_casualties / total,
            average_defender_casualties=self._defender_casualties / total,
            captain_deaths=self._captain_deaths,
        )

    def balance_score(self) -> float:
        """Race balance score, see :func:`balance_score`."""

        return balance_score([stats.win_rate for stats in self.race_stats().values()])

    def issues(self) -> list[BalanceIssue]:
        issues: list[BalanceIssue] = []
        issues.extend(self._race_issues())
        issues.extend(self._class_issues())
        issues.extend(self._combat_issues())
        return issues

    def _race_issues(self) -> list[BalanceIssue]:
        expected = 1 / len(Race)
        issues: list[BalanceIssue] = []
        for race, stats in self.race_stats().items():
            if stats.plays < MIN_PLAYS_FOR_RELIABILITY:
                continue
            deviation = abs(stats.win_rate - expected) / expected
            if deviation > 0.75:
                severity = IssueSeverity.CRITICAL
            elif deviation > 0.5:
                severity = IssueSeverity.HIGH
            elif deviation > 0.25:
                severity = IssueSeverity.MEDIUM
            else:
                continue
            direction = "high" if stats.win_rate > expected else "low"
            issues.append(
                BalanceIssue(
                    severity=severity,
                    category="race",
                    message=(
                        f"{race} has a {direction} win rate "
                        f"({stats.win_rate:.1%} vs expected {expected:.1%})"
                    ),
                    value=stats.win_rate,
                    expected=expected,
                )
            )
        return issues

    def _class_issues(self) -> list[BalanceIssue]:
        expected = 1 / len(CLASSES)
        issues: list[BalanceIssue] = []
        for captain_class, stats in self.class_stats().items():
            if stats.plays < MIN_PLAYS_FOR_RELIABILITY:
                continue
            deviation = abs(stats.win_rate - expected) / expected
            if deviation <= 0.5:
                continue
            issues.append(
                BalanceIssue(
                    severity=IssueSeverity.CRITICAL if deviation > 0.75 else IssueSeverity.HIGH,
                    category="class",
                    message=f"{captain_class} captains win {stats.win_rate:.1%} of their games",
                    value=stats.win_rate,
                    expected=expected,
                )
            )
        return issues

    def _combat_issues(self) -> list[BalanceIssue]:
        combat = self.combat_stats()
        if combat.total_combats <= MIN_COMBATS_FOR_COMBAT_ISSUES:
            return []
        issues: list[BalanceIssue] = []
        low, high = ATTACKER_WIN_RATE_BAND
        if not low <= combat.attacker_win_rate <= high:
            verb = "often" if combat.attacker_win_rate > high else "rarely"
            issues.append(
                BalanceIssue(
                    severity=IssueSeverity.MEDIUM,
                    category="combat",
                    message=f"Attackers win too {verb} ({combat.attacker_win_rate:.1%})",
                    value=combat.attacker_win_rate,
                )
            )
        low, high = CRIT_RATE_BAND
        if not low <= combat.critical_hit_rate <= high:
            issues.append(
                BalanceIssue(
                    severity=IssueSeverity.LOW,
                    category="dice",
                    message=f"Critical hit rate {combat.critical_hit_rate:.1%} deviates from 5%",
                    value=combat.critical_hit_rate,
                    expected=0.05,
                )
            )
        return issues

    def report(self) -> BalanceReport:
        return BalanceReport(
            generations=self.generations,
            balance_score=self.balance_score(),
            race_stats=self.race_stats(),
            class_stats=self.class_stats(),
            skill_stats=self.skill_stats(),
            agent_stats=self.agent_stats(),
            roll_distribution=dict(sorted(self.roll_distribution.items())),
            combat_stats=self.combat_stats(),
            average_final_day=float(np.mean(self.final_days)) if self.final_days else 0.0,
            average_winner_score=(
                float(np.mean(self.winner_scores)) if self.winner_scores else 0.0
            ),
            issues=self.issues(),
        )
