from __future__ import annotations

import pytest
from pydantic import ValidationError

from nemeths.domain.enums import AgentType, EventType
from nemeths.domain.game import run_generation
from nemeths.schemas import (
    AgentDistribution,
    BalanceIssue,
    BalanceReport,
    BatchConfig,
    GenerationSummary,
    SimulationConfig,
)


def test_simulation_defaults():
    config = SimulationConfig()
    assert (config.map_size, config.days, config.players, config.seed) == (100, 50, 20, 12345)
    assert not config.verbose
    assert config.agent_distribution.weights() == {
        AgentType.RANDOM: 0.1,
        AgentType.AGGRESSIVE: 0.25,
        AgentType.DEFENSIVE: 0.2,
        AgentType.ECONOMIC: 0.2,
        AgentType.BALANCED: 0.25,
    }


@pytest.mark.parametrize(
    "overrides",
    [{"map_size": 8}, {"days": 0}, {"players": 0}, {"agent_distribution": {"random": -1}}],
)
def test_invalid_configuration_rejected(overrides):
    with pytest.raises(ValidationError):
        SimulationConfig(**overrides)


def test_distribution_needs_some_weight():
    with pytest.raises(ValidationError):
        AgentDistribution(random=0, aggressive=0, defensive=0, economic=0, balanced=0)


def test_even_distribution():
    assert set(AgentDistribution.even().weights().values()) == {0.2}


def test_batch_defaults():
    batch = BatchConfig()
    assert batch.generations == 100
    assert batch.workers == 1
    assert batch.simulation == SimulationConfig()
    with pytest.raises(ValidationError):
        BatchConfig(generations=0)


def test_summary_from_result():
    config = SimulationConfig(map_size=30, players=3, days=10, seed=4)
    result = run_generation(config)

    summary = GenerationSummary.from_result(result, config=config)

    assert summary.id is None
    assert summary.seed == 4
    assert summary.final_day == result.final_day
    assert summary.combat_count == len(result.combat_log)
    assert sum(summary.outcome_counts.values()) == len(result.combat_log)
    assert summary.event_counts[EventType.PLAYER_JOINED] == 3
    assert [p.territories for p in summary.players] == [len(p.territories) for p in result.players]
    if result.winner_id is not None:
        assert summary.winner.id == result.winner_id
    restored = GenerationSummary.model_validate_json(summary.model_dump_json())
    assert restored == summary


def test_report_critical_flag():
    report = BalanceReport(
        issues=[BalanceIssue(severity="critical", category="race", message="x", value=1.0)]
    )
    assert report.has_critical_issue
    assert not BalanceReport().has_critical_issue
    with pytest.raises(ValidationError):
        BalanceReport(balance_score=120)
