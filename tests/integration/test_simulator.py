"""Batch runs across generations and worker processes."""

from __future__ import annotations

from nemeths.schemas import BatchConfig, SimulationConfig
from nemeths.simulator import generation_config, iter_generations, run_batch
from nemeths.utils.rng import derive_seed


def _batch(workers: int = 1, generations: int = 4) -> BatchConfig:
    return BatchConfig(
        generations=generations,
        workers=workers,
        simulation=SimulationConfig(map_size=32, players=4, days=15, seed=99),
    )


def test_generation_seeds_are_derived_from_the_batch_seed():
    batch = _batch()
    seeds = [generation_config(batch, index).seed for index in range(batch.generations)]
    assert seeds == [derive_seed(99, "generation", index) for index in range(4)]
    assert len(set(seeds)) == 4
    assert generation_config(batch, 0).players == 4


def test_serial_and_parallel_batches_match():
    serial = list(iter_generations(_batch(workers=1)))
    parallel = list(iter_generations(_batch(workers=2)))
    assert [r.seed for r in serial] == [r.seed for r in parallel]
    assert [r.winner_id for r in serial] == [r.winner_id for r in parallel]
    assert [r.combat_log for r in serial] == [r.combat_log for r in parallel]
    assert [[p.score for p in r.players] for r in serial] == [
        [p.score for p in r.players] for r in parallel
    ]


def test_run_batch_reports_progress():
    calls: list[tuple[int, int]] = []
    result = run_batch(
        _batch(generations=3), progress=lambda done, total: calls.append((done, total))
    )

    assert calls == [(1, 3), (2, 3), (3, 3)]
    assert len(result.results) == 3
    report = result.report
    assert report.generations == 3
    assert sum(stats.plays for stats in report.race_stats.values()) == 12
    assert sum(stats.wins for stats in report.race_stats.values()) == sum(
        1 for r in result.results if r.winner_id is not None
    )
    assert result.elapsed_seconds >= 0


def test_run_batch_can_drop_results():
    result = run_batch(_batch(generations=2), keep_results=False)
    assert result.results == []
    assert result.report.generations == 2
