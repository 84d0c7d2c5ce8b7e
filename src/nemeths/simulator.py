"""Batch runner that plays many generations and aggregates them.

Every generation gets its own seed derived from the batch seed and its
index, so a batch gives identical results whether it runs serially or
across worker processes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field

from nemeths.analysis import BalanceAnalyzer
from nemeths.domain.game import run_generation
from nemeths.domain.models import GenerationResult
from nemeths.domain.rules_config import DEFAULT_RULES, RulesConfig
from nemeths.schemas import BalanceReport, BatchConfig, SimulationConfig
from nemeths.utils.rng import derive_seed

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def generation_config(batch: BatchConfig, index: int) -> SimulationConfig:
    """Configuration of the ``index``-th generation of ``batch``."""

    template = batch.simulation
    return template.model_copy(
        update={"seed": derive_seed(template.seed, "generation", index)}
    )


def _run_default(config: SimulationConfig) -> GenerationResult:
    return run_generation(config)


def iter_generations(
    batch: BatchConfig, *, rules: RulesConfig = DEFAULT_RULES
) -> Iterator[GenerationResult]:
    """Yield the results of ``batch`` in generation order."""

    configs = [generation_config(batch, index) for index in range(batch.generations)]
    parallel = batch.workers > 1
    if parallel and rules is not DEFAULT_RULES:
        # rule mappings are read-only proxies and cannot cross a process boundary
        logger.warning("Custom rules given; running %d generations serially", len(configs))
        parallel = False
    if not parallel:
        for config in configs:
            yield run_generation(config, rules=rules)
        return

    with ProcessPoolExecutor(max_workers=batch.workers) as executor:
        futures = [executor.submit(_run_default, config) for config in configs]
        for future in futures:
            yield future.result()


@dataclass(slots=True)
class BatchResult:
    """Results of a batch run together with its analysis."""

    config: BatchConfig
    results: list[GenerationResult] = field(default_factory=list)
    report: BalanceReport = field(default_factory=BalanceReport)
    elapsed_seconds: float = 0.0


def run_batch(
    batch: BatchConfig,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    progress: ProgressCallback | None = None,
    keep_results: bool = True,
) -> BatchResult:
    """Play every generation of ``batch`` and analyse the outcome.

    Args:
        batch: Number of generations, worker count and template configuration
        rules: Rule constants shared by every generation
        progress: Called with ``(completed, total)`` after each generation
        keep_results: Retain every :class:`GenerationResult` in the return value

    Returns:
        The collected results and their :class:`BalanceReport`
    """
    logger.info(
        "Running %d generations with %d players each (seed=%d, workers=%d)",
        batch.generations,
        batch.simulation.players,
        batch.simulation.seed,
        batch.workers,
    )
    started = time.perf_counter()
    analyzer = BalanceAnalyzer()
    results: list[GenerationResult] = []
    for completed, result in enumerate(iter_generations(batch, rules=rules), start=1):
        analyzer.add_result(result)
        if keep_results:
            results.append(result)
        if progress is not None:
            progress(completed, batch.generations)
    elapsed = time.perf_counter() - started
    report = analyzer.report()
    logger.info(
        "Finished %d generations in %.1fs, balance score %.1f",
        batch.generations,
        elapsed,
        report.balance_score,
    )
    return BatchResult(config=batch, results=results, report=report, elapsed_seconds=elapsed)
