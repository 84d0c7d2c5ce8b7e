"""Command line entry point for batch simulations and balance checks."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from nemeths.config import get_settings
from nemeths.repository import JsonResultRepository
from nemeths.schemas import BalanceReport, BatchConfig, GroupStats, SimulationConfig
from nemeths.simulator import run_batch

logger = logging.getLogger(__name__)

BALANCE_THRESHOLD = 70.0
STRICT_BALANCE_THRESHOLD = 80.0


def _format_group(title: str, stats: dict[str, GroupStats]) -> list[str]:
    lines = [f"{title}:"]
    ranked = sorted(stats.items(), key=lambda item: item[1].win_rate, reverse=True)
    for name, group in ranked:
        lines.append(
            f"  {name:<14} {group.win_rate:6.1%}  ({group.wins} wins / {group.plays} plays)"
        )
    return lines


def format_report(report: BalanceReport) -> str:
    """Render a balance report as plain text."""

    combat = report.combat_stats
    lines = [
        f"Generations:        {report.generations}",
        f"Balance score:      {report.balance_score:.1f} / 100",
        f"Average final day:  {report.average_final_day:.1f}",
        f"Average win score:  {report.average_winner_score:.1f}",
        "",
    ]
    lines += _format_group("Race win rates", report.race_stats)
    lines += _format_group("Class win rates", report.class_stats)
    lines += _format_group("Skill win rates", report.skill_stats)
    lines += _format_group("Agent win rates", report.agent_stats)
    lines += [
        "",
        f"Combats:            {combat.total_combats}",
        f"Attacker wins:      {combat.attacker_win_rate:.1%}",
        f"Defender wins:      {combat.defender_win_rate:.1%}",
        f"Draws:              {combat.draw_rate:.1%}",
        f"Critical hits:      {combat.critical_hit_rate:.1%}",
        f"Critical misses:    {combat.critical_miss_rate:.1%}",
        f"Captain deaths:     {combat.captain_deaths}",
        "",
    ]
    if report.issues:
        lines.append("Issues:")
        lines += [f"  [{issue.severity}] {issue.message}" for issue in report.issues]
    else:
        lines.append("No balance issues detected.")
    return "\n".join(lines)


def _add_batch_arguments(parser: argparse.ArgumentParser, defaults: dict[str, int]) -> None:
    parser.add_argument(
        "-g",
        "--generations",
        type=int,
        default=defaults["generations"],
        help="Number of generations to simulate",
    )
    parser.add_argument(
        "-s", "--seed", type=int, default=defaults["seed"], help="Batch seed"
    )
    parser.add_argument("-p", "--players", type=int, default=20, help="Players per generation")
    parser.add_argument("-d", "--days", type=int, default=50, help="Days per generation")
    parser.add_argument("-m", "--map-size", type=int, default=100, help="Map edge length")
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=defaults["workers"],
        help="Worker processes (1 runs serially)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    defaults = {
        "generations": settings.default_generations,
        "seed": settings.default_seed,
        "workers": settings.workers,
    }
    parser = argparse.ArgumentParser(
        prog="nemeths-sim", description="Simulate Nemeths generations and report on balance"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser("simulate", help="Run a batch and print its report")
    _add_batch_arguments(simulate, defaults)
    simulate.add_argument(
        "-o", "--output", type=Path, default=None, help="Directory to store the report in"
    )

    check = subparsers.add_parser(
        "balance-check", help="Run a batch and fail when the game looks unbalanced"
    )
    _add_batch_arguments(check, defaults)
    check.add_argument(
        "--strict",
        action="store_true",
        help=f"Require a score of {STRICT_BALANCE_THRESHOLD:.0f} instead of "
        f"{BALANCE_THRESHOLD:.0f}",
    )
    return parser


def _batch_from_args(args: argparse.Namespace) -> BatchConfig:
    return BatchConfig(
        generations=args.generations,
        workers=args.workers,
        simulation=SimulationConfig(
            map_size=args.map_size,
            days=args.days,
            players=args.players,
            seed=args.seed,
            verbose=args.verbose,
        ),
    )


def _progress(completed: int, total: int) -> None:
    step = max(1, total // 10)
    if completed % step == 0 or completed == total:
        logger.info("%d/%d generations complete", completed, total)


def _simulate(args: argparse.Namespace) -> int:
    batch = _batch_from_args(args)
    result = run_batch(batch, progress=_progress, keep_results=False)
    report = result.report
    if args.output is not None:
        report = JsonResultRepository(args.output).save_report(report)
        logger.info("Stored report %d in %s", report.id, args.output)
    print(format_report(report))
    print(f"\nCompleted in {result.elapsed_seconds:.1f}s")
    return 0


def _balance_check(args: argparse.Namespace) -> int:
    threshold = STRICT_BALANCE_THRESHOLD if args.strict else BALANCE_THRESHOLD
    report = run_batch(_batch_from_args(args), progress=_progress, keep_results=False).report
    print(format_report(report))
    if report.balance_score < threshold:
        print(f"\nFAIL: balance score {report.balance_score:.1f} is below {threshold:.0f}")
        return 1
    if report.has_critical_issue:
        print("\nFAIL: critical balance issues found")
        return 1
    print(f"\nPASS: balance score {report.balance_score:.1f}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.DEBUG if args.verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "simulate":
        return _simulate(args)
    return _balance_check(args)


if __name__ == "__main__":
    sys.exit(main())
