"""Command line behaviour and exit codes."""

from __future__ import annotations

import pytest

from nemeths import cli
from nemeths.schemas import BalanceIssue, BalanceReport, BatchConfig
from nemeths.simulator import BatchResult


def _fake_batch(report: BalanceReport, seen: list[BatchConfig] | None = None):
    def run_batch(batch: BatchConfig, **_: object) -> BatchResult:
        if seen is not None:
            seen.append(batch)
        return BatchResult(config=batch, report=report)

    return run_batch


@pytest.mark.parametrize(
    ("score", "strict", "expected"),
    [(75.0, False, 0), (75.0, True, 1), (65.0, False, 1), (85.0, True, 0)],
)
def test_balance_check_thresholds(monkeypatch, capsys, score, strict, expected):
    monkeypatch.setattr(cli, "run_batch", _fake_batch(BalanceReport(balance_score=score)))
    argv = ["balance-check", "-g", "3"] + (["--strict"] if strict else [])

    assert cli.main(argv) == expected
    output = capsys.readouterr().out
    assert ("PASS" in output) == (expected == 0)


def test_balance_check_fails_on_critical_issue(monkeypatch, capsys):
    report = BalanceReport(
        balance_score=95.0,
        issues=[
            BalanceIssue(severity="critical", category="race", message="korrath wins", value=0.9)
        ],
    )
    monkeypatch.setattr(cli, "run_batch", _fake_batch(report))

    assert cli.main(["balance-check"]) == 1
    assert "critical" in capsys.readouterr().out


def test_arguments_reach_the_batch(monkeypatch):
    seen: list[BatchConfig] = []
    monkeypatch.setattr(cli, "run_batch", _fake_batch(BalanceReport(), seen))

    cli.main(["simulate", "-g", "7", "-s", "42", "-p", "9", "-d", "12", "-m", "48", "-w", "3"])

    batch = seen[0]
    assert batch.generations == 7
    assert batch.workers == 3
    simulation = batch.simulation
    assert (simulation.seed, simulation.players, simulation.days, simulation.map_size) == (
        42,
        9,
        12,
        48,
    )


def test_simulate_stores_report(tmp_path, capsys):
    argv = ["simulate", "-g", "2", "-p", "3", "-d", "6", "-m", "24", "-o", str(tmp_path)]

    assert cli.main(argv) == 0

    output = capsys.readouterr().out
    assert "Balance score" in output
    assert "Race win rates" in output
    assert (tmp_path / "report_1.json").exists()


def test_invalid_arguments_exit(capsys):
    with pytest.raises(SystemExit):
        cli.main(["simulate", "-g", "many"])
    with pytest.raises(SystemExit):
        cli.main([])


def test_format_report_lists_issues():
    report = BalanceReport(
        issues=[BalanceIssue(severity="low", category="dice", message="odd dice", value=0.1)]
    )
    text = cli.format_report(report)
    assert "[low] odd dice" in text
    assert "No balance issues" not in text
