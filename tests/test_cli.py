from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from daycare_trends import __version__
from daycare_trends.main import daycare_trends

pytestmark = [
    allure.epic("Command Line"),
    allure.feature("Analyze, Extract, Aggregate, Mappings"),
]


@pytest.fixture()
def reports(write_report) -> None:
    write_report(
        "2025-08-08",
        grade="A",
        noteworthyComments="Pepper played with Max and Luna",
        whatIDidToday=["played with my favorite toy", "napped with friends"],
        trainingSkills=["recall"],
        caughtBeingGood=["shared toys"],
    )
    write_report("2025-08-09", grade="B", ooops=["barked at the mailman"])
    write_report(
        "2025-08-12",
        grade="A",
        noteworthyComments="Max again!",
        whatIDidToday=["played with my favorite toy"],
    )


def _invoke(*args: str):
    return CliRunner().invoke(daycare_trends, list(args))


def test_version() -> None:
    result = _invoke("--version")

    assert result.exit_code == 0
    assert __version__ in result.output


def test_analyze_end_to_end(data_dir: Path, reports, echo_agent) -> None:
    result = _invoke("analyze", "--data-dir", str(data_dir))

    assert result.exit_code == 0, result.output
    assert "Extraction summary: mode=new selected=3 extracted=3 skipped=0 failed=0" in result.output
    assert "Aggregation summary: reports=3 range=2025-08-08..2025-08-12" in result.output
    assert "average_grade=3.67 A=2 B=1 C=0 D=0" in result.output
    assert "1. Max mentions=2 (66.7%) trend=stable" in result.output
    assert "2. Luna mentions=1 (33.3%) trend=stable" in result.output
    assert "Wrote 14 files." in result.output

    mappings = json.loads(
        (data_dir / "mappings" / "learned-activity-mappings.json").read_text("utf-8"),
    )
    assert mappings["played with my favorite toy"] == ["playtime"]
    assert not list((data_dir / ".classifier").iterdir())

    rerun = _invoke("analyze", "--data-dir", str(data_dir))
    assert rerun.exit_code == 0, rerun.output
    assert "selected=0 extracted=0 skipped=0 failed=0 classifier_calls=0" in rerun.output
    assert "reports=3" in rerun.output


def test_analyze_force_and_date_conflict(data_dir: Path) -> None:
    result = _invoke("analyze", "--data-dir", str(data_dir), "--force", "--date", "2025-08-08")

    assert result.exit_code != 0
    assert "mutually exclusive" in result.output


def test_analyze_rejects_invalid_date(data_dir: Path) -> None:
    result = _invoke("analyze", "--data-dir", str(data_dir), "--date", "2025-13-01")

    assert result.exit_code != 0
    assert "Invalid date" in result.output


def test_analyze_without_any_data_fails(data_dir: Path, echo_agent) -> None:
    result = _invoke("analyze", "--data-dir", str(data_dir))

    assert result.exit_code != 0
    assert "No daily analyses found" in result.output


def test_extract_dry_run_writes_nothing(data_dir: Path, reports, echo_agent) -> None:
    result = _invoke("extract", "--data-dir", str(data_dir), "--date", "2025-08-08", "--dry-run")

    assert result.exit_code == 0, result.output
    assert '"friends": [' in result.output
    assert "Dry run: classifier_calls=2, nothing written." in result.output
    assert not (data_dir / "analysis" / "daily" / "2025-08-08.json").exists()
    assert not (data_dir / "mappings" / "learned-activity-mappings.json").exists()


def test_extract_single_date_then_skip(data_dir: Path, reports, echo_agent) -> None:
    first = _invoke("extract", "--data-dir", str(data_dir), "--date", "2025-08-09")
    second = _invoke("extract", "--data-dir", str(data_dir), "--date", "2025-08-09")

    assert first.exit_code == 0, first.output
    assert "Extracted 2025-08-09: classifier_calls=0" in first.output
    assert "already exists" in second.output
    assert not (data_dir / "analysis" / "aggregates").exists()


def test_extract_missing_record(data_dir: Path, echo_agent) -> None:
    result = _invoke("extract", "--data-dir", str(data_dir), "--date", "2025-08-10")

    assert result.exit_code != 0
    assert "No report card for 2025-08-10" in result.output


def test_aggregate_uses_existing_analyses_only(data_dir: Path, reports, echo_agent) -> None:
    assert _invoke("extract", "--data-dir", str(data_dir), "--date", "2025-08-08").exit_code == 0

    result = _invoke("aggregate", "--data-dir", str(data_dir))

    assert result.exit_code == 0, result.output
    assert "reports=1" in result.output
    assert (data_dir / "viz" / "friend-network.json").is_file()


def test_aggregate_empty_corpus_fails(data_dir: Path) -> None:
    result = _invoke("aggregate", "--data-dir", str(data_dir))

    assert result.exit_code != 0
    assert "No daily analyses found" in result.output


def test_mappings_seed_show_override_forget(data_dir: Path) -> None:
    seeded = _invoke("mappings", "seed", "--data-dir", str(data_dir))
    assert seeded.exit_code == 0, seeded.output
    assert "Seeded 34 new mapping(s)" in seeded.output

    overridden = _invoke(
        "mappings",
        "override-training",
        "--data-dir",
        str(data_dir),
        "agility",
        "advanced_training",
    )
    assert overridden.exit_code == 0, overridden.output

    shown = _invoke("mappings", "show", "--data-dir", str(data_dir))
    assert "Activity mappings (14):" in shown.output
    assert "  agility: advanced_training" in shown.output

    forgotten = _invoke("mappings", "forget-activity", "--data-dir", str(data_dir), "party animal")
    assert "Forgot activity mapping 'party animal'" in forgotten.output
    again = _invoke("mappings", "forget-activity", "--data-dir", str(data_dir), "party animal")
    assert "No activity mapping for 'party animal'." in again.output


def test_mappings_override_rejects_unknown_category(data_dir: Path) -> None:
    result = _invoke(
        "mappings",
        "override-activity",
        "--data-dir",
        str(data_dir),
        "zoomies",
        "cardio",
    )

    assert result.exit_code != 0
    assert not (data_dir / "mappings").exists()
