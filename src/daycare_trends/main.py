"""CLI entrypoint for daycare-trends."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from daycare_trends import __version__
from daycare_trends.aggregation import NoDataError
from daycare_trends.controllers import (
    AggregateCommand,
    AnalysisCliController,
    AnalyzeCommand,
    ExtractCommand,
    MappingsCommand,
)
from daycare_trends.models import ACTIVITY_CATEGORIES, TRAINING_CATEGORIES

click.rich_click.USE_MARKDOWN = True
ANALYSIS_CONTROLLER = AnalysisCliController()

DATA_DIR_OPTION = click.option(
    "--data-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Data root. Defaults to DAYCARE_TRENDS_DATA_DIR or ./data.",
)


@click.group()
@click.version_option(version=__version__, prog_name="daycare-trends")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def daycare_trends(verbose: bool) -> None:
    """Daycare report-card trend analysis.

    Extracts one **daily analysis** per report card, learning activity and
    training categories as it goes, then regenerates every aggregate.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@daycare_trends.command("analyze")
@DATA_DIR_OPTION
@click.option("--force", is_flag=True, help="Re-extract every date, even if already analyzed.")
@click.option("--date", default=None, help="Re-extract only this date (YYYY-MM-DD).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def analyze(data_dir: Path | None, force: bool, date: str | None, verbose: bool) -> None:
    """Extract new report cards, then aggregate the whole corpus."""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    _run(
        lambda: ANALYSIS_CONTROLLER.analyze(
            AnalyzeCommand(data_dir=data_dir, force=force, date=date),
        ),
    )


@daycare_trends.command("extract")
@DATA_DIR_OPTION
@click.option("--date", required=True, help="Report card date (YYYY-MM-DD).")
@click.option("--force", is_flag=True, help="Overwrite an existing daily analysis.")
@click.option("--dry-run", is_flag=True, help="Print the analysis without writing anything.")
def extract(data_dir: Path | None, date: str, force: bool, dry_run: bool) -> None:
    """Extract a single date without aggregating."""

    _run(
        lambda: ANALYSIS_CONTROLLER.extract(
            ExtractCommand(data_dir=data_dir, date=date, force=force, dry_run=dry_run),
        ),
    )


@daycare_trends.command("aggregate")
@DATA_DIR_OPTION
def aggregate(data_dir: Path | None) -> None:
    """Regenerate aggregates from the existing daily analyses (no classifier calls)."""

    _run(lambda: ANALYSIS_CONTROLLER.aggregate(AggregateCommand(data_dir=data_dir)))


@daycare_trends.group()
def mappings() -> None:
    """Learned category mappings."""


@mappings.command("show")
@DATA_DIR_OPTION
def mappings_show(data_dir: Path | None) -> None:
    """List every learned activity and training mapping."""

    _run(lambda: ANALYSIS_CONTROLLER.show_mappings(MappingsCommand(data_dir=data_dir)))


@mappings.command("seed")
@DATA_DIR_OPTION
def mappings_seed(data_dir: Path | None) -> None:
    """Record the report-card form's fixed labels (never overwrites)."""

    _run(lambda: ANALYSIS_CONTROLLER.seed_mappings(MappingsCommand(data_dir=data_dir)))


@mappings.command("override-activity")
@DATA_DIR_OPTION
@click.argument("label")
@click.argument("categories", nargs=-1, required=True, type=click.Choice(ACTIVITY_CATEGORIES))
def mappings_override_activity(
    data_dir: Path | None,
    label: str,
    categories: tuple[str, ...],
) -> None:
    """Replace the categories of an activity label."""

    _run(
        lambda: ANALYSIS_CONTROLLER.override_mapping(
            MappingsCommand(
                data_dir=data_dir,
                axis="activity",
                label=label,
                categories=categories,
            ),
        ),
    )


@mappings.command("override-training")
@DATA_DIR_OPTION
@click.argument("label")
@click.argument("category", type=click.Choice(TRAINING_CATEGORIES))
def mappings_override_training(data_dir: Path | None, label: str, category: str) -> None:
    """Replace the category of a training skill label."""

    _run(
        lambda: ANALYSIS_CONTROLLER.override_mapping(
            MappingsCommand(
                data_dir=data_dir,
                axis="training",
                label=label,
                categories=(category,),
            ),
        ),
    )


@mappings.command("forget-activity")
@DATA_DIR_OPTION
@click.argument("label")
def mappings_forget_activity(data_dir: Path | None, label: str) -> None:
    """Remove an activity mapping so the next extraction asks the classifier again."""

    _run(
        lambda: ANALYSIS_CONTROLLER.forget_mapping(
            MappingsCommand(data_dir=data_dir, axis="activity", label=label),
        ),
    )


@mappings.command("forget-training")
@DATA_DIR_OPTION
@click.argument("label")
def mappings_forget_training(data_dir: Path | None, label: str) -> None:
    """Remove a training mapping so the next extraction asks the classifier again."""

    _run(
        lambda: ANALYSIS_CONTROLLER.forget_mapping(
            MappingsCommand(data_dir=data_dir, axis="training", label=label),
        ),
    )


def _run(action: Callable[[], list[str]]) -> None:
    try:
        lines = action()
    except (NoDataError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    daycare_trends()
