"""CLI interface for the cleansing operators."""

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import PipelineConfig, Settings, load_config
from .exceptions import CleansingError, ConfigurationError
from .fusion.models import DuplicateCluster
from .fusion.rules import available_rules
from .linkage.similarity import available_aggregators, available_metrics
from .logging import configure_logging, get_logger

app = typer.Typer(
    name="cleansing",
    help="Duplicate detection and data fusion for JSON records",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)


def get_settings() -> Settings:
    """Load settings from the environment, honouring a local .env file."""
    load_dotenv()
    return Settings.from_env()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(1)


def _read_json_array(path: Path, what: str) -> list[Any]:
    if not path.exists():
        _fail(f"File not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"{path} is not valid JSON: {e}")
    if not isinstance(data, list):
        _fail(f"{path} must contain a JSON array of {what}")
    return data


def _load_pipeline(path: Path) -> PipelineConfig:
    try:
        return load_config(path)
    except ConfigurationError as e:
        _fail(str(e))


def _short(value: Any, width: int = 40) -> str:
    text = json.dumps(value, default=str, ensure_ascii=False)
    return escape(text if len(text) <= width else text[: width - 3] + "...")


def _write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, default=str, ensure_ascii=False), encoding="utf-8")
    console.print(f"[green]Results saved to {escape(str(path))}[/green]")


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Log level (default from CLEANSING_LOG_LEVEL)"),
):
    """Duplicate detection and data fusion for JSON records."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)


@app.command()
def link(
    records: Path = typer.Argument(..., help="JSON array of records (left source)"),
    config: Path = typer.Option(..., "--config", "-c", help="Pipeline configuration (YAML or JSON)"),
    right: Path = typer.Option(None, "--right", "-r", help="Second source for inter-source linkage"),
    output: Path = typer.Option(None, "--output", "-o", help="Write matches as JSON"),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum matches shown"),
):
    """Find duplicate records within one source or across two."""
    settings = get_settings()
    pipeline = _load_pipeline(config)
    if pipeline.linkage is None:
        _fail(f"No 'linkage' section in {config}")
    try:
        linkage = pipeline.linkage.build(default_threshold=settings.default_threshold)
    except ConfigurationError as e:
        _fail(str(e))

    left_records = _read_json_array(records, "records")
    right_records = _read_json_array(right, "records") if right is not None else None

    result = linkage.run(left_records, right_records)
    provenance = result.provenance

    table = Table(title="Matches")
    table.add_column("Left", style="dim")
    table.add_column("Right", style="dim")
    table.add_column("Score")
    table.add_column("Value")
    for match in result.matches[:limit]:
        table.add_row(
            str(match.left_index),
            str(match.right_index),
            f"{match.score:.3f}",
            _short(match.value),
        )
    console.print(table)
    console.print(
        f"[dim]{provenance.matches_found} matches from "
        f"{provenance.candidates_generated} candidates[/dim]"
    )
    if provenance.pairs_failed:
        console.print(f"[yellow]{provenance.pairs_failed} pairs could not be scored[/yellow]")

    if output:
        _write_json(output, result.model_dump(mode="json"))


@app.command()
def fuse(
    clusters: Path = typer.Argument(..., help="JSON array of clusters ({values, weights})"),
    config: Path = typer.Option(..., "--config", "-c", help="Pipeline configuration (YAML or JSON)"),
    output: Path = typer.Option(None, "--output", "-o", help="Write fused values as JSON"),
):
    """Consolidate duplicate clusters into single values."""
    settings = get_settings()
    pipeline = _load_pipeline(config)
    fusion = pipeline.fusion
    if fusion is None:
        _fail(f"No 'fusion' section in {config}")
    try:
        engine = fusion.build(default_rule=settings.default_fusion_rule)
    except ConfigurationError as e:
        _fail(str(e))

    raw_clusters = _read_json_array(clusters, "clusters")
    fused = []
    for position, raw in enumerate(raw_clusters):
        if isinstance(raw, list):
            raw = {"values": raw}
        try:
            cluster = DuplicateCluster.model_validate(raw)
            fused.append(engine.fuse_cluster(cluster))
        except CleansingError as e:
            _fail(f"Cluster {position}: {e}")
        except ValueError as e:
            _fail(f"Cluster {position} is malformed: {e}")

    table = Table(title="Fused Values")
    table.add_column("#", style="dim")
    table.add_column("Sources")
    table.add_column("Value")
    for position, result in enumerate(fused):
        table.add_row(str(position), str(result.sources), _short(result.value, width=60))
    console.print(table)
    logger.info("clusters_fused", clusters=len(fused))

    if output:
        _write_json(output, [result.value for result in fused])


@app.command()
def metrics():
    """List registered similarity metrics and aggregators."""
    table = Table(title="Similarity")
    table.add_column("Kind")
    table.add_column("Name")
    for name in available_metrics():
        table.add_row("metric", name)
    for name in available_aggregators():
        table.add_row("aggregator", name)
    console.print(table)


@app.command()
def rules():
    """List registered fusion rules."""
    table = Table(title="Fusion Rules")
    table.add_column("Name")
    for name in available_rules():
        table.add_row(name)
    console.print(table)


if __name__ == "__main__":
    app()
