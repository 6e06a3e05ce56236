"""CLI for cstat.

Provides a command-line interface using Typer for:
- Watching container statistics at a fixed interval
- Taking a single snapshot
- Showing the effective configuration
"""

from __future__ import annotations

import json
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cstat.core.config import dump_config, load_config
from cstat.core.errors import ConfigurationError
from cstat.core.schemas import CollectorConfig
from cstat.monitoring.base import ContainerStats
from cstat.monitoring.collector import Collector, CollectorState
from cstat.utils.logging import get_logger, setup_logging

app = typer.Typer(
    name="cstat",
    help="Linux container statistics from the cgroup filesystem",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

OUTPUT_FORMATS = ("table", "json")


@app.command()
def watch(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to collector configuration file (YAML/JSON)"
    ),
    base_path: Path | None = typer.Option(
        None, "--base-path", help="cgroup directory to scan (overrides config)"
    ),
    pattern: str | None = typer.Option(
        None, "--pattern", help="Container ID regex with one capture group (overrides config)"
    ),
    discovery_interval: float | None = typer.Option(
        None, "--discovery-interval", help="Seconds between discovery passes (overrides config)"
    ),
    poll_interval: float = typer.Option(1.0, "--poll-interval", help="Seconds between snapshots"),
    count: int = typer.Option(0, "--count", "-n", help="Number of snapshots (0 = until Ctrl+C)"),
    output_format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Logging level"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file in addition to console"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Poll container statistics until interrupted."""
    setup_logging(
        level=log_level, log_file=log_file, json_format=json_logs, rich_console=not json_logs
    )
    _check_format(output_format)
    collector_config = _build_config(config, base_path, pattern, discovery_interval)
    collector = _start_collector(collector_config)

    polls = 0
    try:
        _wait_for_discovery(collector)
        while True:
            if collector.state is CollectorState.FAILED:
                _abort(f"Discovery failed: {collector.error}")

            _print_snapshot(_take_snapshot(collector), output_format)
            polls += 1
            if count and polls >= count:
                break
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping collector")
    finally:
        collector.stop()


@app.command()
def snapshot(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to collector configuration file (YAML/JSON)"
    ),
    base_path: Path | None = typer.Option(
        None, "--base-path", help="cgroup directory to scan (overrides config)"
    ),
    pattern: str | None = typer.Option(
        None, "--pattern", help="Container ID regex with one capture group (overrides config)"
    ),
    output_format: str = typer.Option("table", "--format", "-f", help="Output format: table, json"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Logging level"),
) -> None:
    """Run one discovery pass and print a single snapshot."""
    setup_logging(level=log_level)
    _check_format(output_format)
    collector_config = _build_config(config, base_path, pattern, None)
    collector = _start_collector(collector_config)

    try:
        _wait_for_discovery(collector)
        _print_snapshot(_take_snapshot(collector), output_format)
    finally:
        collector.stop()


@app.command("show-config")
def show_config(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to collector configuration file (YAML/JSON)"
    ),
    base_path: Path | None = typer.Option(None, "--base-path", help="cgroup directory to scan"),
    pattern: str | None = typer.Option(None, "--pattern", help="Container ID regex"),
    discovery_interval: float | None = typer.Option(
        None, "--discovery-interval", help="Seconds between discovery passes"
    ),
) -> None:
    """Print the effective configuration as YAML."""
    collector_config = _build_config(config, base_path, pattern, discovery_interval)
    typer.echo(dump_config(collector_config), nl=False)


def _abort(message: str) -> None:
    console.print(f"[bold red]{escape(message)}[/]")
    raise typer.Exit(1)


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        _abort(f"Unknown output format: {output_format}. Use one of {', '.join(OUTPUT_FORMATS)}")


def _build_config(
    config: Path | None,
    base_path: Path | None,
    pattern: str | None,
    discovery_interval: float | None,
) -> CollectorConfig:
    """Load the configuration file (if any) and apply command-line overrides."""
    overrides: dict[str, object] = {}
    if base_path is not None:
        overrides["base_path"] = base_path
    if pattern is not None:
        overrides["container_pattern"] = pattern
    if discovery_interval is not None:
        overrides["discovery_interval_seconds"] = discovery_interval

    try:
        collector_config = load_config(config) if config is not None else CollectorConfig()
        # Re-validate so overrides go through the same checks as file values
        return CollectorConfig.model_validate(
            {**collector_config.model_dump(), **overrides}
        )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error loading config: {escape(str(e))}[/]")
        raise typer.Exit(1) from e


def _start_collector(collector_config: CollectorConfig) -> Collector:
    collector = Collector(collector_config)
    try:
        collector.start()
    except ConfigurationError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        raise typer.Exit(1) from e
    return collector


def _wait_for_discovery(collector: Collector) -> None:
    """Block until the first discovery pass succeeds or discovery fails."""
    while not collector.wait_ready(timeout=0.1):
        if collector.state is CollectorState.FAILED:
            _abort(f"Discovery failed: {collector.error}")


def _take_snapshot(collector: Collector) -> dict[str, ContainerStats]:
    try:
        return collector.snapshot()
    except OSError as e:
        console.print(f"[bold red]Error reading statistics: {escape(str(e))}[/]")
        raise typer.Exit(1) from e


def _print_snapshot(stats: dict[str, ContainerStats], output_format: str) -> None:
    if output_format == "json":
        data = {container_id: s.to_dict() for container_id, s in stats.items()}
        typer.echo(json.dumps(data, indent=2))
        return

    if not stats:
        console.print("[bold yellow]No containers found[/]")
        return
    _show_stats_table(stats)


def _show_stats_table(stats: dict[str, ContainerStats]) -> None:
    """Display a snapshot as a table."""
    table = Table(title="Container Statistics")
    table.add_column("Container", style="cyan", no_wrap=True)
    table.add_column("CPU user", justify="right")
    table.add_column("CPU sys", justify="right")
    table.add_column("Cache", justify="right")
    table.add_column("RSS", justify="right")
    table.add_column("Devices", justify="right")
    table.add_column("Files", justify="right")

    for container_id, s in sorted(stats.items()):
        table.add_row(
            container_id[:12],
            str(s.cpu.user),
            str(s.cpu.system),
            str(s.memory.cache),
            str(s.memory.rss),
            str(len(s.blkio.bytes.devices)),
            str(len(s.bindings)),
        )

    console.print(table)


if __name__ == "__main__":
    app()
