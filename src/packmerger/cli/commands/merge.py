"""``packmerger merge`` and ``packmerger order`` commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from packmerger.cli.helpers import CONFIG_OPTION_HELP, console, load_config_or_exit, render_validation
from packmerger.merge.discovery import discover_packs
from packmerger.merge.engine import format_size
from packmerger.merge.ordering import resolve_merge_order
from packmerger.orchestrator import Orchestrator, PipelineStatus
from packmerger.publish import PublishError


def merge(
    config_path: Path = typer.Option(Path("."), "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Merge all packs once and report the result."""
    config = load_config_or_exit(config_path)
    try:
        orchestrator = Orchestrator(config)
    except PublishError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    outcome = orchestrator.run_pipeline("cli")

    if outcome.status is PipelineStatus.NO_PACKS:
        console.print(f"[yellow]No packs to merge in {config.packs_dir}[/yellow]")
        raise typer.Exit(0)
    if outcome.status is not PipelineStatus.COMPLETED or outcome.artifact is None:
        console.print(f"[red]Merge failed:[/red] {outcome.error}")
        raise typer.Exit(1)

    artifact = outcome.artifact
    console.print(
        f"[green]Merge complete![/green] {artifact.path} ({format_size(artifact.size_bytes)})"
    )
    console.print(f"SHA1: [bold]{artifact.content_hash}[/bold]")
    if artifact.url:
        console.print(f"URL: {artifact.url}")
    if outcome.publish_error:
        console.print(f"[red]Publish failed:[/red] {outcome.publish_error}")
    if outcome.validation is not None:
        render_validation(outcome.validation)


def order(
    config_path: Path = typer.Option(Path("."), "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Show discovered packs in merge order (highest priority first)."""
    config = load_config_or_exit(config_path)
    rules = config.target_rules()
    merge_order = resolve_merge_order(
        discover_packs(config.packs_dir),
        config.priority,
        rules,
        include_unlisted=config.merge.include_unlisted_packs,
    )

    if not merge_order:
        console.print(f"[yellow]No packs found in {config.packs_dir}[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Merge order (target: {config.target})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Pack", style="bold")
    table.add_column("Source")
    for index, name in enumerate(merge_order.names, start=1):
        if name in merge_order.unlisted:
            source = "[yellow]unlisted[/yellow]"
        elif name in rules.include:
            source = "target include"
        else:
            source = "priority"
        table.add_row(str(index), name, source)
    console.print(table)
