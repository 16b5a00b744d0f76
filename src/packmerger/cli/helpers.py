"""Shared helpers for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from packmerger.config import ConfigError, PackMergerConfig, load_config
from packmerger.merge.validator import Severity, ValidationResult

console = Console()

CONFIG_OPTION_HELP = "Path to packmerger.yaml (or the directory containing it)"


def load_config_or_exit(config_path: Path) -> PackMergerConfig:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    if config.debug:
        logging.getLogger("packmerger").setLevel(logging.DEBUG)
        for handler in logging.getLogger("packmerger").handlers:
            handler.setLevel(logging.DEBUG)
    return config


def render_validation(result: ValidationResult, title: str = "Validation") -> None:
    if not result.issues:
        console.print(f"[green]✓[/green] {title}: no issues found")
        return

    table = Table(title=title, show_lines=False)
    table.add_column("Severity", style="bold", width=9)
    table.add_column("Path", style="cyan")
    table.add_column("Message")
    for issue in result.issues:
        color = "red" if issue.severity is Severity.ERROR else "yellow"
        table.add_row(f"[{color}]{issue.severity.value}[/{color}]", issue.path or "", issue.message)
    console.print(table)
    console.print(f"{result.warnings} warning(s), {result.errors} error(s)")
