"""``packmerger validate`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from packmerger.cli.helpers import CONFIG_OPTION_HELP, console, load_config_or_exit, render_validation
from packmerger.merge.validator import PackValidator


def validate(
    archive: Optional[Path] = typer.Argument(
        None, help="Archive to validate (defaults to the configured output file)"
    ),
    config_path: Path = typer.Option(Path("."), "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Validate a merged pack for structure and missing references."""
    if archive is None:
        archive = load_config_or_exit(config_path).output_file()

    result = PackValidator().validate(archive)
    render_validation(result, title=f"Validation of {archive.name}")
    if result.errors:
        raise typer.Exit(1)
    console.print("[green]Pack is valid[/green]" if not result.warnings else "[yellow]Pack has warnings[/yellow]")
