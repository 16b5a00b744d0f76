"""``packmerger watch`` command: merge on startup, then re-merge on changes."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

import typer

from packmerger.cli.helpers import CONFIG_OPTION_HELP, console, load_config_or_exit
from packmerger.orchestrator import Orchestrator
from packmerger.publish import PublishError


def watch(
    config_path: Path = typer.Option(Path("."), "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Watch the packs directory and re-merge when packs change."""
    config = load_config_or_exit(config_path)
    if not config.merge.hot_reload.enabled:
        console.print("[yellow]Hot reload is disabled in the configuration (merge.hot_reload.enabled)[/yellow]")
        raise typer.Exit(1)

    try:
        orchestrator = Orchestrator(config)
    except PublishError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    def _announce(old_hash: Optional[str], new_hash: str) -> None:
        console.print(f"[green]New pack[/green] {new_hash} [dim](was {old_hash or 'none'})[/dim]")

    orchestrator.add_listener(_announce)
    orchestrator.start()
    if orchestrator.watcher is None:
        console.print("[red]File watcher could not be started[/red]")
        orchestrator.stop()
        raise typer.Exit(1)

    console.print(f"Watching [bold]{config.packs_dir}[/bold] (Ctrl+C to stop)")
    stopped = threading.Event()
    try:
        while orchestrator.watcher is not None and orchestrator.watcher.is_running:
            stopped.wait(1.0)
    except KeyboardInterrupt:
        console.print("\nStopping...")
    finally:
        orchestrator.stop(timeout=30)
