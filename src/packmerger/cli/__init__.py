"""Command-line interface for packmerger."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from packmerger import __version__
from packmerger.cli.commands import register_commands

console = Console()

_LOGGER_NAME = "packmerger"

app = typer.Typer(
    name="packmerger",
    help="Merge prioritized resource packs into one deterministic pack",
    add_completion=False,
    no_args_is_help=True,
)


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Attach a Rich console handler to the packmerger logger hierarchy."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated invocations in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setLevel(level)
    logger.addHandler(handler)
    return logger


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"packmerger {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Merge prioritized resource packs into one deterministic pack."""
    configure_logging(verbose=verbose)


register_commands(app)


def main() -> None:
    app()


__all__ = ["app", "configure_logging", "console", "main"]
