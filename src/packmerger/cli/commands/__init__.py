"""CLI command modules for packmerger."""

from __future__ import annotations

import typer

from .merge import merge, order
from .validate import validate
from .watch import watch


def register_commands(app: typer.Typer) -> None:
    app.command()(merge)
    app.command()(order)
    app.command()(validate)
    app.command()(watch)


__all__ = ["register_commands"]
