"""Rich rendering helpers for the geodistinct CLI."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from distinct_engine.service import LayerInfo

_KIND_STYLES = {"table": "cyan", "view": "magenta", "unsupported": "red"}


def display_layers(console: Console, layers: list[LayerInfo]) -> None:
    """Render a table of catalog layers and what backs them.

    Parameters
    ----------
    console:
        Rich console to write to.
    layers:
        Layer descriptions from :meth:`DistinctValuesService.describe_layers`.
    """
    if not layers:
        console.print("[dim]No layers defined.[/dim]")
        return

    table = Table(title=f"Layers ({len(layers)})", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Name", style="bold")
    table.add_column("Store")
    table.add_column("Kind")
    table.add_column("Source")

    for layer in layers:
        style = _KIND_STYLES.get(layer.kind, "white")
        table.add_row(layer.name, layer.store, f"[{style}]{layer.kind}[/{style}]", layer.detail or "-")

    console.print(table)


def display_sql(console: Console, sql: str, dialect: str) -> None:
    """Print a composed statement with syntax highlighting."""
    console.print(Syntax(sql.strip(), "sql", word_wrap=True))
    console.print(f"[dim]dialect: {dialect}[/dim]")


def display_values(console: Console, rows: list[Any]) -> None:
    """Render lookup rows; pairs get a two column table, lists one value per line."""
    if not rows:
        console.print("[dim]No values.[/dim]")
        return

    if isinstance(rows[0], dict):
        table = Table(show_lines=False, pad_edge=True, expand=False)
        table.add_column("Display")
        table.add_column("Value")
        for row in rows:
            table.add_row(_cell(row["dsp"]), _cell(row["val"]))
        console.print(table)
        return

    for value in rows:
        console.print(_cell(value), highlight=False)


def _cell(value: Any) -> str:
    return "[dim]null[/dim]" if value is None else escape(str(value))
