"""geodistinct CLI application -- Typer-based operator interface.

Provides commands for running distinct-value lookups, previewing the SQL a
lookup would run, listing catalog layers, and serving the HTTP API.  Human
readable output goes to *stderr* via Rich; lookup payloads and ``--json``
output go to *stdout* so that pipelines can compose cleanly.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from distinct_cli.display import display_layers, display_sql, display_values
from distinct_engine.catalog import load_catalog
from distinct_engine.config import load_settings
from distinct_engine.errors import CatalogConfigError, DistinctValuesError
from distinct_engine.models import DistinctValuesRequest
from distinct_engine.service import DistinctValuesService, error_envelope
from distinct_engine.sql_toolkit import SqlToolkitError

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="geodistinct",
    help="geodistinct - distinct column values for catalog layers",
    no_args_is_help=True,
)
console = Console(stderr=True)

_json_output: bool = False
_catalog_path: Path | None = None


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    catalog: Path | None = typer.Option(
        None,
        "--catalog",
        "-c",
        help="Catalog file defining stores, virtual views and layers.",
        envvar="DISTINCT_CATALOG_PATH",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output, _catalog_path  # noqa: PLW0603
    _json_output = json_mode
    _catalog_path = catalog


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_service() -> DistinctValuesService:
    """Build the lookup service from the configured catalog or exit with code 3."""
    settings = load_settings()
    path = _catalog_path or settings.catalog_path
    try:
        catalog = load_catalog(path)
    except CatalogConfigError as exc:
        console.print(f"[red]Failed to load catalog: {escape(str(exc))}[/red]")
        raise typer.Exit(code=3) from exc
    return DistinctValuesService(catalog, settings)


def _write_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _build_request(
    layer: str,
    prop: str,
    filter_text: str | None,
    view_params: str | None,
    limit: int | None,
    order: str | None,
    as_list: bool,
    quotes: bool,
) -> DistinctValuesRequest:
    return DistinctValuesRequest(
        layer_name=layer,
        property_name=prop,
        filter=filter_text,
        view_params=view_params,
        limit=limit,
        order=order,
        type="list" if as_list else None,
        add_quotes=quotes,
    )


# Shared argument/option declarations for ``values`` and ``sql``.
_LAYER = typer.Argument(..., help="Layer name in namespace:table form.")
_PROPERTY = typer.Argument(..., help="Column whose distinct values are wanted.")
_FILTER = typer.Option(None, "--filter", "-f", help="Filter expression, e.g. \"country = 'FR'\" (may be URL-encoded).")
_VIEW_PARAMS = typer.Option(None, "--view-params", "-p", help="View parameters as 'name:value;name:value'.")
_LIMIT = typer.Option(None, "--limit", "-n", min=0, help="Maximum number of values.")
_ORDER = typer.Option(None, "--order", "-o", help="ASC or DESC.")
_LIST = typer.Option(False, "--list", help="Return bare values instead of display/value pairs.")
_QUOTES = typer.Option(False, "--quotes", help="Wrap pair values in single quotes.")


# ---------------------------------------------------------------------------
# values
# ---------------------------------------------------------------------------


@app.command()
def values(
    layer: str = _LAYER,
    prop: str = _PROPERTY,
    filter_text: str | None = _FILTER,
    view_params: str | None = _VIEW_PARAMS,
    limit: int | None = _LIMIT,
    order: str | None = _ORDER,
    as_list: bool = _LIST,
    quotes: bool = _QUOTES,
) -> None:
    """Look up the distinct values of PROP on LAYER.

    With ``--json`` the response payload (or error envelope) is written to
    stdout exactly as the HTTP API returns it.  Exit code 1 signals a
    failed lookup.
    """
    request = _build_request(layer, prop, filter_text, view_params, limit, order, as_list, quotes)
    service = _load_service()
    try:
        result = service.execute(request)
    finally:
        service.catalog.dispose()

    if not result.success:
        if _json_output:
            _write_json(result.payload)
        else:
            console.print(f"[red]{escape(result.payload['message'])}[/red]")
        raise typer.Exit(code=1)

    if _json_output:
        _write_json(result.payload)
    else:
        display_values(console, result.payload)


# ---------------------------------------------------------------------------
# sql
# ---------------------------------------------------------------------------


@app.command()
def sql(
    layer: str = _LAYER,
    prop: str = _PROPERTY,
    filter_text: str | None = _FILTER,
    view_params: str | None = _VIEW_PARAMS,
    limit: int | None = _LIMIT,
    order: str | None = _ORDER,
    as_list: bool = _LIST,
    quotes: bool = _QUOTES,
) -> None:
    """Show the statement a lookup would run, without running it."""
    request = _build_request(layer, prop, filter_text, view_params, limit, order, as_list, quotes)
    service = _load_service()
    try:
        resolution, query = service.compose(request)
    except (DistinctValuesError, SqlToolkitError) as exc:
        if _json_output:
            _write_json(error_envelope(exc))
        else:
            console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        service.catalog.dispose()

    if _json_output:
        _write_json(
            {
                "layer": resolution.layer_name,
                "store": resolution.store.name,
                "dialect": resolution.store.dialect.value,
                "strategy": resolution.strategy,
                "sql": query.sql,
            }
        )
    else:
        display_sql(console, query.sql, resolution.store.dialect.value)


# ---------------------------------------------------------------------------
# layers
# ---------------------------------------------------------------------------


@app.command()
def layers() -> None:
    """List catalog layers and what backs each of them."""
    service = _load_service()
    try:
        described = service.describe_layers()
    finally:
        service.catalog.dispose()

    if _json_output:
        _write_json([asdict(layer) for layer in described])
    else:
        display_layers(console, described)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind the API server to."),
    port: int = typer.Option(8000, "--port", "-p", help="API server port."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload on code changes."),
) -> None:
    """Serve the distinct-values HTTP API with uvicorn."""
    import uvicorn

    if _catalog_path is not None:
        # The app loads its catalog during startup; hand the path over via env.
        os.environ["DISTINCT_API_CATALOG_PATH"] = str(_catalog_path)

    uvicorn_config = uvicorn.Config(
        "distinct_api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        access_log=False,
    )
    server = uvicorn.Server(uvicorn_config)

    console.print(f"[green]✓[/green] API server starting on http://{host}:{port}")
    console.print(f"[green]✓[/green] Lookups at http://{host}:{port}/api/v1/distinct-values")
    console.print(f"[green]✓[/green] Readiness probe at http://{host}:{port}/ready")

    try:
        server.run()
    except KeyboardInterrupt:
        console.print("[yellow]Server stopped.[/yellow]")
