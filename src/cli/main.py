"""CLI del cliente NGSIv2 (Typer + Rich).

Por qué una CLI:
- Permite inspeccionar un broker (entidades, tipos, suscripciones, registros)
  sin escribir código.
- Sirve de ejemplo de uso del `Ngsi2Client`.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
import typer
from rich.console import Console

from adapters.ngsi2_client import Ngsi2Client
from cli import broker, doctor
from cli.ui_components import (
    build_entities_table,
    build_error_panel,
    build_registrations_table,
    build_resources_table,
    build_subscriptions_table,
    build_types_table,
    print_banner,
)
from core.config import AppSettings
from core.errors import Ngsi2Exception
from core.log import configure_logging

R = TypeVar("R")

app = typer.Typer(no_args_is_help=True, help="Query a FIWARE NGSIv2 context broker.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def _settings(ctx: typer.Context) -> AppSettings:
    settings = ctx.obj if isinstance(ctx.obj, AppSettings) else None
    return settings or AppSettings()


def _call(ctx: typer.Context, operation: Callable[[Ngsi2Client], Awaitable[R]]) -> R:
    """Ejecuta una operación contra el broker y traduce errores a salida legible."""

    settings = _settings(ctx)

    async def _run() -> R:
        async with broker.build_client(settings) as client:
            return await operation(client)

    try:
        return asyncio.run(_run())
    except Ngsi2Exception as exc:
        _console.print(build_error_panel(exc))
        raise typer.Exit(code=1) from exc
    except httpx.HTTPError as exc:
        _console.print(f"[red]Request to {settings.base_url} failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _print_json(payload: Any) -> None:
    _console.print_json(json.dumps(payload, ensure_ascii=False))


@app.callback()
def main(
    ctx: typer.Context,
    base_url: str | None = typer.Option(None, "--base-url", "-u", help="Broker base URL (overrides NGSI2_BASE_URL)."),
    service: str | None = typer.Option(None, "--service", help="Fiware-Service header."),
    service_path: str | None = typer.Option(None, "--service-path", help="Fiware-ServicePath header."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING...)."),
    banner: bool = typer.Option(False, "--banner", help="Print the banner before the output."),
) -> None:
    settings = AppSettings()
    overrides: dict[str, Any] = {}
    if base_url:
        overrides["base_url"] = base_url
    if service:
        overrides["fiware_service"] = service
    if service_path:
        overrides["fiware_service_path"] = service_path
    if log_level:
        overrides["log_level"] = log_level
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level, console=Console(stderr=True))
    ctx.obj = settings

    if banner:
        print_banner(_console, settings.base_url)


@app.command()
def version(ctx: typer.Context) -> None:
    """Show the resources published by the broker under /v2."""

    resources = _call(ctx, lambda client: client.get_v2())
    _console.print(build_resources_table(resources))


@app.command()
def entities(
    ctx: typer.Context,
    type_: str | None = typer.Option(None, "--type", "-t", help="Comma-separated entity types."),
    ids: str | None = typer.Option(None, "--id", help="Comma-separated entity ids."),
    id_pattern: str | None = typer.Option(None, "--id-pattern", help="Regular expression over entity ids."),
    attrs: str | None = typer.Option(None, "--attrs", "-a", help="Comma-separated attributes to return."),
    query: str | None = typer.Option(None, "--q", "-q", help="Simple Query Language filter."),
    order_by: str | None = typer.Option(None, "--order-by", help="Comma-separated attributes to order by."),
    offset: int = typer.Option(0, "--offset", min=0),
    limit: int = typer.Option(20, "--limit", min=0),
    as_json: bool = typer.Option(False, "--json", help="Print raw NGSIv2 JSON instead of a table."),
) -> None:
    """List entities."""

    page = _call(
        ctx,
        lambda client: client.get_entities(
            ids=_split(ids),
            id_pattern=id_pattern,
            types=_split(type_),
            attrs=_split(attrs),
            query=query,
            order_by=_split(order_by),
            offset=offset,
            limit=limit,
            count=True,
        ),
    )
    if as_json:
        _print_json([entity.to_json() for entity in page.items])
        return
    _console.print(build_entities_table(page))


@app.command()
def entity(
    ctx: typer.Context,
    entity_id: str = typer.Argument(..., help="Entity id."),
    type_: str | None = typer.Option(None, "--type", "-t", help="Entity type (disambiguates duplicated ids)."),
    attrs: str | None = typer.Option(None, "--attrs", "-a", help="Comma-separated attributes to return."),
) -> None:
    """Show one entity as NGSIv2 JSON."""

    found = _call(ctx, lambda client: client.get_entity(entity_id, type_, _split(attrs)))
    _print_json(found.to_json())


@app.command()
def types(
    ctx: typer.Context,
    offset: int = typer.Option(0, "--offset", min=0),
    limit: int = typer.Option(20, "--limit", min=0),
) -> None:
    """List entity types."""

    page = _call(ctx, lambda client: client.get_entity_types(offset=offset, limit=limit, count=True))
    _console.print(build_types_table(page))


@app.command()
def subscriptions(
    ctx: typer.Context,
    offset: int = typer.Option(0, "--offset", min=0),
    limit: int = typer.Option(20, "--limit", min=0),
) -> None:
    """List subscriptions."""

    page = _call(ctx, lambda client: client.get_subscriptions(offset=offset, limit=limit, count=True))
    _console.print(build_subscriptions_table(page))


@app.command()
def registrations(ctx: typer.Context) -> None:
    """List registrations."""

    found = _call(ctx, lambda client: client.get_registrations())
    _console.print(build_registrations_table(found))


def run() -> None:
    app()
