"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from cli import broker
from core.config import AppSettings, write_user_env_vars
from core.errors import Ngsi2Exception

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_broker(settings: AppSettings) -> tuple[bool, str]:
    async with broker.build_client(settings) as client:
        try:
            resources = await client.get_v2()
        except Ngsi2Exception as exc:
            return False, str(exc)
        except httpx.HTTPError as exc:
            return False, f"{type(exc).__name__}: {exc}"
    if not resources:
        return False, "Empty /v2 resource map"
    return True, ", ".join(sorted(resources))


@app.command()
def run(ctx: typer.Context) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()

    table = Table(title="NGSIv2 Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Broker URL", "OK", settings.base_url)
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row(
        "Fiware-Service",
        "OK" if settings.fiware_service else "OPTIONAL",
        settings.fiware_service or "default tenant",
    )
    table.add_row(
        "Fiware-ServicePath",
        "OK" if settings.fiware_service_path else "OPTIONAL",
        settings.fiware_service_path or "/",
    )
    if settings.auth_token:
        table.add_row("Auth token", "OK", "X-Auth-Token will be sent")
    else:
        table.add_row("Auth token", "OPTIONAL", "No token set -> unauthenticated requests")

    # Connectivity
    ok_http, detail_http = asyncio.run(_check_broker(settings))
    table.add_row("Broker /v2", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] Set NGSI2_BASE_URL (or run `doctor setup`) to point at your context broker."
        )
        raise typer.Exit(code=1)


@app.command(name="setup")
def setup() -> None:
    """Interactive broker setup (stores config in the user config .env)."""

    current = AppSettings()

    base_url = typer.prompt("Broker base URL", default=current.base_url, show_default=True).strip()
    service = typer.prompt(
        "Fiware-Service (empty for none)", default=current.fiware_service or "", show_default=False
    ).strip()
    service_path = typer.prompt(
        "Fiware-ServicePath (empty for none)", default=current.fiware_service_path or "", show_default=False
    ).strip()
    token = typer.prompt(
        "X-Auth-Token (empty for none)", default="", hide_input=True, show_default=False
    ).strip()

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base URL must start with http:// or https://")

    env_path = write_user_env_vars(
        {
            "NGSI2_BASE_URL": base_url,
            "NGSI2_FIWARE_SERVICE": service or None,
            "NGSI2_FIWARE_SERVICE_PATH": service_path or None,
            "NGSI2_AUTH_TOKEN": token or None,
        }
    )

    _console.print(f"[green]Saved broker config to:[/green] {env_path}")
