"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import json
from typing import Any

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Entity, EntityType, Paginated, Registration, Subscription
from core.errors import Ngsi2Exception


def print_banner(console: Console, base_url: str) -> None:
    """Imprime el banner con el broker destino."""

    title = Text("NGSIv2 client", style="bold cyan")
    subtitle = Text(base_url, style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _short(value: Any, max_chars: int = 60) -> str:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1] + "…"


def _page_caption(page: Paginated[Any]) -> str | None:
    if not page.count:
        return None
    return f"{len(page.items)} of {page.count} (offset {page.offset})"


def build_resources_table(resources: dict[str, str]) -> Table:
    table = Table(title="NGSIv2 resources")
    table.add_column("Resource", style="cyan", no_wrap=True)
    table.add_column("URL", style="magenta")
    for name, url in sorted(resources.items()):
        table.add_row(name, url)
    return table


def build_entities_table(page: Paginated[Entity]) -> Table:
    """Una fila por atributo para que entidades con muchos atributos sigan siendo legibles."""

    table = Table(title="Entities", caption=_page_caption(page))
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Attribute", style="green")
    table.add_column("Value", style="magenta")
    for entity in page.items:
        if not entity.attributes:
            table.add_row(entity.id, entity.type or "", "", "")
            continue
        first = True
        for name, attribute in entity.attributes.items():
            table.add_row(
                entity.id if first else "",
                (entity.type or "") if first else "",
                name,
                _short(attribute.value),
            )
            first = False
    return table


def build_types_table(page: Paginated[EntityType]) -> Table:
    table = Table(title="Entity types", caption=_page_caption(page))
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Count", style="white", justify="right")
    table.add_column("Attributes", style="green")
    for entity_type in page.items:
        attrs = ", ".join(f"{name}:{attr.type or '|'.join(attr.types)}" for name, attr in entity_type.attrs.items())
        table.add_row(entity_type.type or "", str(entity_type.count), attrs)
    return table


def build_subscriptions_table(page: Paginated[Subscription]) -> Table:
    table = Table(title="Subscriptions", caption=_page_caption(page))
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Entities", style="green")
    table.add_column("Notify", style="magenta")
    table.add_column("Description", style="dim")
    for subscription in page.items:
        entities = ", ".join(
            e.id or e.id_pattern or e.type or "*" for e in subscription.subject.entities
        )
        notification = subscription.notification
        target = notification.http.url if notification.http else (notification.callback or "")
        table.add_row(
            subscription.id or "",
            subscription.status.value if subscription.status else "",
            entities,
            target,
            subscription.description or "",
        )
    return table


def build_registrations_table(registrations: list[Registration]) -> Table:
    table = Table(title="Registrations")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Entities", style="green")
    table.add_column("Attributes", style="white")
    table.add_column("Callback", style="magenta")
    table.add_column("Duration", style="dim")
    for registration in registrations:
        subject = registration.subject
        entities = ", ".join(e.id or e.id_pattern or "*" for e in subject.entities) if subject else ""
        attributes = ", ".join(subject.attributes) if subject else ""
        table.add_row(
            registration.id or "",
            entities,
            attributes,
            registration.callback or "",
            registration.duration or "",
        )
    return table


def build_error_panel(exc: Ngsi2Exception) -> Panel:
    """Panel para errores devueltos por el broker."""

    body = Text()
    body.append(f"{exc.error.error}\n", style="bold")
    if exc.description:
        body.append(exc.description + "\n")
    if exc.affected_items:
        body.append("Affected items:\n", style="bold")
        for item in exc.affected_items:
            body.append(f"- {item}\n")
    return Panel(body, title=Text(f"HTTP {exc.status_code}", style="bold red"), border_style="red")
