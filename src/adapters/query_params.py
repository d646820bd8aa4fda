"""Construcción de query strings NGSIv2 y lectura de cabeceras de respuesta.

Funciones puras (sin I/O) para poder testearlas sin broker:
- Un parámetro solo se añade si el argumento no es None ni vacío.
- Las listas viajan separadas por comas.
- Las geo-queries se codifican en `georel`, `geometry` y `coords`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from core.domain.models import GeoQuery, GeoRelation

Params = dict[str, str]

TOTAL_COUNT_HEADER = "X-Total-Count"
LOCATION_HEADER = "Location"


def add_param(params: Params, key: str, value: str | Iterable[str] | None) -> Params:
    if value is None:
        return params
    if isinstance(value, str):
        if value:
            params[key] = value
        return params
    items = [str(v) for v in value]
    if items:
        params[key] = ",".join(items)
    return params


def add_pagination(params: Params, offset: int = 0, limit: int = 0) -> Params:
    if offset > 0:
        params["offset"] = str(offset)
    if limit > 0:
        params["limit"] = str(limit)
    return params


def add_options(params: Params, **flags: bool) -> Params:
    """Añade `options=a,b` con los flags activos (p.ej. `count=True`)."""

    return add_param(params, "options", [name for name, enabled in flags.items() if enabled])


def _format_distance(distance: float) -> str:
    if float(distance).is_integer():
        return str(int(distance))
    return str(distance)


def add_geo_query(params: Params, geo_query: GeoQuery | None) -> Params:
    if geo_query is None:
        return params

    georel = geo_query.relation.value
    if (
        geo_query.relation is GeoRelation.NEAR
        and geo_query.modifier is not None
        and geo_query.distance is not None
    ):
        georel += f";{geo_query.modifier.value}:{_format_distance(geo_query.distance)}"

    params["georel"] = georel
    params["geometry"] = geo_query.geometry.value
    add_param(params, "coords", ";".join(str(c) for c in geo_query.coordinates))
    return params


def extract_total_count(headers: Mapping[str, str]) -> int:
    """Total de resultados de `X-Total-Count`; 0 si falta o no es numérico."""

    raw = headers.get(TOTAL_COUNT_HEADER)
    if raw is None:
        return 0
    try:
        total = int(raw.strip())
    except ValueError:
        return 0
    return total if total > 0 else 0


def extract_id(location: str | None) -> str:
    """Último segmento del path de `Location` (p.ej. `/v2/subscriptions/abc` -> `abc`)."""

    if not location:
        return ""
    return location.rstrip("/").split("/")[-1]
