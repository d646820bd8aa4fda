"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts y headers NGSIv2 (JSON + cabeceras FIWARE multi-tenant).
- Facilita testeo: se puede sustituir el transporte por `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings

JSON_MEDIA_TYPE = "application/json"


def build_default_headers(settings: AppSettings | None = None) -> dict[str, str]:
    """Cabeceras por defecto de toda petición al broker.

    - `Content-Type`/`Accept` JSON siempre.
    - `Fiware-Service`, `Fiware-ServicePath`, `X-Auth-Token` solo si están configurados.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Content-Type": JSON_MEDIA_TYPE,
        "Accept": JSON_MEDIA_TYPE,
    }
    if settings.fiware_service:
        headers["Fiware-Service"] = settings.fiware_service
    if settings.fiware_service_path:
        headers["Fiware-ServicePath"] = settings.fiware_service_path
    if settings.auth_token:
        headers["X-Auth-Token"] = settings.auth_token
    return headers


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que CLI y librería se comporten igual.
    - `transport` permite inyectar un `MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers = build_default_headers(settings)
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
