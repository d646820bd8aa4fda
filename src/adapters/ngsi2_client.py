"""Cliente NGSIv2 asíncrono (httpx).

Responsabilidad:
- Traducir cada operación del API a una petición HTTP (método + path + query + body).
- Adaptar la respuesta a un modelo del dominio o a `Paginated[T]`.
- Convertir respuestas no-2xx en `Ngsi2Exception` con el cuerpo de error parseado.

Sin reintentos ni caché: timeouts, pool de conexiones y cancelación son del
transporte (`httpx.AsyncClient`).
"""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from adapters.http_client import build_async_client, build_default_headers
from adapters.query_params import (
    LOCATION_HEADER,
    Params,
    add_geo_query,
    add_options,
    add_pagination,
    add_param,
    extract_id,
    extract_total_count,
)
from core.config import AppSettings
from core.domain.models import (
    Attribute,
    BulkQueryRequest,
    BulkRegisterRequest,
    BulkUpdateRequest,
    Entity,
    EntityType,
    GeoQuery,
    NgsiError,
    Paginated,
    Registration,
    Subscription,
)
from core.errors import Ngsi2Exception, Ngsi2UnsupportedOperationError
from core.interfaces.context_broker import ContextBroker
from core.log import get_app_logger

M = TypeVar("M", bound=BaseModel)

_logger = get_app_logger("client")

_REGISTRATIONS = TypeAdapter(list[Registration])


def _segment(value: str) -> str:
    # Ids con '/', '#', espacios... deben ir escapados como un único segmento.
    return quote(value, safe="")


def _attributes_payload(attributes: dict[str, Attribute]) -> dict[str, Any]:
    return {name: attribute.to_json() for name, attribute in attributes.items()}


def parse_error(response: httpx.Response) -> NgsiError:
    """Cuerpo de error NGSIv2; si no es JSON válido se sintetiza con el status."""

    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        try:
            return NgsiError.model_validate(payload)
        except ValidationError:
            pass

    description = response.text.strip() or response.reason_phrase or None
    return NgsiError(error=str(response.status_code), description=description)


class Ngsi2Client(ContextBroker):
    """Fachada del API NGSIv2 de un context broker.

    Uso típico:

        async with Ngsi2Client("http://orion:1026") as client:
            page = await client.get_entities(types=["Room"], count=True)

    Si se pasa un `httpx.AsyncClient` externo, el llamador es quien lo cierra.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._base_url = (base_url or self._settings.base_url).rstrip("/")
        self._headers = build_default_headers(self._settings)
        self._owns_client = http_client is None
        self._http = http_client or build_async_client(self._settings)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def http_headers(self) -> dict[str, str]:
        """Copia de las cabeceras por defecto (no se mutan tras construir)."""

        return dict(self._headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> Ngsi2Client:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _url(self, *segments: str) -> str:
        path = "/".join(_segment(s) for s in segments)
        return f"{self._base_url}/v2/{path}" if path else f"{self._base_url}/v2"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        params: Params | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        request_headers = self.http_headers
        if headers:
            request_headers.update(headers)

        _logger.debug("%s %s params=%s", method, url, params or {})
        response = await self._http.request(
            method,
            url,
            params=params or None,
            json=body,
            headers=request_headers,
        )
        _logger.debug("%s %s -> %s", method, url, response.status_code)

        if response.is_success:
            return response

        error = parse_error(response)
        _logger.warning(
            "%s failed: HTTP %s %s %s",
            operation,
            response.status_code,
            error.error,
            error.description or "",
        )
        if response.status_code == 501:
            raise Ngsi2UnsupportedOperationError(operation, error)
        raise Ngsi2Exception(response.status_code, error)

    @staticmethod
    def _paginated(model: type[M], response: httpx.Response, offset: int, limit: int) -> Paginated[M]:
        return Paginated[model](
            items=response.json(),
            offset=max(offset, 0),
            limit=max(limit, 0),
            count=extract_total_count(response.headers),
        )

    # ------------------------------------------------------------------
    # /v2
    # ------------------------------------------------------------------

    async def get_v2(self) -> dict[str, str]:
        """Lista de recursos publicados por el broker bajo /v2."""

        response = await self._request("GET", self._url(), operation="get_v2")
        data = response.json()
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    async def get_entities(
        self,
        ids: Sequence[str] | None = None,
        id_pattern: str | None = None,
        types: Sequence[str] | None = None,
        attrs: Sequence[str] | None = None,
        query: str | None = None,
        geo_query: GeoQuery | None = None,
        order_by: Sequence[str] | None = None,
        offset: int = 0,
        limit: int = 0,
        count: bool = False,
    ) -> Paginated[Entity]:
        """Lista entidades.

        - `ids` e `id_pattern` son excluyentes (lo valida el broker).
        - `query` es una expresión Simple Query Language (parámetro `q`).
        - `offset`/`limit` a 0 significan "sin definir".
        - `count=True` pide al broker el total en `X-Total-Count`.
        """

        params: Params = {}
        add_param(params, "id", ids)
        add_param(params, "idPattern", id_pattern)
        add_param(params, "type", types)
        add_param(params, "attrs", attrs)
        add_param(params, "q", query)
        add_geo_query(params, geo_query)
        add_param(params, "orderBy", order_by)
        add_pagination(params, offset, limit)
        add_options(params, count=count)

        response = await self._request("GET", self._url("entities"), operation="get_entities", params=params)
        return self._paginated(Entity, response, offset, limit)

    async def add_entity(self, entity: Entity) -> None:
        await self._request("POST", self._url("entities"), operation="add_entity", body=entity.to_json())

    async def get_entity(
        self, entity_id: str, type: str | None = None, attrs: Sequence[str] | None = None
    ) -> Entity:
        params: Params = {}
        add_param(params, "type", type)
        add_param(params, "attrs", attrs)
        response = await self._request(
            "GET", self._url("entities", entity_id), operation="get_entity", params=params
        )
        return Entity.model_validate(response.json())

    async def update_entity(
        self,
        entity_id: str,
        type: str | None,
        attributes: dict[str, Attribute],
        append: bool = False,
    ) -> None:
        """Actualiza o añade atributos; con `append=True` solo permite añadir."""

        params: Params = {}
        add_param(params, "type", type)
        add_options(params, append=append)
        await self._request(
            "POST",
            self._url("entities", entity_id),
            operation="update_entity",
            params=params,
            body=_attributes_payload(attributes),
        )

    async def replace_entity(
        self, entity_id: str, type: str | None, attributes: dict[str, Attribute]
    ) -> None:
        """Sustituye todos los atributos de la entidad por `attributes`."""

        params: Params = {}
        add_param(params, "type", type)
        await self._request(
            "PUT",
            self._url("entities", entity_id),
            operation="replace_entity",
            params=params,
            body=_attributes_payload(attributes),
        )

    async def delete_entity(self, entity_id: str, type: str | None = None) -> None:
        params: Params = {}
        add_param(params, "type", type)
        await self._request(
            "DELETE", self._url("entities", entity_id), operation="delete_entity", params=params
        )

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    async def get_attribute(self, entity_id: str, type: str | None, attribute_name: str) -> Attribute:
        params: Params = {}
        add_param(params, "type", type)
        response = await self._request(
            "GET",
            self._url("entities", entity_id, "attrs", attribute_name),
            operation="get_attribute",
            params=params,
        )
        return Attribute.model_validate(response.json())

    async def update_attribute(
        self, entity_id: str, type: str | None, attribute_name: str, attribute: Attribute
    ) -> None:
        params: Params = {}
        add_param(params, "type", type)
        await self._request(
            "PUT",
            self._url("entities", entity_id, "attrs", attribute_name),
            operation="update_attribute",
            params=params,
            body=attribute.to_json(),
        )

    async def delete_attribute(self, entity_id: str, type: str | None, attribute_name: str) -> None:
        params: Params = {}
        add_param(params, "type", type)
        await self._request(
            "DELETE",
            self._url("entities", entity_id, "attrs", attribute_name),
            operation="delete_attribute",
            params=params,
        )

    async def get_attribute_value(self, entity_id: str, type: str | None, attribute_name: str) -> Any:
        """Valor del atributo tal cual (cualquier tipo JSON)."""

        params: Params = {}
        add_param(params, "type", type)
        response = await self._request(
            "GET",
            self._url("entities", entity_id, "attrs", attribute_name, "value"),
            operation="get_attribute_value",
            params=params,
        )
        return response.json()

    async def get_attribute_value_as_string(
        self, entity_id: str, type: str | None, attribute_name: str
    ) -> str:
        """Valor del atributo como texto plano (`Accept: text/plain`)."""

        params: Params = {}
        add_param(params, "type", type)
        response = await self._request(
            "GET",
            self._url("entities", entity_id, "attrs", attribute_name, "value"),
            operation="get_attribute_value_as_string",
            params=params,
            headers={"Accept": "text/plain"},
        )
        return response.text

    # ------------------------------------------------------------------
    # Entity types
    # ------------------------------------------------------------------

    async def get_entity_types(
        self, offset: int = 0, limit: int = 0, count: bool = False
    ) -> Paginated[EntityType]:
        params: Params = {}
        add_pagination(params, offset, limit)
        add_options(params, count=count)
        response = await self._request("GET", self._url("types"), operation="get_entity_types", params=params)
        return self._paginated(EntityType, response, offset, limit)

    async def get_entity_type(self, entity_type: str) -> EntityType:
        response = await self._request("GET", self._url("types", entity_type), operation="get_entity_type")
        return EntityType.model_validate(response.json())

    # ------------------------------------------------------------------
    # Registrations
    # ------------------------------------------------------------------

    async def get_registrations(self) -> list[Registration]:
        response = await self._request("GET", self._url("registrations"), operation="get_registrations")
        return _REGISTRATIONS.validate_python(response.json())

    async def add_registration(self, registration: Registration) -> str:
        """Crea el registro y devuelve el id extraído de `Location`."""

        response = await self._request(
            "POST",
            self._url("registrations"),
            operation="add_registration",
            body=registration.to_json(),
        )
        return extract_id(response.headers.get(LOCATION_HEADER))

    async def get_registration(self, registration_id: str) -> Registration:
        response = await self._request(
            "GET", self._url("registrations", registration_id), operation="get_registration"
        )
        return Registration.model_validate(response.json())

    async def update_registration(self, registration_id: str, registration: Registration) -> None:
        await self._request(
            "PATCH",
            self._url("registrations", registration_id),
            operation="update_registration",
            body=registration.to_json(),
        )

    async def delete_registration(self, registration_id: str) -> None:
        await self._request(
            "DELETE", self._url("registrations", registration_id), operation="delete_registration"
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def get_subscriptions(
        self, offset: int = 0, limit: int = 0, count: bool = False
    ) -> Paginated[Subscription]:
        params: Params = {}
        add_pagination(params, offset, limit)
        add_options(params, count=count)
        response = await self._request(
            "GET", self._url("subscriptions"), operation="get_subscriptions", params=params
        )
        return self._paginated(Subscription, response, offset, limit)

    async def add_subscription(self, subscription: Subscription) -> str:
        """Crea la suscripción y devuelve el id extraído de `Location`."""

        response = await self._request(
            "POST",
            self._url("subscriptions"),
            operation="add_subscription",
            body=subscription.to_json(),
        )
        return extract_id(response.headers.get(LOCATION_HEADER))

    async def get_subscription(self, subscription_id: str) -> Subscription:
        response = await self._request(
            "GET", self._url("subscriptions", subscription_id), operation="get_subscription"
        )
        return Subscription.model_validate(response.json())

    async def update_subscription(self, subscription_id: str, subscription: Subscription) -> None:
        await self._request(
            "PATCH",
            self._url("subscriptions", subscription_id),
            operation="update_subscription",
            body=subscription.to_json(),
        )

    async def delete_subscription(self, subscription_id: str) -> None:
        await self._request(
            "DELETE", self._url("subscriptions", subscription_id), operation="delete_subscription"
        )

    # ------------------------------------------------------------------
    # Bulk operations (/v2/op/*)
    # ------------------------------------------------------------------

    async def bulk_update(self, request: BulkUpdateRequest) -> None:
        """Crea, actualiza o borra varias entidades en una única petición."""

        await self._request(
            "POST", self._url("op", "update"), operation="bulk_update", body=request.to_json()
        )

    async def bulk_query(
        self,
        request: BulkQueryRequest,
        order_by: Sequence[str] | None = None,
        offset: int = 0,
        limit: int = 0,
        count: bool = False,
    ) -> Paginated[Entity]:
        params: Params = {}
        add_pagination(params, offset, limit)
        add_param(params, "orderBy", order_by)
        add_options(params, count=count)
        response = await self._request(
            "POST",
            self._url("op", "query"),
            operation="bulk_query",
            params=params,
            body=request.to_json(),
        )
        return self._paginated(Entity, response, offset, limit)

    async def bulk_register(self, request: BulkRegisterRequest) -> list[str]:
        """Crea/actualiza/borra registros en bloque; devuelve los ids afectados."""

        response = await self._request(
            "POST", self._url("op", "register"), operation="bulk_register", body=request.to_json()
        )
        data = response.json()
        return [str(item) for item in data] if isinstance(data, list) else []

    async def bulk_discover(
        self,
        request: BulkQueryRequest,
        offset: int = 0,
        limit: int = 0,
        count: bool = False,
    ) -> Paginated[Registration]:
        params: Params = {}
        add_pagination(params, offset, limit)
        add_options(params, count=count)
        response = await self._request(
            "POST",
            self._url("op", "discover"),
            operation="bulk_discover",
            params=params,
            body=request.to_json(),
        )
        return self._paginated(Registration, response, offset, limit)
