"""Contrato de un context broker NGSIv2.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- La CLI y los tests pueden usar cualquier implementación (cliente httpx,
  fake en memoria) sin acoplarse a la concreta.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from core.domain.models import (
    Attribute,
    BulkQueryRequest,
    BulkRegisterRequest,
    BulkUpdateRequest,
    Entity,
    EntityType,
    GeoQuery,
    Paginated,
    Registration,
    Subscription,
)


@runtime_checkable
class ContextBroker(Protocol):
    """Operaciones NGSIv2 expuestas por un cliente.

    Reglas de diseño:
    - Todo es asíncrono porque cada operación es una petición HTTP.
    - Los listados paginados devuelven `Paginated[T]`.
    - Los errores del broker se propagan como `core.errors.Ngsi2Exception`.
    """

    async def get_v2(self) -> dict[str, str]: ...

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
    ) -> Paginated[Entity]: ...

    async def add_entity(self, entity: Entity) -> None: ...

    async def get_entity(
        self, entity_id: str, type: str | None = None, attrs: Sequence[str] | None = None
    ) -> Entity: ...

    async def update_entity(
        self,
        entity_id: str,
        type: str | None,
        attributes: dict[str, Attribute],
        append: bool = False,
    ) -> None: ...

    async def replace_entity(
        self, entity_id: str, type: str | None, attributes: dict[str, Attribute]
    ) -> None: ...

    async def delete_entity(self, entity_id: str, type: str | None = None) -> None: ...

    async def get_attribute(self, entity_id: str, type: str | None, attribute_name: str) -> Attribute: ...

    async def update_attribute(
        self, entity_id: str, type: str | None, attribute_name: str, attribute: Attribute
    ) -> None: ...

    async def delete_attribute(self, entity_id: str, type: str | None, attribute_name: str) -> None: ...

    async def get_attribute_value(self, entity_id: str, type: str | None, attribute_name: str) -> Any: ...

    async def get_attribute_value_as_string(
        self, entity_id: str, type: str | None, attribute_name: str
    ) -> str: ...

    async def get_entity_types(
        self, offset: int = 0, limit: int = 0, count: bool = False
    ) -> Paginated[EntityType]: ...

    async def get_entity_type(self, entity_type: str) -> EntityType: ...

    async def get_registrations(self) -> list[Registration]: ...

    async def add_registration(self, registration: Registration) -> str: ...

    async def get_registration(self, registration_id: str) -> Registration: ...

    async def update_registration(self, registration_id: str, registration: Registration) -> None: ...

    async def delete_registration(self, registration_id: str) -> None: ...

    async def get_subscriptions(
        self, offset: int = 0, limit: int = 0, count: bool = False
    ) -> Paginated[Subscription]: ...

    async def add_subscription(self, subscription: Subscription) -> str: ...

    async def get_subscription(self, subscription_id: str) -> Subscription: ...

    async def update_subscription(self, subscription_id: str, subscription: Subscription) -> None: ...

    async def delete_subscription(self, subscription_id: str) -> None: ...

    async def bulk_update(self, request: BulkUpdateRequest) -> None: ...

    async def bulk_query(
        self,
        request: BulkQueryRequest,
        order_by: Sequence[str] | None = None,
        offset: int = 0,
        limit: int = 0,
        count: bool = False,
    ) -> Paginated[Entity]: ...

    async def bulk_register(self, request: BulkRegisterRequest) -> list[str]: ...

    async def bulk_discover(
        self,
        request: BulkQueryRequest,
        offset: int = 0,
        limit: int = 0,
        count: bool = False,
    ) -> Paginated[Registration]: ...
