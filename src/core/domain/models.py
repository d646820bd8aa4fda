"""Modelos del dominio NGSIv2 (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da (de)serialización JSON con aliases camelCase sin acoplar el Core a
  librerías de I/O.
- El cliente HTTP solo tiene que llamar `model_validate` / `to_json`.

Nota:
- Estos modelos describen *qué* intercambia el broker, no *cómo* se pide.
- No validamos invariantes del broker (ids, nombres de atributos...): eso lo
  hace el servidor y nos devuelve un error estructurado.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, model_serializer, model_validator
from pydantic.config import ConfigDict

T = TypeVar("T")


def _drop_empty(data: dict[str, Any], *keys: str) -> dict[str, Any]:
    # NON_EMPTY: colecciones vacías no viajan al broker.
    for key in keys:
        if key in data and not data[key]:
            data.pop(key)
    return data


class Ngsi2Model(BaseModel):
    """Base común: aliases camelCase en el wire y campos desconocidos ignorados."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_json(self) -> dict[str, Any]:
        """Representación JSON tal y como la espera el broker."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Metadata(Ngsi2Model):
    value: Any = None
    type: str | None = None


class Attribute(Ngsi2Model):
    """Atributo de una entidad: valor dinámico + tipo opcional + metadatos."""

    value: Any = Field(
        default=None,
        description="Valor del atributo (cualquier tipo JSON).",
    )
    type: str | None = Field(
        default=None,
        description="Tipo declarado del atributo (p.ej. 'Number', 'Text').",
    )
    metadata: dict[str, Metadata] = Field(
        default_factory=dict,
        description="Metadatos por nombre (accuracy, timestamp, unitCode...).",
    )

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> dict[str, Any]:
        return _drop_empty(handler(self), "metadata")


class Entity(Ngsi2Model):
    """Entidad de contexto identificada por id + type.

    En el wire los atributos van *aplanados* junto a `id`/`type`:
    `{"id": "Room1", "type": "Room", "temperature": {"value": 21.7}}`.
    En Python viven en `attributes`.

    Nota: un dict que llega a `model_validate` es *siempre* la forma del wire
    (NGSIv2 no reserva el nombre `attributes`); la forma Python solo entra por
    el constructor.
    """

    id: str = Field(
        ...,
        description="Identificador de la entidad.",
    )
    type: str | None = Field(
        default=None,
        description="Tipo de la entidad (obligatorio al crear en la mayoría de brokers).",
    )
    attributes: dict[str, Attribute] = Field(
        default_factory=dict,
        description="Atributos por nombre.",
    )

    def __init__(self, **data: Any) -> None:
        # Forma Python -> forma wire, que es la única que entiende el validador.
        attributes = data.pop("attributes", None) or {}
        super().__init__(**{**attributes, **data})

    @model_validator(mode="before")
    @classmethod
    def _collect_attributes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        collected: dict[str, Any] = {k: v for k, v in data.items() if k in ("id", "type")}
        collected["attributes"] = {k: v for k, v in data.items() if k not in ("id", "type")}
        return collected

    @model_serializer(mode="wrap")
    def _flatten_attributes(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        attributes = data.pop("attributes", None) or {}
        data.update(attributes)
        return data

    def set_attribute(self, name: str, attribute: Attribute) -> Entity:
        self.attributes[name] = attribute
        return self


class AttributeType(Ngsi2Model):
    """Tipo(s) observados de un atributo: `types` en NGSIv2 estable, `type` en el temprano."""

    type: str | None = None
    types: list[str] = Field(default_factory=list)

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> dict[str, Any]:
        return _drop_empty(handler(self), "types")


class EntityType(Ngsi2Model):
    """Tipo de entidad: atributos conocidos (con sus tipos) y número de entidades."""

    type: str | None = Field(
        default=None,
        description="Nombre del tipo (solo presente en el listado /v2/types).",
    )
    attrs: dict[str, AttributeType] = Field(
        default_factory=dict,
        description="Atributos observados para el tipo, con su tipo declarado.",
    )
    count: int = Field(
        default=0,
        description="Número de entidades de este tipo.",
    )


class SubjectEntity(Ngsi2Model):
    """Selector de entidades: id exacto o patrón, tipo exacto o patrón."""

    id: str | None = None
    id_pattern: str | None = Field(default=None, alias="idPattern")
    type: str | None = None
    type_pattern: str | None = Field(default=None, alias="typePattern")


class Subject(Ngsi2Model):
    """Sujeto de un registro: entidades y atributos que provee la fuente."""

    entities: list[SubjectEntity] = Field(default_factory=list)
    attributes: list[str] = Field(default_factory=list)


class Registration(Ngsi2Model):
    """Registro de una fuente de contexto (context provider)."""

    id: str | None = Field(
        default=None,
        description="Id asignado por el broker (None al crear).",
    )
    subject: Subject | None = Field(
        default=None,
        description="Entidades/atributos cubiertos por el registro.",
    )
    callback: str | None = Field(
        default=None,
        description="URL del proveedor de contexto.",
    )
    duration: str | None = Field(
        default=None,
        description="Duración ISO-8601 del registro (p.ej. 'PT1M').",
    )
    metadata: dict[str, Metadata] = Field(
        default_factory=dict,
        description="Metadatos del registro (providingService, providingAuthority...).",
    )

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> dict[str, Any]:
        return _drop_empty(handler(self), "metadata")


class Condition(Ngsi2Model):
    attributes: list[str] = Field(default_factory=list, alias="attrs")
    expression: dict[str, str] = Field(default_factory=dict)

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> dict[str, Any]:
        return _drop_empty(handler(self), "expression")


class SubscriptionSubject(Ngsi2Model):
    entities: list[SubjectEntity] = Field(default_factory=list)
    condition: Condition | None = None


class NotificationHttp(Ngsi2Model):
    url: str


class Notification(Ngsi2Model):
    """Cómo y qué notifica el broker cuando se dispara la suscripción."""

    attributes: list[str] = Field(
        default_factory=list,
        alias="attrs",
        description="Atributos incluidos en la notificación (vacío = todos).",
    )
    callback: str | None = Field(
        default=None,
        description="URL de notificación (forma NGSIv2 temprana).",
    )
    http: NotificationHttp | None = Field(
        default=None,
        description="Endpoint HTTP de notificación (forma NGSIv2 estable).",
    )
    throttling: int | None = None
    times_sent: int | None = Field(default=None, alias="timesSent")
    last_notification: datetime | None = Field(default=None, alias="lastNotification")
    attrs_format: str | None = Field(default=None, alias="attrsFormat")


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    FAILED = "failed"


class Subscription(Ngsi2Model):
    """Suscripción a cambios de contexto."""

    id: str | None = Field(
        default=None,
        description="Id asignado por el broker (None al crear).",
    )
    description: str | None = None
    subject: SubscriptionSubject = Field(
        default_factory=SubscriptionSubject,
        description="Entidades observadas y condición de disparo.",
    )
    notification: Notification = Field(
        default_factory=Notification,
        description="Destino y contenido de las notificaciones.",
    )
    expires: datetime | None = Field(
        default=None,
        description="Momento de expiración (None = permanente).",
    )
    status: SubscriptionStatus | None = None
    throttling: int | None = None


def _fixed_point(value: float) -> str:
    # `repr` da '1e-05'; los brokers solo aceptan notación decimal en `coords`.
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else f"{text}.0"


class Coordinate(Ngsi2Model):
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"{_fixed_point(self.latitude)},{_fixed_point(self.longitude)}"


class GeoRelation(str, Enum):
    NEAR = "near"
    COVERED_BY = "coveredBy"
    INTERSECTS = "intersects"
    EQUALS = "equals"
    DISJOINT = "disjoint"


class GeoModifier(str, Enum):
    MAX_DISTANCE = "maxDistance"
    MIN_DISTANCE = "minDistance"


class GeoGeometry(str, Enum):
    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"
    BOX = "box"


class GeoQuery(Ngsi2Model):
    """Filtro geográfico para `GET /v2/entities`.

    Solo la relación `near` usa `modifier` + `distance` (metros).
    """

    relation: GeoRelation
    geometry: GeoGeometry
    coordinates: list[Coordinate] = Field(default_factory=list)
    modifier: GeoModifier | None = None
    distance: float | None = None


class Scope(Ngsi2Model):
    type: str
    value: Any = None


class BulkActionType(str, Enum):
    APPEND = "append"
    APPEND_STRICT = "appendStrict"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"


class BulkUpdateRequest(Ngsi2Model):
    action_type: BulkActionType = Field(..., alias="actionType")
    entities: list[Entity] = Field(default_factory=list)


class BulkQueryRequest(Ngsi2Model):
    """Consulta/discovery masivo: entidades, atributos y scopes a casar."""

    entities: list[SubjectEntity] = Field(default_factory=list)
    attributes: list[str] = Field(default_factory=list)
    scopes: list[Scope] = Field(default_factory=list)

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> dict[str, Any]:
        return _drop_empty(handler(self), "attributes", "scopes")


class BulkRegisterRequest(Ngsi2Model):
    action_type: BulkActionType = Field(..., alias="actionType")
    registrations: list[Registration] = Field(default_factory=list)


class Paginated(BaseModel, Generic[T]):
    """Página de resultados + total devuelto por el broker (`X-Total-Count`).

    `offset`/`limit` son los pedidos por el cliente (0 = sin definir); `count`
    vale 0 cuando el broker no envía la cabecera o no es numérica.
    """

    items: list[T] = Field(default_factory=list)
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)
    count: int = Field(default=0, ge=0)


class NgsiError(Ngsi2Model):
    """Cuerpo de error estándar NGSIv2."""

    error: str = Field(
        ...,
        description="Código de error (p.ej. 'NotFound', 'BadRequest').",
    )
    description: str | None = Field(
        default=None,
        description="Descripción legible del error.",
    )
    affected_items: list[str] | None = Field(
        default=None,
        alias="affectedItems",
        description="Elementos afectados (operaciones bulk parcialmente fallidas).",
    )
