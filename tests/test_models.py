from datetime import datetime, timezone

import pytest

from core.domain.models import (
    Attribute,
    AttributeType,
    BulkActionType,
    BulkQueryRequest,
    BulkRegisterRequest,
    BulkUpdateRequest,
    Condition,
    Coordinate,
    Entity,
    EntityType,
    GeoGeometry,
    GeoModifier,
    GeoQuery,
    GeoRelation,
    Metadata,
    NgsiError,
    Notification,
    NotificationHttp,
    Paginated,
    Registration,
    Scope,
    Subject,
    SubjectEntity,
    Subscription,
    SubscriptionStatus,
    SubscriptionSubject,
)


def _registration() -> Registration:
    return Registration(
        id="abcdefg",
        callback="http://weather.example.com/ngsi",
        duration="PT1M",
        subject=Subject(
            entities=[SubjectEntity(id="Bcn_Welt", type="Room")],
            attributes=["temperature"],
        ),
        metadata={
            "providingService": Metadata(value="weather.example.com", type="none"),
            "providingAuthority": Metadata(value="AEMET - Spain", type="none"),
        },
    )


def _subscription() -> Subscription:
    return Subscription(
        id="57458eb60962ef754e7c0998",
        description="Temperature changes in rooms",
        subject=SubscriptionSubject(
            entities=[SubjectEntity(id_pattern=".*", type="Room")],
            condition=Condition(attributes=["temperature"], expression={"q": "temperature>40"}),
        ),
        notification=Notification(
            attributes=["temperature", "humidity"],
            http=NotificationHttp(url="http://localhost:1234"),
            times_sent=12,
            last_notification=datetime(2015, 10, 5, 16, 0, tzinfo=timezone.utc),
            attrs_format="normalized",
        ),
        expires=datetime(2016, 4, 5, 14, 0, tzinfo=timezone.utc),
        status=SubscriptionStatus.ACTIVE,
        throttling=5,
    )


ROUND_TRIP_CASES = [
    Metadata(value="2015-06-04T07:20:27.378Z", type="date"),
    Attribute(value=100, type="number", metadata={"accuracy": Metadata(value=2)}),
    Attribute(value={"address": "Ronda de la Comunicacions", "zipCode": 28050}),
    Entity(id="Bcn-Welt", type="Room", attributes={"temperature": Attribute(value=21.7)}),
    AttributeType(type="urn:phenomenum:temperature"),
    EntityType(
        type="Room",
        attrs={"temperature": AttributeType(type="urn:phenomenum:temperature")},
        count=7,
    ),
    SubjectEntity(id_pattern="Room.*", type_pattern="R.*"),
    Subject(entities=[SubjectEntity(id="Bcn_Welt")], attributes=["temperature"]),
    _registration(),
    _subscription(),
    Coordinate(latitude=40.418889, longitude=-3.691944),
    GeoQuery(
        relation=GeoRelation.NEAR,
        modifier=GeoModifier.MAX_DISTANCE,
        distance=1000,
        geometry=GeoGeometry.POINT,
        coordinates=[Coordinate(latitude=40.418889, longitude=-3.691944)],
    ),
    Scope(type="FIWARE::Location", value={"georel": "near"}),
    BulkUpdateRequest(
        action_type=BulkActionType.APPEND_STRICT,
        entities=[Entity(id="Room1", type="Room", attributes={"pressure": Attribute(value=720)})],
    ),
    BulkQueryRequest(
        entities=[SubjectEntity(id_pattern=".*", type="Room")],
        attributes=["temperature"],
        scopes=[Scope(type="FIWARE::StringQuery", value="temperature>20")],
    ),
    BulkRegisterRequest(action_type=BulkActionType.APPEND, registrations=[_registration()]),
    NgsiError(error="PartialUpdate", description="some failed", affected_items=["Room1", "Room2"]),
]


@pytest.mark.parametrize("model", ROUND_TRIP_CASES, ids=lambda m: type(m).__name__)
def test_round_trip(model):
    assert type(model).model_validate(model.to_json()) == model


def test_paginated_round_trip():
    page = Paginated[Entity](
        items=[Entity(id="Room1", type="Room", attributes={"temperature": Attribute(value=23)})],
        offset=10,
        limit=1,
        count=11,
    )

    dumped = page.model_dump(mode="json", by_alias=True, exclude_none=True)

    assert Paginated[Entity].model_validate(dumped) == page
    assert dumped["items"][0] == {"id": "Room1", "type": "Room", "temperature": {"value": 23}}


def test_entity_attributes_are_flattened_on_the_wire(car_entity_json):
    entity = Entity.model_validate(car_entity_json)

    assert entity.id == "P-9873-K"
    assert entity.type == "Car"
    speed = entity.attributes["speed"]
    assert speed.value == 100
    assert speed.type == "number"
    assert speed.metadata["timestamp"].type == "date"
    assert entity.to_json() == car_entity_json


def test_entity_without_attributes():
    entity = Entity.model_validate({"id": "Room1", "type": "Room"})

    assert entity.attributes == {}
    assert entity.to_json() == {"id": "Room1", "type": "Room"}


def test_set_attribute_is_chainable():
    entity = Entity(id="Bcn-Welt", type="Room")
    entity.set_attribute("temperature", Attribute(value=21.7)).set_attribute("humidity", Attribute(value=60))

    assert entity.to_json() == {
        "id": "Bcn-Welt",
        "type": "Room",
        "temperature": {"value": 21.7},
        "humidity": {"value": 60},
    }


def test_empty_metadata_and_none_fields_are_not_serialized():
    assert Attribute(value=31.5).to_json() == {"value": 31.5}
    assert Registration(id="r1").to_json() == {"id": "r1"}
    assert BulkQueryRequest(entities=[SubjectEntity(type="Room")]).to_json() == {
        "entities": [{"type": "Room"}]
    }


def test_camel_case_aliases():
    subscription = _subscription().to_json()

    assert subscription["subject"]["entities"] == [{"idPattern": ".*", "type": "Room"}]
    assert subscription["subject"]["condition"]["attrs"] == ["temperature"]
    assert subscription["notification"]["timesSent"] == 12
    assert subscription["notification"]["attrsFormat"] == "normalized"
    assert subscription["status"] == "active"
    assert BulkUpdateRequest(action_type=BulkActionType.DELETE).to_json() == {
        "actionType": "delete",
        "entities": [],
    }


def test_unknown_fields_are_ignored():
    error = NgsiError.model_validate({"error": "NotFound", "description": "gone", "code": 404})

    assert error == NgsiError(error="NotFound", description="gone")


def test_entity_type_from_types_listing():
    entity_type = EntityType.model_validate(
        {
            "type": "Car",
            "attrs": {"speed": {"types": ["Number"]}},
            "count": 12,
        }
    )

    assert entity_type.type == "Car"
    assert entity_type.attrs["speed"] == AttributeType(types=["Number"])
    assert entity_type.count == 12
    assert entity_type.to_json() == {"type": "Car", "attrs": {"speed": {"types": ["Number"]}}, "count": 12}


def test_attribute_type_drops_empty_types():
    assert AttributeType(type="Number").to_json() == {"type": "Number"}
    assert AttributeType().to_json() == {}


def test_attribute_named_attributes_round_trips():
    entity = Entity(id="Room1", type="Room", attributes={"attributes": Attribute(value=1)})

    wire = entity.to_json()

    assert wire == {"id": "Room1", "type": "Room", "attributes": {"value": 1}}
    assert Entity.model_validate(wire) == entity


def test_dict_input_is_always_the_wire_form():
    entity = Entity.model_validate(
        {"id": "Room1", "type": "Room", "attributes": {"value": ["a"], "type": "StructuredValue"}}
    )

    assert list(entity.attributes) == ["attributes"]
    assert entity.attributes["attributes"].type == "StructuredValue"


def test_values_are_not_range_checked_locally():
    assert Entity.model_validate({"id": "", "type": "Room"}).id == ""
    assert EntityType(count=-1).count == -1
    notification = Notification(throttling=-5, times_sent=-1).to_json()
    assert (notification["throttling"], notification["timesSent"]) == (-5, -1)
    assert Subscription(throttling=-1).throttling == -1
    geo = GeoQuery(relation=GeoRelation.NEAR, geometry=GeoGeometry.POINT, distance=-10)
    assert geo.distance == -10


def test_coordinate_string_form():
    assert str(Coordinate(latitude=41.3763726, longitude=2.1864475)) == "41.3763726,2.1864475"


def test_coordinate_string_form_never_uses_exponents():
    assert str(Coordinate(latitude=0.00001, longitude=2.0)) == "0.00001,2.0"
    assert str(Coordinate(latitude=-1.5e-7, longitude=40)) == "-0.00000015,40.0"
