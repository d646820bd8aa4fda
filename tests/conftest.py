import httpx
import pytest

from adapters.http_client import build_async_client
from adapters.ngsi2_client import Ngsi2Client
from core.config import AppSettings

BASE_URL = "http://broker.test:1026"


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        base_url=BASE_URL,
        fiware_service="smartcity",
        fiware_service_path="/rooms",
    )


@pytest.fixture
def recorded():
    return []


@pytest.fixture
def make_client(settings, recorded):
    """Devuelve una factoría de `Ngsi2Client` cuyo transporte responde con `handler`."""

    def _make(handler):
        def _record(request: httpx.Request) -> httpx.Response:
            recorded.append(request)
            return handler(request)

        http = build_async_client(settings, transport=httpx.MockTransport(_record))
        return Ngsi2Client(settings=settings, http_client=http)

    return _make


@pytest.fixture
def respond():
    """Handler que siempre devuelve la misma respuesta."""

    def _make(status_code=200, payload=None, headers=None, text=None):
        def _handler(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text, headers=headers)
            if payload is None:
                return httpx.Response(status_code, headers=headers)
            return httpx.Response(status_code, json=payload, headers=headers)

        return _handler

    return _make


@pytest.fixture
def car_entity_json():
    return {
        "id": "P-9873-K",
        "type": "Car",
        "speed": {
            "value": 100,
            "type": "number",
            "metadata": {
                "accuracy": {"value": 2},
                "timestamp": {"value": "2015-06-04T07:20:27.378Z", "type": "date"},
            },
        },
    }


@pytest.fixture
def room_entities_json():
    return [
        {"id": "DC_S1-D41", "type": "Room", "temperature": {"value": 35.6, "metadata": {}}},
        {"id": "Boe-Idearium", "type": "Room", "temperature": {"value": 22.5, "metadata": {}}},
    ]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    # Variables NGSI2_* del entorno del desarrollador no deben filtrarse en los tests.
    import os

    for key in list(os.environ):
        if key.upper().startswith("NGSI2_"):
            monkeypatch.delenv(key, raising=False)
