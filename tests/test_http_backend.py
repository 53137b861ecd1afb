"""Tests for the HTTP booking backend, using httpx.MockTransport."""
import base64
import datetime as dt
import json
from unittest.mock import patch

import httpx
import pytest

from core.capabilities import CapabilityRegistry
from core.catalog import CatalogService
from core.configuration import Configuration
from core.domain import BookingChanges
from core.errors import BackendUnavailable, ConfigurationError, InvalidState, NotFound
from helpers import TWO_STEP, reservation_data, tomorrow
from providers.factory import get_backend
from providers.mock.inventory_backend import MockInventoryBackend
from providers.real.http_backend import HttpInventoryBackend

CONFIG = Configuration(
    scheme="https", host="backend.example.com", port=8443, api_path="/api/1", username="plugin", password="hunter2"
)


def _backend(handler, configuration=CONFIG) -> HttpInventoryBackend:
    return HttpInventoryBackend(configuration, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_products_sends_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json=[{"id": "X1", "name": "Harbour cruise", "cities": ["Oslo"]}])

    products = await _backend(handler).list_products()

    assert [p.id for p in products] == ["X1"]
    assert seen["path"] == "/api/1/product"
    assert seen["auth"] == "Basic " + base64.b64encode(b"plugin:hunter2").decode()


@pytest.mark.asyncio
async def test_availability_passes_range_as_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"date": tomorrow().isoformat(), "time": "10:00", "capacity": 3}])

    start = tomorrow()
    slots = await _backend(handler).get_availability("X1", start, start + dt.timedelta(days=2))

    assert seen["params"] == {"from": start.isoformat(), "to": (start + dt.timedelta(days=2)).isoformat()}
    assert slots[0].time == dt.time(10, 0)
    assert slots[0].capacity == 3


@pytest.mark.asyncio
async def test_hold_and_confirm():
    expires = (dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=15)).isoformat()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/api/1/reservation":
            body = json.loads(request.content)
            assert body["product_id"] == "P1"
            return httpx.Response(200, json={"reference": "H-1", "expires_at": expires})
        if request.url.path == "/api/1/reservation/H-1/confirm":
            return httpx.Response(200, json={"reference": "B-1"})
        return httpx.Response(404)

    backend = _backend(handler)
    hold = await backend.hold(reservation_data())
    assert hold.reference == "H-1"
    assert await backend.confirm_hold(hold.reference, None) == "B-1"


@pytest.mark.asyncio
async def test_amend_sends_only_changed_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    await _backend(handler).amend_booking("B-1", BookingChanges(rate_id="private"))
    assert seen["body"] == {"rate_id": "private"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error",
    [
        (404, NotFound),
        (401, ConfigurationError),
        (403, ConfigurationError),
        (400, InvalidState),
        (409, InvalidState),
        (422, InvalidState),
        (500, BackendUnavailable),
    ],
)
async def test_status_codes_map_to_errors(status, error):
    backend = _backend(lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(error):
        await backend.get_product("X1")


@pytest.mark.asyncio
async def test_unexpected_payload_is_backend_unavailable():
    backend = _backend(lambda request: httpx.Response(200, json={"unexpected": True}))
    with pytest.raises(BackendUnavailable):
        await backend.get_product("X1")


@pytest.mark.asyncio
async def test_non_json_body_is_backend_unavailable():
    backend = _backend(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(BackendUnavailable):
        await backend.list_products()


@pytest.mark.asyncio
async def test_missing_host_is_configuration_error():
    backend = _backend(lambda request: httpx.Response(200, json=[]), Configuration(scheme="https"))
    with pytest.raises(ConfigurationError):
        await backend.list_products()


@pytest.mark.asyncio
async def test_connection_error_becomes_backend_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    catalog = CatalogService(_backend(handler), CapabilityRegistry(TWO_STEP))
    with pytest.raises(BackendUnavailable) as exc_info:
        await catalog.get_product_by_id("X1")
    assert exc_info.value.retryable


def test_factory_picks_backend_from_settings():
    with patch("core.config.settings.use_real_backend", True):
        assert isinstance(get_backend(CONFIG), HttpInventoryBackend)
    with patch("core.config.settings.use_real_backend", False):
        mock = get_backend(CONFIG)
        assert isinstance(mock, MockInventoryBackend)
        # holds must survive between calls
        assert get_backend(CONFIG) is mock


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 422])
async def test_rejected_request_is_not_retryable(status):
    backend = _backend(lambda request: httpx.Response(status, json={"error": "bad passengers"}))
    with pytest.raises(InvalidState) as exc_info:
        await backend.hold(reservation_data())
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_server_error_is_retryable():
    backend = _backend(lambda request: httpx.Response(502))
    with pytest.raises(BackendUnavailable) as exc_info:
        await backend.list_products()
    assert exc_info.value.retryable is True
