"""Integration tests for the FastAPI routes."""
from unittest.mock import patch

import pytest

from api.main import app
from core.capabilities import CapabilitySet
from core.plugin import get_plugin
from helpers import PARAMETERS, SINGLE_STEP, ota_source, reservation_data, tomorrow


def _reservation_body(**kwargs) -> dict:
    return {"parameters": PARAMETERS, "reservation_data": reservation_data(**kwargs).model_dump(mode="json")}


async def _reserve(api_client) -> str:
    resp = await api_client.post("/booking/reserve", json=_reservation_body())
    assert resp.status_code == 200
    return resp.json()["reservation_confirmation_code"]


async def _confirm(api_client, code: str):
    return await api_client.post(
        "/booking/confirm",
        json={
            "parameters": PARAMETERS,
            "reservation_confirmation_code": code,
            "booking_source": ota_source().model_dump(mode="json"),
        },
    )


# ── misc ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(api_client):
    resp = await api_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_definition(api_client):
    resp = await api_client.get("/plugin/definition")
    assert resp.status_code == 200
    data = resp.json()
    assert data["capabilities"] == ["AVAILABILITY", "RESERVATIONS", "RESERVATION_CANCELLATION", "AMENDMENT"]
    assert [p["name"] for p in data["parameters"]][0] == "SAMPLE_API_SCHEME"
    assert data["name"]


# ── products ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_search_products(api_client):
    resp = await api_client.post("/product/search", json={"parameters": PARAMETERS, "cities": ["vilnius"]})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["P2"]


@pytest.mark.asyncio
async def test_get_product_by_id_not_found(api_client):
    resp = await api_client.post("/product/getById", json={"parameters": PARAMETERS, "external_id": "NOPE"})
    assert resp.status_code == 404
    assert resp.json()["kind"] == "NOT_FOUND"
    assert resp.json()["retryable"] is False


@pytest.mark.asyncio
async def test_get_available_products(api_client):
    day = tomorrow().isoformat()
    resp = await api_client.post(
        "/product/getAvailable",
        json={"parameters": PARAMETERS, "external_product_ids": ["P1", "NOPE"], "range": {"start": day, "end": day}},
    )
    assert resp.status_code == 200
    assert resp.json() == [{"product_id": "P1", "actual_check_done": True}]


@pytest.mark.asyncio
async def test_get_product_availability(api_client):
    day = tomorrow().isoformat()
    resp = await api_client.post(
        "/product/getAvailability",
        json={"parameters": PARAMETERS, "product_id": "P1", "range": {"start": day, "end": day}},
    )
    assert resp.status_code == 200
    slots = resp.json()
    assert [s["time"] for s in slots] == ["08:15:00", "09:00:00", "12:00:00"]
    assert slots[0]["capacity"] == 10


@pytest.mark.asyncio
async def test_inverted_range_is_invalid_request(api_client):
    resp = await api_client.post(
        "/product/getAvailability",
        json={"parameters": PARAMETERS, "product_id": "P1", "range": {"start": "2030-01-05", "end": "2030-01-01"}},
    )
    assert resp.status_code == 422
    assert resp.json()["kind"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_bad_port_parameter_is_configuration_error(api_client):
    params = [p for p in PARAMETERS if p["name"] != "SAMPLE_API_PORT"]
    params.append({"name": "SAMPLE_API_PORT", "value": "not-a-number"})
    resp = await api_client.post("/product/getById", json={"parameters": params, "external_id": "P1"})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "CONFIGURATION_ERROR"


# ── bookings ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_reserve_confirm_and_cancel(api_client):
    code = await _reserve(api_client)

    resp = await _confirm(api_client, code)
    assert resp.status_code == 200
    booking = resp.json()
    assert len(booking["tickets"]) == 2
    assert booking["tickets"][0]["ticket"]["ticket_type"] == "QR_CODE"

    resp = await _confirm(api_client, code)
    assert resp.status_code == 409
    assert resp.json()["kind"] == "INVALID_STATE"

    resp = await api_client.post(
        "/booking/cancel",
        json={"parameters": PARAMETERS, "booking_confirmation_code": booking["booking_confirmation_code"]},
    )
    assert resp.status_code == 200
    assert resp.json() == {"successful": True}


@pytest.mark.asyncio
async def test_cancel_reservation(api_client):
    code = await _reserve(api_client)
    resp = await api_client.post(
        "/booking/cancelReservation", json={"parameters": PARAMETERS, "reservation_confirmation_code": code}
    )
    assert resp.status_code == 200
    assert resp.json()["successful"] is True


@pytest.mark.asyncio
async def test_amend_booking(api_client):
    code = await _reserve(api_client)
    booking = (await _confirm(api_client, code)).json()

    resp = await api_client.post(
        "/booking/amend",
        json={
            "parameters": PARAMETERS,
            "booking_confirmation_code": booking["booking_confirmation_code"],
            "changes": {"rate_id": "private"},
            "booking_source": ota_source().model_dump(mode="json"),
        },
    )
    assert resp.status_code == 200
    assert resp.json()["booking_confirmation_code"] == booking["booking_confirmation_code"]


@pytest.mark.asyncio
async def test_create_and_confirm_unsupported_on_two_step(api_client):
    resp = await api_client.post("/booking/createAndConfirm", json=_reservation_body())
    assert resp.status_code == 405
    assert resp.json()["kind"] == "UNSUPPORTED_CAPABILITY"


@pytest.mark.asyncio
async def test_create_and_confirm_on_single_step(api_client, make_plugin):
    app.dependency_overrides[get_plugin] = lambda: make_plugin(SINGLE_STEP)

    resp = await api_client.post("/booking/createAndConfirm", json=_reservation_body(passengers=1))
    assert resp.status_code == 200
    assert len(resp.json()["tickets"]) == 1

    resp = await api_client.post("/booking/reserve", json=_reservation_body())
    assert resp.status_code == 405


@pytest.mark.asyncio
async def test_ota_source_without_system_type_is_invalid_request(api_client):
    body = _reservation_body()
    body["reservation_data"]["booking_source"]["booking_channel"]["system_type"] = None
    resp = await api_client.post("/booking/reserve", json=body)
    assert resp.status_code == 422
    assert resp.json()["kind"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_empty_passenger_list_is_invalid_request(api_client):
    body = _reservation_body()
    body["reservation_data"]["passengers"] = []
    resp = await api_client.post("/booking/reserve", json=body)
    assert resp.status_code == 422


# ── shared secret ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_shared_secret_required_when_configured(api_client):
    with patch("core.config.settings.shared_secret", "s3cret"):
        denied = await api_client.get("/plugin/definition")
        allowed = await api_client.get("/plugin/definition", headers={"sharedSecret": "s3cret"})
        health = await api_client.get("/health")

    assert denied.status_code == 401
    assert denied.json()["kind"] == "UNAUTHENTICATED"
    assert allowed.status_code == 200
    assert health.status_code == 200


@pytest.mark.asyncio
async def test_wrong_shared_secret_rejected(api_client):
    with patch("core.config.settings.shared_secret", "s3cret"):
        resp = await api_client.get("/plugin/definition", headers={"sharedSecret": "guess"})
    assert resp.status_code == 401


# ── capability gate runs before the body is validated ─────────────────────────

@pytest.mark.asyncio
async def test_unsupported_operation_wins_over_missing_fields(api_client):
    resp = await api_client.post("/booking/createAndConfirm", json={"parameters": PARAMETERS})
    assert resp.status_code == 405
    assert resp.json()["kind"] == "UNSUPPORTED_CAPABILITY"


@pytest.mark.asyncio
async def test_unsupported_operation_wins_over_bad_configuration(api_client):
    body = _reservation_body()
    body["parameters"] = [{"name": "SAMPLE_API_PORT", "value": "eighty"}]
    resp = await api_client.post("/booking/createAndConfirm", json=body)
    assert resp.status_code == 405
    assert resp.json()["kind"] == "UNSUPPORTED_CAPABILITY"


@pytest.mark.asyncio
async def test_undeclared_availability_rejected_with_empty_body(api_client, make_plugin):
    app.dependency_overrides[get_plugin] = lambda: make_plugin(CapabilitySet.of())
    resp = await api_client.post("/product/getAvailability", json={})
    assert resp.status_code == 405
    assert "GetProductAvailability" in resp.json()["detail"]
