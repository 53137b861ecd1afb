"""Builders shared by the test modules."""
import asyncio
import datetime as dt
from unittest.mock import AsyncMock

from core.capabilities import CapabilitySet, PluginCapability
from core.domain import BookingChannel, BookingSource, Passenger, ReservationData, SalesSegment
from core.errors import BackendUnavailable
from providers.mock.inventory_backend import MockInventoryBackend

TWO_STEP = CapabilitySet.of(
    PluginCapability.AVAILABILITY,
    PluginCapability.RESERVATIONS,
    PluginCapability.RESERVATION_CANCELLATION,
    PluginCapability.AMENDMENT,
)
SINGLE_STEP = CapabilitySet.of(PluginCapability.AVAILABILITY)

PARAMETERS = [
    {"name": "SAMPLE_API_SCHEME", "value": "https"},
    {"name": "SAMPLE_API_HOST", "value": "backend.example.com"},
    {"name": "SAMPLE_API_PORT", "value": "443"},
    {"name": "SAMPLE_API_PATH", "value": "/api/1"},
    {"name": "SAMPLE_API_USERNAME", "value": "plugin"},
    {"name": "SAMPLE_API_PASSWORD", "value": "hunter2"},
]


def tomorrow() -> dt.date:
    return dt.date.today() + dt.timedelta(days=1)


def ota_source() -> BookingSource:
    return BookingSource(
        segment=SalesSegment.OTA,
        booking_channel=BookingChannel(id="42", title="Example OTA", system_type="viator"),
    )


def reservation_data(product_id: str = "P1", passengers=2, **overrides) -> ReservationData:
    """``passengers`` is either a head count of adults or an explicit list."""
    if isinstance(passengers, int):
        passengers = [Passenger(pricing_category_id="ADT", first_name=f"Guest {i}") for i in range(passengers)]
    fields = {
        "product_id": product_id,
        "rate_id": "standard",
        "date": tomorrow(),
        "time": dt.time(9, 0) if product_id == "P1" else None,
        "passengers": passengers,
        "booking_source": ota_source(),
    }
    fields.update(overrides)
    return ReservationData(**fields)


class FailingConfirmBackend(MockInventoryBackend):
    async def confirm_hold(self, reference, customer):
        raise BackendUnavailable("backend went away")


class SlowBackend(MockInventoryBackend):
    async def get_product(self, product_id):
        await asyncio.sleep(1)
        return await super().get_product(product_id)


def failing_commit_factory(session_factory):
    """Session factory whose commits fail as if the ledger were unavailable."""

    def _factory():
        session = session_factory()
        session.commit = AsyncMock(side_effect=RuntimeError("ledger unavailable"))
        return session

    return _factory
