"""Request and response envelopes shared by the HTTP and RPC transports."""
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from core.configuration import PluginConfigurationParameterValue
from core.domain import BookingChanges, BookingSource, Contact, DateRange, ReservationData


# ── Requests ───────────────────────────────────────────────────────────────────

class PluginRequest(BaseModel):
    """Every catalog and booking call carries the full connection parameter set."""

    parameters: List[PluginConfigurationParameterValue] = []


class SearchProductsRequest(PluginRequest):
    cities: List[str] = []
    countries: List[str] = []


class GetProductByIdRequest(PluginRequest):
    external_id: str


class ProductsAvailabilityRequest(PluginRequest):
    external_product_ids: List[str]
    range: DateRange
    required_capacity: int = Field(default=1, ge=1)


class ProductAvailabilityRequest(PluginRequest):
    product_id: str
    range: DateRange


class ReservationRequest(PluginRequest):
    reservation_data: ReservationData


class ConfirmBookingRequest(PluginRequest):
    reservation_confirmation_code: str
    booking_source: BookingSource
    customer: Optional[Contact] = None


class CreateConfirmBookingRequest(PluginRequest):
    reservation_data: ReservationData
    customer: Optional[Contact] = None


class CancelReservationRequest(PluginRequest):
    reservation_confirmation_code: str


class CancelBookingRequest(PluginRequest):
    booking_confirmation_code: str


class AmendBookingRequest(PluginRequest):
    booking_confirmation_code: str
    changes: BookingChanges
    booking_source: BookingSource


# ── Responses ──────────────────────────────────────────────────────────────────

class CancellationResponse(BaseModel):
    successful: bool = True


class ErrorBody(BaseModel):
    kind: str
    detail: Any
    retryable: bool = False


def describe_validation_errors(errors: list[dict]) -> str:
    """Flatten pydantic error dicts into one human-readable line."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ())) or 'body'}: {error.get('msg', 'invalid')}"
        for error in errors
    )
