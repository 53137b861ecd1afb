from fastapi import APIRouter, Depends

from api.dependencies import require_operation
from api.schemas import (
    AmendBookingRequest,
    CancelBookingRequest,
    CancellationResponse,
    CancelReservationRequest,
    ConfirmBookingRequest,
    CreateConfirmBookingRequest,
    ReservationRequest,
)
from core.capabilities import PluginOperation
from core.configuration import resolve_configuration
from core.domain import BookingResult, ReservationResult
from core.plugin import InventoryPlugin

router = APIRouter(prefix="/booking", tags=["bookings"])


@router.post("/reserve", response_model=ReservationResult)
async def create_reservation(
    body: ReservationRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.CREATE_RESERVATION)),
):
    engine = plugin.engine(resolve_configuration(body.parameters))
    return await engine.reserve(body.reservation_data)


@router.post("/confirm", response_model=BookingResult)
async def confirm_booking(
    body: ConfirmBookingRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.CONFIRM_BOOKING)),
):
    engine = plugin.engine(resolve_configuration(body.parameters))
    return await engine.confirm(body.reservation_confirmation_code, body.booking_source, body.customer)


@router.post("/createAndConfirm", response_model=BookingResult)
async def create_and_confirm_booking(
    body: CreateConfirmBookingRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.CREATE_AND_CONFIRM_BOOKING)),
):
    engine = plugin.engine(resolve_configuration(body.parameters))
    return await engine.reserve_and_confirm(body.reservation_data, body.customer)


@router.post("/cancelReservation", response_model=CancellationResponse)
async def cancel_reservation(
    body: CancelReservationRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.CANCEL_RESERVATION)),
):
    engine = plugin.engine(resolve_configuration(body.parameters))
    await engine.cancel_reservation(body.reservation_confirmation_code)
    return CancellationResponse()


@router.post("/cancel", response_model=CancellationResponse)
async def cancel_booking(
    body: CancelBookingRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.CANCEL_BOOKING)),
):
    engine = plugin.engine(resolve_configuration(body.parameters))
    await engine.cancel_booking(body.booking_confirmation_code)
    return CancellationResponse()


@router.post("/amend", response_model=BookingResult)
async def amend_booking(
    body: AmendBookingRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.AMEND_BOOKING)),
):
    engine = plugin.engine(resolve_configuration(body.parameters))
    return await engine.amend_booking(body.booking_confirmation_code, body.changes, body.booking_source)
