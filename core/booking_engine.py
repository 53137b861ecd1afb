"""Reservation and booking lifecycle.

    INITIAL --reserve--> HELD --confirm--> CONFIRMED --amend--> CONFIRMED
    INITIAL --reserve_and_confirm--> CONFIRMED
    HELD --cancel_reservation--> CANCELLED
    HELD --(backend expiry elapses)--> EXPIRED
    CONFIRMED --cancel_booking--> CANCELLED

Which entry path is legal depends on the declared capabilities
(see core.capabilities). State lives in the booking ledger tables; every
state-changing call for a code runs under that code's lock.
"""
import datetime as dt
import logging
import secrets
import uuid
from enum import Enum
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.backend_calls import call_backend
from core.capabilities import CapabilityRegistry, PluginOperation
from core.domain import (
    BookingChanges,
    BookingResult,
    BookingSource,
    Contact,
    Passenger,
    ProductDescription,
    ReservationData,
    ReservationResult,
    SalesSegment,
    Ticket,
    TicketPerPricingCategory,
)
from core.errors import InvalidState, NotFound, PluginError
from core.locks import CodeLocks
from db.models import Booking, Reservation
from providers.base import BaseInventoryBackend

logger = logging.getLogger(__name__)


class ReservationState(str, Enum):
    HELD = "HELD"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class BookingState(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


def log_booking_source(source: BookingSource) -> None:
    """Debug-log who initiated the booking; the payload depends on the sales segment."""
    channel = source.booking_channel
    logger.debug("Sales segment: %s", source.segment.value)
    logger.debug("Booking channel: %s '%s'", channel.id, channel.title)
    if source.segment == SalesSegment.OTA:
        logger.debug("OTA system: %s", channel.system_type)
    elif source.segment == SalesSegment.MARKETPLACE:
        vendor = source.marketplace_vendor
        logger.debug("Reseller vendor: %s '%s' reg.no. %s", vendor.id, vendor.title, vendor.company_registration_number)
    elif source.segment == SalesSegment.AGENT_AREA:
        agent = source.booking_agent
        logger.debug("Booking agent: %s '%s' reg.no. %s", agent.id, agent.title, agent.company_registration_number)
    elif source.segment == SalesSegment.DIRECT_OFFLINE:
        user = source.extranet_user
        logger.debug("Extranet user: %s '%s'", user.email, user.full_name)


def _issue_tickets(passengers: list[dict]) -> list[dict]:
    """One ticket per passenger, tagged with the passenger's pricing category."""
    return [
        TicketPerPricingCategory(
            pricing_category_id=passenger["pricing_category_id"],
            ticket=Ticket(ticket_barcode=secrets.token_hex(8).upper()),
        ).model_dump(mode="json")
        for passenger in passengers
    ]


def _booking_result(booking: Booking) -> BookingResult:
    return BookingResult(
        booking_confirmation_code=booking.code,
        tickets=[TicketPerPricingCategory.model_validate(t) for t in booking.tickets],
    )


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)


def _iso_date(value: Optional[dt.date]) -> Optional[str]:
    return value.isoformat() if value else None


def _hh_mm(value: Optional[dt.time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def _dump_passengers(passengers: list[Passenger]) -> list[dict]:
    return [p.model_dump(mode="json") for p in passengers]


class BookingEngine:
    """Capability-gated booking state machine for one backend."""

    def __init__(
        self,
        backend: BaseInventoryBackend,
        registry: CapabilityRegistry,
        session_factory: async_sessionmaker,
    ):
        self._backend = backend
        self._registry = registry
        self._session_factory = session_factory

    # ── helpers ───────────────────────────────────────────────────────────────

    async def _validate_against_catalog(
        self,
        product_id: str,
        rate_id: Optional[str],
        passengers: Optional[list[Passenger]],
    ) -> ProductDescription:
        product = await call_backend(self._backend.get_product(product_id), "get_product")
        if rate_id is not None and rate_id not in {rate.id for rate in product.rates}:
            raise NotFound(f"Rate {rate_id} not found for product {product_id}")
        if passengers is not None:
            known = {category.id for category in product.pricing_categories}
            unknown = sorted({p.pricing_category_id for p in passengers} - known)
            if unknown:
                raise NotFound(f"Pricing categories {unknown} not found for product {product_id}")
        return product

    async def _compensate(self, action: str, reference: str, call: Callable) -> None:
        """Best-effort undo of a backend step after a later step failed."""
        logger.warning("Compensating with %s for backend reference %s", action, reference)
        try:
            await call_backend(call(reference), action)
        except PluginError as exc:
            logger.error("Compensating %s for %s failed: %s", action, reference, exc)

    @staticmethod
    async def _load_reservation(db: AsyncSession, code: str) -> Reservation:
        result = await db.execute(select(Reservation).where(Reservation.code == code))
        reservation = result.scalar_one_or_none()
        if reservation is None:
            raise NotFound(f"Reservation {code} not found")
        return reservation

    @staticmethod
    async def _load_booking(db: AsyncSession, code: str) -> Booking:
        result = await db.execute(select(Booking).where(Booking.code == code))
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFound(f"Booking {code} not found")
        return booking

    @staticmethod
    async def _require_held(db: AsyncSession, reservation: Reservation, action: str) -> None:
        if (
            reservation.state == ReservationState.HELD.value
            and _as_utc(reservation.expires_at) <= dt.datetime.now(dt.timezone.utc)
        ):
            reservation.state = ReservationState.EXPIRED.value
            await db.commit()
            logger.info("Reservation %s expired at %s", reservation.code, reservation.expires_at)
        if reservation.state != ReservationState.HELD.value:
            raise InvalidState(
                f"Reservation {reservation.code} is {reservation.state}; only HELD reservations can be {action}"
            )

    # ── two-step path ─────────────────────────────────────────────────────────

    async def reserve(self, reservation: ReservationData) -> ReservationResult:
        """Hold capacity and issue a reservation confirmation code."""
        self._registry.require(PluginOperation.CREATE_RESERVATION)
        log_booking_source(reservation.booking_source)
        await self._validate_against_catalog(reservation.product_id, reservation.rate_id, reservation.passengers)

        hold = await call_backend(self._backend.hold(reservation), "hold")
        code = str(uuid.uuid4())
        try:
            async with self._session_factory() as db:
                db.add(
                    Reservation(
                        code=code,
                        hold_reference=hold.reference,
                        product_id=reservation.product_id,
                        rate_id=reservation.rate_id,
                        date=_iso_date(reservation.date),
                        time=_hh_mm(reservation.time),
                        passengers=_dump_passengers(reservation.passengers),
                        booking_source=reservation.booking_source.model_dump(mode="json"),
                        state=ReservationState.HELD.value,
                        expires_at=hold.expires_at,
                    )
                )
                await db.commit()
        except Exception:
            await self._compensate("release_hold", hold.reference, self._backend.release_hold)
            raise

        logger.info("Reservation %s HELD as backend hold %s until %s", code, hold.reference, hold.expires_at)
        return ReservationResult(reservation_confirmation_code=code, expires_at=hold.expires_at)

    async def confirm(
        self,
        reservation_code: str,
        booking_source: BookingSource,
        customer: Optional[Contact] = None,
    ) -> BookingResult:
        """Turn a HELD reservation into a booking. Not idempotent: a second call fails."""
        self._registry.require(PluginOperation.CONFIRM_BOOKING)
        log_booking_source(booking_source)

        async with CodeLocks.hold(reservation_code):
            async with self._session_factory() as db:
                reservation = await self._load_reservation(db, reservation_code)
                await self._require_held(db, reservation, "confirmed")

                backend_reference = await call_backend(
                    self._backend.confirm_hold(reservation.hold_reference, customer), "confirm_hold"
                )
                booking = Booking(
                    code=str(uuid.uuid4()),
                    reservation_code=reservation.code,
                    backend_reference=backend_reference,
                    product_id=reservation.product_id,
                    rate_id=reservation.rate_id,
                    date=reservation.date,
                    time=reservation.time,
                    passengers=reservation.passengers,
                    tickets=_issue_tickets(reservation.passengers),
                    state=BookingState.CONFIRMED.value,
                    revision=1,
                )
                reservation.state = ReservationState.CONFIRMED.value
                reservation.booking_code = booking.code
                db.add(booking)
                try:
                    await db.commit()
                except Exception:
                    await self._compensate("cancel_booking", backend_reference, self._backend.cancel_booking)
                    raise

        logger.info("Reservation %s CONFIRMED as booking %s", reservation_code, booking.code)
        return _booking_result(booking)

    async def cancel_reservation(self, reservation_code: str) -> None:
        """Release a HELD reservation. Cancelling twice is not an error."""
        self._registry.require(PluginOperation.CANCEL_RESERVATION)

        async with CodeLocks.hold(reservation_code):
            async with self._session_factory() as db:
                reservation = await self._load_reservation(db, reservation_code)
                if reservation.state == ReservationState.CANCELLED.value:
                    logger.info("Reservation %s already CANCELLED", reservation_code)
                    return
                await self._require_held(db, reservation, "cancelled")

                await call_backend(self._backend.release_hold(reservation.hold_reference), "release_hold")
                reservation.state = ReservationState.CANCELLED.value
                await db.commit()

        logger.info("Reservation %s CANCELLED", reservation_code)

    # ── single-step path ──────────────────────────────────────────────────────

    async def reserve_and_confirm(
        self,
        reservation: ReservationData,
        customer: Optional[Contact] = None,
    ) -> BookingResult:
        """Hold and confirm in one step; a failed confirm releases the hold."""
        self._registry.require(PluginOperation.CREATE_AND_CONFIRM_BOOKING)
        log_booking_source(reservation.booking_source)
        await self._validate_against_catalog(reservation.product_id, reservation.rate_id, reservation.passengers)

        hold = await call_backend(self._backend.hold(reservation), "hold")
        try:
            backend_reference = await call_backend(
                self._backend.confirm_hold(hold.reference, customer), "confirm_hold"
            )
        except Exception:
            await self._compensate("release_hold", hold.reference, self._backend.release_hold)
            raise

        passengers = _dump_passengers(reservation.passengers)
        booking = Booking(
            code=str(uuid.uuid4()),
            reservation_code=None,
            backend_reference=backend_reference,
            product_id=reservation.product_id,
            rate_id=reservation.rate_id,
            date=_iso_date(reservation.date),
            time=_hh_mm(reservation.time),
            passengers=passengers,
            tickets=_issue_tickets(passengers),
            state=BookingState.CONFIRMED.value,
            revision=1,
        )
        try:
            async with self._session_factory() as db:
                db.add(booking)
                await db.commit()
        except Exception:
            await self._compensate("cancel_booking", backend_reference, self._backend.cancel_booking)
            raise

        logger.info("Booking %s CONFIRMED in a single step", booking.code)
        return _booking_result(booking)

    # ── confirmed bookings ────────────────────────────────────────────────────

    async def cancel_booking(self, booking_code: str) -> None:
        """Cancel a CONFIRMED booking. Refund policy is the backend's concern."""
        self._registry.require(PluginOperation.CANCEL_BOOKING)

        async with CodeLocks.hold(booking_code):
            async with self._session_factory() as db:
                booking = await self._load_booking(db, booking_code)
                if booking.state != BookingState.CONFIRMED.value:
                    raise InvalidState(f"Booking {booking_code} is {booking.state}; only CONFIRMED bookings can be cancelled")

                await call_backend(self._backend.cancel_booking(booking.backend_reference), "cancel_booking")
                booking.state = BookingState.CANCELLED.value
                await db.commit()

        logger.info("Booking %s CANCELLED", booking_code)

    async def amend_booking(
        self,
        booking_code: str,
        changes: BookingChanges,
        booking_source: BookingSource,
    ) -> BookingResult:
        """Apply changes and re-issue tickets; the booking code stays the same."""
        self._registry.require(PluginOperation.AMEND_BOOKING)
        log_booking_source(booking_source)
        changed = changes.model_fields_set

        async with CodeLocks.hold(booking_code):
            async with self._session_factory() as db:
                booking = await self._load_booking(db, booking_code)
                if booking.state != BookingState.CONFIRMED.value:
                    raise InvalidState(f"Booking {booking_code} is {booking.state}; only CONFIRMED bookings can be amended")
                if changes.rate_id is not None or changes.passengers is not None:
                    await self._validate_against_catalog(booking.product_id, changes.rate_id, changes.passengers)

                await call_backend(self._backend.amend_booking(booking.backend_reference, changes), "amend_booking")

                if changes.rate_id is not None:
                    booking.rate_id = changes.rate_id
                if "date" in changed:
                    booking.date = _iso_date(changes.date)
                if "time" in changed:
                    booking.time = _hh_mm(changes.time)
                if changes.passengers is not None:
                    booking.passengers = _dump_passengers(changes.passengers)
                booking.tickets = _issue_tickets(booking.passengers)
                booking.revision += 1
                await db.commit()

        logger.info("Booking %s amended (revision %d)", booking_code, booking.revision)
        return _booking_result(booking)
