import datetime as dt
import logging
import uuid
from typing import Optional

from core.config import settings
from core.domain import (
    AvailabilitySlot,
    BasicProductInfo,
    BookingChanges,
    Contact,
    Price,
    PricingCategoryWithPrice,
    ProductDescription,
    RateWithPrice,
    ReservationData,
)
from core.errors import InvalidState, NotFound
from providers.base import BaseInventoryBackend, Hold
from providers.mock.catalog import CURRENCY, PRICES, PRODUCTS, SLOT_CAPACITY

logger = logging.getLogger(__name__)

# Availability is never generated further ahead than this
MAX_DAYS_AHEAD = 366


def _slot_key(product_id: str, date: Optional[dt.date], time: Optional[dt.time]) -> tuple:
    return (
        product_id,
        date.isoformat() if date else None,
        time.strftime("%H:%M") if time else None,
    )


class MockInventoryBackend(BaseInventoryBackend):
    """In-memory backend: fixed catalog, per-slot capacity, expiring holds."""

    def __init__(self, products: Optional[dict[str, ProductDescription]] = None):
        self._products = dict(products if products is not None else PRODUCTS)
        self._holds: dict[str, dict] = {}
        self._bookings: dict[str, dict] = {}

    # ── catalog ───────────────────────────────────────────────────────────────

    async def list_products(self) -> list[BasicProductInfo]:
        return [product.summary() for product in self._products.values()]

    async def get_product(self, product_id: str) -> ProductDescription:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    async def get_availability(
        self, product_id: str, start: dt.date, end: dt.date
    ) -> list[AvailabilitySlot]:
        product = await self.get_product(product_id)
        today = dt.date.today()
        first = max(start, today + dt.timedelta(days=1))
        last = min(end, today + dt.timedelta(days=MAX_DAYS_AHEAD))
        rates = self._rates_with_prices(product)
        times = product.start_times or [None]

        slots = []
        day = first
        while day <= last:
            for start_time in times:
                remaining = SLOT_CAPACITY - self._used_capacity(_slot_key(product_id, day, start_time))
                if remaining > 0:
                    slots.append(AvailabilitySlot(date=day, time=start_time, capacity=remaining, rates=rates))
            day += dt.timedelta(days=1)
        return slots

    def _rates_with_prices(self, product: ProductDescription) -> list[RateWithPrice]:
        prices = PRICES.get(product.id, {})
        return [
            RateWithPrice(
                rate_id=rate.id,
                price_per_person=[
                    PricingCategoryWithPrice(
                        pricing_category_id=category_id,
                        price=Price(amount=amount, currency=CURRENCY),
                    )
                    for category_id, amount in prices.items()
                ],
            )
            for rate in product.rates
        ]

    def _used_capacity(self, key: tuple) -> int:
        now = dt.datetime.now(dt.timezone.utc)
        held = sum(h["pax"] for h in self._holds.values() if h["slot"] == key and h["expires_at"] > now)
        booked = sum(b["pax"] for b in self._bookings.values() if b["slot"] == key and b["status"] == "confirmed")
        return held + booked

    # ── reservations & bookings ───────────────────────────────────────────────

    @staticmethod
    def _check_bookable(product: ProductDescription, date: Optional[dt.date], time: Optional[dt.time]) -> None:
        """Only slots that get_availability would offer can be held."""
        today = dt.date.today()
        if date is None:
            raise InvalidState(f"Product {product.id} needs a date to be reserved")
        if not today + dt.timedelta(days=1) <= date <= today + dt.timedelta(days=MAX_DAYS_AHEAD):
            raise InvalidState(f"Product {product.id} cannot be booked on {date.isoformat()}")
        if time not in (product.start_times or [None]):
            raise InvalidState(f"Product {product.id} has no start time {time}")

    @property
    def active_holds(self) -> list[str]:
        return list(self._holds)

    def _prune_expired_holds(self) -> None:
        now = dt.datetime.now(dt.timezone.utc)
        for reference in [r for r, h in self._holds.items() if h["expires_at"] <= now]:
            del self._holds[reference]

    async def hold(self, reservation: ReservationData) -> Hold:
        product = await self.get_product(reservation.product_id)
        self._check_bookable(product, reservation.date, reservation.time)
        self._prune_expired_holds()
        key = _slot_key(reservation.product_id, reservation.date, reservation.time)
        pax = len(reservation.passengers)
        if self._used_capacity(key) + pax > SLOT_CAPACITY:
            raise InvalidState(f"Not enough capacity left for {pax} passengers")

        reference = f"MOCK-HOLD-{uuid.uuid4().hex[:12].upper()}"
        expires_at = dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=settings.reservation_ttl_minutes)
        self._holds[reference] = {"slot": key, "pax": pax, "expires_at": expires_at}
        logger.debug("Mock hold %s for %d pax on %s", reference, pax, key)
        return Hold(reference=reference, expires_at=expires_at)

    async def release_hold(self, reference: str) -> None:
        self._holds.pop(reference, None)

    async def confirm_hold(self, reference: str, customer: Optional[Contact]) -> str:
        hold = self._holds.pop(reference, None)
        if hold is None:
            raise NotFound(f"Hold {reference} not found")
        if hold["expires_at"] <= dt.datetime.now(dt.timezone.utc):
            raise InvalidState(f"Hold {reference} has expired")

        booking_reference = f"MOCK-{hold['slot'][0]}-BKG-{uuid.uuid4().hex[:8].upper()}"
        self._bookings[booking_reference] = {"slot": hold["slot"], "pax": hold["pax"], "status": "confirmed"}
        return booking_reference

    async def cancel_booking(self, reference: str) -> None:
        booking = self._bookings.get(reference)
        if booking is None:
            raise NotFound(f"Booking {reference} not found")
        booking["status"] = "cancelled"

    async def amend_booking(self, reference: str, changes: BookingChanges) -> None:
        booking = self._bookings.get(reference)
        if booking is None:
            raise NotFound(f"Booking {reference} not found")
        product_id, date, time = booking["slot"]
        if "date" in changes.model_fields_set:
            date = changes.date.isoformat() if changes.date else None
        if "time" in changes.model_fields_set:
            time = changes.time.strftime("%H:%M") if changes.time else None
        booking["slot"] = (product_id, date, time)
        if changes.passengers is not None:
            booking["pax"] = len(changes.passengers)
