"""Booking backend collaborator interface.

The adapter core only ever talks to the backend through this narrow contract.
Implementations raise ``core.errors`` exceptions for known failures; raw
``httpx`` errors and timeouts are converted by ``core.backend_calls``.
"""
import datetime as dt
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from core.domain import (
    AvailabilitySlot,
    BasicProductInfo,
    BookingChanges,
    Contact,
    ProductDescription,
    ReservationData,
)


@dataclass
class Hold:
    """Capacity held by the backend until ``expires_at`` unless confirmed."""

    reference: str
    expires_at: dt.datetime


class BaseInventoryBackend(ABC):
    # False when the backend cannot answer availability without a full fetch;
    # shallow checks then return candidates unchecked.
    supports_availability_check: bool = True

    @abstractmethod
    async def list_products(self) -> list[BasicProductInfo]:
        pass

    @abstractmethod
    async def get_product(self, product_id: str) -> ProductDescription:
        """Raise NotFound if the backend does not know ``product_id``."""

    @abstractmethod
    async def get_availability(
        self, product_id: str, start: dt.date, end: dt.date
    ) -> list[AvailabilitySlot]:
        pass

    @abstractmethod
    async def hold(self, reservation: ReservationData) -> Hold:
        pass

    @abstractmethod
    async def release_hold(self, reference: str) -> None:
        pass

    @abstractmethod
    async def confirm_hold(self, reference: str, customer: Optional[Contact]) -> str:
        """Turn a hold into a booking and return the backend booking reference."""

    @abstractmethod
    async def cancel_booking(self, reference: str) -> None:
        pass

    @abstractmethod
    async def amend_booking(self, reference: str, changes: BookingChanges) -> None:
        pass
