"""HTTP booking backend.

Base URL and basic-auth credentials come from the per-call Configuration and
are never cached between calls. Requests are not retried here; retry policy
belongs to the Inventory Server.
"""
import datetime as dt
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from core.config import settings
from core.configuration import Configuration
from core.domain import (
    AvailabilitySlot,
    BasicProductInfo,
    BookingChanges,
    Contact,
    ProductDescription,
    ReservationData,
)
from core.errors import BackendUnavailable, ConfigurationError, InvalidState, NotFound
from providers.base import BaseInventoryBackend, Hold

logger = logging.getLogger(__name__)


class _HoldPayload(BaseModel):
    reference: str
    expires_at: dt.datetime


class _BookingPayload(BaseModel):
    reference: str


def _parse(model, data: Any, what: str):
    try:
        if isinstance(data, list):
            return [model.model_validate(item) for item in data]
        return model.model_validate(data)
    except ValidationError as exc:
        raise BackendUnavailable(f"Backend returned an unexpected {what} payload: {exc.error_count()} errors")


class HttpInventoryBackend(BaseInventoryBackend):
    def __init__(self, configuration: Configuration, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._configuration = configuration
        self._auth = httpx.BasicAuth(configuration.username or "", configuration.password or "")
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        base_url = self._configuration.base_url()
        headers = {"Accept": "application/json", "Content-Type": "application/json"}

        async with httpx.AsyncClient(
            base_url=base_url,
            auth=self._auth,
            headers=headers,
            timeout=settings.backend_timeout_seconds,
            transport=self._transport,
        ) as client:
            logger.debug("Backend request %s %s/%s", method, base_url, path)
            resp = await client.request(method, path, **kwargs)

        if resp.status_code == 404:
            raise NotFound(f"Backend has no resource at {path}")
        if resp.status_code in (401, 403):
            raise ConfigurationError("Backend rejected the configured credentials")
        if resp.status_code in (400, 409, 422):
            # rejected as invalid; retrying the same request cannot succeed
            raise InvalidState(f"Backend refused {method} {path} with HTTP {resp.status_code}: {resp.text}")
        if resp.status_code >= 400:
            logger.error("Backend %s %s failed with HTTP %d", method, path, resp.status_code)
            raise BackendUnavailable(f"Backend returned HTTP {resp.status_code} for {method} {path}")

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            raise BackendUnavailable(f"Backend returned a non-JSON body for {method} {path}")

    # ── catalog ───────────────────────────────────────────────────────────────

    async def list_products(self) -> list[BasicProductInfo]:
        data = await self._request("GET", "product")
        return _parse(BasicProductInfo, data or [], "product list")

    async def get_product(self, product_id: str) -> ProductDescription:
        data = await self._request("GET", f"product/{product_id}")
        return _parse(ProductDescription, data, "product")

    async def get_availability(
        self, product_id: str, start: dt.date, end: dt.date
    ) -> list[AvailabilitySlot]:
        data = await self._request(
            "GET",
            f"product/{product_id}/availability",
            params={"from": start.isoformat(), "to": end.isoformat()},
        )
        return _parse(AvailabilitySlot, data or [], "availability")

    # ── reservations & bookings ───────────────────────────────────────────────

    async def hold(self, reservation: ReservationData) -> Hold:
        data = await self._request("POST", "reservation", json=reservation.model_dump(mode="json"))
        payload = _parse(_HoldPayload, data, "hold")
        return Hold(reference=payload.reference, expires_at=payload.expires_at)

    async def release_hold(self, reference: str) -> None:
        await self._request("DELETE", f"reservation/{reference}")

    async def confirm_hold(self, reference: str, customer: Optional[Contact]) -> str:
        body = {"customer": customer.model_dump(mode="json") if customer else None}
        data = await self._request("POST", f"reservation/{reference}/confirm", json=body)
        return _parse(_BookingPayload, data, "booking").reference

    async def cancel_booking(self, reference: str) -> None:
        await self._request("POST", f"booking/{reference}/cancel")

    async def amend_booking(self, reference: str, changes: BookingChanges) -> None:
        await self._request(
            "POST",
            f"booking/{reference}/amend",
            json=changes.model_dump(mode="json", exclude_unset=True),
        )
