"""Read-only product catalog and availability queries."""
import datetime as dt
import logging
from typing import AsyncIterator, Iterable, Optional

from core.backend_calls import call_backend
from core.capabilities import CapabilityRegistry, PluginOperation
from core.domain import (
    AvailabilitySlot,
    BasicProductInfo,
    DateRange,
    ProductDescription,
    ProductsAvailabilityResult,
)
from core.errors import NotFound
from providers.base import BaseInventoryBackend

logger = logging.getLogger(__name__)


def _normalized(values: Optional[Iterable[str]]) -> set[str]:
    return {v.strip().casefold() for v in values or () if v and v.strip()}


def _matches(product: BasicProductInfo, cities: set[str], countries: set[str]) -> bool:
    if cities and not cities & _normalized(product.cities):
        return False
    if countries and not countries & _normalized(product.countries):
        return False
    return True


def _in_past(date_range: DateRange) -> bool:
    return date_range.end < dt.date.today()


class CatalogService:
    def __init__(self, backend: BaseInventoryBackend, registry: CapabilityRegistry):
        self._backend = backend
        self._registry = registry

    async def search_products(
        self,
        cities: Optional[Iterable[str]] = None,
        countries: Optional[Iterable[str]] = None,
    ) -> AsyncIterator[BasicProductInfo]:
        """Yield products matching any of ``cities`` and any of ``countries``.

        Every iteration re-queries the backend; nothing is kept between calls.
        """
        self._registry.require(PluginOperation.SEARCH_PRODUCTS)
        city_filter, country_filter = _normalized(cities), _normalized(countries)
        products = await call_backend(self._backend.list_products(), "list_products")
        for product in products:
            if _matches(product, city_filter, country_filter):
                yield product

    async def get_product_by_id(self, product_id: str) -> ProductDescription:
        self._registry.require(PluginOperation.GET_PRODUCT_BY_ID)
        return await call_backend(self._backend.get_product(product_id), "get_product")

    async def get_available_products(
        self,
        product_ids: Iterable[str],
        date_range: DateRange,
        required_capacity: int = 1,
    ) -> list[ProductsAvailabilityResult]:
        """Shallow check: a product qualifies if *some* slot in range has room.

        Follow up with ``get_product_availability`` for exact slots.
        """
        self._registry.require(PluginOperation.GET_AVAILABLE_PRODUCTS)
        candidates = list(dict.fromkeys(product_ids))
        if _in_past(date_range):
            return []

        if not self._backend.supports_availability_check:
            return [ProductsAvailabilityResult(product_id=pid, actual_check_done=False) for pid in candidates]

        results = []
        for product_id in candidates:
            try:
                slots = await call_backend(
                    self._backend.get_availability(product_id, date_range.start, date_range.end),
                    "get_availability",
                )
            except NotFound:
                logger.info("Skipping unknown product %s in availability check", product_id)
                continue
            if any(slot.capacity >= required_capacity for slot in slots):
                results.append(ProductsAvailabilityResult(product_id=product_id, actual_check_done=True))
        return results

    async def get_product_availability(self, product_id: str, date_range: DateRange) -> list[AvailabilitySlot]:
        self._registry.require(PluginOperation.GET_PRODUCT_AVAILABILITY)
        if _in_past(date_range):
            return []
        return await call_backend(
            self._backend.get_availability(product_id, date_range.start, date_range.end),
            "get_availability",
        )
