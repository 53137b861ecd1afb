import logging

from fastapi import APIRouter, Depends

from api.dependencies import require_operation
from api.schemas import (
    GetProductByIdRequest,
    ProductAvailabilityRequest,
    ProductsAvailabilityRequest,
    SearchProductsRequest,
)
from core.capabilities import PluginOperation
from core.configuration import resolve_configuration
from core.domain import AvailabilitySlot, BasicProductInfo, ProductDescription, ProductsAvailabilityResult
from core.plugin import InventoryPlugin

router = APIRouter(prefix="/product", tags=["products"])
logger = logging.getLogger(__name__)


@router.post("/search", response_model=list[BasicProductInfo])
async def search_products(
    body: SearchProductsRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.SEARCH_PRODUCTS)),
):
    catalog = plugin.catalog(resolve_configuration(body.parameters))
    return [product async for product in catalog.search_products(body.cities, body.countries)]


@router.post("/getById", response_model=ProductDescription)
async def get_product_by_id(
    body: GetProductByIdRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.GET_PRODUCT_BY_ID)),
):
    catalog = plugin.catalog(resolve_configuration(body.parameters))
    return await catalog.get_product_by_id(body.external_id)


@router.post("/getAvailable", response_model=list[ProductsAvailabilityResult])
async def get_available_products(
    body: ProductsAvailabilityRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.GET_AVAILABLE_PRODUCTS)),
):
    """Shallow availability check over many products."""
    catalog = plugin.catalog(resolve_configuration(body.parameters))
    return await catalog.get_available_products(
        body.external_product_ids, body.range, body.required_capacity
    )


@router.post("/getAvailability", response_model=list[AvailabilitySlot])
async def get_product_availability(
    body: ProductAvailabilityRequest,
    plugin: InventoryPlugin = Depends(require_operation(PluginOperation.GET_PRODUCT_AVAILABILITY)),
):
    catalog = plugin.catalog(resolve_configuration(body.parameters))
    slots = await catalog.get_product_availability(body.product_id, body.range)
    logger.debug("Product %s has %d slots in %s..%s", body.product_id, len(slots), body.range.start, body.range.end)
    return slots
