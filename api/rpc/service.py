"""Message-oriented transport over the same plugin facade as the HTTP routes.

Every call answers with an ``RpcResponse``; failures are reported through
``status``/``kind`` rather than raised, except for unexpected exceptions which
propagate to the caller.
"""
import logging
import secrets
from enum import Enum
from typing import Any, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError

from api.rpc.registry import MethodRegistry
from api.schemas import (
    AmendBookingRequest,
    CancelBookingRequest,
    CancelReservationRequest,
    ConfirmBookingRequest,
    CreateConfirmBookingRequest,
    GetProductByIdRequest,
    ProductAvailabilityRequest,
    ProductsAvailabilityRequest,
    ReservationRequest,
    SearchProductsRequest,
    describe_validation_errors,
)
from core.capabilities import PluginOperation
from core.config import settings
from core.configuration import resolve_configuration
from core.errors import ErrorKind, PluginError
from core.plugin import InventoryPlugin

logger = logging.getLogger(__name__)

SHARED_SECRET_KEY = "sharedsecret"


class RpcStatus(str, Enum):
    OK = "OK"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    UNAVAILABLE = "UNAVAILABLE"
    UNAUTHENTICATED = "UNAUTHENTICATED"


STATUS_BY_KIND = {
    ErrorKind.CONFIGURATION_ERROR: RpcStatus.INVALID_ARGUMENT,
    ErrorKind.INVALID_REQUEST: RpcStatus.INVALID_ARGUMENT,
    ErrorKind.NOT_FOUND: RpcStatus.NOT_FOUND,
    ErrorKind.UNSUPPORTED_CAPABILITY: RpcStatus.UNIMPLEMENTED,
    ErrorKind.INVALID_STATE: RpcStatus.FAILED_PRECONDITION,
    ErrorKind.BACKEND_UNAVAILABLE: RpcStatus.UNAVAILABLE,
}


class RpcResponse(BaseModel):
    status: RpcStatus
    kind: Optional[str] = None
    message: str = ""
    retryable: bool = False
    result: Any = None


class _DefinitionRequest(BaseModel):
    pass


class RpcPluginService:
    def __init__(self, plugin: InventoryPlugin):
        self._plugin = plugin
        self._methods = MethodRegistry()
        for operation, model, handler in (
            (PluginOperation.GET_DEFINITION, _DefinitionRequest, self._get_definition),
            (PluginOperation.SEARCH_PRODUCTS, SearchProductsRequest, self._search_products),
            (PluginOperation.GET_PRODUCT_BY_ID, GetProductByIdRequest, self._get_product_by_id),
            (PluginOperation.GET_AVAILABLE_PRODUCTS, ProductsAvailabilityRequest, self._get_available_products),
            (PluginOperation.GET_PRODUCT_AVAILABILITY, ProductAvailabilityRequest, self._get_product_availability),
            (PluginOperation.CREATE_RESERVATION, ReservationRequest, self._create_reservation),
            (PluginOperation.CONFIRM_BOOKING, ConfirmBookingRequest, self._confirm_booking),
            (PluginOperation.CREATE_AND_CONFIRM_BOOKING, CreateConfirmBookingRequest, self._create_and_confirm),
            (PluginOperation.CANCEL_RESERVATION, CancelReservationRequest, self._cancel_reservation),
            (PluginOperation.CANCEL_BOOKING, CancelBookingRequest, self._cancel_booking),
            (PluginOperation.AMEND_BOOKING, AmendBookingRequest, self._amend_booking),
        ):
            self._methods.register(operation.value, model, handler)

    def method_names(self) -> list[str]:
        return self._methods.method_names()

    async def call(
        self, method: str, payload: Optional[dict] = None, metadata: Optional[Mapping[str, str]] = None
    ) -> RpcResponse:
        if not _authorized(metadata):
            return RpcResponse(status=RpcStatus.UNAUTHENTICATED, message="Missing or invalid shared secret")

        if not self._methods.has_method(method):
            return RpcResponse(status=RpcStatus.UNIMPLEMENTED, message=f"Unknown method: '{method}'")

        # Undeclared operations fail before the payload is looked at
        try:
            self._plugin.registry.require(PluginOperation(method))
        except PluginError as exc:
            return _error_response(method, exc)

        try:
            request = self._methods.decode(method, payload or {})
        except ValidationError as exc:
            return RpcResponse(
                status=RpcStatus.INVALID_ARGUMENT,
                kind=ErrorKind.INVALID_REQUEST.value,
                message=describe_validation_errors(exc.errors()),
            )

        try:
            result = await self._methods.dispatch(method, request)
        except PluginError as exc:
            return _error_response(method, exc)

        return RpcResponse(status=RpcStatus.OK, result=jsonable_encoder(result))

    # ── handlers ──────────────────────────────────────────────────────────────

    async def _get_definition(self, request: _DefinitionRequest):
        return self._plugin.definition()

    async def _search_products(self, request: SearchProductsRequest):
        catalog = self._plugin.catalog(resolve_configuration(request.parameters))
        return [product async for product in catalog.search_products(request.cities, request.countries)]

    async def _get_product_by_id(self, request: GetProductByIdRequest):
        catalog = self._plugin.catalog(resolve_configuration(request.parameters))
        return await catalog.get_product_by_id(request.external_id)

    async def _get_available_products(self, request: ProductsAvailabilityRequest):
        catalog = self._plugin.catalog(resolve_configuration(request.parameters))
        return await catalog.get_available_products(
            request.external_product_ids, request.range, request.required_capacity
        )

    async def _get_product_availability(self, request: ProductAvailabilityRequest):
        catalog = self._plugin.catalog(resolve_configuration(request.parameters))
        return await catalog.get_product_availability(request.product_id, request.range)

    async def _create_reservation(self, request: ReservationRequest):
        engine = self._plugin.engine(resolve_configuration(request.parameters))
        return await engine.reserve(request.reservation_data)

    async def _confirm_booking(self, request: ConfirmBookingRequest):
        engine = self._plugin.engine(resolve_configuration(request.parameters))
        return await engine.confirm(
            request.reservation_confirmation_code, request.booking_source, request.customer
        )

    async def _create_and_confirm(self, request: CreateConfirmBookingRequest):
        engine = self._plugin.engine(resolve_configuration(request.parameters))
        return await engine.reserve_and_confirm(request.reservation_data, request.customer)

    async def _cancel_reservation(self, request: CancelReservationRequest):
        engine = self._plugin.engine(resolve_configuration(request.parameters))
        await engine.cancel_reservation(request.reservation_confirmation_code)
        return {"successful": True}

    async def _cancel_booking(self, request: CancelBookingRequest):
        engine = self._plugin.engine(resolve_configuration(request.parameters))
        await engine.cancel_booking(request.booking_confirmation_code)
        return {"successful": True}

    async def _amend_booking(self, request: AmendBookingRequest):
        engine = self._plugin.engine(resolve_configuration(request.parameters))
        return await engine.amend_booking(
            request.booking_confirmation_code, request.changes, request.booking_source
        )


def _error_response(method: str, exc: PluginError) -> RpcResponse:
    logger.info("RPC %s failed with %s: %s", method, exc.kind.value, exc)
    return RpcResponse(
        status=STATUS_BY_KIND[exc.kind],
        kind=exc.kind.value,
        message=str(exc),
        retryable=exc.retryable,
    )


def _authorized(metadata: Optional[Mapping[str, str]]) -> bool:
    if not settings.shared_secret:
        return True
    supplied = {k.lower(): v for k, v in (metadata or {}).items()}.get(SHARED_SECRET_KEY, "")
    return secrets.compare_digest(supplied.encode(), settings.shared_secret.encode())
