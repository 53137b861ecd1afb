"""Declared plugin capabilities and the operations they make legal."""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from core.configuration import PluginConfigurationParameter, parameter_definitions
from core.errors import UnsupportedCapability


class PluginCapability(str, Enum):
    AVAILABILITY = "AVAILABILITY"
    RESERVATIONS = "RESERVATIONS"
    RESERVATION_CANCELLATION = "RESERVATION_CANCELLATION"
    AMENDMENT = "AMENDMENT"


class PluginOperation(str, Enum):
    GET_DEFINITION = "GetDefinition"
    SEARCH_PRODUCTS = "SearchProducts"
    GET_PRODUCT_BY_ID = "GetProductById"
    GET_AVAILABLE_PRODUCTS = "GetAvailableProducts"
    GET_PRODUCT_AVAILABILITY = "GetProductAvailability"
    CREATE_RESERVATION = "CreateReservation"
    CONFIRM_BOOKING = "ConfirmBooking"
    CREATE_AND_CONFIRM_BOOKING = "CreateAndConfirmBooking"
    CANCEL_RESERVATION = "CancelReservation"
    CANCEL_BOOKING = "CancelBooking"
    AMEND_BOOKING = "AmendBooking"


# Only meaningful on top of the two-step reserve/confirm model
_REQUIRES_RESERVATIONS = (PluginCapability.RESERVATION_CANCELLATION, PluginCapability.AMENDMENT)


@dataclass(frozen=True)
class CapabilitySet:
    flags: frozenset

    def __post_init__(self):
        if PluginCapability.RESERVATIONS not in self.flags:
            dangling = [c.value for c in _REQUIRES_RESERVATIONS if c in self.flags]
            if dangling:
                raise ValueError(
                    f"Capabilities {dangling} require {PluginCapability.RESERVATIONS.value} to be declared"
                )

    @classmethod
    def of(cls, *capabilities: PluginCapability) -> "CapabilitySet":
        return cls(frozenset(capabilities))

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "CapabilitySet":
        flags = set()
        for name in names:
            try:
                flags.add(PluginCapability(name.strip().upper()))
            except ValueError:
                raise ValueError(f"Unknown plugin capability: {name!r}")
        return cls(frozenset(flags))

    def __contains__(self, capability: PluginCapability) -> bool:
        return capability in self.flags

    def names(self) -> list[str]:
        """Capability names in declaration order of the enum."""
        return [c.value for c in PluginCapability if c in self.flags]


class CapabilityRegistry:
    """Gatekeeper consulted before every catalog and lifecycle operation."""

    def __init__(self, capabilities: CapabilitySet):
        self._capabilities = capabilities

    @property
    def capabilities(self) -> CapabilitySet:
        return self._capabilities

    def declare(self) -> tuple[CapabilitySet, list[PluginConfigurationParameter]]:
        return self._capabilities, parameter_definitions()

    def is_supported(self, operation: PluginOperation) -> bool:
        caps = self._capabilities
        two_step = PluginCapability.RESERVATIONS in caps

        if operation in (
            PluginOperation.GET_DEFINITION,
            PluginOperation.SEARCH_PRODUCTS,
            PluginOperation.GET_PRODUCT_BY_ID,
            PluginOperation.CANCEL_BOOKING,
        ):
            return True
        if operation in (PluginOperation.GET_AVAILABLE_PRODUCTS, PluginOperation.GET_PRODUCT_AVAILABILITY):
            return PluginCapability.AVAILABILITY in caps
        if operation in (PluginOperation.CREATE_RESERVATION, PluginOperation.CONFIRM_BOOKING):
            return two_step
        if operation == PluginOperation.CREATE_AND_CONFIRM_BOOKING:
            # Exactly one entry path is ever exposed
            return not two_step
        if operation == PluginOperation.CANCEL_RESERVATION:
            return two_step and PluginCapability.RESERVATION_CANCELLATION in caps
        if operation == PluginOperation.AMEND_BOOKING:
            return PluginCapability.AMENDMENT in caps
        return False

    def require(self, operation: PluginOperation) -> None:
        if not self.is_supported(operation):
            raise UnsupportedCapability(operation.value)
