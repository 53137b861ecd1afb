"""The plugin as seen by the transports.

Both the HTTP and the RPC transport talk to one ``InventoryPlugin``; neither
holds business rules of its own.
"""
import logging
from typing import Callable, List, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.booking_engine import BookingEngine
from core.capabilities import CapabilityRegistry, CapabilitySet
from core.catalog import CatalogService
from core.config import settings
from core.configuration import Configuration, PluginConfigurationParameter
from providers.base import BaseInventoryBackend
from providers.factory import get_backend

logger = logging.getLogger(__name__)


class PluginDefinition(BaseModel):
    name: str
    description: str
    capabilities: List[str]
    parameters: List[PluginConfigurationParameter]


class InventoryPlugin:
    def __init__(
        self,
        capabilities: CapabilitySet,
        session_factory: async_sessionmaker,
        backend_factory: Callable[[Configuration], BaseInventoryBackend] = get_backend,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ):
        self.registry = CapabilityRegistry(capabilities)
        self._session_factory = session_factory
        self._backend_factory = backend_factory
        self._name = name or settings.plugin_name
        self._description = description or settings.plugin_description

    def definition(self) -> PluginDefinition:
        """Plugin metadata; needs no Configuration."""
        capabilities, parameters = self.registry.declare()
        return PluginDefinition(
            name=self._name,
            description=self._description,
            capabilities=capabilities.names(),
            parameters=parameters,
        )

    def catalog(self, configuration: Configuration) -> CatalogService:
        return CatalogService(self._backend_factory(configuration), self.registry)

    def engine(self, configuration: Configuration) -> BookingEngine:
        return BookingEngine(self._backend_factory(configuration), self.registry, self._session_factory)


_plugin: Optional[InventoryPlugin] = None


def get_plugin() -> InventoryPlugin:
    """Process-wide plugin built from settings on first use."""
    global _plugin
    if _plugin is None:
        from db.database import async_session

        capabilities = CapabilitySet.from_names(settings.plugin_capabilities)
        logger.info("Declaring plugin capabilities: %s", ", ".join(capabilities.names()) or "none")
        _plugin = InventoryPlugin(capabilities, async_session)
    return _plugin
