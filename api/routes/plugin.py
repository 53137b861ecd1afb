from fastapi import APIRouter, Depends

from core.plugin import InventoryPlugin, PluginDefinition, get_plugin

router = APIRouter(prefix="/plugin", tags=["plugin"])


@router.get("/definition", response_model=PluginDefinition)
async def get_definition(plugin: InventoryPlugin = Depends(get_plugin)):
    """Plugin metadata; served before any connection parameters exist."""
    return plugin.definition()
