from fastapi import Depends

from core.capabilities import PluginOperation
from core.plugin import InventoryPlugin, get_plugin


def require_operation(operation: PluginOperation):
    """Route dependency that rejects undeclared operations.

    Dependencies are solved before the request body is validated, so an
    unsupported operation is reported as such whatever the payload looks like.
    """

    def _checked(plugin: InventoryPlugin = Depends(get_plugin)) -> InventoryPlugin:
        plugin.registry.require(operation)
        return plugin

    return _checked
