from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.rpc.service import RpcPluginService, RpcResponse
from core.plugin import InventoryPlugin, get_plugin

router = APIRouter(prefix="/rpc", tags=["rpc"])


def get_rpc_service(plugin: InventoryPlugin = Depends(get_plugin)) -> RpcPluginService:
    return RpcPluginService(plugin)


@router.post("/{method}", response_model=RpcResponse)
async def call_method(
    method: str,
    request: Request,
    payload: dict[str, Any] = Body(default={}),
    service: RpcPluginService = Depends(get_rpc_service),
):
    """Always answers 200; the outcome is carried by the envelope's ``status``."""
    return await service.call(method, payload, metadata=request.headers)
