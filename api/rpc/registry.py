from typing import Any, Callable, Type

from pydantic import BaseModel


class MethodRegistry:
    """Named RPC methods, each with a request model and an async handler."""

    def __init__(self):
        self._models: dict[str, Type[BaseModel]] = {}
        self._handlers: dict[str, Callable] = {}

    def register(self, name: str, request_model: Type[BaseModel], handler: Callable) -> None:
        self._models[name] = request_model
        self._handlers[name] = handler

    def decode(self, name: str, payload: dict) -> BaseModel:
        """Raises ``pydantic.ValidationError`` for a malformed payload."""
        if name not in self._models:
            raise ValueError(f"Unknown method: '{name}'")
        return self._models[name].model_validate(payload or {})

    async def dispatch(self, name: str, request: BaseModel) -> Any:
        if name not in self._handlers:
            raise ValueError(f"Unknown method: '{name}'")
        return await self._handlers[name](request)

    def has_method(self, name: str) -> bool:
        return name in self._handlers

    def method_names(self) -> list[str]:
        return list(self._handlers.keys())
