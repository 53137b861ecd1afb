import asyncio
import logging
from typing import Awaitable, TypeVar

import httpx

from core.config import settings
from core.errors import BackendUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_backend(awaitable: Awaitable[T], operation: str) -> T:
    """Await a backend call bounded by the configured timeout.

    Timeouts and transport-level httpx errors become BackendUnavailable;
    PluginErrors raised by the backend propagate unchanged.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=settings.backend_timeout_seconds)
    except asyncio.TimeoutError:
        logger.error("Backend call %s timed out after %ss", operation, settings.backend_timeout_seconds)
        raise BackendUnavailable(f"Backend timed out during {operation}")
    except httpx.HTTPError as exc:
        logger.error("Backend call %s failed: %s", operation, exc)
        raise BackendUnavailable(f"Backend call {operation} failed: {exc}") from exc
