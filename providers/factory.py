"""Backend factory: mock or HTTP backend depending on USE_REAL_BACKEND."""
from typing import Optional

from core.config import settings
from core.configuration import Configuration
from providers.base import BaseInventoryBackend
from providers.mock.inventory_backend import MockInventoryBackend

# Holds must survive across calls, so the mock is shared per process
_mock_backend: Optional[MockInventoryBackend] = None


def get_backend(configuration: Configuration) -> BaseInventoryBackend:
    """Return the backend to use for one inbound call.

    The HTTP backend is built fresh from the call's Configuration so that
    credentials are never reused between calls.
    """
    global _mock_backend

    if settings.use_real_backend:
        from providers.real.http_backend import HttpInventoryBackend
        return HttpInventoryBackend(configuration)

    if _mock_backend is None:
        _mock_backend = MockInventoryBackend()
    return _mock_backend
