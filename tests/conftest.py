"""Shared pytest fixtures for the inventory plugin test suite."""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.main import app
from api.rpc.service import RpcPluginService
from core.capabilities import CapabilitySet
from core.plugin import InventoryPlugin, get_plugin
from db.models import Base
from helpers import TWO_STEP
from providers.mock.inventory_backend import MockInventoryBackend

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    # StaticPool keeps every session on the one in-memory database
    eng = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def backend():
    return MockInventoryBackend()


@pytest.fixture
def make_plugin(session_factory, backend):
    """Build a plugin over the in-memory ledger and a fresh mock backend."""

    def _make(capabilities: CapabilitySet = TWO_STEP, backend_override=None):
        chosen = backend_override or backend
        return InventoryPlugin(capabilities, session_factory, backend_factory=lambda configuration: chosen)

    return _make


@pytest.fixture
def plugin(make_plugin):
    return make_plugin(TWO_STEP)


@pytest.fixture
def rpc(plugin):
    return RpcPluginService(plugin)


# ── API test client ────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def api_client(plugin):
    """AsyncClient wired to FastAPI with the test plugin injected."""
    app.dependency_overrides[get_plugin] = lambda: plugin
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()
