"""Global test configuration and fixtures for the Tenant Auth Gateway."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from src.api.core.dependencies import (
    get_client_factory,
    get_management_settings,
    get_rate_limit_service,
)
from src.redis.client import get_redis_client
from src.utils.settings.management import ManagementStoreSettings
from tests.factories import OrganizationRowFactory, UserOrganizationRowFactory
from tests.utils.fakes import FakeClientFactory, FakeStore, InMemoryRateLimiter

MANAGEMENT_URL = "https://management.supabase.test"


@pytest.fixture
def organization_factory():
    return OrganizationRowFactory


@pytest.fixture
def user_organization_factory():
    return UserOrganizationRowFactory


@pytest.fixture
def management_settings() -> ManagementStoreSettings:
    return ManagementStoreSettings(
        MANAGEMENT_SUPABASE_URL=MANAGEMENT_URL,
        MANAGEMENT_SUPABASE_SERVICE_ROLE_KEY=SecretStr("management-service-role-key"),
        SUPABASE_REQUEST_TIMEOUT=5,
    )


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def management_store(client_factory: FakeClientFactory) -> FakeStore:
    return client_factory.store(MANAGEMENT_URL)


@pytest.fixture
def rate_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter()


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def tenant(management_store: FakeStore, client_factory: FakeClientFactory):
    """Register a tenant organization; returns ``(row, tenant_store)``."""

    def _create(**kwargs) -> tuple[dict, FakeStore]:
        row = OrganizationRowFactory(**kwargs)
        management_store.tables["organizations"].append(row)
        return row, client_factory.store(row["supabase_url"])

    return _create


@pytest.fixture
def member(management_store: FakeStore):
    """Map an email to an organization and give it a tenant account."""

    def _create(
        organization: dict, tenant_store: FakeStore, email: str, password: str
    ) -> dict:
        row = UserOrganizationRowFactory(
            email=email.lower(), organization_id=organization["id"]
        )
        management_store.tables["user_organizations"].append(row)
        tenant_store.add_user(email, password)
        return row

    return _create


@pytest_asyncio.fixture
async def app(
    management_settings, client_factory, rate_limiter, redis_client
) -> AsyncGenerator[FastAPI, None]:
    """FastAPI application with the stores replaced by in-memory fakes."""
    from src.main import app

    app.dependency_overrides[get_management_settings] = lambda: management_settings
    app.dependency_overrides[get_client_factory] = lambda: client_factory
    app.dependency_overrides[get_rate_limit_service] = lambda: rate_limiter
    app.dependency_overrides[get_redis_client] = lambda: redis_client

    async with LifespanManager(app):
        yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client for testing public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-tenant-gateway",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def lenient_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client that receives 500 responses instead of re-raised app errors."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test-tenant-gateway",
    ) as ac:
        yield ac
