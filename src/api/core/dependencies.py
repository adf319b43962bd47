import json
from typing import Annotated, Any, TypeVar

import redis.asyncio as redis
from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from src.api.core.constants import LOOKUP_RATE_LIMIT, LOOKUP_RATE_LIMIT_WINDOW_SECONDS
from src.modules.health.service import HealthService
from src.modules.tenancy.authenticator import TenantAuthenticator
from src.modules.tenancy.infrastructure.supabase_client import SupabaseClientFactory
from src.modules.tenancy.lookup import OrganizationLookupService
from src.modules.tenancy.rate_limiting import RateLimiter
from src.redis.client import get_redis_client
from src.utils.settings.management import ManagementStoreSettings

BodyModelT = TypeVar("BodyModelT", bound=BaseModel)


def json_body(model: type[BodyModelT]):
    """Build a dependency that reads the body as JSON whatever its Content-Type.

    An empty body or JSON ``null`` yields the model's defaults. Decode and
    shape errors are raised as ``RequestValidationError`` so the global
    handler renders them.
    """

    async def parse(request: Request) -> BodyModelT:
        raw = await request.body()
        data: Any = None
        if raw.strip():
            try:
                data = json.loads(raw)
            except ValueError as e:
                raise RequestValidationError(
                    [
                        {
                            "type": "json_invalid",
                            "loc": ("body", 0),
                            "msg": "JSON decode error",
                            "input": {},
                            "ctx": {"error": str(e)},
                        }
                    ]
                ) from e
        if data is None:
            return model()
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RequestValidationError(
                [
                    {**error, "loc": ("body", *error["loc"])}
                    for error in e.errors(include_url=False)
                ]
            ) from e

    return parse


def json_body_openapi(model: type[BaseModel]) -> dict:
    """Request body entry for routes that parse their body with ``json_body``."""
    return {
        "requestBody": {
            "required": False,
            "content": {
                "application/json": {"schema": model.model_json_schema(by_alias=True)}
            },
        }
    }


def get_management_settings() -> ManagementStoreSettings:
    """Read management store settings fresh, so env changes apply per request."""
    return ManagementStoreSettings()


def get_client_factory(
    settings: Annotated[ManagementStoreSettings, Depends(get_management_settings)],
) -> SupabaseClientFactory:
    return SupabaseClientFactory(timeout=settings.SUPABASE_REQUEST_TIMEOUT)


async def get_rate_limit_service(
    redis_client: redis.Redis = Depends(get_redis_client),
) -> RateLimiter:
    """Limiter for organization lookups, one window per normalized email."""
    return RateLimiter(
        redis_client,
        limit=LOOKUP_RATE_LIMIT,
        window_seconds=LOOKUP_RATE_LIMIT_WINDOW_SECONDS,
    )


def get_tenant_authenticator(
    client_factory: Annotated[SupabaseClientFactory, Depends(get_client_factory)],
    settings: Annotated[ManagementStoreSettings, Depends(get_management_settings)],
) -> TenantAuthenticator:
    """A fresh authenticator per request, it carries the request's stage."""
    return TenantAuthenticator(client_factory, settings)


def get_organization_lookup_service(
    client_factory: Annotated[SupabaseClientFactory, Depends(get_client_factory)],
    settings: Annotated[ManagementStoreSettings, Depends(get_management_settings)],
    rate_limiter: Annotated[RateLimiter, Depends(get_rate_limit_service)],
) -> OrganizationLookupService:
    return OrganizationLookupService(client_factory, settings, rate_limiter)


def get_health_service(
    client_factory: Annotated[SupabaseClientFactory, Depends(get_client_factory)],
    settings: Annotated[ManagementStoreSettings, Depends(get_management_settings)],
    redis_client: redis.Redis = Depends(get_redis_client),
) -> HealthService:
    return HealthService(client_factory, settings, redis_client)


TenantAuthenticatorDep = Annotated[
    TenantAuthenticator, Depends(get_tenant_authenticator)
]
OrganizationLookupServiceDep = Annotated[
    OrganizationLookupService, Depends(get_organization_lookup_service)
]
HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]
