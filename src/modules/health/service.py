import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

import redis.asyncio as redis

from src.modules.tenancy.infrastructure.supabase_client import (
    StoreConnection,
    SupabaseClientFactory,
)
from src.utils.logger import get_logger
from src.utils.settings.management import ManagementStoreSettings

logger = get_logger(__name__)


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Literal["healthy", "unhealthy", "degraded"]
    connected: bool
    details: dict = field(default_factory=dict)
    error: str | None = None


@dataclass
class OverallHealthStatus:
    """Overall health status with individual service results."""

    status: Literal["healthy", "degraded", "unhealthy"]
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService:
    """Checks the management store and the rate limit cache."""

    def __init__(
        self,
        client_factory: SupabaseClientFactory,
        settings: ManagementStoreSettings,
        redis: redis.Redis,
    ):
        self.client_factory = client_factory
        self.settings = settings
        self.redis = redis

    async def check_management_store_health(self) -> HealthCheckResult:
        if not self.settings.is_configured:
            return HealthCheckResult(
                service="management_store",
                status="unhealthy",
                connected=False,
                error="Management store is not configured",
            )
        try:
            client = self.client_factory.create(
                StoreConnection(
                    url=self.settings.MANAGEMENT_SUPABASE_URL,
                    key=self.settings.MANAGEMENT_SUPABASE_SERVICE_ROLE_KEY,
                )
            )
            reachable = await client.ping()
            return HealthCheckResult(
                service="management_store",
                status="healthy" if reachable else "unhealthy",
                connected=reachable,
            )
        except Exception as e:
            logger.error(f"Management store health check error: {e}")
            return HealthCheckResult(
                service="management_store",
                status="unhealthy",
                connected=False,
                error=str(e),
            )

    async def check_redis_health(self) -> HealthCheckResult:
        """Rate limiting fails open, so a dead Redis only degrades the service."""
        try:
            await self.redis.ping()
            return HealthCheckResult(service="redis", status="healthy", connected=True)
        except Exception as e:
            logger.error(f"Redis health check error: {e}")
            return HealthCheckResult(
                service="redis",
                status="degraded",
                connected=False,
                details={"rate_limiting": "fail_open"},
                error=str(e),
            )

    async def run_all_checks(self) -> OverallHealthStatus:
        """Run all health checks in parallel and return overall status."""
        results = await asyncio.gather(
            self.check_management_store_health(),
            self.check_redis_health(),
        )

        services = {result.service: result for result in results}
        statuses = {result.status for result in results}
        if "unhealthy" in statuses:
            overall_status = "unhealthy"
        elif "degraded" in statuses:
            overall_status = "degraded"
        else:
            overall_status = "healthy"

        return OverallHealthStatus(
            status=overall_status,
            services=services,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
