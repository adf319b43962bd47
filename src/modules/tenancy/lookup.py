"""Organization lookup by email, for the tenant picker shown before login."""

import re
from typing import Any

from fastapi import status

from src.api.core.constants import (
    EMAIL_PATTERN,
    ORGANIZATIONS_TABLE,
    USER_ORGANIZATIONS_TABLE,
    RateLimitKeys,
)
from src.api.core.exceptions.base import TenantAuthException
from src.api.core.messages import MessageCode
from src.modules.tenancy.infrastructure.supabase_client import (
    QueryFilter,
    StoreConnection,
    SupabaseClientFactory,
    SupabaseError,
)
from src.modules.tenancy.models import OrganizationSummary
from src.modules.tenancy.rate_limiting import RateLimiter
from src.utils.logger import get_logger, mask_email
from src.utils.settings.management import ManagementStoreSettings

_email_re = re.compile(EMAIL_PATTERN)


class OrganizationLookupService:
    def __init__(
        self,
        client_factory: SupabaseClientFactory,
        settings: ManagementStoreSettings,
        rate_limiter: RateLimiter,
    ):
        self.client_factory = client_factory
        self.settings = settings
        self.rate_limiter = rate_limiter
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def validate_email(email: Any) -> str:
        if not email or not isinstance(email, str):
            raise TenantAuthException(
                MessageCode.INVALID_EMAIL, status.HTTP_400_BAD_REQUEST
            )
        if not _email_re.fullmatch(email):
            raise TenantAuthException(
                MessageCode.INVALID_EMAIL_FORMAT, status.HTTP_400_BAD_REQUEST
            )
        return email

    async def _enforce_rate_limit(self, email: str) -> None:
        normalized = email.strip().lower()
        result = await self.rate_limiter.hit(
            RateLimitKeys.organization_lookup(normalized)
        )
        if not result.is_allowed:
            self.logger.warning(
                "Rate limit exceeded for organization lookup",
                email=mask_email(normalized),
            )
            raise TenantAuthException(
                MessageCode.RATE_LIMIT_EXCEEDED,
                status.HTTP_429_TOO_MANY_REQUESTS,
                extra={"retryAfter": result.retry_after},
                headers={"Retry-After": str(result.retry_after)},
            )

    async def lookup(self, email: Any) -> list[OrganizationSummary]:
        """List the organizations an email is mapped to.

        An unknown email yields an empty list, never an error, so the
        endpoint does not reveal which emails exist.
        """
        email = self.validate_email(email)
        await self._enforce_rate_limit(email)

        if not self.settings.is_configured:
            self.logger.error("Missing management database configuration")
            raise TenantAuthException(
                MessageCode.SERVICE_CONFIGURATION_ERROR,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        management = self.client_factory.create(
            StoreConnection(
                url=self.settings.MANAGEMENT_SUPABASE_URL,
                key=self.settings.MANAGEMENT_SUPABASE_SERVICE_ROLE_KEY,
            )
        )

        try:
            mappings = await management.select(
                USER_ORGANIZATIONS_TABLE,
                "organization_id",
                [QueryFilter("email", "ilike", email.strip())],
            )
        except SupabaseError as e:
            self.logger.error(f"Error querying user_organizations: {e}")
            raise TenantAuthException(
                MessageCode.ORGANIZATION_LOOKUP_FAILED,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            ) from e

        organization_ids = list(
            dict.fromkeys(
                m["organization_id"] for m in mappings if m.get("organization_id")
            )
        )
        if not organization_ids:
            self.logger.info("No organizations found", email=mask_email(email))
            return []

        try:
            rows = await management.select(
                ORGANIZATIONS_TABLE,
                "id, name, slug",
                [QueryFilter("id", "in", organization_ids)],
            )
        except SupabaseError as e:
            self.logger.error(f"Error fetching organizations: {e}")
            raise TenantAuthException(
                MessageCode.ORGANIZATION_DETAILS_FAILED,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            ) from e

        if not rows:
            raise TenantAuthException(
                MessageCode.ORGANIZATION_DETAILS_FAILED,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        organizations = [OrganizationSummary.model_validate(row) for row in rows]
        self.logger.info(
            "Organizations found",
            email=mask_email(email),
            count=len(organizations),
        )
        return organizations
