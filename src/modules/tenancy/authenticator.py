"""Tenant-scoped login: resolve the tenant, authorize the user, then authenticate.

The three steps are strictly ordered. A user without a mapping to the
organization never reaches the tenant's identity provider, so a password
cannot be probed against a tenant the user has no claim to.
"""

from fastapi import status
from pydantic import ValidationError

from src.api.core.constants import ORGANIZATIONS_TABLE, USER_ORGANIZATIONS_TABLE
from src.api.core.exceptions.base import TenantAuthException
from src.api.core.messages import MessageCode
from src.modules.tenancy.infrastructure.supabase_client import (
    QueryFilter,
    StoreConnection,
    SupabaseClient,
    SupabaseClientFactory,
    SupabaseError,
)
from src.modules.tenancy.models import (
    AuthStage,
    OrganizationRecord,
    TenantAuthResult,
    TenantLoginRequest,
)
from src.utils.logger import get_logger, mask_email
from src.utils.settings.management import ManagementStoreSettings

ORGANIZATION_COLUMNS = (
    "id, name, slug, supabase_url, supabase_anon_key, supabase_service_role_key"
)


class TenantAuthenticator:
    """Runs one login attempt through the management store and the tenant store."""

    def __init__(
        self,
        client_factory: SupabaseClientFactory,
        settings: ManagementStoreSettings,
    ):
        self.client_factory = client_factory
        self.settings = settings
        self.logger = get_logger(self.__class__.__name__)
        self.stage = AuthStage.RECEIVED

    def _advance(self, stage: AuthStage, **context) -> None:
        self.stage = stage
        self.logger.info("tenant_auth_stage", stage=stage.value, **context)

    def _fail(
        self,
        message_code: MessageCode,
        status_code: int,
        message: str | None = None,
        details: str | None = None,
    ) -> TenantAuthException:
        failed_at = self.stage
        self.stage = AuthStage.ERROR
        self.logger.warning(
            "tenant_auth_failed",
            failed_after=failed_at.value,
            message_code=message_code.value,
            status_code=status_code,
        )
        return TenantAuthException(
            message_code, status_code, message=message, details=details
        )

    def _management_client(self) -> SupabaseClient:
        if not self.settings.is_configured:
            self.logger.error("Missing management database configuration")
            raise self._fail(
                MessageCode.SERVICE_CONFIGURATION_ERROR,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return self.client_factory.create(
            StoreConnection(
                url=self.settings.MANAGEMENT_SUPABASE_URL,
                key=self.settings.MANAGEMENT_SUPABASE_SERVICE_ROLE_KEY,
            )
        )

    def validate(
        self,
        email: str | None,
        password: str | None,
        organization_slug: str | None,
    ) -> TenantLoginRequest:
        """Reject incomplete requests before any store is contacted."""
        if not email or not password or not organization_slug:
            raise self._fail(
                MessageCode.MISSING_REQUIRED_FIELDS, status.HTTP_400_BAD_REQUEST
            )

        login = TenantLoginRequest(
            email=email, password=password, organization_slug=organization_slug
        )
        self._advance(
            AuthStage.VALIDATED,
            email=mask_email(email),
            organization_slug=organization_slug,
        )
        return login

    async def resolve_tenant(
        self, management: SupabaseClient, login: TenantLoginRequest
    ) -> OrganizationRecord:
        row = await management.select_single(
            ORGANIZATIONS_TABLE,
            ORGANIZATION_COLUMNS,
            [QueryFilter("slug", "eq", login.organization_slug)],
        )
        if row is None:
            raise self._fail(
                MessageCode.ORGANIZATION_NOT_FOUND, status.HTTP_404_NOT_FOUND
            )

        try:
            organization = OrganizationRecord.model_validate(row)
        except ValidationError:
            # The error text would echo the row, keys included
            raise self._fail(
                MessageCode.INTERNAL_ERROR,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                details="Organization record is incomplete",
            ) from None

        self._advance(AuthStage.TENANT_RESOLVED, organization_id=str(organization.id))
        return organization

    async def authorize(
        self,
        management: SupabaseClient,
        login: TenantLoginRequest,
        organization: OrganizationRecord,
    ) -> None:
        mapping = await management.select_single(
            USER_ORGANIZATIONS_TABLE,
            "id",
            [
                QueryFilter("email", "eq", login.normalized_email),
                QueryFilter("organization_id", "eq", organization.id),
            ],
        )
        if mapping is None:
            raise self._fail(
                MessageCode.USER_NOT_AUTHORIZED_FOR_ORGANIZATION,
                status.HTTP_403_FORBIDDEN,
            )
        self._advance(AuthStage.AUTHORIZED)

    async def authenticate_with_tenant(
        self, login: TenantLoginRequest, organization: OrganizationRecord
    ) -> TenantAuthResult:
        tenant = self.client_factory.create(organization.tenant_connection())
        result = await tenant.sign_in_with_password(login.email, login.password)
        if not result.ok:
            raise self._fail(
                MessageCode.AUTHENTICATION_FAILED,
                status.HTTP_401_UNAUTHORIZED,
                message=result.error_message,
            )

        self._advance(AuthStage.AUTHENTICATED)
        return TenantAuthResult(
            session=result.session, user=result.user, organization=organization
        )

    async def authenticate(
        self,
        email: str | None,
        password: str | None,
        organization_slug: str | None,
    ) -> TenantAuthResult:
        """Run the whole login; raises :class:`TenantAuthException` on any failure."""
        login = self.validate(email, password, organization_slug)
        management = self._management_client()

        try:
            organization = await self.resolve_tenant(management, login)
            await self.authorize(management, login, organization)
            result = await self.authenticate_with_tenant(login, organization)
        except SupabaseError as e:
            raise self._fail(
                MessageCode.INTERNAL_ERROR,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                details=str(e),
            ) from e

        self._advance(AuthStage.RESPONDED)
        return result
