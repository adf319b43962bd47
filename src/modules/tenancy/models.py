"""Tenant registry records and per-request authentication types."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, SecretStr

from src.modules.tenancy.infrastructure.supabase_client import StoreConnection


class AuthStage(str, Enum):
    """Linear per-request progression of a tenant login."""

    RECEIVED = "received"
    VALIDATED = "validated"
    TENANT_RESOLVED = "tenant_resolved"
    AUTHORIZED = "authorized"
    AUTHENTICATED = "authenticated"
    RESPONDED = "responded"
    ERROR = "error"


class OrganizationRecord(BaseModel):
    """A row of the management store's ``organizations`` table."""

    model_config = ConfigDict(extra="ignore")

    id: int | str
    name: str
    slug: str
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: SecretStr

    def tenant_connection(self) -> StoreConnection:
        """Privileged connection to the tenant's own project."""
        return StoreConnection(
            url=self.supabase_url, key=self.supabase_service_role_key
        )


class OrganizationSummary(BaseModel):
    """Non-sensitive organization fields, safe to show before login."""

    model_config = ConfigDict(extra="ignore")

    id: int | str
    name: str
    slug: str


@dataclass
class TenantLoginRequest:
    email: str
    password: str = field(repr=False)
    organization_slug: str

    @property
    def normalized_email(self) -> str:
        return self.email.lower()


@dataclass
class TenantAuthResult:
    session: dict
    user: dict | None
    organization: OrganizationRecord
