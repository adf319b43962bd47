"""Tenant authentication API schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.modules.tenancy.models import OrganizationRecord, OrganizationSummary


class ManAuthenticateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so absence is reported as a missing field, not a 422
    email: str | None = None
    password: str | None = None
    organization_slug: str | None = Field(None, alias="organizationSlug")


class TenantConnectionModel(BaseModel):
    """What a client needs to open its own connection to the tenant."""

    id: int | str
    name: str
    slug: str
    supabase_url: str
    supabase_anon_key: str

    @classmethod
    def from_record(cls, organization: OrganizationRecord) -> "TenantConnectionModel":
        # Built field by field, the service-role key never leaves the server
        return cls(
            id=organization.id,
            name=organization.name,
            slug=organization.slug,
            supabase_url=organization.supabase_url,
            supabase_anon_key=organization.supabase_anon_key,
        )


class ManAuthenticateResponse(BaseModel):
    success: bool = True
    session: dict[str, Any]
    user: dict[str, Any] | None
    organization: TenantConnectionModel


class LookupOrganizationRequest(BaseModel):
    # Type checked by the lookup service so non-strings get its own error text
    email: Any = None


class LookupOrganizationResponse(BaseModel):
    organizations: list[OrganizationSummary]
