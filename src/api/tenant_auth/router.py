"""Tenant authentication router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.core.dependencies import (
    OrganizationLookupServiceDep,
    TenantAuthenticatorDep,
    json_body,
    json_body_openapi,
)
from src.api.core.messages import ErrorResponse
from src.api.tenant_auth.schemas import (
    LookupOrganizationRequest,
    LookupOrganizationResponse,
    ManAuthenticateRequest,
    ManAuthenticateResponse,
    TenantConnectionModel,
)

router = APIRouter(tags=["tenant-auth"])


@router.post(
    "/man-authenticate",
    response_model=ManAuthenticateResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra=json_body_openapi(ManAuthenticateRequest),
)
async def man_authenticate(
    authenticator: TenantAuthenticatorDep,
    payload: Annotated[
        ManAuthenticateRequest, Depends(json_body(ManAuthenticateRequest))
    ],
) -> ManAuthenticateResponse:
    """Authenticate against a tenant's own database, selected by slug."""
    result = await authenticator.authenticate(
        email=payload.email,
        password=payload.password,
        organization_slug=payload.organization_slug,
    )

    return ManAuthenticateResponse(
        success=True,
        session=result.session,
        user=result.user,
        organization=TenantConnectionModel.from_record(result.organization),
    )


@router.post(
    "/lookup-organization",
    response_model=LookupOrganizationResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra=json_body_openapi(LookupOrganizationRequest),
)
async def lookup_organization(
    lookup_service: OrganizationLookupServiceDep,
    payload: Annotated[
        LookupOrganizationRequest, Depends(json_body(LookupOrganizationRequest))
    ],
) -> LookupOrganizationResponse:
    """List organizations an email belongs to (id, name and slug only)."""
    organizations = await lookup_service.lookup(payload.email)
    return LookupOrganizationResponse(organizations=organizations)
