"""Centralized message codes and default error texts for API responses."""

from enum import Enum

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Message codes, one per failure class the API can report."""

    # Input validation
    MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_EMAIL_FORMAT = "INVALID_EMAIL_FORMAT"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # Tenant resolution
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"

    # Authorization & Authentication
    USER_NOT_AUTHORIZED_FOR_ORGANIZATION = "USER_NOT_AUTHORIZED_FOR_ORGANIZATION"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Organization lookup
    ORGANIZATION_LOOKUP_FAILED = "ORGANIZATION_LOOKUP_FAILED"
    ORGANIZATION_DETAILS_FAILED = "ORGANIZATION_DETAILS_FAILED"

    # Generic errors
    SERVICE_CONFIGURATION_ERROR = "SERVICE_CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


DEFAULT_MESSAGES = {
    # Input validation
    MessageCode.MISSING_REQUIRED_FIELDS: "Missing required fields: email, password, organizationSlug",
    MessageCode.INVALID_INPUT: "Invalid request body",
    MessageCode.INVALID_EMAIL: "Invalid email provided",
    MessageCode.INVALID_EMAIL_FORMAT: "Invalid email format",
    MessageCode.PAYLOAD_TOO_LARGE: "Request body too large",
    # Tenant resolution
    MessageCode.ORGANIZATION_NOT_FOUND: "Organization not found",
    # Authorization & Authentication
    MessageCode.USER_NOT_AUTHORIZED_FOR_ORGANIZATION: "User not authorized for this organization",
    MessageCode.AUTHENTICATION_FAILED: "Authentication failed",
    # Rate limiting
    MessageCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please try again later.",
    # Organization lookup
    MessageCode.ORGANIZATION_LOOKUP_FAILED: "Organization lookup failed",
    MessageCode.ORGANIZATION_DETAILS_FAILED: "Failed to retrieve organization details",
    # Generic errors
    MessageCode.SERVICE_CONFIGURATION_ERROR: "Service configuration error",
    MessageCode.INTERNAL_ERROR: "Internal server error",
}


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""

    error: str
    details: str | None = None


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Internal server error")
