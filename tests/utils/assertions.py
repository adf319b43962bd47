"""Test utilities for asserting API responses and message codes."""

from typing import Any

from httpx import Response

from src.api.core.exceptions.base import TenantAuthException
from src.api.core.messages import MessageCode, get_default_message

CORS_HEADERS = (
    "access-control-allow-origin",
    "access-control-allow-headers",
    "access-control-allow-methods",
)


def assert_cors_headers(response: Response) -> None:
    for header in CORS_HEADERS:
        assert header in response.headers, f"Missing CORS header {header}"


def assert_error_response(
    response: Response,
    expected_status: int,
    expected_message: str | None = None,
) -> dict[str, Any]:
    """Assert that response is an error with the expected status and text.

    Args:
        response: HTTP response to check
        expected_status: Expected HTTP status code
        expected_message: Optional expected ``error`` text

    Returns:
        Response body for further assertions
    """
    assert response.status_code == expected_status, (
        f"Expected status {expected_status}, got {response.status_code}. "
        f"Response: {response.text}"
    )
    assert_cors_headers(response)

    json_data = response.json()
    assert "error" in json_data, "Error response should have error"

    if expected_message:
        assert json_data["error"] == expected_message, (
            f"Expected error '{expected_message}', got '{json_data['error']}'"
        )

    return json_data


def assert_error_code(
    response: Response, message_code: MessageCode, expected_status: int
) -> dict[str, Any]:
    """Assert an error carrying the default text of ``message_code``."""
    return assert_error_response(
        response, expected_status, get_default_message(message_code)
    )


def assert_tenant_auth_exception(
    exception: TenantAuthException,
    expected_message_code: MessageCode,
    expected_status: int | None = None,
) -> None:
    """Assert that a TenantAuthException has expected properties."""
    assert exception.message_code == expected_message_code, (
        f"Expected message_code {expected_message_code}, "
        f"got {exception.message_code}"
    )

    if expected_status:
        assert exception.status_code == expected_status, (
            f"Expected status_code {expected_status}, " f"got {exception.status_code}"
        )
