"""Global exception handlers for the FastAPI application."""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message
from ..middleware.cors import build_cors_headers
from src.utils.logger import get_logger

logger = get_logger(__name__)


class TenantAuthException(Exception):
    """Base exception for the gateway, one message code per failure class."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        message: str | None = None,
        details: str | None = None,
        extra: dict | None = None,
        headers: dict | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = message or get_default_message(message_code)
        self.details = details
        self.extra = extra or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


def _error_response(
    status_code: int,
    content: dict,
    headers: dict | None = None,
) -> JSONResponse:
    # Exception handlers can run outside the CORS middleware, stamp headers here
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={**build_cors_headers(), **(headers or {})},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(TenantAuthException)
    async def tenant_auth_exception_handler(
        request: Request, exc: TenantAuthException
    ) -> JSONResponse:
        """Handle gateway exceptions."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            message_code=exc.message_code.value,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )

        return _error_response(
            exc.status_code, exc.to_response_dict(), headers=exc.headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle routing errors (unknown path, wrong method)."""
        logger.warning(
            f"HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        return _error_response(
            exc.status_code,
            {"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors.

        An unparseable body is an infrastructure failure (500); a parseable
        body with the wrong shape is an input-validation failure (400).
        """
        errors = exc.errors()
        json_errors = [e for e in errors if e.get("type") == "json_invalid"]

        if json_errors:
            detail = json_errors[0].get("ctx", {}).get("error") or json_errors[0].get(
                "msg", "Invalid JSON"
            )
            logger.error(
                "Malformed request body",
                path=request.url.path,
                method=request.method,
            )
            return _error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                {
                    "error": get_default_message(MessageCode.INTERNAL_ERROR),
                    "details": str(detail),
                },
            )

        fields = sorted(
            {
                str(error["loc"][-1])
                for error in errors
                if error.get("loc") and error["loc"][0] == "body"
            }
        )
        logger.warning(
            "Validation error occurred",
            path=request.url.path,
            method=request.method,
            fields=fields,
        )

        content = {"error": get_default_message(MessageCode.INVALID_INPUT)}
        if fields:
            content["details"] = f"Invalid fields: {', '.join(fields)}"
        return _error_response(status.HTTP_400_BAD_REQUEST, content)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        if isinstance(exc, TenantAuthException):
            return await tenant_auth_exception_handler(request, exc)

        logger.error(
            f"Unhandled exception: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )

        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {
                "error": get_default_message(MessageCode.INTERNAL_ERROR),
                "details": str(exc),
            },
        )
