import time
import uuid

import structlog
from fastapi import Request, status

from src.api.core.constants import REQUEST_ID_HEADER, SKIP_LOGGING_PATHS
from src.utils.logger import get_client_ip, get_logger

logger = get_logger(__name__)


def _log_level(status_code: int) -> str:
    # 4xx are caller errors, 5xx are ours
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return "error"
    if status_code >= status.HTTP_400_BAD_REQUEST:
        return "warning"
    return "info"


async def logging_middleware(request: Request, call_next):
    """One ``request`` line per call, with the request id echoed back."""
    if request.url.path in SKIP_LOGGING_PATHS:
        return await call_next(request)

    started = time.perf_counter()
    structlog.contextvars.clear_contextvars()
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        ip_address=get_client_ip(request),
        method=request.method,
        path=request.url.path,
    )

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        getattr(logger, _log_level(status_code))(
            "request",
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
