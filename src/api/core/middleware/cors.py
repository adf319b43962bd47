"""CORS headers on every response, and preflight short-circuit."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.settings.app import AppSettings


def build_cors_headers(settings: AppSettings | None = None) -> dict[str, str]:
    settings = settings or AppSettings()
    return {
        "Access-Control-Allow-Origin": settings.CORS_ALLOW_ORIGIN,
        "Access-Control-Allow-Headers": ", ".join(settings.CORS_ALLOW_HEADERS),
        "Access-Control-Allow-Methods": ", ".join(settings.CORS_ALLOW_METHODS),
    }


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Answer OPTIONS preflights and stamp CORS headers on all responses.

    Unlike Starlette's CORSMiddleware the headers do not depend on an
    ``Origin`` request header being present; browser and server callers get
    the same response.
    """

    def __init__(self, app, settings: AppSettings | None = None):
        super().__init__(app)
        self.cors_headers = build_cors_headers(settings)

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.cors_headers)

        response = await call_next(request)
        for key, value in self.cors_headers.items():
            if key not in response.headers:
                response.headers[key] = value
        return response
