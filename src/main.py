import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.middleware.cors import CORSHeadersMiddleware
from src.api.core.middleware.logging import logging_middleware
from src.api.core.middleware.security import (
    SecurityHeadersMiddleware,
    PayloadSizeMiddleware,
)
from src.api.router import api_router
from src.redis.client import close_redis_pool
from src.utils.settings.app import AppSettings
from src.utils.settings.management import ManagementStoreSettings
from src.utils.logger import setup_logging


app_settings = AppSettings()
is_production = app_settings.ENVIRONMENT.upper() == "PROD"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger = setup_logging(is_production)
    app_settings.validate_prod()
    logger.info("Starting Tenant Auth Gateway...")

    if not ManagementStoreSettings().is_configured:
        # Requests will answer with a configuration error until this is fixed
        logger.warning("Management store is not configured")

    yield

    logger.info("Shutting down Tenant Auth Gateway...")
    await close_redis_pool()


app = FastAPI(
    title="Tenant Auth Gateway",
    description="Tenant-scoped authentication and connection routing",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

register_exception_handlers(app)

# Last added runs first: logging, CORS, security headers, payload size
app.add_middleware(
    PayloadSizeMiddleware,
    max_request_size=app_settings.MAX_REQUEST_SIZE,
)
app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
app.add_middleware(CORSHeadersMiddleware, settings=app_settings)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=False, access_log=False
    )
