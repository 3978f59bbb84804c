"""Application entry point for the FastAPI backend."""
from __future__ import annotations

import logging
import os
from typing import Iterable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .clients import FeatureFlagStoreError, ResourceManagerError
from .config import get_settings
from .database import init_db
from .routers import (
    audit_logs_router,
    auth_router,
    resources_router,
    system_router,
    toggles_router,
    users_router,
)
from .services import ResourceConfigurationError, TokenExchangeConfigurationError, TokenExchangeError

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

# Upstream statuses passed through to the caller; anything else becomes a 500.
_FORWARDED_UPSTREAM_STATUSES = {401, 403, 404}

app = FastAPI(title=APP_NAME, version=API_VERSION)

cors_origins = os.getenv("CORS_ORIGINS")
if cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(resources_router)
app.include_router(toggles_router)
app.include_router(audit_logs_router)


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def _upstream_error(exc: FeatureFlagStoreError | ResourceManagerError, fallback: str) -> JSONResponse:
    if exc.status_code in _FORWARDED_UPSTREAM_STATUSES:
        return _error(exc.status_code, str(exc))
    logger.error("%s: %s", fallback, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, fallback)


@app.exception_handler(TokenExchangeError)
async def _token_exchange_handler(request: Request, exc: TokenExchangeError) -> JSONResponse:
    return _error(status.HTTP_401_UNAUTHORIZED, str(exc))


@app.exception_handler(TokenExchangeConfigurationError)
async def _token_configuration_handler(request: Request, exc: TokenExchangeConfigurationError) -> JSONResponse:
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


@app.exception_handler(FeatureFlagStoreError)
async def _feature_flag_store_handler(request: Request, exc: FeatureFlagStoreError) -> JSONResponse:
    return _upstream_error(exc, "Feature flag store request failed")


@app.exception_handler(ResourceManagerError)
async def _resource_manager_handler(request: Request, exc: ResourceManagerError) -> JSONResponse:
    return _upstream_error(exc, "Azure Resource Manager request failed")


@app.exception_handler(ResourceConfigurationError)
async def _resource_configuration_handler(request: Request, exc: ResourceConfigurationError) -> JSONResponse:
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


@app.exception_handler(Exception)
async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the database schema exists before serving."""

    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    logger.info("%s %s started (auth mode: %s)", APP_NAME, API_VERSION, settings.auth_mode)


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}
