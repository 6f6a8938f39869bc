"""
Realm Sync - FastAPI service synchronizing a realm chart with GitHub.

Endpoints:
- GET  /health                      -> Health check
- POST /api/v1/hierarchy/import     -> Read GitHub into a realm chart
- GET  /api/v1/hierarchy/import     -> Same, configured credentials only
- POST /api/v1/hierarchy/export     -> Reconcile a realm chart against GitHub
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from realm_sync import __version__
from realm_sync.app.config import get_settings
from realm_sync.app.middleware.cors import setup_cors
from realm_sync.app.middleware.logging import RequestLoggingMiddleware
from realm_sync.app.routers import hierarchy
from realm_sync.core.observability.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version} "
        f"(environment={settings.environment}, github={settings.github_api_url})"
    )
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title="Realm Sync",
    description="Bidirectional synchronization between a realm chart and GitHub",
    version=__version__,
    lifespan=lifespan,
)

setup_cors(app)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the standard envelope with HTTP 400."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    logger.info(f"Rejected {request.method} {request.url.path}: {location} {message}")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "data": None,
            "error": f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}",
        },
    )


# ============================================
# Health
# ============================================

@app.get("/health")
async def health():
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


# ============================================
# Hierarchy Sync
# ============================================

app.include_router(hierarchy.router, prefix="/api/v1/hierarchy", tags=["Hierarchy"])


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "realm_sync.app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
