"""
FastAPI Application

Main entry point for the Admin Dashboard Metrics API.
"""

import argparse
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from admin_dashboard.config import get_settings
from admin_dashboard.config.logging import configure_logging
from admin_dashboard.serving.api.middleware import RequestLoggingMiddleware
from admin_dashboard.serving.api.routes import (
    customers_router,
    dashboard_router,
    health_router,
)

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging("DEBUG" if settings.debug else None)

    logger.info(
        "Starting Admin Dashboard Metrics API",
        admin_api=settings.admin_api.base_url,
        amount_unit=settings.admin_api.amount_unit,
    )

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title="Admin Dashboard Metrics API",
    description="Dashboard metrics aggregated from the e-commerce admin API",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(dashboard_router, prefix="/api/v1", tags=["Dashboard"])
app.include_router(customers_router, prefix="/api/v1", tags=["Customers"])


@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    return {
        "name": "Admin Dashboard Metrics API",
        "version": settings.version,
        "environment": settings.app_env,
        "documentation": "/docs",
    }


def run() -> None:
    """
    Start the API with Uvicorn.

    Usage:
        Development:  admin-dashboard --dev
        Production:   admin-dashboard --workers 4
    """
    import uvicorn

    parser = argparse.ArgumentParser(description="Admin Dashboard Metrics API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--host", default=settings.api_host, help="Host to bind")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Port to run on")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes (ignored with --dev)")
    args = parser.parse_args()

    if args.dev:
        uvicorn.run(
            "admin_dashboard.main:app",
            host=args.host,
            port=args.port,
            reload=True,
            reload_dirs=["admin_dashboard"],
            log_level="debug",
        )
    else:
        uvicorn.run(
            "admin_dashboard.main:app",
            host=args.host,
            port=args.port,
            workers=args.workers,
            log_level=settings.monitoring.log_level.lower(),
            proxy_headers=True,
            forwarded_allow_ips="*",
            server_header=False,
        )


if __name__ == "__main__":
    run()
