"""RedLead Core API - Main Application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from redlead_core.api.routes import analytics as analytics_routes
from redlead_core.api.routes import campaigns as campaigns_routes
from redlead_core.api.routes import discovery as discovery_routes
from redlead_core.api.routes import engagement as engagement_routes
from redlead_core.api.routes import leads as leads_routes
from redlead_core.config import get_settings
from redlead_core.domain.errors import StoreUnavailableError
from redlead_core.observability import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service_name="redlead-core",
    )
    app.state.settings = settings
    logger.info(f"RedLead Core starting with store backend {settings.store_backend}")
    yield
    # Shutdown


app = FastAPI(
    title="RedLead Core API",
    description="Reddit lead discovery and opportunity scoring",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for the dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(analytics_routes.router)
app.include_router(campaigns_routes.router)
app.include_router(discovery_routes.router)
app.include_router(engagement_routes.router)
app.include_router(leads_routes.router)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Map store outages to 503 so clients can retry."""
    logger.error(f"Store unavailable on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Lead store is temporarily unavailable"},
    )


@app.get("/healthz")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True, "service": "redlead-core"}


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "name": "RedLead Core API",
        "version": "0.1.0",
        "status": "running",
    }
