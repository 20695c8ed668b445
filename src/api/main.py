"""Sale Audit API - Main FastAPI Application.

This module provides the main FastAPI application for the sale audit pipeline.
It includes:
- Structured logging configuration
- CORS middleware configuration
- API versioning (/api/v1)
- Health check and Prometheus metrics endpoints
- Sale intake webhook and dashboard endpoints

Usage:
    # Run with uvicorn
    uvicorn src.api.main:app --reload

    # Or run directly
    python -m src.api.main
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import __version__
from src.api.dependencies import reset_dependencies
from src.api.models import ErrorResponse
from src.api.routes.dashboard import router as dashboard_router
from src.api.routes.health import router as health_router, set_server_start_time
from src.api.routes.sales import router as sales_router
from src.config.settings import get_settings
from src.delivery.email_service import reset_email_service
from src.monitoring.metrics import get_metrics_app
from src.services.report_generator import reset_report_generator

_settings = get_settings()

logging.basicConfig(
    format="%(message)s",
    stream=sys.stdout,
    level=getattr(logging, _settings.log_level),
)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

# API metadata for OpenAPI documentation
API_TITLE = "Sale Audit API"
API_DESCRIPTION = """
## Automated Business Automation Audits for Storefront Sales

Each completed purchase triggers an AI-generated audit of the customer's
business website, emailed to the customer and recorded in the sales ledger.

### Endpoints

- **Sale intake**: `POST /api/v1/process-sale` (storefront webhook, form-encoded)
- **Dashboard**: `GET /api/v1/dashboard?key=...` (revenue and delivery metrics)
- **Health**: `GET /health`, `/health/live`, `/health/ready`
- **Metrics**: `GET /metrics` (Prometheus)
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    - Startup: record start time for uptime reporting
    - Shutdown: close the LLM HTTP client, drop cached clients
    """
    logger.info("application_starting", version=__version__, app_env=_settings.app_env)
    set_server_start_time()
    logger.info("application_started")

    yield

    logger.info("application_stopping")
    await reset_report_generator()
    reset_email_service()
    reset_dependencies()
    logger.info("application_stopped")


# Create FastAPI application
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=[
        {
            "name": "Health",
            "description": "System health and status endpoints",
        },
        {
            "name": "Sales",
            "description": "Storefront sale notification intake",
        },
        {
            "name": "Dashboard",
            "description": "Key-gated sales summary",
        },
    ],
)

# Configure CORS middleware (from settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allowed_origins,
    allow_credentials=_settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )

    response = ErrorResponse(
        error="Internal server error",
        message=str(exc) if get_settings().debug else None,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.to_content(),
    )


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Root endpoint - API information."""
    return {
        "name": API_TITLE,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "api": "/api/v1",
    }


# =============================================================================
# Include Routers
# =============================================================================

# Health endpoints at root level
app.include_router(health_router)

# Create API v1 router for versioned endpoints
api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(sales_router)
api_v1_router.include_router(dashboard_router)

app.include_router(api_v1_router)

app.mount("/metrics", get_metrics_app())


# =============================================================================
# Development Server
# =============================================================================


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.is_development,
        log_level=_settings.log_level.lower(),
    )
