"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.sales import router as sales_router
from src.api.routes.dashboard import router as dashboard_router

__all__ = [
    "health_router",
    "sales_router",
    "dashboard_router",
]
