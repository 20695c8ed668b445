"""Dashboard endpoint: key-gated, read-only sales summary."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_summary_aggregator
from src.api.models import ErrorResponse
from src.core.exceptions import LedgerReadError, UnauthorizedError
from src.monitoring.metrics import track_api_request
from src.services.sales_summary import SalesSummary, SalesSummaryAggregator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "",
    response_model=SalesSummary,
    response_model_by_alias=True,
    summary="Get sales summary",
    description="Revenue, delivery success rate and the most recent sales.",
    responses={
        401: {"model": ErrorResponse, "description": "Missing or wrong dashboard key"},
        500: {"model": ErrorResponse, "description": "Sale ledger could not be read"},
    },
)
async def get_dashboard(
    key: Optional[str] = Query(None, description="Pre-shared dashboard key"),
    limit: Optional[int] = Query(
        None, ge=1, le=500, description="Number of recent sales (default 50)",
    ),
    aggregator: SalesSummaryAggregator = Depends(get_summary_aggregator),
):
    """
    Summarize the most recent sales.

    **Parameters:**
    - **key**: Pre-shared dashboard key
    - **limit**: Maximum number of recent sales to aggregate
    """
    with track_api_request("GET", "/api/v1/dashboard") as ctx:
        try:
            summary = aggregator.summarize(key, limit)
        except UnauthorizedError as e:
            ctx["status_code"] = status.HTTP_401_UNAUTHORIZED
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=ErrorResponse(error=e.message).to_content(),
            )
        except LedgerReadError as e:
            logger.error("dashboard_fetch_failed", error=e.message)
            ctx["status_code"] = status.HTTP_500_INTERNAL_SERVER_ERROR
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(
                    error="Failed to fetch data", message=e.message,
                ).to_content(),
            )

        ctx["status_code"] = status.HTTP_200_OK
        return summary
