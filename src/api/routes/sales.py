"""Sale intake endpoint for the storefront purchase webhook.

Every HTTP method is routed here so that non-POST requests get the JSON
``{"error": "Method not allowed"}`` body rather than the framework default.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_sale_workflow
from src.api.models import ErrorResponse
from src.core.exceptions import IntakeParseError, MethodNotAllowedError
from src.monitoring.metrics import track_api_request
from src.services.sale_workflow import SaleProcessingResult, SaleWorkflow

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Sales"])

INTAKE_PATH = "/process-sale"


@router.api_route(
    INTAKE_PATH,
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    response_model=SaleProcessingResult,
    summary="Process a sale notification",
    description=(
        "Storefront webhook. Generates the audit report, emails it to the "
        "customer and records the sale. Responds 200 whenever the pipeline "
        "ran, with `success` reflecting email delivery."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Malformed notification body"},
        405: {"model": ErrorResponse, "description": "Method other than POST"},
        500: {"model": ErrorResponse, "description": "Unhandled processing fault"},
    },
)
async def process_sale(
    request: Request,
    workflow: SaleWorkflow = Depends(get_sale_workflow),
):
    """
    Run the sale intake workflow for one notification.

    **Body:** form-encoded storefront fields (`email`, `sale_id`, `price`,
    `currency`, `custom_fields[website]` or `website`).
    """
    with track_api_request(request.method, f"/api/v1{INTAKE_PATH}") as ctx:
        logger.info("sale_intake_triggered", method=request.method)

        try:
            body = await request.body() if request.method == "POST" else None
            result = await workflow.process(request.method, body)
        except MethodNotAllowedError as e:
            ctx["status_code"] = status.HTTP_405_METHOD_NOT_ALLOWED
            return JSONResponse(
                status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
                content=ErrorResponse(error=e.message).to_content(),
                headers={"Allow": "POST"},
            )
        except IntakeParseError as e:
            logger.warning("sale_intake_parse_failed", error=e.message)
            ctx["status_code"] = status.HTTP_400_BAD_REQUEST
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=ErrorResponse(error="Invalid notification", message=e.message).to_content(),
            )
        except Exception as e:
            logger.error(
                "sale_intake_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            ctx["status_code"] = status.HTTP_500_INTERNAL_SERVER_ERROR
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorResponse(error="Internal server error").to_content(),
            )

        ctx["status_code"] = status.HTTP_200_OK
        return result
