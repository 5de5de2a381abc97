"""Cloud spend endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ...exceptions import DinoIngestorError
from ...schemas.payload import CostDetails, ErrorResponse
from ...services.cost import CostService
from ...utils.logging import setup_logger
from ..dependencies import get_cost_service
from ..responses import error_response

logger = setup_logger(__name__, context={"component": "CostAPI"})
router = APIRouter()


@router.get("/cost", response_model=CostDetails, responses={500: {"model": ErrorResponse}})
async def get_cost(
    cost_service: CostService = Depends(get_cost_service),
) -> CostDetails | JSONResponse:
    """Return actual spend over the trailing cost window, computed at call time."""

    try:
        return await cost_service.get_cost()
    except DinoIngestorError as exc:
        logger.error("Error fetching cost data: %s", exc, extra={"status": "error"})
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error fetching cost data",
            exc,
        )
