"""Job submission endpoint forwarding run specs to the scheduler."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ...exceptions import DinoIngestorError
from ...schemas.payload import SubmitJobErrorResponse, SubmitJobRequest, SubmitJobResponse
from ...services.scheduler import JobSchedulerClient
from ...utils.logging import setup_logger
from ..dependencies import get_scheduler_client

logger = setup_logger(__name__, context={"component": "JobsAPI"})
router = APIRouter()


@router.post(
    "/submitJob",
    response_model=SubmitJobResponse,
    responses={500: {"model": SubmitJobErrorResponse}},
)
async def submit_job(
    request: SubmitJobRequest,
    scheduler: JobSchedulerClient = Depends(get_scheduler_client),
) -> SubmitJobResponse | JSONResponse:
    """
    Submit a one-time run. The run is not polled; 200 means the scheduler accepted it.
    """
    try:
        data = await scheduler.submit_run(request)
    except DinoIngestorError as exc:
        logger.error("Failed to submit job: %s", exc, extra={"status": "error"})
        body = SubmitJobErrorResponse(error="Failed to submit job", details=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(),
        )

    return SubmitJobResponse(message="Job submitted successfully", data=data)
