"""File count and ingested-volume endpoints for one database/table target."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ...exceptions import DinoIngestorError
from ...schemas.payload import ErrorResponse, FileCountResponse, TotalDataResponse
from ...services.storage import BlobStorageService
from ...utils.logging import setup_logger
from ..dependencies import get_storage_service
from ..responses import error_response

logger = setup_logger(__name__, context={"component": "StorageMetricsAPI"})
router = APIRouter()

MISSING_PARAMETERS_MESSAGE = "Database and table parameters are required"
_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@router.get("/file-count", response_model=FileCountResponse, responses=_ERROR_RESPONSES)
async def get_file_count(
    database: str | None = None,
    table: str | None = None,
    storage: BlobStorageService = Depends(get_storage_service),
) -> FileCountResponse | JSONResponse:
    """Count blobs stored under ``{database}/{table}/``."""

    if not database or not table:
        return error_response(status.HTTP_400_BAD_REQUEST, MISSING_PARAMETERS_MESSAGE)

    try:
        count = await storage.count_blobs(database, table)
    except DinoIngestorError as exc:
        logger.error(
            "Error fetching file count: %s",
            exc,
            extra={"database": database, "table": table, "status": "error"},
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error fetching file count",
            exc,
        )

    return FileCountResponse(file_count=count)


@router.get("/total-data", response_model=TotalDataResponse, responses=_ERROR_RESPONSES)
async def get_total_data(
    database: str | None = None,
    table: str | None = None,
    storage: BlobStorageService = Depends(get_storage_service),
) -> TotalDataResponse | JSONResponse:
    """Sum the size in bytes of blobs stored under ``{database}/{table}/``."""

    if not database or not table:
        return error_response(status.HTTP_400_BAD_REQUEST, MISSING_PARAMETERS_MESSAGE)

    try:
        total_size = await storage.total_size(database, table)
    except DinoIngestorError as exc:
        logger.error(
            "Error fetching total data ingested: %s",
            exc,
            extra={"database": database, "table": table, "status": "error"},
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error fetching total data ingested",
            exc,
        )

    return TotalDataResponse(total_size=total_size)
