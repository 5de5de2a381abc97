"""File upload endpoint."""

from __future__ import annotations

import time
from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile, status
from fastapi.responses import JSONResponse

from ...exceptions import DinoIngestorError
from ...monitoring.metrics import record_upload
from ...schemas.payload import ErrorResponse, MessageResponse
from ...services.storage import NOT_CONFIGURED_MESSAGE, BlobStorageService
from ...utils.config import GlobalSettings
from ...utils.logging import log_upload_attempt, setup_logger
from ..dependencies import get_app_settings, get_storage_service
from ..responses import error_response

logger = setup_logger(__name__, context={"component": "UploadAPI"})
router = APIRouter()


def _present(value: str | None) -> bool:
    return bool(value and value.strip())


def _has_allowed_extension(filename: str, allowed: list[str]) -> bool:
    if not allowed:
        return True
    return PurePosixPath(filename).suffix.lower() in allowed


@router.post(
    "/upload",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    file: UploadFile | None = File(None),
    database: str | None = Form(None),
    table: str | None = Form(None),
    x_correlation_id: str | None = Header(None),
    settings: GlobalSettings = Depends(get_app_settings),
    storage: BlobStorageService = Depends(get_storage_service),
) -> MessageResponse | JSONResponse:
    """
    Store one file at ``{database}/{table}/{filename}`` in the landing container.

    Returns:
        200 ``{message}`` on success, 400/500 ``{message, error?}`` otherwise.
    """
    if file is None or not file.filename or not _present(database) or not _present(table):
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    filename = file.filename
    if not _has_allowed_extension(filename, settings.allowed_extensions):
        allowed = ", ".join(settings.allowed_extensions)
        return error_response(status.HTTP_400_BAD_REQUEST, f"File must be one of: {allowed}")

    if not storage.is_configured:
        logger.error(NOT_CONFIGURED_MESSAGE, extra={"status": "error"})
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, NOT_CONFIGURED_MESSAGE)

    started = time.perf_counter()
    data = await file.read()
    try:
        await storage.upload(database, table, filename, data)
    except DinoIngestorError as exc:
        record_upload("error")
        log_upload_attempt(
            logger,
            filename=filename,
            database=database,
            table=table,
            status="error",
            duration_ms=int((time.perf_counter() - started) * 1000),
            correlation_id=x_correlation_id,
            error=str(exc),
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error uploading file",
            exc,
        )

    record_upload("success", len(data))
    log_upload_attempt(
        logger,
        filename=filename,
        database=database,
        table=table,
        status="success",
        size_bytes=len(data),
        duration_ms=int((time.perf_counter() - started) * 1000),
        correlation_id=x_correlation_id,
    )
    return MessageResponse(message="File uploaded successfully")
