"""JSON error bodies shared by the ingestion routes."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from ..schemas.payload import ErrorResponse


def error_response(
    status_code: int,
    message: str,
    error: BaseException | str | None = None,
) -> JSONResponse:
    """Build a ``{message, error?}`` body; ``error`` is omitted when not given."""

    body = ErrorResponse(message=message, error=str(error) if error is not None else None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
