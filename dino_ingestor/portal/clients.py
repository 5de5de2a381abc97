"""HTTP clients the portal uses to reach the backend API."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import JobSubmissionError, MetricsFetchError
from ..schemas.payload import (
    CostDetails,
    FileCountResponse,
    JobTask,
    NotebookTask,
    RunAs,
    SubmitJobRequest,
    TotalDataResponse,
)
from ..utils.config import JobTemplate, PortalSettings
from ..utils.logging import setup_logger
from .models import SelectedFile, UploadResult

logger = setup_logger(__name__, context={"component": "PortalClient"})


def build_http_client(
    settings: PortalSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared client; timeouts stay at httpx defaults unless configured."""

    kwargs: dict[str, Any] = {"base_url": settings.base_url}
    if settings.request_timeout_seconds is not None:
        kwargs["timeout"] = settings.request_timeout_seconds
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _body_reason(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    error = body.get("error")
    if message and error and error != message:
        return f"{message}: {error}"
    if message or error:
        return str(message or error)
    return None


def _error_reason(response: httpx.Response, body: Any) -> str:
    return _body_reason(body) or f"{response.status_code} {response.reason_phrase}".strip()


class BlobUploadClient:
    """Send one file to ``POST /api/upload``; every outcome becomes an ``UploadResult``."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def upload(self, file: SelectedFile, database: str, table: str) -> UploadResult:
        try:
            response = await self._http.post(
                "/api/upload",
                data={"database": database, "table": table},
                files={"file": (file.name, file.data)},
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Error uploading %s: %s",
                file.name,
                exc,
                extra={"database": database, "table": table, "status": "error"},
            )
            return UploadResult.failure(str(exc) or exc.__class__.__name__)

        body = _json_body(response) if _is_json(response) else None
        if body is None:
            logger.error(
                "Unexpected response uploading %s: %s",
                file.name,
                response.text[:200],
                extra={"database": database, "table": table, "status": "error"},
            )
            return UploadResult.failure(
                f"Unexpected response: {response.status_code} {response.reason_phrase}".strip()
            )

        if not response.is_success:
            return UploadResult.failure(_body_reason(body) or "Upload failed")

        return UploadResult.success(file.size)


class MetricsFetcher:
    """Read-only aggregate queries; failures raise ``MetricsFetchError``."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def _fetch(
        self,
        path: str,
        what: str,
        model: type[BaseModel],
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            raise MetricsFetchError(f"Failed to retrieve {what}: {exc}") from exc

        body = _json_body(response)
        if not response.is_success:
            raise MetricsFetchError(f"Failed to retrieve {what}: {_error_reason(response, body)}")

        try:
            return model.model_validate(body)
        except PydanticValidationError as exc:
            raise MetricsFetchError(f"Failed to retrieve {what}: malformed response") from exc

    async def file_count(self, database: str, table: str) -> int:
        result = await self._fetch(
            "/api/file-count",
            "file count",
            FileCountResponse,
            params={"database": database, "table": table},
        )
        return result.file_count

    async def total_data_ingested(self, database: str, table: str) -> int:
        result = await self._fetch(
            "/api/total-data",
            "total data ingested",
            TotalDataResponse,
            params={"database": database, "table": table},
        )
        return result.total_size

    async def cost(self) -> CostDetails:
        """Point-in-time spend; two calls need not agree."""

        return await self._fetch("/api/cost", "cost data", CostDetails)


def build_job_request(
    template: JobTemplate,
    run_name: str,
    database: str,
    table: str,
) -> SubmitJobRequest:
    """Single notebook task parameterised with the ingestion target."""

    run_as = None
    if template.service_principal_name:
        run_as = RunAs(service_principal_name=template.service_principal_name)

    return SubmitJobRequest(
        run_name=run_name,
        tasks=[
            JobTask(
                task_key=template.task_key,
                description=template.description,
                notebook_task=NotebookTask(
                    notebook_path=template.notebook_path,
                    base_parameters={"database_name": database, "table_name": table},
                ),
            )
        ],
        run_as=run_as,
        timeout_seconds=template.timeout_seconds,
    )


class JobTrigger:
    """Fire-and-forget job submission through ``POST /api/submitJob``."""

    def __init__(self, http: httpx.AsyncClient, template: JobTemplate | None = None) -> None:
        self._http = http
        self._template = template or JobTemplate()

    @property
    def default_run_name(self) -> str:
        return self._template.run_name

    async def submit(self, run_name: str, database: str, table: str) -> dict[str, Any]:
        """Submit the ingestion run; returns the backend body when the scheduler accepted it."""

        try:
            request = build_job_request(self._template, run_name, database, table)
        except PydanticValidationError as exc:
            raise JobSubmissionError(f"Failed to submit job: invalid job request: {exc}") from exc

        try:
            response = await self._http.post(
                "/api/submitJob",
                json=request.model_dump(exclude_none=True),
            )
        except httpx.HTTPError as exc:
            raise JobSubmissionError(f"Failed to submit job: {exc}", details=str(exc)) from exc

        body = _json_body(response)
        if not response.is_success:
            details = body.get("details") if isinstance(body, dict) else None
            message = f"Failed to submit job: {response.reason_phrase}"
            if details:
                message = f"{message} - {details}"
            raise JobSubmissionError(
                message,
                status_text=response.reason_phrase,
                details=details,
            )

        return body if isinstance(body, dict) else {"data": body}
