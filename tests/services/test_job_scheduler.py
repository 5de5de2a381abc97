"""Tests for the job scheduler client using HTTPX MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from dino_ingestor.exceptions import ConfigurationError, JobSubmissionError
from dino_ingestor.schemas.payload import SubmitJobRequest
from dino_ingestor.services.scheduler import RUNS_SUBMIT_PATH, JobSchedulerClient
from dino_ingestor.utils.config import DatabricksSettings
from dino_ingestor.utils.retry import RetryConfig


def build_transport(
    status_code: int,
    data: Any,
    *,
    captured: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """Create a mock transport that returns the given response payload."""

    async def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        if isinstance(data, (dict, list)):
            return httpx.Response(status_code, json=data, request=request)
        return httpx.Response(status_code, content=data, request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings() -> DatabricksSettings:
    return DatabricksSettings(instance_url="https://adb.example.net/", token="dapi-token")


@pytest.fixture
def job_request() -> SubmitJobRequest:
    return SubmitJobRequest.model_validate(
        {
            "run_name": "Data Ingestion Non Optimized",
            "tasks": [
                {
                    "task_key": "DINO",
                    "description": "Ingestion",
                    "notebook_task": {
                        "notebook_path": "/dino_workspace/DINO",
                        "base_parameters": {"database_name": "sales", "table_name": "orders"},
                    },
                }
            ],
        }
    )


@pytest.mark.asyncio
async def test_submit_run_posts_spec_with_bearer_token(
    settings: DatabricksSettings,
    job_request: SubmitJobRequest,
) -> None:
    captured: list[httpx.Request] = []
    client = JobSchedulerClient(
        settings,
        transport=build_transport(200, {"run_id": 42}, captured=captured),
    )

    data = await client.submit_run(job_request)

    assert data == {"run_id": 42}
    request = captured[0]
    assert str(request.url) == f"https://adb.example.net{RUNS_SUBMIT_PATH}"
    assert request.headers["Authorization"] == "Bearer dapi-token"
    body = json.loads(request.content)
    assert body["run_name"] == "Data Ingestion Non Optimized"
    assert body["tasks"][0]["notebook_task"]["base_parameters"] == {
        "database_name": "sales",
        "table_name": "orders",
    }
    assert "run_as" not in body


@pytest.mark.asyncio
async def test_submit_run_non_2xx_raises_with_detail(
    settings: DatabricksSettings,
    job_request: SubmitJobRequest,
) -> None:
    client = JobSchedulerClient(
        settings,
        transport=build_transport(400, {"error_code": "INVALID", "message": "Bad notebook"}),
    )

    with pytest.raises(JobSubmissionError) as exc_info:
        await client.submit_run(job_request)

    assert str(exc_info.value) == "Databricks API error: Bad Request - Bad notebook"
    assert exc_info.value.status_text == "Bad Request"
    assert exc_info.value.details == "Bad notebook"


@pytest.mark.asyncio
async def test_submit_run_non_json_success_raises(
    settings: DatabricksSettings,
    job_request: SubmitJobRequest,
) -> None:
    client = JobSchedulerClient(settings, transport=build_transport(200, b"<html>ok</html>"))

    with pytest.raises(JobSubmissionError, match="non-JSON"):
        await client.submit_run(job_request)


@pytest.mark.asyncio
async def test_submit_run_transport_error(
    settings: DatabricksSettings,
    job_request: SubmitJobRequest,
) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = JobSchedulerClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(JobSubmissionError, match="Databricks API request failed"):
        await client.submit_run(job_request)


@pytest.mark.asyncio
async def test_submit_run_retries_when_enabled(
    settings: DatabricksSettings,
    job_request: SubmitJobRequest,
) -> None:
    responses = iter([503, 200])
    attempts = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        status = next(responses)
        return httpx.Response(status, json={"run_id": 7}, request=request)

    client = JobSchedulerClient(
        settings,
        retry_config=RetryConfig(enabled=True, max_attempts=2, backoff_factor=0.001),
        transport=httpx.MockTransport(handler),
    )

    data = await client.submit_run(job_request)

    assert data == {"run_id": 7}
    assert attempts == 2


@pytest.mark.asyncio
async def test_submit_run_requires_configuration(job_request: SubmitJobRequest) -> None:
    client = JobSchedulerClient(DatabricksSettings())

    assert client.is_configured is False
    with pytest.raises(ConfigurationError):
        await client.submit_run(job_request)
