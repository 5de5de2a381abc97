"""Client for the Databricks Jobs API run-submission endpoint."""

from __future__ import annotations

from typing import Any

import httpx

from ..exceptions import ConfigurationError, JobSubmissionError
from ..monitoring.metrics import record_job_submission
from ..schemas.payload import SubmitJobRequest
from ..utils.config import DatabricksSettings
from ..utils.logging import setup_logger
from ..utils.retry import RetryConfig, execute_with_retry

logger = setup_logger(__name__, context={"component": "JobScheduler"})

RUNS_SUBMIT_PATH = "/api/2.1/jobs/runs/submit"
NOT_CONFIGURED_MESSAGE = "Databricks instance URL or token is not configured"


def _error_detail(response: httpx.Response) -> str | None:
    """Pull a readable reason out of a scheduler error body, if any."""

    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        for key in ("message", "error", "details"):
            value = body.get(key)
            if value:
                return str(value)
    return None


class JobSchedulerClient:
    """Submit one-time job runs; success means accepted, not completed."""

    def __init__(
        self,
        settings: DatabricksSettings,
        *,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._retry_config = retry_config or RetryConfig()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    async def submit_run(self, request: SubmitJobRequest) -> dict[str, Any]:
        """
        Forward a run definition to the scheduler.

        Args:
            request: Validated run definition.

        Returns:
            The scheduler's JSON response (contains ``run_id``).

        Raises:
            ConfigurationError: If the instance URL or token is missing.
            JobSubmissionError: On transport failure or a non-2xx response.
        """
        settings = self._settings
        if not settings.is_configured:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)

        url = f"{settings.instance_url}{RUNS_SUBMIT_PATH}"
        headers = {
            "Authorization": f"Bearer {settings.token}",
            "Content-Type": "application/json",
        }
        payload = request.model_dump(exclude_none=True)

        client_kwargs: dict[str, Any] = {"timeout": settings.timeout_seconds}
        if self._transport is not None:
            client_kwargs["transport"] = self._transport

        logger.info("Submitting run '%s' to %s", request.run_name, url)
        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                async def _send() -> httpx.Response:
                    return await client.post(url, headers=headers, json=payload)

                response = await execute_with_retry(
                    _send,
                    method="POST",
                    retry_config=self._retry_config,
                    log=logger,
                )
        except httpx.HTTPError as exc:
            record_job_submission("error")
            raise JobSubmissionError(
                f"Databricks API request failed: {exc}",
                details=str(exc),
            ) from exc

        if not response.is_success:
            record_job_submission("error")
            detail = _error_detail(response)
            message = f"Databricks API error: {response.reason_phrase}"
            if detail:
                message = f"{message} - {detail}"
            raise JobSubmissionError(
                message,
                status_text=response.reason_phrase,
                details=detail,
            )

        try:
            data = response.json()
        except ValueError as exc:
            record_job_submission("error")
            raise JobSubmissionError(
                "Databricks API returned a non-JSON response",
                status_text=response.reason_phrase,
            ) from exc

        record_job_submission("success")
        logger.info("Run '%s' accepted: %s", request.run_name, data, extra={"status": "success"})
        return data
