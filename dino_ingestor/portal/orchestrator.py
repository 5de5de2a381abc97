"""Upload orchestrator sequencing uploads, metric refreshes and the job trigger."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol

import httpx

from ..exceptions import DinoIngestorError, OrchestratorBusyError
from ..schemas.payload import CostDetails
from ..utils.config import JobTemplate
from ..utils.logging import log_upload_attempt, setup_logger
from .clients import BlobUploadClient, JobTrigger, MetricsFetcher
from .models import (
    BatchReport,
    IngestionMetrics,
    NotificationSeverity,
    OrchestratorState,
    SelectedFile,
    TargetCoordinates,
    UploadResult,
)
from .notifications import NotificationQueue

logger = setup_logger(__name__, context={"component": "UploadOrchestrator"})

BYTES_PER_MB = 1024 * 1024


class Uploader(Protocol):
    async def upload(self, file: SelectedFile, database: str, table: str) -> UploadResult: ...


class MetricsSource(Protocol):
    async def file_count(self, database: str, table: str) -> int: ...

    async def total_data_ingested(self, database: str, table: str) -> int: ...

    async def cost(self) -> CostDetails: ...


class JobSubmitter(Protocol):
    @property
    def default_run_name(self) -> str: ...

    async def submit(self, run_name: str, database: str, table: str) -> dict[str, Any]: ...


class UploadOrchestrator:
    """
    Run one upload batch at a time: ``IDLE -> UPLOADING -> REFRESHING -> IDLE``.

    Every step is awaited before the next starts. Failures never escape a
    batch; each one becomes an error notification and the batch carries on.
    """

    def __init__(
        self,
        uploader: Uploader,
        metrics_source: MetricsSource,
        job_submitter: JobSubmitter,
        *,
        notifications: NotificationQueue | None = None,
        on_progress: Callable[[float], None] | None = None,
        on_state_change: Callable[[OrchestratorState], None] | None = None,
    ) -> None:
        self._uploader = uploader
        self._metrics_source = metrics_source
        self._job_submitter = job_submitter
        self.notifications = notifications if notifications is not None else NotificationQueue()
        self.metrics = IngestionMetrics()
        self.selected_files: list[SelectedFile] = []
        self.progress = 0.0
        self._state = OrchestratorState.IDLE
        self._on_progress = on_progress
        self._on_state_change = on_state_change

    @classmethod
    def from_http_client(
        cls,
        http: httpx.AsyncClient,
        *,
        job_template: JobTemplate | None = None,
        **kwargs: Any,
    ) -> UploadOrchestrator:
        """Wire the backend clients around one shared ``httpx.AsyncClient``."""

        return cls(
            BlobUploadClient(http),
            MetricsFetcher(http),
            JobTrigger(http, job_template),
            **kwargs,
        )

    @property
    def state(self) -> OrchestratorState:
        return self._state

    def _set_state(self, state: OrchestratorState) -> None:
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _set_progress(self, value: float) -> None:
        self.progress = value
        if self._on_progress is not None:
            self._on_progress(value)

    def select_files(self, files: Iterable[SelectedFile]) -> None:
        self.selected_files = list(files)

    async def run_batch(
        self,
        database: str,
        table: str,
        files: Iterable[SelectedFile] | None = None,
        *,
        run_name: str | None = None,
    ) -> BatchReport:
        """
        Upload ``files`` (or the current selection) to ``database``/``table``.

        Args:
            database: Target database name; must not be blank.
            table: Target table name; must not be blank.
            files: Files to upload; defaults to ``selected_files``.
            run_name: Job run name; defaults to the job template's.

        Returns:
            BatchReport describing the upload phase.

        Raises:
            OrchestratorBusyError: If a batch is already running.
        """
        if self._state is not OrchestratorState.IDLE:
            raise OrchestratorBusyError(self._state.value)

        target = TargetCoordinates(database or "", table or "")
        if not target.is_complete:
            self.notifications.notify(
                "Missing information",
                "Please provide both the database and table names.",
                NotificationSeverity.ERROR,
            )
            return BatchReport(total_bytes_after_upload=self.metrics.total_bytes, aborted=True)

        batch = list(files) if files is not None else list(self.selected_files)

        try:
            self._set_state(OrchestratorState.UPLOADING)
            report = await self._upload_all(target, batch)

            self._set_state(OrchestratorState.REFRESHING)
            await self._refresh_storage_metrics(target)
            await self._trigger_job(target, run_name or self._job_submitter.default_run_name)
            await self._refresh_cost()
        finally:
            self.selected_files = []
            self._set_state(OrchestratorState.IDLE)

        return report

    async def _upload_all(
        self,
        target: TargetCoordinates,
        batch: list[SelectedFile],
    ) -> BatchReport:
        self._set_progress(0.0)
        accumulated_bytes = 0
        succeeded = 0
        results: list[UploadResult] = []
        progress_history: list[float] = []

        for file in batch:
            try:
                result = await self._uploader.upload(file, target.database_name, target.table_name)
            except DinoIngestorError as exc:
                result = UploadResult.failure(str(exc))
            results.append(result)

            if result.succeeded:
                accumulated_bytes += result.byte_size
                succeeded += 1
                self._set_progress(succeeded / len(batch) * 100)
                progress_history.append(self.progress)
                self.notifications.notify(
                    "File uploaded",
                    f"{file.name} was uploaded successfully to {target.label}.",
                )
            else:
                error = result.error_message or "Unknown error during upload"
                self.notifications.notify(
                    "Upload failed",
                    f"Failed to upload {file.name}: {error}",
                    NotificationSeverity.ERROR,
                )

            log_upload_attempt(
                logger,
                filename=file.name,
                database=target.database_name,
                table=target.table_name,
                status="success" if result.succeeded else "error",
                size_bytes=result.byte_size,
                error=result.error_message,
            )

        self.metrics.total_bytes += accumulated_bytes
        return BatchReport(
            results=tuple(results),
            accumulated_bytes=accumulated_bytes,
            total_bytes_after_upload=self.metrics.total_bytes,
            progress_history=tuple(progress_history),
        )

    async def _refresh_storage_metrics(self, target: TargetCoordinates) -> None:
        try:
            self.metrics.file_count = await self._metrics_source.file_count(
                target.database_name, target.table_name
            )
        except DinoIngestorError as exc:
            logger.error("File count refresh failed: %s", exc, extra={"status": "error"})
            self.notifications.notify(
                "File count failed",
                f"Could not fetch the latest file count: {exc}",
                NotificationSeverity.ERROR,
            )

        try:
            total_bytes = await self._metrics_source.total_data_ingested(
                target.database_name, target.table_name
            )
        except DinoIngestorError as exc:
            logger.error("Total data refresh failed: %s", exc, extra={"status": "error"})
            self.notifications.notify(
                "Ingested data fetch failed",
                f"Could not fetch the total data ingested: {exc}",
                NotificationSeverity.ERROR,
            )
        else:
            self.metrics.total_bytes = total_bytes
            self.notifications.notify(
                "Ingested data updated",
                f"Total data ingested: {total_bytes / BYTES_PER_MB:.2f} MB",
            )

    async def _trigger_job(self, target: TargetCoordinates, run_name: str) -> None:
        try:
            await self._job_submitter.submit(run_name, target.database_name, target.table_name)
        except DinoIngestorError as exc:
            logger.error("Job submission failed: %s", exc, extra={"status": "error"})
            self.notifications.notify(
                "Job submission failed",
                f"Could not submit the ingestion job: {exc}",
                NotificationSeverity.ERROR,
            )
        else:
            self.notifications.notify(
                "Job submitted",
                f"Ingestion job '{run_name}' was submitted for {target.label}.",
            )

    async def _refresh_cost(self) -> None:
        try:
            details = await self._metrics_source.cost()
        except DinoIngestorError as exc:
            logger.error("Cost refresh failed: %s", exc, extra={"status": "error"})
            self.notifications.notify(
                "Cost fetch failed",
                f"Could not fetch the latest cost information: {exc}",
                NotificationSeverity.ERROR,
            )
            return

        self.metrics.cost = details.total_cost
        self.metrics.currency = details.currency
        self.metrics.cost_period_label = details.timeframe
        self.notifications.notify(
            "Cost updated",
            f"Total cost for {details.timeframe}: {details.total_cost:.2f} {details.currency}",
        )
