"""Custom exceptions for the DINO ingestion portal."""

from __future__ import annotations

from typing import Any


class DinoIngestorError(Exception):
    """Base exception for all DINO ingestion errors."""

    status_code: int = 500


class ConfigurationError(DinoIngestorError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(DinoIngestorError):
    """Raised when user-supplied input is missing or malformed."""

    status_code = 400


class StorageError(DinoIngestorError):
    """Raised when a blob storage operation fails."""

    pass


class CostQueryError(DinoIngestorError):
    """Raised when the cost management query fails or returns no data."""

    pass


class JobSubmissionError(DinoIngestorError):
    """Raised when the batch-job scheduler rejects a run submission."""

    def __init__(
        self,
        message: str,
        *,
        status_text: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_text = status_text
        self.details = details


class PortalError(DinoIngestorError):
    """Base exception for failures observed by the portal client."""

    pass


class MetricsFetchError(PortalError):
    """Raised when a metrics fetch against the backend fails."""

    pass


class OrchestratorBusyError(PortalError):
    """Raised when a batch is started while another one is still running."""

    def __init__(self, state: str) -> None:
        super().__init__(f"Upload orchestrator is busy (state={state})")
        self.state = state
