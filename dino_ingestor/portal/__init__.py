"""Client-side core of the ingestion portal."""
from .clients import BlobUploadClient, JobTrigger, MetricsFetcher, build_http_client
from .models import (
    BatchReport,
    IngestionMetrics,
    Notification,
    NotificationSeverity,
    OrchestratorState,
    SelectedFile,
    TargetCoordinates,
    UploadResult,
)
from .notifications import NotificationQueue
from .orchestrator import UploadOrchestrator

__all__ = [
    "BatchReport",
    "BlobUploadClient",
    "IngestionMetrics",
    "JobTrigger",
    "MetricsFetcher",
    "Notification",
    "NotificationQueue",
    "NotificationSeverity",
    "OrchestratorState",
    "SelectedFile",
    "TargetCoordinates",
    "UploadOrchestrator",
    "UploadResult",
    "build_http_client",
]
