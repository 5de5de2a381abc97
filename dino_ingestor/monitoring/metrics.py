"""Prometheus metrics definitions for the DINO ingestion portal."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

UPLOADS = Counter(
    "dino_uploads_total",
    "Total blob uploads handled by the backend, by status.",
    labelnames=("status",),
)

UPLOADED_BYTES = Counter(
    "dino_uploaded_bytes_total",
    "Total bytes written to blob storage.",
)

UPLOAD_DURATION = Histogram(
    "dino_upload_duration_seconds",
    "Distribution of single-file upload durations in seconds.",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, 120),
)

STORAGE_QUERIES = Counter(
    "dino_storage_queries_total",
    "Blob listing queries by operation and status.",
    labelnames=("operation", "status"),
)

COST_QUERIES = Counter(
    "dino_cost_queries_total",
    "Cost management queries by status.",
    labelnames=("status",),
)

JOB_SUBMISSIONS = Counter(
    "dino_job_submissions_total",
    "Job run submissions forwarded to the scheduler, by status.",
    labelnames=("status",),
)


def record_upload(status: str, size_bytes: int = 0) -> None:
    """Count an upload and, when it succeeded, the bytes it wrote."""

    UPLOADS.labels(status=status).inc()
    if status == "success":
        UPLOADED_BYTES.inc(max(size_bytes, 0))


def observe_upload_duration(duration_seconds: float) -> None:
    UPLOAD_DURATION.observe(max(duration_seconds, 0.0))


def record_storage_query(operation: str, status: str) -> None:
    STORAGE_QUERIES.labels(operation=operation, status=status).inc()


def record_cost_query(status: str) -> None:
    COST_QUERIES.labels(status=status).inc()


def record_job_submission(status: str) -> None:
    JOB_SUBMISSIONS.labels(status=status).inc()
