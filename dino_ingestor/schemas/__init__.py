"""Schemas package initialization."""
from .payload import (
    CostDetails,
    ErrorResponse,
    FileCountResponse,
    JobTask,
    MessageResponse,
    NotebookTask,
    RunAs,
    SubmitJobErrorResponse,
    SubmitJobRequest,
    SubmitJobResponse,
    TotalDataResponse,
)

__all__ = [
    "CostDetails",
    "ErrorResponse",
    "FileCountResponse",
    "JobTask",
    "MessageResponse",
    "NotebookTask",
    "RunAs",
    "SubmitJobErrorResponse",
    "SubmitJobRequest",
    "SubmitJobResponse",
    "TotalDataResponse",
]
