"""Pydantic schemas for the backend API request and response bodies."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """Generic success body carrying a human-readable message."""

    message: str = Field(..., description="Human-readable status message")


class ErrorResponse(BaseModel):
    """Error body returned by the upload and metrics routes."""

    message: str = Field(..., description="What the backend was doing when it failed")
    error: str | None = Field(None, description="Underlying error message")


class FileCountResponse(BaseModel):
    """Number of blobs under a database/table prefix."""

    model_config = ConfigDict(populate_by_name=True)

    file_count: int = Field(..., alias="fileCount", ge=0)


class TotalDataResponse(BaseModel):
    """Sum of content lengths under a database/table prefix."""

    model_config = ConfigDict(populate_by_name=True)

    total_size: int = Field(..., alias="totalSize", ge=0)


class CostDetails(BaseModel):
    """Aggregated spend for the trailing cost window."""

    model_config = ConfigDict(populate_by_name=True)

    total_cost: float = Field(..., alias="totalCost")
    currency: str = Field(..., description="Billing currency code")
    timeframe: str = Field(..., description="'YYYY-MM-DD to YYYY-MM-DD'")


class NotebookTask(BaseModel):
    """Notebook executed by a job task with its widget parameters."""

    notebook_path: str = Field(..., description="Workspace path of the notebook")
    base_parameters: dict[str, str] = Field(default_factory=dict)


class JobTask(BaseModel):
    """Single task of a one-time job run."""

    task_key: str
    description: str | None = None
    notebook_task: NotebookTask


class RunAs(BaseModel):
    """Identity the run executes as."""

    service_principal_name: str


class SubmitJobRequest(BaseModel):
    """One-time run definition forwarded to the job scheduler."""

    run_name: str = Field(..., min_length=1)
    tasks: list[JobTask] = Field(..., min_length=1)
    run_as: RunAs | None = None
    timeout_seconds: int | None = Field(None, ge=0)


class SubmitJobResponse(BaseModel):
    """Scheduler acceptance, echoing the scheduler's response body."""

    message: str
    data: Any = None


class SubmitJobErrorResponse(BaseModel):
    """Scheduler rejection or transport failure."""

    error: str
    details: str | None = None
