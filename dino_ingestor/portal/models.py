"""Session-local data structures of the ingestion portal."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class NotificationSeverity(str, Enum):
    NORMAL = "normal"
    ERROR = "error"


class OrchestratorState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class Notification:
    """A dismissible status message; ``identifier`` is unique within its queue."""

    identifier: int
    title: str
    body: str
    severity: NotificationSeverity = NotificationSeverity.NORMAL


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one file upload attempt."""

    succeeded: bool
    byte_size: int = 0
    error_message: str | None = None

    @classmethod
    def success(cls, byte_size: int) -> UploadResult:
        return cls(succeeded=True, byte_size=max(byte_size, 0))

    @classmethod
    def failure(cls, error_message: str) -> UploadResult:
        return cls(succeeded=False, byte_size=0, error_message=error_message)


@dataclass(frozen=True)
class SelectedFile:
    """A file picked for upload, held in memory."""

    name: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path) -> SelectedFile:
        file_path = Path(path)
        return cls(name=file_path.name, data=file_path.read_bytes())


@dataclass(frozen=True)
class TargetCoordinates:
    database_name: str
    table_name: str

    @property
    def is_complete(self) -> bool:
        return bool(self.database_name.strip()) and bool(self.table_name.strip())

    @property
    def label(self) -> str:
        return f"{self.database_name}.{self.table_name}"


@dataclass
class IngestionMetrics:
    """Figures shown on the portal cards; reset only with a new orchestrator."""

    file_count: int = 0
    total_bytes: int = 0
    cost: float = 0.0
    currency: str = "USD"
    cost_period_label: str = ""


@dataclass(frozen=True)
class BatchReport:
    """What a single upload batch did."""

    results: tuple[UploadResult, ...] = ()
    accumulated_bytes: int = 0
    total_bytes_after_upload: int = 0
    progress_history: tuple[float, ...] = ()
    aborted: bool = False

    @property
    def succeeded_count(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.succeeded_count
