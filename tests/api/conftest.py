"""Shared fixtures for the backend API tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from dino_ingestor.api.dependencies import get_storage_service
from dino_ingestor.api.main import app
from dino_ingestor.exceptions import StorageError


class FakeStorageService:
    """In-memory stand-in for ``BlobStorageService``."""

    def __init__(
        self,
        *,
        configured: bool = True,
        blobs: dict[str, bytes] | None = None,
        error: str | None = None,
    ) -> None:
        self.is_configured = configured
        self.blobs = dict(blobs or {})
        self.error = error

    def _matching(self, database: str, table: str) -> list[bytes]:
        prefix = f"{database}/{table}/"
        return [data for name, data in self.blobs.items() if name.startswith(prefix)]

    async def upload(self, database: str, table: str, filename: str, data: bytes) -> str:
        if self.error:
            raise StorageError(self.error)
        path = f"{database}/{table}/{filename}"
        self.blobs[path] = data
        return path

    async def count_blobs(self, database: str, table: str) -> int:
        if self.error:
            raise StorageError(self.error)
        return len(self._matching(database, table))

    async def total_size(self, database: str, table: str) -> int:
        if self.error:
            raise StorageError(self.error)
        return sum(len(data) for data in self._matching(database, table))


@pytest.fixture
def test_client() -> Iterator[TestClient]:
    """Create a FastAPI test client and reset dependency overrides afterwards."""

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def override_dependency() -> Any:
    """Install a dependency override for the duration of a test."""

    def _override(dependency: Any, value: Any) -> Any:
        app.dependency_overrides[dependency] = lambda: value
        return value

    return _override


@pytest.fixture
def fake_storage(override_dependency: Any) -> FakeStorageService:
    """Replace the storage dependency with an in-memory fake."""

    return override_dependency(get_storage_service, FakeStorageService())
