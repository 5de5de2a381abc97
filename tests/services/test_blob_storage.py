"""Tests for the blob storage service using an in-memory container."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from azure.core.exceptions import AzureError
from prometheus_client import REGISTRY

from dino_ingestor.exceptions import ConfigurationError, StorageError, ValidationError
from dino_ingestor.services.storage import (
    BlobStorageService,
    build_blob_path,
    build_blob_prefix,
)
from dino_ingestor.utils.config import StorageSettings


class FakeContainer:
    """Blob container keeping uploads in a dict."""

    def __init__(self, blobs: dict[str, bytes] | None = None, *, fail: bool = False) -> None:
        self.blobs = dict(blobs or {})
        self.fail = fail
        self.upload_calls: list[dict[str, Any]] = []

    async def upload_blob(self, **kwargs: Any) -> None:
        self.upload_calls.append(kwargs)
        if self.fail:
            raise AzureError("service unavailable")
        self.blobs[kwargs["name"]] = kwargs["data"]

    async def list_blobs(self, name_starts_with: str):
        if self.fail:
            raise AzureError("listing failed")
        for name, data in sorted(self.blobs.items()):
            if name.startswith(name_starts_with):
                yield SimpleNamespace(name=name, size=len(data))


class FakeServiceClient:
    def __init__(self, container: FakeContainer) -> None:
        self.container = container
        self.container_names: list[str] = []

    async def __aenter__(self) -> FakeServiceClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    def get_container_client(self, name: str) -> FakeContainer:
        self.container_names.append(name)
        return self.container


@pytest.fixture
def settings() -> StorageSettings:
    return StorageSettings(
        account_name="dinoaccount",
        account_key="c2VjcmV0",
        container_name="landing",
    )


def _service(
    settings: StorageSettings,
    container: FakeContainer,
) -> tuple[BlobStorageService, FakeServiceClient]:
    client = FakeServiceClient(container)
    return BlobStorageService(settings, client_factory=lambda: client), client


def test_build_blob_prefix_and_path() -> None:
    assert build_blob_prefix("sales", "orders") == "sales/orders/"
    assert build_blob_path("sales", "orders", "a.txt") == "sales/orders/a.txt"


@pytest.mark.parametrize(("database", "table"), [("", "orders"), ("sales", "")])
def test_build_blob_prefix_requires_both_coordinates(database: str, table: str) -> None:
    with pytest.raises(ValidationError, match="Database and table parameters are required"):
        build_blob_prefix(database, table)


@pytest.mark.asyncio
async def test_upload_writes_to_target_path(settings: StorageSettings) -> None:
    container = FakeContainer()
    service, client = _service(settings, container)

    path = await service.upload("sales", "orders", "a.txt", b"hello")

    assert path == "sales/orders/a.txt"
    assert container.blobs == {"sales/orders/a.txt": b"hello"}
    assert client.container_names == ["landing"]
    call = container.upload_calls[0]
    assert call["length"] == 5
    assert call["overwrite"] is True


@pytest.mark.asyncio
async def test_upload_same_name_replaces_blob(settings: StorageSettings) -> None:
    container = FakeContainer({"sales/orders/a.txt": b"old"})
    service, _ = _service(settings, container)

    await service.upload("sales", "orders", "a.txt", b"newer")

    assert container.blobs["sales/orders/a.txt"] == b"newer"


@pytest.mark.asyncio
async def test_upload_wraps_azure_errors(settings: StorageSettings) -> None:
    service, _ = _service(settings, FakeContainer(fail=True))

    with pytest.raises(StorageError, match="service unavailable"):
        await service.upload("sales", "orders", "a.txt", b"hello")


@pytest.mark.asyncio
async def test_unconfigured_service_raises_configuration_error() -> None:
    service = BlobStorageService(StorageSettings())

    assert service.is_configured is False
    with pytest.raises(ConfigurationError):
        await service.upload("sales", "orders", "a.txt", b"hello")


@pytest.mark.asyncio
async def test_count_and_total_size_only_include_target_prefix(settings: StorageSettings) -> None:
    container = FakeContainer(
        {
            "sales/orders/a.txt": b"x" * 100,
            "sales/orders/b.txt": b"x" * 200,
            "sales/orders_archive/c.txt": b"x" * 999,
            "sales/customers/d.txt": b"x" * 50,
        }
    )
    service, _ = _service(settings, container)

    assert await service.count_blobs("sales", "orders") == 2
    assert await service.total_size("sales", "orders") == 300


@pytest.mark.asyncio
async def test_aggregates_are_idempotent(settings: StorageSettings) -> None:
    container = FakeContainer({"sales/orders/a.txt": b"abc"})
    service, _ = _service(settings, container)

    first_count = await service.count_blobs("sales", "orders")
    first_size = await service.total_size("sales", "orders")

    assert await service.count_blobs("sales", "orders") == first_count == 1
    assert await service.total_size("sales", "orders") == first_size == 3


@pytest.mark.asyncio
async def test_empty_prefix_counts_zero(settings: StorageSettings) -> None:
    service, _ = _service(settings, FakeContainer())

    assert await service.count_blobs("sales", "orders") == 0
    assert await service.total_size("sales", "orders") == 0


@pytest.mark.asyncio
async def test_listing_failure_raises_storage_error(settings: StorageSettings) -> None:
    service, _ = _service(settings, FakeContainer(fail=True))

    with pytest.raises(StorageError):
        await service.count_blobs("sales", "orders")


@pytest.mark.asyncio
async def test_unconfigured_listing_records_error_metric() -> None:
    labels = {"operation": "file_count", "status": "error"}
    before = REGISTRY.get_sample_value("dino_storage_queries_total", labels) or 0.0
    service = BlobStorageService(StorageSettings())

    with pytest.raises(ConfigurationError):
        await service.count_blobs("sales", "orders")

    assert REGISTRY.get_sample_value("dino_storage_queries_total", labels) == before + 1
