"""Azure Blob Storage access for uploads and prefix aggregates."""

from __future__ import annotations

import time
from collections.abc import Callable

from azure.core.exceptions import AzureError
from azure.storage.blob.aio import BlobServiceClient

from ..exceptions import ConfigurationError, DinoIngestorError, StorageError, ValidationError
from ..monitoring.metrics import observe_upload_duration, record_storage_query
from ..utils.config import StorageSettings
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "BlobStorage"})

ServiceClientFactory = Callable[[], BlobServiceClient]

NOT_CONFIGURED_MESSAGE = "Azure storage account details are not properly configured"


def build_blob_prefix(database: str, table: str) -> str:
    """Return the ``{database}/{table}/`` prefix grouping one ingestion target."""

    if not database or not table:
        raise ValidationError("Database and table parameters are required")
    return f"{database}/{table}/"


def build_blob_path(database: str, table: str, filename: str) -> str:
    if not filename:
        raise ValidationError("A file name is required")
    return f"{build_blob_prefix(database, table)}{filename}"


class BlobStorageService:
    """Upload files and aggregate blob listings under a target prefix."""

    def __init__(
        self,
        settings: StorageSettings,
        *,
        client_factory: ServiceClientFactory | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or self._create_service_client

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _create_service_client(self) -> BlobServiceClient:
        settings = self._settings
        if not settings.is_configured:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        if settings.connection_string:
            return BlobServiceClient.from_connection_string(settings.connection_string)
        return BlobServiceClient(
            account_url=settings.account_url,
            credential={
                "account_name": settings.account_name,
                "account_key": settings.account_key,
            },
        )

    async def upload(self, database: str, table: str, filename: str, data: bytes) -> str:
        """Write ``data`` to ``{database}/{table}/{filename}``, replacing any existing blob.

        Returns:
            The blob path that was written.

        Raises:
            ValidationError: If a coordinate or the file name is empty.
            ConfigurationError: If the storage account is not configured.
            StorageError: If the storage service rejects the upload.
        """
        blob_path = build_blob_path(database, table, filename)
        started = time.perf_counter()
        try:
            async with self._client_factory() as service:
                container = service.get_container_client(self._settings.container_name)
                await container.upload_blob(
                    name=blob_path,
                    data=data,
                    length=len(data),
                    overwrite=True,
                )
        except AzureError as exc:
            raise StorageError(f"Failed to upload '{blob_path}': {exc}") from exc
        finally:
            observe_upload_duration(time.perf_counter() - started)

        logger.debug(
            "Uploaded blob %s (%d bytes)",
            blob_path,
            len(data),
            extra={"database": database, "table": table},
        )
        return blob_path

    async def _aggregate(self, database: str, table: str, operation: str) -> tuple[int, int]:
        prefix = build_blob_prefix(database, table)
        count = 0
        total_size = 0
        try:
            async with self._client_factory() as service:
                container = service.get_container_client(self._settings.container_name)
                async for blob in container.list_blobs(name_starts_with=prefix):
                    count += 1
                    total_size += blob.size or 0
        except AzureError as exc:
            record_storage_query(operation, "error")
            raise StorageError(f"Failed to list blobs under '{prefix}': {exc}") from exc
        except DinoIngestorError:
            record_storage_query(operation, "error")
            raise
        record_storage_query(operation, "success")
        return count, total_size

    async def count_blobs(self, database: str, table: str) -> int:
        """Count blobs under ``{database}/{table}/``."""

        count, _ = await self._aggregate(database, table, "file_count")
        return count

    async def total_size(self, database: str, table: str) -> int:
        """Sum the content length of every blob under ``{database}/{table}/``."""

        _, total_size = await self._aggregate(database, table, "total_size")
        return total_size
