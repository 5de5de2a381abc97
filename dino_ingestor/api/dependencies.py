"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends

from ..services.cost import CostService
from ..services.scheduler import JobSchedulerClient
from ..services.storage import BlobStorageService
from ..utils.config import GlobalSettings, get_service_configuration, get_settings


def get_app_settings() -> GlobalSettings:
    """Return the process-wide settings loaded at startup."""

    return get_settings()


def get_storage_service(
    settings: GlobalSettings = Depends(get_app_settings),
) -> BlobStorageService:
    return BlobStorageService(settings.storage)


def get_cost_service(settings: GlobalSettings = Depends(get_app_settings)) -> CostService:
    return CostService(settings.azure, window_days=settings.cost_window_days)


def get_scheduler_client(
    settings: GlobalSettings = Depends(get_app_settings),
) -> JobSchedulerClient:
    service_config = get_service_configuration(settings=settings)
    return JobSchedulerClient(settings.databricks, retry_config=service_config.jobs.retry)
