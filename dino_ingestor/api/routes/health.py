"""Health check endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...utils.config import GlobalSettings
from ..dependencies import get_app_settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: GlobalSettings = Depends(get_app_settings)) -> dict[str, Any]:
    """Report which upstream collaborators have enough configuration to be called."""

    components = {
        "storage": settings.storage.is_configured,
        "cost": settings.azure.cost_scope is not None,
        "scheduler": settings.databricks.is_configured,
    }

    return {
        "status": "healthy" if all(components.values()) else "degraded",
        "service": "dino_ingestor",
        "environment": settings.environment,
        "components": {
            name: "configured" if configured else "missing_configuration"
            for name, configured in components.items()
        },
    }
