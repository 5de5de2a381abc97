"""Pytest configuration - no path manipulation, rely on proper package installation."""

from __future__ import annotations

from pathlib import Path

import pytest

from dino_ingestor.utils.config import (
    _get_settings_cached,
    _load_service_configuration_cached,
    get_service_configuration,
    get_settings,
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Point configuration at an empty directory so defaults apply."""

    config_dir: Path = tmp_path_factory.mktemp("config")
    monkeypatch.setenv("DINO_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("DINO_ENVIRONMENT", "test")
    monkeypatch.delenv("DINO_CONFIG_PROFILE", raising=False)

    get_settings(reload=True)
    get_service_configuration(reload=True)
    yield
    _load_service_configuration_cached.cache_clear()
    _get_settings_cached.cache_clear()


@pytest.fixture
def storage_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure a fake storage account."""

    monkeypatch.setenv("DINO_STORAGE__ACCOUNT_NAME", "dinoaccount")
    monkeypatch.setenv("DINO_STORAGE__ACCOUNT_KEY", "c2VjcmV0")
    monkeypatch.setenv("DINO_STORAGE__CONTAINER_NAME", "landing")
    get_settings(reload=True)
