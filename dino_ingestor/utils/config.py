"""Configuration loader and settings helpers for the DINO ingestion portal."""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic import (
    ValidationError as PydanticValidationError,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ..exceptions import ConfigurationError
from .retry import RetryConfig


logger = logging.getLogger(__name__)


def load_yaml_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If file not found or invalid YAML
    """
    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            return config if config else {}
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")


class StorageSettings(BaseModel):
    """Azure Blob Storage account used as the ingestion landing zone."""

    model_config = ConfigDict(extra="forbid")

    account_name: str | None = None
    account_key: str | None = None
    container_name: str | None = None
    endpoint_suffix: str = "core.windows.net"
    connection_string: str | None = None

    @property
    def is_configured(self) -> bool:
        if not self.container_name:
            return False
        if self.connection_string:
            return True
        return bool(self.account_name and self.account_key)

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.{self.endpoint_suffix}"


class AzureSettings(BaseModel):
    """Azure identity and billing scope used for cost queries."""

    model_config = ConfigDict(extra="forbid")

    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    subscription_id: str | None = None
    resource_group_name: str | None = None

    @property
    def has_client_secret(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)

    @property
    def cost_scope(self) -> str | None:
        if not self.subscription_id or not self.resource_group_name:
            return None
        return f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group_name}"


class DatabricksSettings(BaseModel):
    """Databricks workspace accepting job run submissions."""

    model_config = ConfigDict(extra="forbid")

    instance_url: str | None = None
    token: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("instance_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().rstrip("/") or None
        return value

    @property
    def is_configured(self) -> bool:
        return bool(self.instance_url and self.token)


class PortalSettings(BaseModel):
    """Where the portal client reaches the backend API."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = "http://localhost:8000"
    request_timeout_seconds: float | None = Field(default=None, gt=0)


class JobTemplate(BaseModel):
    """Fixed parts of the ingestion job submitted after every batch."""

    model_config = ConfigDict(extra="forbid")

    run_name: str = Field(default="Data Ingestion Non Optimized", min_length=1)
    task_key: str = "DINO"
    description: str = "Ingestion"
    notebook_path: str = "/dino_workspace/DINO"
    service_principal_name: str | None = None
    timeout_seconds: int | None = Field(default=None, ge=0)


class JobsConfig(BaseModel):
    """Job scheduler section of the service configuration."""

    template: JobTemplate = Field(default_factory=JobTemplate)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    required_env: list[str] = Field(default_factory=list)


class ServiceConfiguration(BaseModel):
    """Validated runtime configuration merged from base and environment overrides."""

    version: int = Field(default=1, ge=1)
    environment: str = "development"
    required_env: list[str] = Field(default_factory=list)
    jobs: JobsConfig = Field(default_factory=JobsConfig)

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return value.lower()


class GlobalSettings(BaseSettings):
    """Global application settings sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DINO_",
        env_nested_delimiter="__",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"
    config_profile: str | None = None
    log_level: str = "INFO"
    config_dir: Path = Path("config")
    storage: StorageSettings = StorageSettings()
    azure: AzureSettings = AzureSettings()
    databricks: DatabricksSettings = DatabricksSettings()
    portal: PortalSettings = PortalSettings()
    cost_window_days: int = Field(default=30, ge=1)
    allowed_extensions: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [".txt"])

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Ensure log level values are uppercase for logging config."""

        return value.upper()

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def _parse_extensions(cls, value: Any) -> list[str]:
        """Support comma-separated strings or iterables; normalize to '.ext'."""

        if value is None:
            return []
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",")]
        elif isinstance(value, list | tuple | set):
            items = [str(item).strip() for item in value]
        else:
            raise ValueError("allowed_extensions must be a comma-separated string or iterable")
        normalized: list[str] = []
        for item in items:
            if not item:
                continue
            item = item.lower()
            normalized.append(item if item.startswith(".") else f".{item}")
        return normalized

    @field_validator("config_dir", mode="before")
    @classmethod
    def _expand_paths(cls, value: Any) -> Any:
        """Allow string paths and expand user markers."""

        if isinstance(value, Path):
            return value
        if isinstance(value, str):
            return Path(value).expanduser()
        return value

    @field_validator("config_profile", mode="before")
    @classmethod
    def _normalize_config_profile(cls, value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError("config_profile must be a non-empty string if provided")
        return value.strip().lower()


def _deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries without mutating the inputs."""

    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


@lru_cache(maxsize=8)
def _load_service_configuration_cached(config_dir: str, profile: str) -> ServiceConfiguration:
    """Load and cache the service configuration for a given profile."""

    directory = Path(config_dir)
    base_path = directory / "settings.base.yaml"
    if not base_path.exists():
        logger.debug("No base configuration at '%s'; using built-in defaults", base_path)
        base_config: dict[str, Any] = {}
    else:
        base_config = load_yaml_config(base_path)

    profile_path = directory / f"settings.{profile}.yaml"
    profile_config: dict[str, Any] = {}
    if profile_path.exists():
        profile_config = load_yaml_config(profile_path)
    else:
        logger.debug("No configuration override found for profile '%s'", profile)

    merged = _deep_merge_dicts(base_config, profile_config)
    merged.setdefault("environment", profile)

    try:
        return ServiceConfiguration.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigurationError(
            "Invalid configuration template for profile "
            f"'{profile}': {exc}"
        ) from exc


def get_service_configuration(
    settings: GlobalSettings | None = None,
    *,
    reload: bool = False,
) -> ServiceConfiguration:
    """Return the merged service configuration for the active profile."""

    if settings is None:
        settings = get_settings()

    profile = settings.config_profile or settings.environment

    if reload:
        _load_service_configuration_cached.cache_clear()

    return _load_service_configuration_cached(str(settings.config_dir), profile.lower())


def ensure_runtime_configuration(settings: GlobalSettings | None = None) -> GlobalSettings:
    """Validate configuration templates and ensure required env vars are present."""

    settings = settings or get_settings()

    service_config = get_service_configuration(settings=settings, reload=True)

    required_env: set[str] = set(service_config.required_env)
    required_env.update(service_config.jobs.required_env)

    missing = sorted(var for var in required_env if not os.environ.get(var))

    if missing:
        joined = ", ".join(missing)
        raise ConfigurationError(
            "Missing required environment variables: "
            f"{joined}. Configure them via configuration templates or .env files."
        )

    return settings


@lru_cache(maxsize=1)
def _get_settings_cached() -> GlobalSettings:
    return GlobalSettings()


def get_settings(*, reload: bool = False) -> GlobalSettings:
    """Return cached settings, optionally forcing a reload."""

    if reload:
        _get_settings_cached.cache_clear()
    return _get_settings_cached()
