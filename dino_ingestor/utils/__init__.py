"""Utilities package initialization."""
from .config import (
    GlobalSettings,
    JobTemplate,
    ServiceConfiguration,
    ensure_runtime_configuration,
    get_service_configuration,
    get_settings,
    load_yaml_config,
)
from .logging import log_upload_attempt, setup_logger
from .retry import RetryConfig, execute_with_retry

__all__ = [
    "GlobalSettings",
    "JobTemplate",
    "RetryConfig",
    "ServiceConfiguration",
    "ensure_runtime_configuration",
    "execute_with_retry",
    "get_settings",
    "get_service_configuration",
    "load_yaml_config",
    "log_upload_attempt",
    "setup_logger",
]
