"""Application configuration helpers."""

from __future__ import annotations

from .env import float_env, optional_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .github import GitHubConfig, get_github_config, split_repository
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .project import ProjectConfig, get_project_config
from .registries import (
    RegistryConfig,
    get_gradle_services_config,
    get_maven_central_config,
    get_plugin_portal_config,
)
from .scheduler import SchedulerConfig, get_scheduler_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "GitHubConfig",
    "MissingConfigurationError",
    "ProjectConfig",
    "RateLimit",
    "RegistryConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "SchedulerConfig",
    "StorageConfig",
    "float_env",
    "get_database_config",
    "get_github_config",
    "get_gradle_services_config",
    "get_maven_central_config",
    "get_plugin_portal_config",
    "get_project_config",
    "get_scheduler_config",
    "get_storage_config",
    "optional_env",
    "require_env_vars",
    "split_repository",
]
