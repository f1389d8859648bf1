"""Application configuration helpers."""

from __future__ import annotations

from .env import env_bool, env_float, env_int, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError, ReferenceDataError
from .http_resilience import RateLimit, ResilienceConfig
from .logging import configure_logging
from .organization import (
    OrganizationConfig,
    ProfileDefaults,
    get_organization_config,
    load_organization_config,
)
from .storage import LedgerStorageConfig, get_ledger_storage_config
from .supabase import SupabaseConfig, get_supabase_config
from .sync import SyncConfig, get_sync_config
from .worksection import WorksectionConfig, get_worksection_config

__all__ = [
    "ConfigurationError",
    "LedgerStorageConfig",
    "MissingConfigurationError",
    "OrganizationConfig",
    "ProfileDefaults",
    "RateLimit",
    "ReferenceDataError",
    "ResilienceConfig",
    "SupabaseConfig",
    "SyncConfig",
    "WorksectionConfig",
    "configure_logging",
    "env_bool",
    "env_float",
    "env_int",
    "get_ledger_storage_config",
    "get_organization_config",
    "get_supabase_config",
    "get_sync_config",
    "get_worksection_config",
    "load_organization_config",
    "require_env_var",
    "require_env_vars",
]
