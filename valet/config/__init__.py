"""Configuration module for the Valet product search API."""

from .settings import (
    CacheConfig,
    CurationConfig,
    DatabaseConfig,
    SearchConfig,
    ValetSettings,
    VerificationConfig,
    build_config,
    get_settings,
)

__all__ = [
    'CacheConfig',
    'CurationConfig',
    'DatabaseConfig',
    'SearchConfig',
    'ValetSettings',
    'VerificationConfig',
    'build_config',
    'get_settings',
]
