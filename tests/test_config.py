"""Tests for configuration module."""

import pytest

from valet.config import (
    CacheConfig,
    CurationConfig,
    DatabaseConfig,
    SearchConfig,
    ValetSettings,
    VerificationConfig,
    build_config,
    get_settings,
)


def test_build_config_defaults():
    """Test that an empty environment yields the documented defaults."""
    config = build_config({})

    assert config["max_concurrent_jobs"] == 4
    assert config["log_level"] == "INFO"
    assert config["database"]["job_store"] == "postgres"
    assert config["cache"]["enabled"] is True
    assert config["cache"]["ttl_seconds"] == 300
    assert config["search"]["api_key"] is None
    assert config["search"]["language"] == "fr"
    assert config["search"]["max_candidates"] == 15
    assert config["curation"]["mode"] == "chat"
    assert config["curation"]["poll_interval_seconds"] == 5.0
    assert config["curation"]["max_wait_seconds"] == 1800.0
    assert config["verification"]["enabled"] is False


def test_get_settings_returns_nested_configs():
    settings = get_settings({})

    assert isinstance(settings, ValetSettings)
    assert isinstance(settings.database, DatabaseConfig)
    assert isinstance(settings.cache, CacheConfig)
    assert isinstance(settings.search, SearchConfig)
    assert isinstance(settings.curation, CurationConfig)
    assert isinstance(settings.verification, VerificationConfig)
    assert settings.curation.temperature == 0.1


def test_environment_overrides():
    settings = get_settings({
        "JOB_STORE": "Memory",
        "SEARCH_CACHE_ENABLED": "false",
        "SEARCH_CACHE_TTL": "60",
        "SERP_API": "serp-key",
        "ANTHROPIC_API_KEY": "sk-test",
        "CURATION_MODE": "deep",
        "VERIFY_LINKS": "yes",
        "VERIFY_TIMEOUT_SECONDS": "2.5",
        "MAX_CONCURRENT_JOBS": "0",
        "LOG_LEVEL": "debug",
    })

    assert settings.database.job_store == "memory"
    assert settings.cache.enabled is False
    assert settings.cache.ttl_seconds == 60
    assert settings.require_serp_api_key() == "serp-key"
    assert settings.require_anthropic_key() == "sk-test"
    assert settings.curation.mode == "deep"
    assert settings.verification.enabled is True
    assert settings.verification.timeout_seconds == 2.5
    assert settings.max_concurrent_jobs == 1
    assert settings.log_level == "DEBUG"


def test_default_settings_object():
    settings = ValetSettings()

    assert settings.database.url.startswith("postgresql://")
    assert settings.cache.redis_url == "redis://localhost:6379"


@pytest.mark.parametrize("env", [{"JOB_STORE": "sqlite"}, {"CURATION_MODE": "agent"}])
def test_invalid_choices_are_rejected(env):
    with pytest.raises(ValueError):
        get_settings(env)


def test_missing_keys_raise_explicit_errors():
    settings = get_settings({})

    with pytest.raises(ValueError, match="SERP_API"):
        settings.require_serp_api_key()
    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        settings.require_anthropic_key()
