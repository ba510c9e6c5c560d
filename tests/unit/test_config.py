"""Tests for configuration defaults and env overrides."""

from __future__ import annotations

from payrecon.core.config import AppSettings, DefaultsConfig, SmartcatConfig


def test_default_settings():
    settings = AppSettings()
    assert settings.environment == "dev"
    assert settings.log_level == "INFO"
    assert settings.templates.default_swap_attempts == 2


def test_smartcat_config_defaults():
    config = SmartcatConfig()
    assert config.base_url == "https://smartcat.com/api/integration"
    assert config.max_projects_scanned == 30
    assert config.payment_terms_days == 30


def test_smartcat_env_override(monkeypatch):
    monkeypatch.setenv("PAYRECON_SMARTCAT_ACCOUNT_ID", "acct-1")
    monkeypatch.setenv("PAYRECON_SMARTCAT_TIMEOUT", "15")
    config = SmartcatConfig()
    assert config.account_id == "acct-1"
    assert config.timeout == 15


def test_defaults_env_override(monkeypatch):
    monkeypatch.setenv("PAYRECON_DEFAULTS_CURRENCY", "EUR")
    assert DefaultsConfig().currency == "EUR"


def test_group_env_read_when_app_settings_built(monkeypatch):
    monkeypatch.setenv("PAYRECON_REDIS_ENABLED", "false")
    monkeypatch.setenv("PAYRECON_S3_KEY_PREFIX", "staging")
    settings = AppSettings()
    assert settings.redis.enabled is False
    assert settings.s3.key_prefix == "staging"


def test_groups_are_not_shared_between_instances():
    assert AppSettings().redis is not AppSettings().redis
