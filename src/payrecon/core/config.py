"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class SmartcatConfig(BaseSettings):
    """External payment platform (Smartcat) configuration."""

    model_config = {"env_prefix": "PAYRECON_SMARTCAT_"}

    base_url: str = "https://smartcat.com/api/integration"
    account_id: str = ""
    api_key: str = ""
    timeout: int = 60
    max_projects_scanned: int = 30
    payment_terms_days: int = 30


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "PAYRECON_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "PAYRECON_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    decode_responses: bool = True
    enabled: bool = True


class S3Config(BaseSettings):
    """S3 upload/export storage configuration."""

    model_config = {"env_prefix": "PAYRECON_S3_"}

    bucket: str = "payrecon-uploads"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    key_prefix: str = ""


class DefaultsConfig(BaseSettings):
    """Fallback values used when neither the export nor a template supplies them."""

    model_config = {"env_prefix": "PAYRECON_DEFAULTS_"}

    service_type: str = "Translation"
    units_type: str = "Words"
    currency: str = "USD"


class TemplateConfig(BaseSettings):
    """Mapping template behaviour."""

    model_config = {"env_prefix": "PAYRECON_TEMPLATES_"}

    default_swap_attempts: int = 2


class SessionConfig(BaseSettings):
    """Limits on payment sessions held in memory by the API."""

    model_config = {"env_prefix": "PAYRECON_SESSIONS_"}

    max_sessions: int = 100
    ttl_seconds: int = 3600


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "PAYRECON_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    # Groups read their own env prefix each time AppSettings is built.
    smartcat: SmartcatConfig = Field(default_factory=SmartcatConfig)
    dynamodb: DynamoDBConfig = Field(default_factory=DynamoDBConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    s3: S3Config = Field(default_factory=S3Config)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    templates: TemplateConfig = Field(default_factory=TemplateConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
