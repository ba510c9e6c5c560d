"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple, Optional

from payrecon.core.config import AppSettings
from payrecon.core.protocols import ICacheBackend, IFileStore, ITemplateStore, IVendorRegistry
from payrecon.persistence.dynamodb_backend import DynamoDBTemplateStore, DynamoDBVendorRegistry
from payrecon.persistence.redis_backend import RedisCacheBackend
from payrecon.persistence.s3_backend import S3FileStore


class Backends(NamedTuple):
    template_store: ITemplateStore
    vendor_registry: IVendorRegistry
    cache: Optional[ICacheBackend]
    file_store: IFileStore


def create_persistence(settings: AppSettings | None = None) -> Backends:
    """Production backends: DynamoDB templates and freelancers, Redis, S3.

    With ``PAYRECON_REDIS_ENABLED=false`` the template list is read straight
    from DynamoDB and ``cache`` is None.
    """
    if settings is None:
        settings = AppSettings()
    ddb = settings.dynamodb

    cache = None
    if settings.redis.enabled:
        cache = RedisCacheBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            decode_responses=settings.redis.decode_responses,
        )

    return Backends(
        template_store=DynamoDBTemplateStore(
            table_suffix=ddb.table_suffix, region=ddb.region,
            endpoint_url=ddb.endpoint_url, cache=cache,
        ),
        vendor_registry=DynamoDBVendorRegistry(
            table_suffix=ddb.table_suffix, region=ddb.region, endpoint_url=ddb.endpoint_url,
        ),
        cache=cache,
        file_store=S3FileStore(
            bucket=settings.s3.bucket,
            region=settings.s3.region,
            endpoint_url=settings.s3.endpoint_url,
            key_prefix=settings.s3.key_prefix,
        ),
    )
