"""S3 storage for uploaded TBMS exports and generated reconciliation files.

Keys passed in and returned are relative (``uploads/march.tsv``); the
optional ``key_prefix`` is added on the way in and stripped on the way out so
several environments can share one bucket.
"""

from __future__ import annotations

import logging

import boto3
from botocore.exceptions import ClientError

from payrecon.core.exceptions import StoreError

logger = logging.getLogger(__name__)

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3FileStore:
    """Production IFileStore backed by one S3 bucket."""

    def __init__(self, bucket: str, region: str = "us-east-1",
                 endpoint_url: str | None = None, key_prefix: str = "") -> None:
        self._bucket = bucket
        self._prefix = key_prefix.strip("/") + "/" if key_prefix.strip("/") else ""
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def _key(self, path: str) -> str:
        return self._prefix + path.lstrip("/")

    def _fail(self, action: str, path: str, exc: ClientError) -> StoreError:
        code = exc.response.get("Error", {}).get("Code", "")
        if action == "read" and code in _MISSING_CODES:
            return StoreError(f"Upload {path!r} not found in s3://{self._bucket}")
        return StoreError(f"S3 {action} failed for {path!r} ({code or 'unknown'}): {exc}")

    def read(self, path: str) -> bytes:
        try:
            body = self._client.get_object(Bucket=self._bucket, Key=self._key(path))["Body"]
            return body.read()
        except ClientError as exc:
            raise self._fail("read", path, exc) from exc

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self._client.put_object(
                Bucket=self._bucket, Key=self._key(path), Body=data, ContentType=content_type,
            )
        except ClientError as exc:
            raise self._fail("write", path, exc) from exc
        logger.info("Stored file bucket=%s path=%s bytes=%d", self._bucket, path, len(data))
        return path

    def list_files(self, prefix: str) -> list[str]:
        """Relative keys under ``prefix``, sorted."""
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=self._key(prefix)):
                keys.extend(obj["Key"][len(self._prefix):] for obj in page.get("Contents", []))
        except ClientError as exc:
            raise self._fail("list", prefix, exc) from exc
        return sorted(keys)
