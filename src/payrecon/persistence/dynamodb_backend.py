"""DynamoDB backends: mapping template store (with Redis caching) and freelancer registry."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import boto3
from botocore.exceptions import ClientError

from payrecon.core.exceptions import CacheError, StoreError, TemplateNotFoundError
from payrecon.models.vendors import VendorRecord

logger = logging.getLogger(__name__)

TEMPLATES_TABLE = "payrecon-mapping-templates"
FREELANCERS_TABLE = "payrecon-freelancers"
TEMPLATES_PK = "TEMPLATES"
FREELANCERS_PK = "FREELANCERS"

_KEY_ATTRS = ("PK", "SK")


class _DecimalEncoder(json.JSONEncoder):
    """Encode Decimal values as int or float for JSON serialization."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return int(o) if o == int(o) else float(o)
        return super().default(o)


def _decode_decimals(item: dict[str, Any]) -> dict[str, Any]:
    """Convert Decimal values in a DynamoDB item to int/float."""
    out: dict[str, Any] = {}
    for k, v in item.items():
        if isinstance(v, Decimal):
            out[k] = int(v) if v == int(v) else float(v)
        elif isinstance(v, dict):
            out[k] = _decode_decimals(v)
        elif isinstance(v, list):
            out[k] = [
                _decode_decimals(i) if isinstance(i, dict)
                else (int(i) if isinstance(i, Decimal) and i == int(i) else float(i) if isinstance(i, Decimal) else i)
                for i in v
            ]
        else:
            out[k] = v
    return out


def _strip_keys(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in _decode_decimals(item).items() if k not in _KEY_ATTRS}


def _template_sk(template_id: str) -> str:
    return f"TEMPLATE#{template_id}"


class _DynamoDBBase:
    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    def _table(self, base: str):
        return self._ddb.Table(f"{base}{self._table_suffix}")

    def _query_pk(self, table_base: str, pk: str) -> list[dict[str, Any]]:
        """Query all items with a given partition key, following pagination."""
        tbl = self._table(table_base)
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": "PK = :pk",
            "ExpressionAttributeValues": {":pk": pk},
        }
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = tbl.query(**kwargs)
                items.extend(_strip_keys(item) for item in resp.get("Items", []))
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as exc:
            raise StoreError(f"DynamoDB query failed for {table_base!r} pk={pk!r}: {exc}") from exc
        return items


class DynamoDBTemplateStore(_DynamoDBBase):
    """Production ITemplateStore backed by DynamoDB + optional Redis cache.

    The full template list is cached under one key and dropped on every write.
    The cache never fails a store operation: on a cache error the list is
    read from DynamoDB, and after a failed invalidation the cache is bypassed
    until an invalidation succeeds.
    """

    CACHE_KEY = "templates:all"
    CACHE_TTL = 300  # 5 minutes

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None, cache: Any = None) -> None:
        super().__init__(table_suffix, region, endpoint_url)
        self._cache = cache
        self._cache_stale = False

    def _invalidate(self) -> bool:
        if self._cache is None:
            return False
        try:
            self._cache.delete(self.CACHE_KEY)
        except CacheError as exc:
            self._cache_stale = True
            logger.warning("Template cache invalidation failed, bypassing cache error=%s", exc)
            return False
        self._cache_stale = False
        return True

    def _cache_usable(self) -> bool:
        if self._cache is None:
            return False
        return not self._cache_stale or self._invalidate()

    # ---- ITemplateStore methods ----

    def list(self) -> list[dict[str, Any]]:
        use_cache = self._cache_usable()
        if use_cache:
            try:
                cached = self._cache.get(self.CACHE_KEY)
            except CacheError as exc:
                logger.warning("Template cache read failed error=%s", exc)
                use_cache = False
            else:
                if cached is not None:
                    return json.loads(cached)

        items = self._query_pk(TEMPLATES_TABLE, TEMPLATES_PK)
        items.sort(key=lambda x: (x.get("created_date") or "", x.get("id") or ""))

        if use_cache:
            try:
                self._cache.setex(self.CACHE_KEY, self.CACHE_TTL, json.dumps(items, cls=_DecimalEncoder))
            except CacheError as exc:
                logger.warning("Template cache write failed error=%s", exc)
        return items

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        template_id = uuid.uuid4().hex
        item = {k: v for k, v in data.items() if k != "id"}
        item["id"] = template_id
        item.setdefault("created_date", datetime.now(timezone.utc).isoformat())
        try:
            self._table(TEMPLATES_TABLE).put_item(
                Item={"PK": TEMPLATES_PK, "SK": _template_sk(template_id), **item},
                ConditionExpression="attribute_not_exists(SK)",
            )
        except ClientError as exc:
            raise StoreError(f"DynamoDB put failed for template {template_id!r}: {exc}") from exc
        finally:
            self._invalidate()
        logger.info("Created template item id=%s", template_id)
        return item

    def update(self, template_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        fields = {k: v for k, v in patch.items() if k not in ("id", *_KEY_ATTRS)}
        if not fields:
            for item in self.list():
                if item.get("id") == template_id:
                    return item
            raise TemplateNotFoundError(template_id)

        names = {f"#f{i}": k for i, k in enumerate(fields)}
        values = {f":v{i}": v for i, v in enumerate(fields.values())}
        expression = "SET " + ", ".join(f"#f{i} = :v{i}" for i in range(len(fields)))
        try:
            resp = self._table(TEMPLATES_TABLE).update_item(
                Key={"PK": TEMPLATES_PK, "SK": _template_sk(template_id)},
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression="attribute_exists(SK)",
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise TemplateNotFoundError(template_id) from exc
            raise StoreError(f"DynamoDB update failed for template {template_id!r}: {exc}") from exc
        finally:
            self._invalidate()
        return _strip_keys(resp["Attributes"])

    def delete(self, template_id: str) -> None:
        try:
            self._table(TEMPLATES_TABLE).delete_item(
                Key={"PK": TEMPLATES_PK, "SK": _template_sk(template_id)},
                ConditionExpression="attribute_exists(SK)",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise TemplateNotFoundError(template_id) from exc
            raise StoreError(f"DynamoDB delete failed for template {template_id!r}: {exc}") from exc
        finally:
            self._invalidate()


class DynamoDBVendorRegistry(_DynamoDBBase):
    """Production IVendorRegistry: the freelancer table, read-only here."""

    def list(self) -> list[VendorRecord]:
        items = self._query_pk(FREELANCERS_TABLE, FREELANCERS_PK)
        return [VendorRecord.from_item(item) for item in items if item.get("id")]
