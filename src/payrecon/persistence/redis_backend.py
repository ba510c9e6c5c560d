"""Redis cache for the mapping-template list."""

from __future__ import annotations

from typing import Any, Callable

import redis

from payrecon.core.exceptions import CacheError


class RedisCacheBackend:
    """Production ICacheBackend. Keys are stored under ``namespace:``."""

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 decode_responses: bool = True, namespace: str = "payrecon") -> None:
        self._where = f"{host}:{port}/{db}"
        self._namespace = namespace
        self._client = redis.Redis(
            host=host, port=port, db=db, decode_responses=decode_responses,
        )

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    def _call(self, op: str, key: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except redis.RedisError as exc:
            raise CacheError(f"Redis {op} failed on {self._where} key={key!r}: {exc}") from exc

    def ping(self) -> bool:
        return bool(self._call("PING", "", self._client.ping))

    def get(self, key: str) -> str | None:
        return self._call("GET", key, lambda: self._client.get(self._key(key)))

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._call("SETEX", key, lambda: self._client.setex(self._key(key), ttl, value))

    def delete(self, key: str) -> None:
        self._call("DELETE", key, lambda: self._client.delete(self._key(key)))
