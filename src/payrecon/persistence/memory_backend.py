"""In-memory backends for unit tests: dict-backed fakes."""

from __future__ import annotations

import copy
from datetime import date
from typing import Any, Iterable

from payrecon.core.exceptions import TemplateNotFoundError
from payrecon.models.payments import PaymentCreationResult, PaymentPayload
from payrecon.models.vendors import CompletedJobsResult, RosterMember, VendorRecord


class MemoryTemplateStore:
    """Dict-backed ITemplateStore for unit tests. Ids are assigned in sequence."""

    def __init__(self, items: Iterable[dict[str, Any]] = ()) -> None:
        self._items: dict[str, dict[str, Any]] = {}
        self._seq = 0
        for item in items:
            self.create(item)

    def list(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(item) for item in self._items.values()]

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        self._seq += 1
        item = copy.deepcopy(data)
        item["id"] = data.get("id") or f"tpl-{self._seq}"
        self._items[item["id"]] = item
        return copy.deepcopy(item)

    def update(self, template_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        if template_id not in self._items:
            raise TemplateNotFoundError(template_id)
        self._items[template_id].update(copy.deepcopy(patch))
        return copy.deepcopy(self._items[template_id])

    def delete(self, template_id: str) -> None:
        if self._items.pop(template_id, None) is None:
            raise TemplateNotFoundError(template_id)


class MemoryVendorRegistry:
    """List-backed IVendorRegistry for unit tests; keeps registry order."""

    def __init__(self, vendors: Iterable[VendorRecord] = ()) -> None:
        self._vendors = list(vendors)

    def list(self) -> list[VendorRecord]:
        return list(self._vendors)

    def add(self, vendor: VendorRecord) -> None:
        self._vendors.append(vendor)


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self.available = True

    def ping(self) -> bool:
        return self.available

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class MemoryFileStore:
    """Dict-backed IFileStore for unit tests."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def read(self, path: str) -> bytes:
        return self._files[path]

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[path] = data
        return path

    def list_files(self, prefix: str) -> list[str]:
        return [k for k in self._files if k.startswith(prefix)]


class MemoryPaymentPlatform:
    """Canned-response IPaymentPlatform for unit tests.

    Set ``error`` to make every call raise it. Submitted batches are kept in
    ``batches`` in call order.
    """

    def __init__(
        self,
        roster: Iterable[RosterMember] = (),
        completed: CompletedJobsResult | None = None,
    ) -> None:
        self.roster = list(roster)
        self.completed = completed or CompletedJobsResult()
        self.batches: list[list[PaymentPayload]] = []
        self.error: Exception | None = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def fetch_team_roster(self) -> list[RosterMember]:
        self._check()
        return list(self.roster)

    async def fetch_completed_jobs(self, date_from: date, date_to: date) -> CompletedJobsResult:
        self._check()
        return self.completed

    async def create_payments(self, payloads: list[PaymentPayload]) -> PaymentCreationResult:
        self._check()
        self.batches.append(list(payloads))
        return PaymentCreationResult(created=len(payloads))
