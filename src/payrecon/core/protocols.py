"""Protocol interfaces for payrecon collaborators.

Everything outside the reconciliation pipeline (entity store, upload storage,
cache, Smartcat) is reached through these Protocols: structural typing, no
inheritance required, easy to fake in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from payrecon.core.types import JsonDict

if TYPE_CHECKING:
    from datetime import date

    from payrecon.models.payments import PaymentCreationResult, PaymentPayload
    from payrecon.models.vendors import CompletedJobsResult, RosterMember, VendorRecord


# ---------------------------------------------------------------------------
# Entity store: freelancer registry
# ---------------------------------------------------------------------------

@runtime_checkable
class IVendorRegistry(Protocol):
    """Internal freelancer registry (read-mostly)."""

    def list(self) -> list[VendorRecord]: ...


# ---------------------------------------------------------------------------
# Entity store: mapping templates
# ---------------------------------------------------------------------------

@runtime_checkable
class ITemplateStore(Protocol):
    """Plain CRUD over mapping template records; no business rules."""

    def list(self) -> list[JsonDict]: ...

    def create(self, data: JsonDict) -> JsonDict: ...

    def update(self, template_id: str, patch: JsonDict) -> JsonDict: ...

    def delete(self, template_id: str) -> None: ...


# ---------------------------------------------------------------------------
# Cache backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def ping(self) -> bool: ...

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# File store (uploads and exports)
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible file storage interface."""

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...

    def list_files(self, prefix: str) -> list[str]: ...


# ---------------------------------------------------------------------------
# External payment platform
# ---------------------------------------------------------------------------

@runtime_checkable
class IPaymentPlatform(Protocol):
    """Smartcat boundary. Slow and unreliable; failures raise PlatformError."""

    async def fetch_team_roster(self) -> list[RosterMember]: ...

    async def fetch_completed_jobs(self, date_from: date, date_to: date) -> CompletedJobsResult: ...

    async def create_payments(self, payloads: list[PaymentPayload]) -> PaymentCreationResult: ...
