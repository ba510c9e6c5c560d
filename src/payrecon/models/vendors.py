"""Vendor records from the internal registry and roster members from Smartcat."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class VendorRecord(BaseModel):
    """Internal freelancer record. Read-only to the reconciliation pipeline."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}

    id: str
    full_name: str = ""
    email: str = ""
    alt_email: Optional[str] = None
    resource_code: Optional[str] = None
    external_supplier_id: Optional[str] = None
    status: str = ""

    @property
    def usable_email(self) -> str:
        """Primary email, or the secondary one when the primary is blank."""
        return (self.email or "").strip() or (self.alt_email or "").strip()

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> VendorRecord:
        """Build from a registry entity (snake_case attribute names)."""
        return cls(
            id=str(item["id"]),
            full_name=item.get("full_name") or "",
            email=item.get("email") or "",
            alt_email=item.get("secondary_email") or None,
            resource_code=item.get("resource_code") or None,
            external_supplier_id=item.get("smartcat_supplier_id") or None,
            status=item.get("status") or "",
        )


class RosterMember(BaseModel):
    """A supplier known to the external payment platform."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    external_id: str
    name: str = ""
    email: str = ""
    supplier_type: str = "freelancer"
    languages: list[str] = Field(default_factory=list)
    completed_units: int = 0
    matched_vendor_id: Optional[str] = None


class CompletedJob(BaseModel):
    """One completed workflow stage of a Smartcat project document."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    assignee_id: str
    project_id: str
    project_name: str = ""
    document_name: str = ""
    stage_type: str = ""
    source_language: str = ""
    target_language: str = ""
    words_count: int = 0
    deadline: Optional[str] = None


class CompletedJobsResult(BaseModel):
    """Roster members who completed work in a date range, with the job detail."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    members: list[RosterMember] = Field(default_factory=list)
    jobs: list[CompletedJob] = Field(default_factory=list)
    projects_processed: int = 0

    @property
    def total_words(self) -> int:
        return sum(member.completed_units for member in self.members)
