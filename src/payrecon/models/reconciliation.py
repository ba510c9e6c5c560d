"""Cross-system reconciliation buckets and totals."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from payrecon.models.records import NormalizedRecord
from payrecon.models.vendors import RosterMember, VendorRecord


class BucketName(StrEnum):
    MATCHED = "matched"
    MISSING_FROM_EXTERNAL_ROSTER = "missingFromExternalRoster"
    MISSING_FROM_INTERNAL_REGISTRY = "missingFromInternalRegistry"
    UNMATCHED_EVERYWHERE = "unmatchedEverywhere"


# Actionability order; also the order used to pick the initial result tab.
BUCKET_ORDER: tuple[BucketName, ...] = (
    BucketName.MATCHED,
    BucketName.MISSING_FROM_EXTERNAL_ROSTER,
    BucketName.MISSING_FROM_INTERNAL_REGISTRY,
    BucketName.UNMATCHED_EVERYWHERE,
)

BUCKET_WARNINGS: dict[BucketName, str] = {
    BucketName.MATCHED: "",
    BucketName.MISSING_FROM_EXTERNAL_ROSTER: (
        "Vendor is not on the Smartcat team; invite them before paying."
    ),
    BucketName.MISSING_FROM_INTERNAL_REGISTRY: (
        "Supplier exists on Smartcat but not in the freelancer registry; import them first."
    ),
    BucketName.UNMATCHED_EVERYWHERE: "Resource not found in either system.",
}


class BucketEntry(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    record: NormalizedRecord
    vendor: Optional[VendorRecord] = None
    roster_member: Optional[RosterMember] = None


class ReconciliationBucket(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    name: BucketName
    warning: str = ""
    entries: list[BucketEntry] = Field(default_factory=list)
    total_cost: Decimal = Decimal("0")

    def add(self, entry: BucketEntry) -> None:
        self.entries.append(entry)
        self.total_cost += entry.record.total_cost

    def __len__(self) -> int:
        return len(self.entries)


class ReconciliationSummary(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    total_records: int = 0
    total_amount: Decimal = Decimal("0")
    matched_amount: Decimal = Decimal("0")

    @property
    def unmatched_amount(self) -> Decimal:
        return self.total_amount - self.matched_amount


class ReconciliationResult(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    buckets: dict[BucketName, ReconciliationBucket]
    summary: ReconciliationSummary

    def bucket(self, name: BucketName) -> ReconciliationBucket:
        return self.buckets[name]

    @property
    def default_tab(self) -> BucketName:
        """First non-empty bucket in actionability order."""
        for name in BUCKET_ORDER:
            if self.buckets[name].entries:
                return name
        return BucketName.UNMATCHED_EVERYWHERE

    def to_response(self) -> dict:
        """JSON-ready view including the computed fields."""
        data = self.model_dump(mode="json", by_alias=True)
        data["summary"]["unmatchedAmount"] = str(self.summary.unmatched_amount)
        data["defaultTab"] = self.default_tab.value
        return data
