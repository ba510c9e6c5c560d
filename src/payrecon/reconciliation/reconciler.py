"""Cross-system reconciliation of invoice candidates against Smartcat's roster."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from payrecon.models.reconciliation import (
    BUCKET_ORDER,
    BUCKET_WARNINGS,
    BucketEntry,
    BucketName,
    ReconciliationBucket,
    ReconciliationResult,
    ReconciliationSummary,
)
from payrecon.models.records import NormalizedRecord
from payrecon.models.vendors import RosterMember, VendorRecord
from payrecon.resolution.vendor_matcher import VendorMatcher, normalize_key

logger = logging.getLogger(__name__)


class RosterIndex:
    """Lookups into the platform roster by vendor id, supplier id, email and name."""

    def __init__(self, roster: Iterable[RosterMember]) -> None:
        self._by_vendor_id: dict[str, RosterMember] = {}
        self._by_external_id: dict[str, RosterMember] = {}
        self._by_email: dict[str, RosterMember] = {}
        self._by_name: dict[str, RosterMember] = {}
        for member in roster:
            if member.matched_vendor_id:
                self._by_vendor_id.setdefault(member.matched_vendor_id, member)
            for index, value in (
                (self._by_external_id, member.external_id),
                (self._by_email, member.email),
                (self._by_name, member.name),
            ):
                key = normalize_key(value)
                if key:
                    index.setdefault(key, member)

    def find_for_vendor(self, vendor: VendorRecord) -> Optional[RosterMember]:
        member = self._by_vendor_id.get(vendor.id)
        if member is not None:
            return member
        for index, value in (
            (self._by_external_id, vendor.external_supplier_id),
            (self._by_email, vendor.email),
            (self._by_email, vendor.alt_email),
            (self._by_name, vendor.full_name),
        ):
            key = normalize_key(value)
            if key and key in index:
                return index[key]
        return None

    def find_for_resource(self, resource: str) -> Optional[RosterMember]:
        key = normalize_key(resource)
        if not key:
            return None
        return self._by_email.get(key) or self._by_name.get(key) or self._by_external_id.get(key)

    def find(self, record: NormalizedRecord, vendor: Optional[VendorRecord]) -> Optional[RosterMember]:
        if vendor is not None:
            member = self.find_for_vendor(vendor)
            if member is not None:
                return member
        return self.find_for_resource(record.resource)


def classify(vendor: Optional[VendorRecord], member: Optional[RosterMember]) -> BucketName:
    if vendor is not None and member is not None:
        return BucketName.MATCHED
    if vendor is not None:
        return BucketName.MISSING_FROM_EXTERNAL_ROSTER
    if member is not None:
        return BucketName.MISSING_FROM_INTERNAL_REGISTRY
    return BucketName.UNMATCHED_EVERYWHERE


def reconcile(
    records: Iterable[NormalizedRecord],
    vendors: Iterable[VendorRecord] | VendorMatcher,
    roster: Iterable[RosterMember],
) -> ReconciliationResult:
    """Put every record in exactly one of the four buckets and total the amounts.

    Records are expected to be vendor-resolved already (``freelancer_id``).
    """
    matcher = vendors if isinstance(vendors, VendorMatcher) else VendorMatcher(vendors)
    index = RosterIndex(roster)
    buckets = {
        name: ReconciliationBucket(name=name, warning=BUCKET_WARNINGS[name])
        for name in BUCKET_ORDER
    }
    summary = ReconciliationSummary()

    for record in records:
        vendor = matcher.vendor_for(record)
        member = index.find(record, vendor)
        name = classify(vendor, member)
        buckets[name].add(BucketEntry(record=record, vendor=vendor, roster_member=member))

        summary.total_records += 1
        summary.total_amount += record.total_cost
        if name is BucketName.MATCHED:
            summary.matched_amount += record.total_cost

    logger.info(
        "Reconciled records=%d %s",
        summary.total_records,
        " ".join(f"{name.value}={len(buckets[name].entries)}" for name in BUCKET_ORDER),
    )
    return ReconciliationResult(buckets=buckets, summary=summary)


@dataclass
class RosterComparison:
    """Team-level view: who is on both sides, and who is only on one."""

    matched: list[RosterMember] = field(default_factory=list)
    only_on_platform: list[RosterMember] = field(default_factory=list)
    only_in_registry: list[VendorRecord] = field(default_factory=list)


def link_roster(roster: Iterable[RosterMember], vendors: Iterable[VendorRecord]) -> list[RosterMember]:
    """Fill ``matched_vendor_id`` on roster members by supplier id, email or name."""
    by_supplier: dict[str, VendorRecord] = {}
    by_email: dict[str, VendorRecord] = {}
    by_name: dict[str, VendorRecord] = {}
    for vendor in vendors:
        for index, value in (
            (by_supplier, vendor.external_supplier_id),
            (by_email, vendor.email),
            (by_email, vendor.alt_email),
            (by_name, vendor.full_name),
        ):
            key = normalize_key(value)
            if key:
                index.setdefault(key, vendor)

    linked: list[RosterMember] = []
    for member in roster:
        if member.matched_vendor_id:
            linked.append(member)
            continue
        vendor = (
            by_supplier.get(normalize_key(member.external_id))
            or by_email.get(normalize_key(member.email))
            or by_name.get(normalize_key(member.name))
        )
        linked.append(member.model_copy(update={"matched_vendor_id": vendor.id if vendor else None}))
    return linked


def compare_roster(
    roster: Iterable[RosterMember],
    vendors: Iterable[VendorRecord],
    *,
    registry_status: str = "Approved",
) -> RosterComparison:
    """Split the roster and the (approved) registry into matched and one-sided sets."""
    vendors = list(vendors)
    linked = link_roster(roster, vendors)
    comparison = RosterComparison()
    seen: set[str] = set()
    for member in linked:
        if member.matched_vendor_id:
            comparison.matched.append(member)
            seen.add(member.matched_vendor_id)
        else:
            comparison.only_on_platform.append(member)
    comparison.only_in_registry = [
        v for v in vendors
        if v.id not in seen and (not registry_status or v.status == registry_status)
    ]
    return comparison
