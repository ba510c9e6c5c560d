"""VendorMatcher: resolve a free-text TBMS resource to one registry vendor.

The cascade order is part of the contract. The operator sees which check
matched, so steps are never reordered or skipped:

1. full name  2. primary email  3. resource code  4. secondary email
5. Smartcat supplier id  6. first + last name token contained in full name
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from payrecon.models.records import MatchStep, NormalizedRecord
from payrecon.models.vendors import VendorRecord

logger = logging.getLogger(__name__)

# Turkish letters folded to ASCII so "Şule Çelik" matches "Sule Celik".
_FOLD = str.maketrans({
    "ş": "s", "Ş": "s", "ğ": "g", "Ğ": "g", "ı": "i", "İ": "i",
    "ö": "o", "Ö": "o", "ü": "u", "Ü": "u", "ç": "c", "Ç": "c",
})


def normalize_key(value: Optional[str]) -> str:
    """Trimmed, folded, lower-cased comparison key. Inner spacing is collapsed."""
    if not value:
        return ""
    return " ".join(value.translate(_FOLD).lower().split())


@dataclass(frozen=True)
class VendorMatch:
    vendor: VendorRecord
    step: MatchStep


_EXACT_STEPS: tuple[tuple[MatchStep, Callable[[VendorRecord], Optional[str]]], ...] = (
    (MatchStep.FULL_NAME, lambda v: v.full_name),
    (MatchStep.EMAIL, lambda v: v.email),
    (MatchStep.RESOURCE_CODE, lambda v: v.resource_code),
    (MatchStep.ALT_EMAIL, lambda v: v.alt_email),
    (MatchStep.SUPPLIER_ID, lambda v: v.external_supplier_id),
)


class VendorMatcher:
    """Deterministic lookup over a fixed vendor list.

    Indexes keep the first vendor (in registry order) for each key, so the same
    resource string always resolves to the same vendor.
    """

    def __init__(self, vendors: Iterable[VendorRecord]) -> None:
        self._vendors: list[VendorRecord] = list(vendors)
        self._indexes: list[tuple[MatchStep, dict[str, VendorRecord]]] = []
        for step, attr in _EXACT_STEPS:
            index: dict[str, VendorRecord] = {}
            for vendor in self._vendors:
                key = normalize_key(attr(vendor))
                if key:
                    index.setdefault(key, vendor)
            self._indexes.append((step, index))
        self._by_id = {v.id: v for v in self._vendors}

    @property
    def vendors(self) -> list[VendorRecord]:
        return list(self._vendors)

    def get(self, vendor_id: Optional[str]) -> Optional[VendorRecord]:
        if not vendor_id:
            return None
        return self._by_id.get(vendor_id)

    def vendor_for(self, record: NormalizedRecord) -> Optional[VendorRecord]:
        """The vendor a resolved record points at, or None if it is unmatched.

        A record marked matched whose id is no longer in the registry is
        re-resolved from its resource text.
        """
        if not record.freelancer_matched:
            return None
        vendor = self.get(record.freelancer_id)
        if vendor is None:
            found = self.match(record.resource)
            vendor = found.vendor if found else None
            logger.warning(
                "Matched vendor missing from registry row=%d freelancer_id=%s fallback=%s",
                record.row_number, record.freelancer_id, vendor.id if vendor else None,
            )
        return vendor

    def match(self, resource: Optional[str]) -> Optional[VendorMatch]:
        key = normalize_key(resource)
        if not key:
            return None

        for step, index in self._indexes:
            vendor = index.get(key)
            if vendor is not None:
                return VendorMatch(vendor=vendor, step=step)

        tokens = key.split(" ")
        if len(tokens) >= 2:
            first, last = tokens[0], tokens[-1]
            for vendor in self._vendors:
                name = normalize_key(vendor.full_name)
                if name and first in name and last in name:
                    return VendorMatch(vendor=vendor, step=MatchStep.NAME_TOKENS)
        return None


def resolve_record(record: NormalizedRecord, matcher: VendorMatcher) -> NormalizedRecord:
    found = matcher.match(record.resource)
    return record.model_copy(update={
        "freelancer_id": found.vendor.id if found else None,
        "freelancer_matched": found is not None,
        "match_step": found.step if found else None,
    })


def resolve_records(records: Iterable[NormalizedRecord], matcher: VendorMatcher) -> list[NormalizedRecord]:
    """Attach vendor resolution to every record. Misses are not errors."""
    resolved = [resolve_record(r, matcher) for r in records]
    matched = sum(1 for r in resolved if r.freelancer_matched)
    logger.info("Resolved vendors matched=%d unmatched=%d", matched, len(resolved) - matched)
    return resolved
