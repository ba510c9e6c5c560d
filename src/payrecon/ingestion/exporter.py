"""Tab-delimited exports of invoice lists and reconciliation buckets.

Exports are tab-separated so that re-importing a file through
``parse_delimited_text`` detects the same delimiter and yields the same cells.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable

from payrecon.core.protocols import IFileStore
from payrecon.models.reconciliation import BUCKET_ORDER, BucketEntry, BucketName, ReconciliationResult
from payrecon.models.records import NormalizedRecord

logger = logging.getLogger(__name__)

INVOICE_COLUMNS: tuple[str, ...] = (
    "InvoiceCode", "Resource", "Status", "TotalCost", "Currency", "VAT",
    "DateSent", "DatePaid", "Description", "Project", "SourceLanguage",
    "TargetLanguage", "Service", "WordCount", "Rate",
)

BUCKET_COLUMNS: tuple[str, ...] = INVOICE_COLUMNS + (
    "Bucket", "FreelancerId", "VendorName", "VendorEmail", "SmartcatId",
)

_UNSAFE = re.compile(r"[\t\r\n]+")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        value = format(value, "f")
    # Quotes would be stripped on re-import anyway.
    return _UNSAFE.sub(" ", str(value)).replace('"', "").strip()


def _invoice_cells(record: NormalizedRecord) -> list[Any]:
    return [
        record.invoice_code, record.resource, record.status, record.total_cost,
        record.currency, record.vat, record.date_sent, record.date_paid,
        record.description, record.project, record.source_language,
        record.target_language, record.service, record.word_count, record.rate,
    ]


def _render(columns: tuple[str, ...], rows: Iterable[list[Any]]) -> str:
    lines = ["\t".join(columns)]
    lines.extend("\t".join(_cell(v) for v in row) for row in rows)
    return "\n".join(lines) + "\n"


def export_records(records: Iterable[NormalizedRecord]) -> str:
    """Serialize invoice candidates in the fixed invoice column order."""
    return _render(INVOICE_COLUMNS, (_invoice_cells(r) for r in records))


def _bucket_cells(name: BucketName, entry: BucketEntry) -> list[Any]:
    vendor = entry.vendor
    member = entry.roster_member
    return _invoice_cells(entry.record) + [
        name.value,
        vendor.id if vendor else "",
        vendor.full_name if vendor else "",
        vendor.email if vendor else "",
        member.external_id if member else "",
    ]


def export_bucket(result: ReconciliationResult, name: BucketName) -> str:
    """Serialize one reconciliation bucket."""
    entries = result.bucket(name).entries
    return _render(BUCKET_COLUMNS, (_bucket_cells(name, e) for e in entries))


def export_reconciliation(result: ReconciliationResult) -> str:
    """Serialize every bucket into one file, buckets in actionability order."""
    rows: list[list[Any]] = []
    for name in BUCKET_ORDER:
        rows.extend(_bucket_cells(name, e) for e in result.bucket(name).entries)
    return _render(BUCKET_COLUMNS, rows)


def export_filename(prefix: str, today: Callable[[], date] = date.today) -> str:
    return f"{prefix}_{today().isoformat()}.tsv"


def store_export(file_store: IFileStore, filename: str, text: str) -> str:
    """Write an export to the file store and return its path."""
    path = f"exports/{filename}"
    file_store.write(path, text.encode("utf-8"), content_type="text/tab-separated-values")
    logger.info("Stored export path=%s bytes=%d", path, len(text))
    return path
