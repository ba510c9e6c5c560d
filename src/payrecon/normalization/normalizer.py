"""RecordNormalizer: raw rows + mapping + defaults -> invoice candidates."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from payrecon.models.mapping import CURRENCIES, MappingDefaults, canonical_choice
from payrecon.models.records import NormalizedRecord
from payrecon.normalization.numbers import parse_decimal, parse_int

logger = logging.getLogger(__name__)

# Conventional spellings seen in TBMS and hand-made exports, tried in order
# when a field has no mapped column.
FALLBACK_HEADERS: dict[str, tuple[str, ...]] = {
    "invoiceCode": ("InvoiceCode", "Invoice", "Code", "Invoice No", "invoice_no"),
    "resource": (
        "Resource", "Freelancer", "Name", "Translator Name", "translator_name",
        "resource", "name",
    ),
    "status": ("Status",),
    "totalCost": ("TotalCost", "Total", "Amount", "amount", "total", "Payment", "payment"),
    "currency": ("Currency", "currency"),
    "vat": ("VAT", "Tax"),
    "dateSent": ("DateSent", "InvoiceDate", "Date"),
    "datePaid": ("DatePaid", "PaidDate"),
    "description": ("Description", "JobDescription"),
    "project": ("Project", "ProjectCode", "Project Name", "project_name"),
    "sourceLanguage": ("SourceLanguage", "Source", "source_language"),
    "targetLanguage": ("TargetLanguage", "Target", "target_language"),
    "wordCount": ("WordCount", "Words", "Word Count", "word_count"),
    "rate": ("Rate",),
    "service": ("Service", "ServiceType"),
}


def field_value(row: Mapping[str, str], mapping: Mapping[str, str], key: str) -> str:
    """Resolve one canonical field from a raw row.

    Mapped column when the field has a non-empty mapping entry; otherwise the
    first non-empty conventional header (exact spelling, then ignoring case);
    otherwise "".
    """
    column = mapping.get(key) or ""
    if column:
        return (row.get(column) or "").strip()

    candidates = FALLBACK_HEADERS.get(key, ())
    for header in candidates:
        value = row.get(header)
        if value and value.strip():
            return value.strip()
    lowered = {h.lower(): v for h, v in row.items()}
    for header in candidates:
        value = lowered.get(header.lower())
        if value and value.strip():
            return value.strip()
    return ""


def normalize_row(
    row: Mapping[str, str],
    mapping: Mapping[str, str],
    defaults: MappingDefaults,
    row_number: int = 0,
) -> NormalizedRecord:
    def get(key: str) -> str:
        return field_value(row, mapping, key)

    return NormalizedRecord(
        row_number=row_number,
        invoice_code=get("invoiceCode"),
        resource=get("resource"),
        status=get("status") or "Pending",
        total_cost=parse_decimal(get("totalCost")),
        currency=canonical_choice(get("currency"), CURRENCIES) or defaults.currency,
        vat=parse_decimal(get("vat")),
        date_sent=get("dateSent"),
        date_paid=get("datePaid") or None,
        description=get("description") or None,
        project=get("project") or None,
        source_language=get("sourceLanguage") or None,
        target_language=get("targetLanguage") or None,
        word_count=parse_int(get("wordCount")),
        rate=parse_decimal(get("rate")),
        service=get("service"),
    )


def normalize_rows(
    rows: Iterable[Mapping[str, str]],
    mapping: Mapping[str, str],
    defaults: MappingDefaults,
) -> list[NormalizedRecord]:
    """Normalize every row; rows are numbered from 1 in input order."""
    records = [
        normalize_row(row, mapping, defaults, row_number=idx)
        for idx, row in enumerate(rows, start=1)
    ]
    logger.info("Normalized %d record(s)", len(records))
    return records
