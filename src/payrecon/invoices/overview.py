"""Invoice list overview: payment status, totals, search and sorting."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Iterable, Literal

from pydantic import BaseModel

from payrecon.models.records import NormalizedRecord


class InvoiceStatus(StrEnum):
    PAID = "Paid"
    OVERDUE = "Overdue"
    DUE_TODAY = "Due Today"
    PENDING = "Pending"


def invoice_status(record: NormalizedRecord) -> InvoiceStatus:
    """A paid date wins over whatever the status column says."""
    if record.date_paid:
        return InvoiceStatus.PAID
    text = record.status.lower()
    if "overdue" in text:
        return InvoiceStatus.OVERDUE
    if "due today" in text:
        return InvoiceStatus.DUE_TODAY
    return InvoiceStatus.PENDING


class InvoiceSummary(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")
    paid: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")
    overdue: Decimal = Decimal("0")
    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0


def summarize_invoices(records: Iterable[NormalizedRecord]) -> InvoiceSummary:
    """Totals per status. ``pending`` amount covers every unpaid invoice, overdue included."""
    summary = InvoiceSummary()
    for record in records:
        status = invoice_status(record)
        summary.count += 1
        summary.total += record.total_cost
        if status is InvoiceStatus.PAID:
            summary.paid += record.total_cost
            summary.paid_count += 1
            continue
        summary.pending += record.total_cost
        if status is InvoiceStatus.OVERDUE:
            summary.overdue += record.total_cost
            summary.overdue_count += 1
        else:
            summary.pending_count += 1
    return summary


DATE_FORMATS: tuple[str, ...] = ("%d/%m/%Y", "%Y-%m-%d", "%d.%m.%Y", "%m/%d/%Y")


def parse_export_date(value: str) -> date | None:
    """TBMS writes day-first dates; ISO dates appear in hand-made sheets."""
    text = (value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


StatusFilter = Literal["all", "paid", "pending", "overdue"]
SortField = Literal["date", "amount", "name"]


def filter_invoices(
    records: Iterable[NormalizedRecord],
    search: str = "",
    status: StatusFilter = "all",
) -> list[NormalizedRecord]:
    """Case-insensitive search over invoice code, resource and project."""
    needle = search.strip().lower()
    out: list[NormalizedRecord] = []
    for record in records:
        if needle and not any(
            needle in (value or "").lower()
            for value in (record.invoice_code, record.resource, record.project)
        ):
            continue
        current = invoice_status(record)
        if status == "paid" and current is not InvoiceStatus.PAID:
            continue
        if status == "pending" and current not in (InvoiceStatus.PENDING, InvoiceStatus.DUE_TODAY):
            continue
        if status == "overdue" and current is not InvoiceStatus.OVERDUE:
            continue
        out.append(record)
    return out


def sort_invoices(
    records: Iterable[NormalizedRecord],
    field: SortField = "date",
    descending: bool = True,
) -> list[NormalizedRecord]:
    if field == "amount":
        key = lambda r: r.total_cost  # noqa: E731
    elif field == "name":
        key = lambda r: r.resource.lower()  # noqa: E731
    else:
        key = lambda r: (parse_export_date(r.date_sent) or date.min, r.date_sent)  # noqa: E731
    return sorted(records, key=key, reverse=descending)
