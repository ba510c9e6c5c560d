"""Tests for tab-delimited exports."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from payrecon.ingestion.exporter import (
    BUCKET_COLUMNS,
    INVOICE_COLUMNS,
    export_bucket,
    export_filename,
    export_reconciliation,
    export_records,
    store_export,
)
from payrecon.ingestion.parser import parse_delimited_text
from payrecon.models.mapping import MappingDefaults, empty_mapping
from payrecon.models.reconciliation import BucketName
from payrecon.models.records import NormalizedRecord
from payrecon.models.vendors import RosterMember, VendorRecord
from payrecon.normalization.normalizer import normalize_rows
from payrecon.reconciliation.reconciler import reconcile
from payrecon.resolution.vendor_matcher import VendorMatcher, resolve_records
from tests.fakes import MemoryFileStore


def _records():
    return [
        NormalizedRecord(
            row_number=1, invoice_code="INV001", resource="Jane Doe", total_cost=Decimal("100.50"),
            currency="EUR", date_sent="15/01/2024", project="Atlas\tPhase 2", word_count=1000,
            rate=Decimal("0.1"), description="Manual", source_language="en", target_language="tr",
        ),
        NormalizedRecord(row_number=2, invoice_code="INV002", resource='"Quoted" Name', total_cost=Decimal("7")),
    ]


class TestExportRecords:
    def test_header_and_order(self):
        lines = export_records(_records()).splitlines()
        assert lines[0].split("\t") == list(INVOICE_COLUMNS)
        assert lines[1].split("\t")[:4] == ["INV001", "Jane Doe", "Pending", "100.50"]

    def test_embedded_tabs_replaced(self):
        text = export_records(_records())
        assert "Atlas Phase 2" in text

    def test_reimport_yields_same_values(self):
        table = parse_delimited_text(export_records(_records()))
        assert table.headers == list(INVOICE_COLUMNS)
        records = normalize_rows(table.rows, empty_mapping(), MappingDefaults())
        assert records[0].invoice_code == "INV001"
        assert records[0].total_cost == Decimal("100.50")
        assert records[0].currency == "EUR"
        assert records[0].word_count == 1000
        assert records[0].project == "Atlas Phase 2"
        assert (records[0].description, records[0].source_language, records[0].target_language) == (
            "Manual", "en", "tr",
        )
        assert records[1].description is None
        assert records[1].resource == "Quoted Name"


class TestExportBuckets:
    def _result(self):
        vendors = [VendorRecord(id="v1", full_name="Jane Doe", email="jane@example.com")]
        roster = [RosterMember(external_id="SC-1", email="jane@example.com")]
        records = resolve_records(_records(), VendorMatcher(vendors))
        return reconcile(records, vendors, roster)

    def test_single_bucket(self):
        lines = export_bucket(self._result(), BucketName.MATCHED).splitlines()
        assert lines[0].split("\t") == list(BUCKET_COLUMNS)
        assert len(lines) == 2
        assert lines[1].split("\t")[-5:] == ["matched", "v1", "Jane Doe", "jane@example.com", "SC-1"]

    def test_all_buckets(self):
        table = parse_delimited_text(export_reconciliation(self._result()))
        assert [row["Bucket"] for row in table.rows] == ["matched", "unmatchedEverywhere"]


class TestStoreExport:
    def test_writes_under_exports(self):
        store = MemoryFileStore()
        filename = export_filename("invoices", today=lambda: date(2024, 5, 1))
        path = store_export(store, filename, "A\tB\n")
        assert path == "exports/invoices_2024-05-01.tsv"
        assert store.read(path) == b"A\tB\n"
