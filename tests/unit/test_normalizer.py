"""Tests for record normalization and lenient number parsing."""

from __future__ import annotations

from decimal import Decimal

import pytest

from payrecon.models.mapping import MappingDefaults, empty_mapping
from payrecon.normalization.normalizer import field_value, normalize_row, normalize_rows
from payrecon.normalization.numbers import parse_decimal, parse_int

# ---------- numbers ----------


class TestParseDecimal:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("100", Decimal("100")),
            ("$1,234.50", Decimal("1234.50")),
            ("1,234.50 USD", Decimal("1234.50")),
            ("€ 75", Decimal("75")),
            ("250 TL", Decimal("250")),
            ("12abc", Decimal("12")),
            (".5", Decimal(".5")),
            ("-3", Decimal("-3")),
        ],
    )
    def test_parses(self, raw, expected):
        assert parse_decimal(raw) == expected

    @pytest.mark.parametrize("raw", ["", "n/a", "abc", None, "--"])
    def test_unparsable_is_zero(self, raw):
        assert parse_decimal(raw) == Decimal("0")

    def test_parse_int_truncates(self):
        assert parse_int("1000.7") == 1000
        assert parse_int("1,500 words") == 1500
        assert parse_int("") == 0


# ---------- field lookup ----------


class TestFieldValue:
    def test_mapped_column_wins(self):
        mapping = empty_mapping() | {"totalCost": "Net"}
        row = {"Net": "90", "TotalCost": "100"}
        assert field_value(row, mapping, "totalCost") == "90"

    def test_fallback_headers_when_unmapped(self):
        row = {"Amount": "42"}
        assert field_value(row, empty_mapping(), "totalCost") == "42"

    def test_fallback_is_case_insensitive(self):
        row = {"TRANSLATOR NAME": "Jane"}
        assert field_value(row, empty_mapping(), "resource") == "Jane"

    def test_first_non_empty_fallback(self):
        row = {"TotalCost": "", "Total": "55"}
        assert field_value(row, empty_mapping(), "totalCost") == "55"

    def test_missing_everywhere(self):
        assert field_value({"Other": "x"}, empty_mapping(), "project") == ""


# ---------- rows ----------


class TestNormalizeRow:
    def test_tbms_row(self):
        row = {"InvoiceCode": "INV001", "Resource": "Jane Doe", "TotalCost": "100", "WordCount": "1000"}
        record = normalize_row(row, empty_mapping(), MappingDefaults(), row_number=1)
        assert record.invoice_code == "INV001"
        assert record.resource == "Jane Doe"
        assert record.total_cost == Decimal("100")
        assert record.word_count == 1000
        assert record.status == "Pending"
        assert record.currency == "USD"
        assert record.date_paid is None
        assert record.freelancer_matched is False
        assert record.sent_to_platform is False

    def test_currency_case_insensitive(self):
        record = normalize_row({"Currency": "eur"}, empty_mapping(), MappingDefaults())
        assert record.currency == "EUR"

    def test_unsupported_currency_uses_default(self):
        record = normalize_row({"Currency": "JPY"}, empty_mapping(), MappingDefaults(currency="GBP"))
        assert record.currency == "GBP"

    def test_unparsable_amount_is_zero(self):
        record = normalize_row({"TotalCost": "pending"}, empty_mapping(), MappingDefaults())
        assert record.total_cost == Decimal("0")

    def test_rows_numbered_from_one(self):
        rows = [{"InvoiceCode": "A"}, {"InvoiceCode": "B"}]
        records = normalize_rows(rows, empty_mapping(), MappingDefaults())
        assert [r.row_number for r in records] == [1, 2]
        assert [r.invoice_code for r in records] == ["A", "B"]
