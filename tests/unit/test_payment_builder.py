"""Tests for payment payload derivation and payability checks."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from payrecon.models.mapping import MappingDefaults
from payrecon.models.records import NormalizedRecord
from payrecon.models.vendors import VendorRecord
from payrecon.payments.builder import (
    ERR_NO_AMOUNT,
    ERR_NO_EMAIL,
    ERR_NO_INVOICE,
    ERR_NOT_MATCHED,
    apply_validation,
    build_payload,
    derive_units,
    validate_record,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
JANE = VendorRecord(id="v1", full_name="Jane Doe", email="jane@example.com")


def _record(**kwargs) -> NormalizedRecord:
    base = {
        "row_number": 1, "invoice_code": "INV001", "resource": "Jane Doe",
        "total_cost": Decimal("100"), "freelancer_id": "v1", "freelancer_matched": True,
    }
    base.update(kwargs)
    return NormalizedRecord(**base)


# ---------- units ----------


class TestDeriveUnits:
    def test_word_count_gives_per_word_rate(self):
        assert derive_units(_record(word_count=1000), MappingDefaults()) == ("Words", Decimal("1000"), Decimal("0.1"))

    def test_without_words_one_unit_of_default_type(self):
        units = derive_units(_record(word_count=0), MappingDefaults(units_type="Documents"))
        assert units == ("Documents", Decimal("1"), Decimal("100"))

    def test_hours_default(self):
        assert derive_units(_record(), MappingDefaults(units_type="Hours"))[0] == "Hours"


# ---------- payload ----------


class TestBuildPayload:
    def test_fields(self):
        payload = build_payload(_record(word_count=1000), JANE, MappingDefaults(), now=lambda: NOW)
        assert payload.supplier_email == "jane@example.com"
        assert payload.supplier_name == "Jane Doe"
        assert payload.supplier_type == "freelancer"
        assert payload.service_type == "Translation"
        assert payload.units_type == "Words"
        assert payload.units_amount == Decimal("1000")
        assert payload.price_per_unit == Decimal("0.1")
        assert payload.currency == "USD"
        assert payload.external_number == "INV001"
        assert payload.job_description == "Invoice: INV001"
        assert payload.pay_until_date == "2024-01-31T00:00:00+00:00"
        assert payload.amount == Decimal("100")

    def test_service_and_currency_case_insensitive(self):
        payload = build_payload(_record(service="proofreading", currency="EUR"), JANE, MappingDefaults())
        assert payload.service_type == "Proofreading"
        assert payload.currency == "EUR"

    def test_unknown_service_uses_default(self):
        payload = build_payload(_record(service="Magic"), JANE, MappingDefaults(service_type="Editing"))
        assert payload.service_type == "Editing"

    def test_description_and_project(self):
        payload = build_payload(_record(description="Manual", project="Atlas"), JANE, MappingDefaults())
        assert payload.job_description == "Manual (Atlas)"

    def test_alternate_email_when_primary_blank(self):
        vendor = VendorRecord(id="v1", full_name="", email="", alt_email="alt@example.com")
        payload = build_payload(_record(), vendor, MappingDefaults())
        assert payload.supplier_email == "alt@example.com"
        assert payload.supplier_name == "alt"

    def test_wire_format(self):
        wire = build_payload(_record(word_count=1000), JANE, MappingDefaults(), now=lambda: NOW).to_wire()
        assert wire["supplierEmail"] == "jane@example.com"
        assert wire["unitsAmount"] == 1000.0
        assert wire["pricePerUnit"] == 0.1
        assert wire["externalNumber"] == "INV001"
        assert wire["payUntilDate"].startswith("2024-01-31")


# ---------- validation ----------


class TestValidateRecord:
    def test_valid(self):
        assert validate_record(_record(), JANE, MappingDefaults()) == []

    def test_unmatched(self):
        errors = validate_record(_record(freelancer_matched=False, freelancer_id=None), None, MappingDefaults())
        assert errors == [ERR_NOT_MATCHED]

    def test_vendor_without_email(self):
        vendor = VendorRecord(id="v1", full_name="Jane Doe")
        assert validate_record(_record(), vendor, MappingDefaults()) == [ERR_NO_EMAIL]

    @pytest.mark.parametrize("cost", ["0", "-5"])
    def test_non_positive_amount(self, cost):
        assert validate_record(_record(total_cost=Decimal(cost)), JANE, MappingDefaults()) == [ERR_NO_AMOUNT]

    def test_missing_invoice_code(self):
        assert validate_record(_record(invoice_code="  "), JANE, MappingDefaults()) == [ERR_NO_INVOICE]

    def test_errors_accumulate(self):
        errors = validate_record(
            _record(freelancer_matched=False, total_cost=Decimal("0"), invoice_code=""), None, MappingDefaults(),
        )
        assert errors == [ERR_NOT_MATCHED, ERR_NO_AMOUNT, ERR_NO_INVOICE]


class TestApplyValidation:
    def test_flags_every_record(self):
        records = [_record(), _record(row_number=2, freelancer_id="ghost")]
        validated = apply_validation(records, [JANE], MappingDefaults())
        assert validated[0].is_valid_for_payment is True
        assert validated[1].is_valid_for_payment is False
        assert validated[1].validation_errors == [ERR_NOT_MATCHED]
