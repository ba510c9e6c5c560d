"""Tests for the vendor resolution cascade."""

from __future__ import annotations

import pytest

from payrecon.models.records import MatchStep, NormalizedRecord
from payrecon.models.vendors import VendorRecord
from payrecon.resolution.vendor_matcher import VendorMatcher, normalize_key, resolve_records


def _vendor(vid: str, **kwargs) -> VendorRecord:
    return VendorRecord(id=vid, **kwargs)


@pytest.fixture
def vendors():
    return [
        _vendor("v1", full_name="Jane Doe", email="jane@example.com", resource_code="JD01"),
        _vendor("v2", full_name="John Smith", email="john@example.com", alt_email="js@alt.com",
                external_supplier_id="SC-42"),
        _vendor("v3", full_name="Şule Çelik", email="sule@example.com"),
        _vendor("v4", full_name="Maria Van Der Berg", email="maria@example.com"),
    ]


# ---------- key normalization ----------


class TestNormalizeKey:
    def test_trim_and_case(self):
        assert normalize_key("  Jane   DOE ") == "jane doe"

    def test_turkish_folding(self):
        assert normalize_key("ŞULE ÇELİK") == "sule celik"
        assert normalize_key("Gözde Işık") == "gozde isik"

    def test_empty(self):
        assert normalize_key(None) == ""
        assert normalize_key("   ") == ""


# ---------- cascade ----------


class TestCascade:
    def test_full_name(self, vendors):
        match = VendorMatcher(vendors).match("jane doe")
        assert match.vendor.id == "v1"
        assert match.step is MatchStep.FULL_NAME

    def test_email(self, vendors):
        match = VendorMatcher(vendors).match("JOHN@example.com")
        assert (match.vendor.id, match.step) == ("v2", MatchStep.EMAIL)

    def test_resource_code(self, vendors):
        match = VendorMatcher(vendors).match("jd01")
        assert (match.vendor.id, match.step) == ("v1", MatchStep.RESOURCE_CODE)

    def test_alt_email(self, vendors):
        match = VendorMatcher(vendors).match("js@alt.com")
        assert (match.vendor.id, match.step) == ("v2", MatchStep.ALT_EMAIL)

    def test_supplier_id(self, vendors):
        match = VendorMatcher(vendors).match("sc-42")
        assert (match.vendor.id, match.step) == ("v2", MatchStep.SUPPLIER_ID)

    def test_name_tokens(self, vendors):
        match = VendorMatcher(vendors).match("Maria Berg")
        assert (match.vendor.id, match.step) == ("v4", MatchStep.NAME_TOKENS)

    def test_turkish_name_without_diacritics(self, vendors):
        match = VendorMatcher(vendors).match("Sule Celik")
        assert (match.vendor.id, match.step) == ("v3", MatchStep.FULL_NAME)

    def test_single_token_never_token_matches(self, vendors):
        assert VendorMatcher(vendors).match("Maria") is None

    def test_no_match(self, vendors):
        assert VendorMatcher(vendors).match("Nobody Known") is None
        assert VendorMatcher(vendors).match("") is None

    def test_earlier_step_beats_later_step(self):
        vendors = [
            _vendor("code-owner", full_name="Other Person", resource_code="alex"),
            _vendor("name-owner", full_name="Alex"),
        ]
        match = VendorMatcher(vendors).match("alex")
        assert match.vendor.id == "name-owner"
        assert match.step is MatchStep.FULL_NAME


# ---------- determinism ----------


class TestDeterminism:
    def test_first_vendor_in_registry_order_wins(self):
        vendors = [
            _vendor("first", full_name="Jane Doe"),
            _vendor("second", full_name="jane doe"),
        ]
        assert VendorMatcher(vendors).match("Jane Doe").vendor.id == "first"
        assert VendorMatcher(list(reversed(vendors))).match("Jane Doe").vendor.id == "second"

    def test_repeatable(self, vendors):
        matcher = VendorMatcher(vendors)
        results = {matcher.match("Maria Berg").vendor.id for _ in range(5)}
        assert results == {"v4"}


# ---------- records ----------


class TestResolveRecords:
    def test_attaches_resolution(self, vendors):
        records = [
            NormalizedRecord(row_number=1, resource="Jane Doe"),
            NormalizedRecord(row_number=2, resource="Unknown Person"),
        ]
        resolved = resolve_records(records, VendorMatcher(vendors))
        assert resolved[0].freelancer_id == "v1"
        assert resolved[0].freelancer_matched is True
        assert resolved[0].match_step is MatchStep.FULL_NAME
        assert resolved[1].freelancer_id is None
        assert resolved[1].freelancer_matched is False
        assert records[0].freelancer_id is None
