"""PaymentPayload construction and payability checks for invoice candidates."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional

from payrecon.models.mapping import CURRENCIES, SERVICE_TYPES, MappingDefaults, canonical_choice
from payrecon.models.payments import PaymentPayload
from payrecon.models.records import NormalizedRecord
from payrecon.models.vendors import VendorRecord
from payrecon.resolution.vendor_matcher import VendorMatcher

logger = logging.getLogger(__name__)

WORD_UNITS = "Words"
PAYMENT_TERMS_DAYS = 30

ERR_NOT_MATCHED = "Freelancer not matched to a registered vendor"
ERR_NO_EMAIL = "Matched vendor has no email address"
ERR_NO_AMOUNT = "Total cost must be greater than zero"
ERR_NO_INVOICE = "Invoice code is missing"
ERR_PRICE = "Price per unit must be greater than zero"
ERR_UNITS = "Units amount must be greater than zero"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_units(record: NormalizedRecord, defaults: MappingDefaults) -> tuple[str, Decimal, Decimal]:
    """(units_type, units_amount, price_per_unit) for a record.

    A word count turns the invoice into a per-word payable; otherwise the
    whole invoice is one unit of the configured default unit type (document
    based or not, the arithmetic is the same).
    """
    if record.word_count > 0:
        units = Decimal(record.word_count)
        return WORD_UNITS, units, record.total_cost / units
    return defaults.units_type, Decimal("1"), record.total_cost


def build_payload(
    record: NormalizedRecord,
    vendor: VendorRecord,
    defaults: MappingDefaults,
    *,
    payment_terms_days: int = PAYMENT_TERMS_DAYS,
    now: Callable[[], datetime] = _utcnow,
) -> PaymentPayload:
    """Shape one resolved record for ``POST /v2/invoice/jobs``."""
    units_type, units_amount, price_per_unit = derive_units(record, defaults)
    email = vendor.usable_email
    description = record.description or f"Invoice: {record.invoice_code}"
    if record.project and record.project not in description:
        description = f"{description} ({record.project})"
    return PaymentPayload(
        supplier_email=email,
        supplier_name=vendor.full_name or email.split("@")[0],
        service_type=canonical_choice(record.service, SERVICE_TYPES) or defaults.service_type,
        job_description=description,
        units_type=units_type,
        units_amount=units_amount,
        price_per_unit=price_per_unit,
        currency=canonical_choice(record.currency, CURRENCIES) or defaults.currency,
        external_number=record.invoice_code,
        pay_until_date=(now() + timedelta(days=payment_terms_days)).isoformat(),
    )


def validate_record(
    record: NormalizedRecord,
    vendor: Optional[VendorRecord],
    defaults: MappingDefaults,
) -> list[str]:
    """Human-readable reasons the record cannot be paid; empty when payable."""
    errors: list[str] = []
    if not record.freelancer_matched or vendor is None:
        errors.append(ERR_NOT_MATCHED)
    elif not vendor.usable_email:
        errors.append(ERR_NO_EMAIL)
    if record.total_cost <= 0:
        errors.append(ERR_NO_AMOUNT)
    if not record.invoice_code.strip():
        errors.append(ERR_NO_INVOICE)
    if errors:
        return errors

    payload = build_payload(record, vendor, defaults)
    if payload.price_per_unit <= 0:
        errors.append(ERR_PRICE)
    if payload.units_amount <= 0:
        errors.append(ERR_UNITS)
    return errors


def apply_validation(
    records: Iterable[NormalizedRecord],
    vendors: Iterable[VendorRecord] | VendorMatcher,
    defaults: MappingDefaults,
) -> list[NormalizedRecord]:
    """Fill ``validation_errors`` / ``is_valid_for_payment`` on every record."""
    matcher = vendors if isinstance(vendors, VendorMatcher) else VendorMatcher(vendors)
    validated: list[NormalizedRecord] = []
    for record in records:
        vendor = matcher.vendor_for(record)
        errors = validate_record(record, vendor, defaults)
        validated.append(record.model_copy(update={
            "validation_errors": errors,
            "is_valid_for_payment": not errors,
        }))
    valid = sum(1 for r in validated if r.is_valid_for_payment)
    logger.info("Validated records valid=%d invalid=%d", valid, len(validated) - valid)
    return validated
