"""PaymentSession: the single owner of a loaded dataset's payment state."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from payrecon.core.exceptions import BatchValidationError
from payrecon.core.protocols import IPaymentPlatform
from payrecon.models.mapping import MappingDefaults
from payrecon.models.payments import PaymentPayload, SubmissionResult
from payrecon.models.records import NormalizedRecord
from payrecon.models.vendors import VendorRecord
from payrecon.payments.builder import PAYMENT_TERMS_DAYS, apply_validation, build_payload
from payrecon.resolution.vendor_matcher import VendorMatcher

logger = logging.getLogger(__name__)

ERR_ALREADY_SENT = "Already sent to Smartcat in this session"
ERR_UNKNOWN_ROW = "No such record in this session"
ERR_IN_FLIGHT = "Payment for this record is already being submitted"


class PaymentSession:
    """Holds validated records, builds payloads and submits whole batches.

    Records are keyed by ``row_number``. ``sent_to_platform`` only ever goes
    from False to True, which keeps a record from being paid twice from the
    same loaded dataset.
    """

    def __init__(
        self,
        records: Iterable[NormalizedRecord],
        vendors: Iterable[VendorRecord] | VendorMatcher,
        defaults: MappingDefaults,
        platform: IPaymentPlatform,
        *,
        payment_terms_days: int = PAYMENT_TERMS_DAYS,
    ) -> None:
        self._matcher = vendors if isinstance(vendors, VendorMatcher) else VendorMatcher(vendors)
        self._defaults = defaults
        self._platform = platform
        self._terms = payment_terms_days
        self._records: dict[int, NormalizedRecord] = {
            r.row_number: r for r in apply_validation(records, self._matcher, defaults)
        }
        self._in_flight: set[int] = set()

    @property
    def records(self) -> list[NormalizedRecord]:
        return list(self._records.values())

    @property
    def defaults(self) -> MappingDefaults:
        return self._defaults

    def selectable(self) -> list[NormalizedRecord]:
        """Valid records that are neither sent nor being submitted."""
        return [
            r for r in self._records.values()
            if r.is_valid_for_payment and not r.sent_to_platform and r.row_number not in self._in_flight
        ]

    def check_batch(self, rows: Iterable[int]) -> dict[int, list[str]]:
        """Problems per selected row; empty dict means the batch may be submitted."""
        problems: dict[int, list[str]] = {}
        for row in rows:
            record = self._records.get(row)
            if record is None:
                problems[row] = [ERR_UNKNOWN_ROW]
            elif record.sent_to_platform:
                problems[row] = [ERR_ALREADY_SENT]
            elif row in self._in_flight:
                problems[row] = [ERR_IN_FLIGHT]
            elif not record.is_valid_for_payment:
                problems[row] = list(record.validation_errors)
        return problems

    def preview(self, rows: Iterable[int]) -> list[PaymentPayload]:
        """Payloads for the selection. Raises BatchValidationError if any row is not payable."""
        rows = list(dict.fromkeys(rows))
        problems = self.check_batch(rows)
        if problems:
            raise BatchValidationError(problems)
        payloads: list[PaymentPayload] = []
        for row in rows:
            record = self._records[row]
            vendor = self._matcher.vendor_for(record)
            payloads.append(build_payload(record, vendor, self._defaults, payment_terms_days=self._terms))
        return payloads

    async def submit(self, rows: Iterable[int]) -> SubmissionResult:
        """Create payments for the selected rows in one call.

        The batch is all-or-nothing on our side: one bad row blocks it. Rows
        are reserved before the platform call is awaited, so an overlapping
        submit of the same rows is rejected. A platform failure propagates
        unchanged, releases the reservation and marks nothing as sent.
        """
        rows = list(dict.fromkeys(rows))
        if not rows:
            raise BatchValidationError({}, "No records selected for payment")
        payloads = self.preview(rows)
        total = sum((p.amount for p in payloads), Decimal("0"))
        logger.info("Submitting payment batch size=%d total=%s", len(payloads), total)

        self._in_flight.update(rows)
        try:
            result = await self._platform.create_payments(payloads)
        finally:
            self._in_flight.difference_update(rows)

        for row in rows:
            self._records[row] = self._records[row].model_copy(update={"sent_to_platform": True})
        logger.info("Payment batch accepted created=%d", result.created)
        return SubmissionResult(created=result.created, submitted_rows=rows, total_amount=total)
