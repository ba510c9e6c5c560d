"""Payment payloads for the Smartcat v2 invoice/jobs endpoint."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel


class PaymentPayload(BaseModel):
    """One payable job as accepted by ``POST /v2/invoice/jobs``."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    supplier_email: str
    supplier_name: str
    supplier_type: str = "freelancer"
    service_type: str
    job_description: str
    units_type: str
    units_amount: Decimal
    price_per_unit: Decimal
    currency: str
    external_number: str
    pay_until_date: str

    @property
    def amount(self) -> Decimal:
        return self.units_amount * self.price_per_unit

    @field_serializer("units_amount", "price_per_unit", when_used="json")
    def _as_number(self, value: Decimal) -> float:
        return float(value)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PaymentCreationResult(BaseModel):
    """Smartcat's answer to a payment batch."""

    created: int = 0
    payments: list[dict] = Field(default_factory=list)


class SubmissionResult(BaseModel):
    """Outcome of a successful batch submission from a payment session."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    created: int
    submitted_rows: list[int] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
