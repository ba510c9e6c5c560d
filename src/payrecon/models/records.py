"""Parsed tables and normalized invoice candidates."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from payrecon.core.types import RawRow


class ParsedTable(BaseModel):
    """Header cells plus one ordered ``{header: value}`` dict per data line."""

    headers: list[str] = Field(default_factory=list)
    rows: list[RawRow] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows


class MatchStep(StrEnum):
    """Which resolution check matched a vendor, in cascade order."""

    FULL_NAME = "fullName"
    EMAIL = "email"
    RESOURCE_CODE = "resourceCode"
    ALT_EMAIL = "altEmail"
    SUPPLIER_ID = "supplierId"
    NAME_TOKENS = "nameTokens"


class NormalizedRecord(BaseModel):
    """Invoice candidate produced from one raw row.

    The resolution/validation fields are filled in by later pipeline stages;
    every stage returns new instances via ``model_copy``.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    row_number: int = 0  # 1-based data line, stable key within a loaded dataset

    # --- Invoice fields ---
    invoice_code: str = ""
    resource: str = ""
    status: str = "Pending"
    total_cost: Decimal = Decimal("0")
    currency: str = "USD"
    vat: Decimal = Decimal("0")
    date_sent: str = ""
    date_paid: Optional[str] = None
    description: Optional[str] = None
    project: Optional[str] = None
    source_language: Optional[str] = None
    target_language: Optional[str] = None
    word_count: int = 0
    rate: Decimal = Decimal("0")
    service: str = ""

    # --- Derived by resolution ---
    freelancer_id: Optional[str] = None
    freelancer_matched: bool = False
    match_step: Optional[MatchStep] = None

    # --- Derived by validation ---
    validation_errors: list[str] = Field(default_factory=list)
    is_valid_for_payment: bool = False

    # --- Session state ---
    sent_to_platform: bool = False
