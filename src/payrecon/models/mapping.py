"""Canonical field set, column mappings and persisted mapping templates."""

from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class FieldSpec(NamedTuple):
    key: str
    label: str
    required: bool = False


CANONICAL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("invoiceCode", "Invoice Code", True),
    FieldSpec("resource", "Resource/Freelancer Name", True),
    FieldSpec("status", "Status"),
    FieldSpec("totalCost", "Total Cost/Amount", True),
    FieldSpec("currency", "Currency"),
    FieldSpec("vat", "VAT/Tax"),
    FieldSpec("dateSent", "Date Sent"),
    FieldSpec("datePaid", "Date Paid"),
    FieldSpec("description", "Description"),
    FieldSpec("project", "Project"),
    FieldSpec("sourceLanguage", "Source Language"),
    FieldSpec("targetLanguage", "Target Language"),
    FieldSpec("wordCount", "Word Count"),
    FieldSpec("rate", "Rate"),
    FieldSpec("service", "Service Type"),
)

CANONICAL_KEYS: tuple[str, ...] = tuple(spec.key for spec in CANONICAL_FIELDS)
REQUIRED_KEYS: tuple[str, ...] = tuple(spec.key for spec in CANONICAL_FIELDS if spec.required)

SERVICE_TYPES: tuple[str, ...] = (
    "Translation", "Editing", "Proofreading", "Postediting", "Copywriting",
    "TranslationAndEditing", "QualityAssurance", "Dtp", "Testing", "Review",
    "Interpreting", "Transcription", "Subtitling", "VoiceOver", "Other",
)
UNIT_TYPES: tuple[str, ...] = ("Words", "Characters", "Hours", "Pages", "Documents")
CURRENCIES: tuple[str, ...] = ("USD", "EUR", "GBP", "TRY")

DEFAULT_SERVICE_TYPE = "Translation"
DEFAULT_UNITS_TYPE = "Words"
DEFAULT_CURRENCY = "USD"


def canonical_choice(value: str | None, choices: tuple[str, ...]) -> str | None:
    """Return the entry of ``choices`` equal to ``value`` ignoring case, or None."""
    if not value:
        return None
    wanted = value.strip().lower()
    for choice in choices:
        if choice.lower() == wanted:
            return choice
    return None


class MappingDefaults(BaseModel):
    """Values used when an export does not carry service type, unit type or currency."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}

    service_type: str = DEFAULT_SERVICE_TYPE
    units_type: str = DEFAULT_UNITS_TYPE
    currency: str = DEFAULT_CURRENCY

    @field_validator("service_type", mode="before")
    @classmethod
    def _known_service_type(cls, value: Any) -> str:
        return canonical_choice(value, SERVICE_TYPES) or DEFAULT_SERVICE_TYPE

    @field_validator("units_type", mode="before")
    @classmethod
    def _known_units_type(cls, value: Any) -> str:
        return canonical_choice(value, UNIT_TYPES) or DEFAULT_UNITS_TYPE

    @field_validator("currency", mode="before")
    @classmethod
    def _supported_currency(cls, value: Any) -> str:
        return canonical_choice(value, CURRENCIES) or DEFAULT_CURRENCY


def empty_mapping() -> dict[str, str]:
    return {key: "" for key in CANONICAL_KEYS}


def missing_required_fields(mapping: dict[str, str]) -> list[str]:
    """Labels of required canonical fields that have no source column."""
    return [spec.label for spec in CANONICAL_FIELDS if spec.required and not mapping.get(spec.key)]


class MappingTemplate(BaseModel):
    """A named, persisted column mapping plus default values."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    id: str = ""
    name: str
    description: str = ""
    mapping: dict[str, str] = Field(default_factory=empty_mapping)
    defaults: MappingDefaults = MappingDefaults()
    is_default: bool = False
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> MappingTemplate:
        """Build from a template-store record (entity attribute names)."""
        return cls(
            id=str(item.get("id", "")),
            name=item.get("name", ""),
            description=item.get("description") or "",
            mapping={k: v or "" for k, v in (item.get("column_mappings") or {}).items()},
            defaults=MappingDefaults(
                service_type=item.get("default_service_type"),
                units_type=item.get("default_units_type"),
                currency=item.get("default_currency"),
            ),
            is_default=bool(item.get("is_default", False)),
            last_used_at=item.get("last_used_date") or None,
            created_at=item.get("created_date") or None,
        )

    def to_item(self) -> dict[str, Any]:
        """Inverse of :meth:`from_item`, without the id (the store assigns it)."""
        item: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "column_mappings": dict(self.mapping),
            "default_service_type": self.defaults.service_type,
            "default_units_type": self.defaults.units_type,
            "default_currency": self.defaults.currency,
            "is_default": self.is_default,
        }
        if self.last_used_at is not None:
            item["last_used_date"] = self.last_used_at.isoformat()
        return item
