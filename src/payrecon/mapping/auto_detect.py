"""Column mapping resolution: auto-detect, template and manual override."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from payrecon.models.mapping import CANONICAL_FIELDS, CANONICAL_KEYS, FieldSpec, MappingTemplate, empty_mapping

_SEPARATORS = re.compile(r"[\s_\-]")

# Last-resort patterns, only for the fields that matter for payment.
FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
    "invoiceCode": re.compile(r"invoice|code|number|ref", re.IGNORECASE),
    "resource": re.compile(r"resource|freelancer|name|translator|vendor|supplier", re.IGNORECASE),
    "totalCost": re.compile(r"total|cost|amount|payment|sum|price", re.IGNORECASE),
    "wordCount": re.compile(r"word|count|volume|units", re.IGNORECASE),
}

STRATEGY_EXACT = "exact"
STRATEGY_PARTIAL = "partial"
STRATEGY_PATTERN = "pattern"
STRATEGY_TEMPLATE = "template"
STRATEGY_OVERRIDE = "override"


@dataclass(frozen=True)
class MappingResolution:
    """Resolved field mapping plus how each mapped field was found."""

    mapping: dict[str, str]
    strategies: dict[str, str] = field(default_factory=dict)

    @property
    def mapped_count(self) -> int:
        return sum(1 for v in self.mapping.values() if v)


def _squash(value: str) -> str:
    return _SEPARATORS.sub("", value.lower())


def _exact(spec: FieldSpec, headers: Sequence[str]) -> str | None:
    key = spec.key.lower()
    for header in headers:
        if header.lower() == key or _squash(header) == _squash(spec.key):
            return header
    return None


def _partial(spec: FieldSpec, headers: Sequence[str]) -> str | None:
    key = spec.key.lower()
    label = spec.label.lower()
    label_head = label.split("/")[0].strip()
    label_token = label.split(" ")[0]
    for header in headers:
        col = header.lower()
        if not col:
            continue
        if key in col or col in key or label_head in col or label_token in col:
            return header
    return None


def _pattern(spec: FieldSpec, headers: Sequence[str]) -> str | None:
    pattern = FIELD_PATTERNS.get(spec.key)
    if pattern is None:
        return None
    for header in headers:
        if pattern.search(header):
            return header
    return None


def auto_detect_mapping(headers: Sequence[str]) -> MappingResolution:
    """Guess a source column for every canonical field.

    Per field: exact key match ignoring case and separators, then substring
    match on the key or the first label token, then a field-specific pattern.
    First hit wins. This is a convenience default, not a guarantee; several
    fields may land on the same column.
    """
    headers = [h for h in headers if h and h.strip()]
    mapping = empty_mapping()
    strategies: dict[str, str] = {}
    for spec in CANONICAL_FIELDS:
        for strategy, finder in (
            (STRATEGY_EXACT, _exact),
            (STRATEGY_PARTIAL, _partial),
            (STRATEGY_PATTERN, _pattern),
        ):
            column = finder(spec, headers)
            if column:
                mapping[spec.key] = column
                strategies[spec.key] = strategy
                break
    return MappingResolution(mapping=mapping, strategies=strategies)


def resolve_mapping(
    headers: Sequence[str],
    *,
    template: MappingTemplate | Mapping[str, str] | None = None,
    manual_overrides: Mapping[str, str] | None = None,
    auto_detect: bool = True,
) -> MappingResolution:
    """Combine the three techniques: manual override > template > auto-detect."""
    if auto_detect:
        base = auto_detect_mapping(headers)
        mapping, strategies = dict(base.mapping), dict(base.strategies)
    else:
        mapping, strategies = empty_mapping(), {}

    if template is not None:
        template_mapping = template.mapping if isinstance(template, MappingTemplate) else template
        for key in CANONICAL_KEYS:
            column = template_mapping.get(key, "")
            if column:
                mapping[key] = column
                strategies[key] = STRATEGY_TEMPLATE

    for key, column in (manual_overrides or {}).items():
        if key in mapping and column:
            mapping[key] = column
            strategies[key] = STRATEGY_OVERRIDE

    return MappingResolution(mapping=mapping, strategies=strategies)
