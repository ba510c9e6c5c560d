"""ReconciliationPipeline: one facade over parse, map, resolve, reconcile and pay.

Every entry point takes an explicit PipelineConfig (column mapping plus
defaults) so the same export can be processed under two configurations
side by side. The only remembered state is the default-template load done
by :meth:`ReconciliationPipeline.setup`, kept until a template write.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from payrecon.core.config import AppSettings
from payrecon.core.exceptions import StoreError
from payrecon.core.protocols import IFileStore, IPaymentPlatform, IVendorRegistry
from payrecon.core.types import FieldMapping
from payrecon.ingestion.parser import parse_delimited_text
from payrecon.ingestion.uploads import read_uploaded_text
from payrecon.invoices.overview import InvoiceSummary, summarize_invoices
from payrecon.mapping.auto_detect import MappingResolution, resolve_mapping
from payrecon.mapping.templates import TemplateManager
from payrecon.models.mapping import MappingDefaults, missing_required_fields
from payrecon.models.reconciliation import ReconciliationResult
from payrecon.models.records import NormalizedRecord, ParsedTable
from payrecon.models.vendors import CompletedJobsResult
from payrecon.normalization.normalizer import normalize_rows
from payrecon.payments.builder import apply_validation
from payrecon.payments.session import PaymentSession
from payrecon.reconciliation.reconciler import RosterComparison, compare_roster, reconcile
from payrecon.resolution.vendor_matcher import VendorMatcher, resolve_records

logger = logging.getLogger(__name__)


class PipelineConfig(BaseModel):
    """Immutable per-invocation configuration."""

    model_config = {"frozen": True}

    mapping: FieldMapping = Field(default_factory=dict)
    defaults: MappingDefaults = Field(default_factory=MappingDefaults)
    template_id: Optional[str] = None
    auto_detect: bool = True


class ImportResult(BaseModel):
    table: ParsedTable
    mapping: dict[str, str]
    strategies: dict[str, str]
    missing_required: list[str]
    records: list[NormalizedRecord]
    summary: InvoiceSummary

    @property
    def valid_count(self) -> int:
        return sum(1 for r in self.records if r.is_valid_for_payment)


def defaults_from_settings(settings: AppSettings) -> MappingDefaults:
    return MappingDefaults(
        service_type=settings.defaults.service_type,
        units_type=settings.defaults.units_type,
        currency=settings.defaults.currency,
    )


class ReconciliationPipeline:
    """Wires the registry, template manager and payment platform together."""

    def __init__(
        self,
        registry: IVendorRegistry,
        templates: TemplateManager,
        platform: IPaymentPlatform,
        settings: AppSettings | None = None,
    ) -> None:
        self._registry = registry
        self._templates = templates
        self._platform = platform
        self._settings = settings or AppSettings()
        self._setup_config: PipelineConfig | None = None
        self._setup_revision = -1

    @property
    def templates(self) -> TemplateManager:
        return self._templates

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def setup(self) -> PipelineConfig:
        """Load the default template; later calls return the same config.

        The config is reloaded after any template write made through the
        template manager (new default, edit or delete). A store failure here
        is not fatal: the pipeline starts with an empty mapping and the
        configured defaults, and the next call tries again.
        """
        revision = self._templates.revision
        if self._setup_config is not None and self._setup_revision == revision:
            return self._setup_config
        fallback = PipelineConfig(defaults=defaults_from_settings(self._settings))
        try:
            template = self._templates.load_default_template()
        except StoreError as exc:
            logger.warning("Default template load failed, using configured defaults error=%s", exc)
            return fallback
        if template is None:
            logger.info("No default mapping template; using configured defaults")
            self._setup_config = fallback
        else:
            self._setup_config = PipelineConfig(
                mapping=dict(template.mapping),
                defaults=template.defaults,
                template_id=template.id,
            )
        self._setup_revision = revision
        return self._setup_config

    def config_for_template(self, template_id: str) -> PipelineConfig:
        template = self._templates.load_template(template_id)
        return PipelineConfig(mapping=dict(template.mapping), defaults=template.defaults, template_id=template.id)

    def _matcher(self) -> VendorMatcher:
        return VendorMatcher(self._registry.list())

    # ---- import ----

    def resolve(
        self,
        table: ParsedTable,
        config: PipelineConfig,
        overrides: FieldMapping | None = None,
    ) -> MappingResolution:
        return resolve_mapping(
            table.headers,
            template=config.mapping,
            manual_overrides=overrides,
            auto_detect=config.auto_detect,
        )

    def import_table(
        self,
        table: ParsedTable,
        config: PipelineConfig,
        overrides: FieldMapping | None = None,
    ) -> ImportResult:
        """Normalize, resolve vendors and validate every row of ``table``."""
        resolution = self.resolve(table, config, overrides)
        missing = missing_required_fields(resolution.mapping)
        if missing:
            logger.warning("Required fields not mapped fields=%s", ",".join(missing))

        matcher = self._matcher()
        records = normalize_rows(table.rows, resolution.mapping, config.defaults)
        records = resolve_records(records, matcher)
        records = apply_validation(records, matcher, config.defaults)
        return ImportResult(
            table=table,
            mapping=resolution.mapping,
            strategies=resolution.strategies,
            missing_required=missing,
            records=records,
            summary=summarize_invoices(records),
        )

    def import_text(
        self,
        text: str,
        config: PipelineConfig,
        overrides: FieldMapping | None = None,
    ) -> ImportResult:
        return self.import_table(parse_delimited_text(text), config, overrides)

    def import_upload(
        self,
        file_store: IFileStore,
        path: str,
        config: PipelineConfig,
        overrides: FieldMapping | None = None,
    ) -> ImportResult:
        return self.import_text(read_uploaded_text(file_store, path), config, overrides)

    # ---- platform-facing ----

    async def reconcile(self, records: Iterable[NormalizedRecord]) -> ReconciliationResult:
        """Fetch the Smartcat roster, then classify ``records`` into the four buckets."""
        records = list(records)
        roster = await self._platform.fetch_team_roster()
        matcher = await asyncio.to_thread(self._matcher)
        return reconcile(records, matcher, roster)

    async def compare_team(self) -> RosterComparison:
        roster = await self._platform.fetch_team_roster()
        vendors = await asyncio.to_thread(self._registry.list)
        return compare_roster(roster, vendors)

    async def completed_jobs(self, date_from: date, date_to: date) -> CompletedJobsResult:
        return await self._platform.fetch_completed_jobs(date_from, date_to)

    def open_session(self, records: Iterable[NormalizedRecord], config: PipelineConfig) -> PaymentSession:
        return PaymentSession(
            records,
            self._matcher(),
            config.defaults,
            self._platform,
            payment_terms_days=self._settings.smartcat.payment_terms_days,
        )
