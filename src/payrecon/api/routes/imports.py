"""Import, reconciliation and export endpoints.

Handlers that only touch the stores are plain ``def`` and run in the
threadpool; async handlers move store calls off the loop with
``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from payrecon.api.dependencies import get_services
from payrecon.api.services import Services
from payrecon.ingestion.exporter import (
    export_bucket,
    export_filename,
    export_reconciliation,
    export_records,
    store_export,
)
from payrecon.ingestion.parser import parse_delimited_text
from payrecon.ingestion.uploads import parse_upload
from payrecon.invoices.overview import SortField, StatusFilter, filter_invoices, sort_invoices
from payrecon.mapping.auto_detect import auto_detect_mapping
from payrecon.models.mapping import MappingDefaults, missing_required_fields
from payrecon.models.reconciliation import BucketName
from payrecon.models.records import ParsedTable
from payrecon.pipeline import ImportResult, PipelineConfig

router = APIRouter(tags=["imports"])


class ImportRequest(BaseModel):
    """Export text (pasted) or a file-store path (uploaded), plus mapping choices."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    text: Optional[str] = None
    path: Optional[str] = None
    template_id: Optional[str] = None
    overrides: dict[str, str] = Field(default_factory=dict)
    defaults: Optional[MappingDefaults] = None
    auto_detect: bool = True


class ExportRequest(ImportRequest):
    kind: Literal["records", "reconciliation"] = "records"
    bucket: Optional[BucketName] = None


def _table(body: ImportRequest, services: Services) -> ParsedTable:
    if body.path:
        return parse_upload(services.file_store, body.path)
    if body.text is not None:
        return parse_delimited_text(body.text)
    raise HTTPException(status_code=422, detail="Provide either text or path")


def build_config(body: ImportRequest, services: Services) -> PipelineConfig:
    pipeline = services.pipeline
    config = pipeline.config_for_template(body.template_id) if body.template_id else pipeline.setup()
    update: dict = {"auto_detect": body.auto_detect}
    if body.defaults is not None:
        update["defaults"] = body.defaults
    return config.model_copy(update=update)


def run_import(body: ImportRequest, services: Services) -> tuple[ImportResult, PipelineConfig]:
    config = build_config(body, services)
    result = services.pipeline.import_table(_table(body, services), config, body.overrides)
    return result, config


def import_response(result: ImportResult) -> dict:
    return {
        "headers": result.table.headers,
        "mapping": result.mapping,
        "strategies": result.strategies,
        "missingRequired": result.missing_required,
        "records": [r.model_dump(mode="json", by_alias=True) for r in result.records],
        "summary": result.summary.model_dump(mode="json", by_alias=True),
        "validCount": result.valid_count,
    }


@router.post("/parse")
def parse(body: ImportRequest, services: Services = Depends(get_services)) -> dict:
    table = _table(body, services)
    resolution = auto_detect_mapping(table.headers)
    return {
        "headers": table.headers,
        "rows": table.rows,
        "rowCount": len(table.rows),
        "detected": resolution.mapping,
        "missingRequired": missing_required_fields(resolution.mapping),
    }


@router.post("/normalize")
def normalize(
    body: ImportRequest,
    search: str = "",
    status: StatusFilter = "all",
    sort: SortField = "date",
    descending: bool = True,
    services: Services = Depends(get_services),
) -> dict:
    result, _ = run_import(body, services)
    response = import_response(result)
    shown = sort_invoices(filter_invoices(result.records, search, status), sort, descending)
    response["records"] = [r.model_dump(mode="json", by_alias=True) for r in shown]
    return response


@router.post("/reconcile")
async def reconcile(body: ImportRequest, services: Services = Depends(get_services)) -> dict:
    result, _ = await asyncio.to_thread(run_import, body, services)
    reconciliation = await services.pipeline.reconcile(result.records)
    return reconciliation.to_response()


@router.post("/export")
async def export(body: ExportRequest, services: Services = Depends(get_services)) -> dict:
    result, _ = await asyncio.to_thread(run_import, body, services)
    if body.kind == "records":
        text, prefix = export_records(result.records), "invoices"
    else:
        reconciliation = await services.pipeline.reconcile(result.records)
        if body.bucket is not None:
            text, prefix = export_bucket(reconciliation, body.bucket), f"reconciliation_{body.bucket.value}"
        else:
            text, prefix = export_reconciliation(reconciliation), "reconciliation"
    filename = export_filename(prefix)
    path = await asyncio.to_thread(store_export, services.file_store, filename, text)
    return {"path": path, "filename": filename, "content": text}
