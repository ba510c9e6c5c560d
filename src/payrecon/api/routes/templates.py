"""Mapping template management endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from payrecon.api.dependencies import get_services
from payrecon.api.services import Services
from payrecon.mapping.auto_detect import auto_detect_mapping
from payrecon.models.mapping import MappingDefaults, MappingTemplate, missing_required_fields

router = APIRouter(tags=["templates"])


class _CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class TemplateCreate(_CamelModel):
    name: str
    description: str = ""
    mapping: dict[str, str] = Field(default_factory=dict)
    defaults: MappingDefaults = Field(default_factory=MappingDefaults)
    make_default: bool = False


class TemplatePatch(_CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    mapping: Optional[dict[str, str]] = None
    defaults: Optional[MappingDefaults] = None

    def to_store_patch(self) -> dict[str, Any]:
        patch: dict[str, Any] = {}
        if self.name is not None:
            patch["name"] = self.name
        if self.description is not None:
            patch["description"] = self.description
        if self.mapping is not None:
            patch["column_mappings"] = dict(self.mapping)
        if self.defaults is not None:
            patch["default_service_type"] = self.defaults.service_type
            patch["default_units_type"] = self.defaults.units_type
            patch["default_currency"] = self.defaults.currency
        return patch


class HeadersIn(BaseModel):
    headers: list[str]


def _out(template: MappingTemplate) -> dict:
    return template.model_dump(mode="json", by_alias=True)


@router.get("")
def list_templates(services: Services = Depends(get_services)) -> list[dict]:
    return [_out(t) for t in services.pipeline.templates.list_templates()]


@router.post("", status_code=201)
def create_template(body: TemplateCreate, services: Services = Depends(get_services)) -> dict:
    template = services.pipeline.templates.save_template(
        body.name,
        body.mapping,
        body.defaults,
        description=body.description,
        make_default=body.make_default,
    )
    return _out(template)


@router.post("/auto-detect")
async def auto_detect(body: HeadersIn) -> dict:
    resolution = auto_detect_mapping(body.headers)
    return {
        "mapping": resolution.mapping,
        "strategies": resolution.strategies,
        "missingRequired": missing_required_fields(resolution.mapping),
    }


@router.get("/{template_id}")
def get_template(template_id: str, services: Services = Depends(get_services)) -> dict:
    return _out(services.pipeline.templates.get_template(template_id))


@router.patch("/{template_id}")
def update_template(
    template_id: str, body: TemplatePatch, services: Services = Depends(get_services),
) -> dict:
    return _out(services.pipeline.templates.update_template(template_id, body.to_store_patch()))


@router.delete("/{template_id}", status_code=204)
def delete_template(template_id: str, services: Services = Depends(get_services)) -> Response:
    services.pipeline.templates.delete_template(template_id)
    return Response(status_code=204)


@router.post("/{template_id}/default")
def set_default(template_id: str, services: Services = Depends(get_services)) -> dict:
    return _out(services.pipeline.templates.set_default(template_id))


@router.post("/{template_id}/load")
def load_template(template_id: str, services: Services = Depends(get_services)) -> dict:
    return _out(services.pipeline.templates.load_template(template_id))
