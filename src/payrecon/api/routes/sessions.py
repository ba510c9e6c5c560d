"""Payment session endpoints: load a dataset, preview and submit batches."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from payrecon.api.dependencies import get_services, get_stored_session
from payrecon.api.routes.imports import ImportRequest, run_import
from payrecon.api.services import Services, StoredSession

router = APIRouter(tags=["sessions"])


class BatchIn(BaseModel):
    rows: list[int]


def _session_view(session_id: str, stored: StoredSession) -> dict:
    session = stored.session
    return {
        "id": session_id,
        "templateId": stored.config.template_id,
        "defaults": session.defaults.model_dump(mode="json", by_alias=True),
        "records": [r.model_dump(mode="json", by_alias=True) for r in session.records],
        "selectable": [r.row_number for r in session.selectable()],
    }


@router.post("", status_code=201)
def create_session(body: ImportRequest, services: Services = Depends(get_services)) -> dict:
    result, config = run_import(body, services)
    session_id = uuid.uuid4().hex
    stored = StoredSession(session=services.pipeline.open_session(result.records, config), config=config)
    services.sessions.add(session_id, stored)
    return _session_view(session_id, stored)


@router.get("/{session_id}")
async def get_session(session_id: str, stored: StoredSession = Depends(get_stored_session)) -> dict:
    return _session_view(session_id, stored)


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, services: Services = Depends(get_services)) -> Response:
    if not services.sessions.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Payment session {session_id!r} not found")
    return Response(status_code=204)


@router.post("/{session_id}/preview")
async def preview(body: BatchIn, stored: StoredSession = Depends(get_stored_session)) -> dict:
    payloads = stored.session.preview(body.rows)
    return {"payloads": [p.to_wire() for p in payloads]}


@router.post("/{session_id}/submit")
async def submit(body: BatchIn, stored: StoredSession = Depends(get_stored_session)) -> dict:
    result = await stored.session.submit(body.rows)
    return result.model_dump(mode="json", by_alias=True)
