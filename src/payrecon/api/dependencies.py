"""FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request

from payrecon.api.services import Services, StoredSession


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialised")
    return services


def get_stored_session(session_id: str, request: Request) -> StoredSession:
    stored = get_services(request).sessions.get(session_id)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Payment session {session_id!r} not found")
    return stored
