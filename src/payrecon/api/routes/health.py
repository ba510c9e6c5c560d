"""Liveness and readiness checks."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from payrecon.core.exceptions import CacheError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request):
    """503 until the lifespan has wired services. A down cache degrades, it does not block."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    body = {"status": "ready", "cache": "disabled"}
    if services.cache is not None:
        try:
            body["cache"] = "ok" if services.cache.ping() else "unavailable"
        except CacheError as exc:
            logger.warning("Cache ping failed: %s", exc)
            body["cache"] = "unavailable"
    return body
