"""Smartcat team endpoints: roster comparison and completed work."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from payrecon.api.dependencies import get_services
from payrecon.api.services import Services

router = APIRouter(tags=["team"])


@router.get("/compare")
async def compare(services: Services = Depends(get_services)) -> dict:
    comparison = await services.pipeline.compare_team()
    return {
        "matched": [m.model_dump(mode="json", by_alias=True) for m in comparison.matched],
        "onlyOnPlatform": [m.model_dump(mode="json", by_alias=True) for m in comparison.only_on_platform],
        "onlyInRegistry": [v.model_dump(mode="json", by_alias=True) for v in comparison.only_in_registry],
    }


@router.get("/completed-jobs")
async def completed_jobs(
    date_from: date, date_to: date, services: Services = Depends(get_services),
) -> dict:
    if date_from > date_to:
        raise HTTPException(status_code=422, detail="date_from must not be after date_to")
    result = await services.pipeline.completed_jobs(date_from, date_to)
    data = result.model_dump(mode="json", by_alias=True)
    data["totalWords"] = result.total_words
    return data
