"""Smart video router — plan preparation and provider-routed generation."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from backend.routers.dependencies import GenerationBody, get_smart_video_service
from backend.services.generation.smart_video import OutcomeStatus

logger = logging.getLogger("clip_studio.routers.smart_video")
router = APIRouter()

_STATUS_CODES = {
    OutcomeStatus.GENERATED: status.HTTP_200_OK,
    OutcomeStatus.LOW_CONFIDENCE: status.HTTP_400_BAD_REQUEST,
    OutcomeStatus.ALL_PROVIDERS_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.post("/prepare")
async def prepare(body: GenerationBody) -> Dict[str, Any]:
    """Run the specialists and return the preparation plan. No provider calls."""
    plan = await get_smart_video_service().prepare(body.to_request())
    return plan.to_dict()


@router.post("/generate")
async def generate(body: GenerationBody) -> JSONResponse:
    """Prepare, optionally auto-edit, and dispatch one generation."""
    logger.info(
        "Smart video request: prompt=%r priority=%s image=%s",
        body.prompt[:100], body.preferences.cost_priority.value, bool(body.reference_image),
    )
    outcome = await get_smart_video_service().generate(
        body.to_request(), auto_apply=body.auto_apply,
    )
    return JSONResponse(
        status_code=_STATUS_CODES[outcome.status],
        content=outcome.to_dict(original_prompt=body.prompt),
    )


@router.get("/status")
async def smart_video_status() -> Dict[str, Any]:
    """Available providers, agent capabilities and cache statistics."""
    return get_smart_video_service().status()
