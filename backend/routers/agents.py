"""AI agents router — specialist discovery, footage analysis, planning, execution."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from backend.routers.dependencies import get_editing_ai
from backend.services.editing.types import EditingPreferences, EditingSuggestion

logger = logging.getLogger("clip_studio.routers.agents")
router = APIRouter()


class AnalyzeRequest(BaseModel):
    video_url: str = Field(..., min_length=1)


class PlanRequest(BaseModel):
    video_url: str = Field(..., min_length=1)
    preferences: Dict[str, Any] = Field(default_factory=dict)


class ExecuteRequest(BaseModel):
    suggestions: List[Dict[str, Any]]


def _capabilities_dict() -> Dict[str, List[Dict[str, Any]]]:
    return {
        key: [c.to_dict() for c in caps]
        for key, caps in get_editing_ai().get_capabilities().items()
    }


@router.get("")
async def agents_status() -> Dict[str, Any]:
    """Status of the specialist agents and a capability summary."""
    ai = get_editing_ai()
    caps = ai.get_capabilities()
    return {
        "status": "operational",
        **ai.get_status(),
        "total_capabilities": sum(len(c) for c in caps.values()),
    }


@router.get("/capabilities")
async def agent_capabilities() -> Dict[str, Any]:
    """Capabilities of every specialist, keyed by agent."""
    return {"capabilities": _capabilities_dict()}


@router.post("/analyze")
async def analyze_video(request: AnalyzeRequest) -> Dict[str, Any]:
    """Run the content analyzer over a video URL (or prompt text)."""
    ai = get_editing_ai()
    footage = ai.analyze_video(request.video_url)
    analysis = ai.get_agent("analyzer").analyze(footage)
    return {"analysis": footage.to_dict(), "summary": analysis.to_dict()}


@router.post("/plan")
async def create_editing_plan(request: PlanRequest) -> Dict[str, Any]:
    """Analyze a video and return the ranked editing suggestions."""
    ai = get_editing_ai()
    footage = ai.analyze_video(request.video_url)
    suggestions = ai.generate_editing_plan(
        footage, EditingPreferences.from_dict(request.preferences),
    )
    return {
        "analysis": footage.to_dict(),
        "suggestions": [s.to_dict() for s in suggestions],
        "auto_apply_count": sum(1 for s in suggestions if s.auto_apply),
    }


@router.post("/execute")
async def execute_editing_plan(request: ExecuteRequest) -> Dict[str, Any]:
    """Execute the auto-apply suggestions and report each action's outcome."""
    try:
        suggestions = [EditingSuggestion.from_dict(s) for s in request.suggestions]
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid suggestion: {exc}",
        ) from exc

    actions = get_editing_ai().execute_editing_plan(suggestions)
    completed = sum(1 for a in actions if a.status.value == "completed")
    return {
        "actions": [a.to_dict() for a in actions],
        "completed": completed,
        "failed": len(actions) - completed,
    }
