"""Shared service singletons for the routers.

The editing AI, provider router and smart video service are process-wide so
quota state and the plan cache are shared across endpoints. They are built
lazily from the loaded Config when there is one, else from defaults.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from backend.services.editing.orchestrator import VideoEditingAI
from backend.services.editing.types import EditingPreferences
from backend.services.generation.provider_router import ProviderRouter
from backend.services.generation.smart_video import SmartVideoService
from backend.services.generation.types import (
    Budget,
    CostPriority,
    GenerationPreferences,
    GenerationRequest,
    ReferenceImage,
    Urgency,
)
from backend.services.shared.config import get_config_or_none

logger = logging.getLogger("clip_studio.routers.dependencies")

_editing_ai: Optional[VideoEditingAI] = None
_provider_router: Optional[ProviderRouter] = None
_smart_video: Optional[SmartVideoService] = None


def get_editing_ai() -> VideoEditingAI:
    global _editing_ai
    if _editing_ai is None:
        config = get_config_or_none()
        _editing_ai = VideoEditingAI.from_config(config) if config else VideoEditingAI()
    return _editing_ai


def get_provider_router() -> ProviderRouter:
    global _provider_router
    if _provider_router is None:
        config = get_config_or_none()
        _provider_router = ProviderRouter.from_config(config) if config else ProviderRouter()
    return _provider_router


def get_smart_video_service() -> SmartVideoService:
    global _smart_video
    if _smart_video is None:
        config = get_config_or_none()
        # share the router so quota state is not split across endpoints
        shared = {"editing_ai": get_editing_ai(), "router": get_provider_router()}
        _smart_video = (
            SmartVideoService.from_config(config, **shared) if config
            else SmartVideoService(**shared)
        )
    return _smart_video


def set_services(
    editing_ai: Optional[VideoEditingAI] = None,
    provider_router: Optional[ProviderRouter] = None,
    smart_video: Optional[SmartVideoService] = None,
) -> None:
    """Install pre-built services (mainly for testing)."""
    global _editing_ai, _provider_router, _smart_video
    _editing_ai = editing_ai
    _provider_router = provider_router
    _smart_video = smart_video


def reset_services() -> None:
    set_services(None, None, None)


# ── request bodies ────────────────────────────────────────────────────────────


class PreferencesBody(BaseModel):
    cost_priority: CostPriority = CostPriority.BALANCED
    urgency: Urgency = Urgency.MEDIUM
    required_capabilities: List[str] = Field(default_factory=list)
    budget: Budget = Budget.MEDIUM
    style: str = ""
    editing: Dict[str, Any] = Field(default_factory=dict)


class GenerationBody(BaseModel):
    prompt: str = Field(..., min_length=1)
    reference_image: Optional[str] = None   # data URL or bare base64
    aspect_ratio: Optional[str] = None
    negative_prompt: Optional[str] = None
    preferences: PreferencesBody = Field(default_factory=PreferencesBody)
    auto_apply: bool = False

    def to_request(self) -> GenerationRequest:
        prefs = self.preferences
        return GenerationRequest(
            prompt=self.prompt,
            reference_image=(
                ReferenceImage.from_data_url(self.reference_image)
                if self.reference_image else None
            ),
            aspect_ratio=self.aspect_ratio,
            negative_prompt=self.negative_prompt,
            preferences=GenerationPreferences(
                cost_priority=prefs.cost_priority,
                urgency=prefs.urgency,
                required_capabilities=frozenset(prefs.required_capabilities),
                budget=prefs.budget,
                style=prefs.style,
                editing=EditingPreferences.from_dict(prefs.editing),
            ),
        )
