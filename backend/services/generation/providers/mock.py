"""Mock provider — offline development backend that returns a canned clip."""
from __future__ import annotations

import time

from backend.services.generation.providers.base import VideoProvider
from backend.services.generation.types import (
    CostTier,
    GenerationRequest,
    GenerationResult,
    ProviderCapabilities,
)

_MOCK_VIDEO_URL = "/api/mock-video-generation"


class MockProvider(VideoProvider):
    """Local mock provider. Always configured, never rate limited.

    Ranked after every real provider; it is what the router lands on when
    nothing else is configured or available.
    """

    def __init__(self, latency_sec: float = 0.0):
        self._latency_sec = latency_sec

    def name(self) -> str:
        return "mock"

    def cost_tier(self) -> CostTier:
        return CostTier.LOW

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            max_duration_sec=60,
            aspect_ratios=frozenset({"16:9", "9:16", "1:1", "4:3"}),
            image_to_video=True,
            text_to_video=True,
            custom_styles=False,
            face_enhancement=False,
            motion_control=False,
        )

    def is_configured(self) -> bool:
        return True

    def is_simulated(self) -> bool:
        return True

    def estimated_cost(self) -> float:
        return 0.0

    def generate(self, request: GenerationRequest) -> GenerationResult:
        if self._latency_sec > 0:
            time.sleep(self._latency_sec)
        return GenerationResult(
            success=True,
            provider=self.name(),
            video_url=_MOCK_VIDEO_URL,
            cost=0.0,
            estimated_time_sec=max(self._latency_sec, 0.0),
        )
