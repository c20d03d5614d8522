"""Google Veo provider — high-quality generation through the Gemini API."""
from __future__ import annotations

import logging
from typing import Any, Dict

from backend.services.generation.providers.base import ProviderError
from backend.services.generation.providers.http import HttpVideoProvider
from backend.services.generation.types import (
    CostTier,
    GenerationRequest,
    GenerationResult,
    ProviderCapabilities,
    QuotaStatus,
)

logger = logging.getLogger("clip_studio.generation.providers.veo")

_API_ROOT = "https://generativelanguage.googleapis.com/v1beta"
_MODEL = "veo-2.0-generate-001"
_COST_PER_GENERATION_USD = 0.50
_ESTIMATED_TIME_SEC = 90.0
_DAILY_REQUESTS = 5


class VeoProvider(HttpVideoProvider):
    """Veo long-running video generation.

    Best for: highest quality output with full capability coverage.
    Quota: a handful of requests per day on the default tier, so the router
    disables it quickly when the API answers 429.
    Requires: GEMINI_API_KEY environment variable.
    """

    _ENV_KEY = "GEMINI_API_KEY"

    def __init__(self, *args, model: str = _MODEL, **kwargs):
        super().__init__(*args, **kwargs)
        self._model = model

    def name(self) -> str:
        return "veo"

    def cost_tier(self) -> CostTier:
        return CostTier.HIGH

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            max_duration_sec=10,
            aspect_ratios=frozenset({"16:9", "9:16", "1:1"}),
            image_to_video=True,
            text_to_video=True,
            custom_styles=True,
            face_enhancement=True,
            motion_control=True,
        )

    def estimated_cost(self) -> float:
        return _COST_PER_GENERATION_USD

    def initial_quota(self) -> QuotaStatus:
        return QuotaStatus(available=True, requests_remaining=_DAILY_REQUESTS)

    def generate(self, request: GenerationRequest) -> GenerationResult:
        instance: Dict[str, Any] = {"prompt": request.prompt}
        if request.reference_image is not None:
            instance["image"] = {
                "bytesBase64Encoded": request.reference_image.base64,
                "mimeType": request.reference_image.mime_type,
            }
        parameters: Dict[str, Any] = {"aspectRatio": request.aspect_ratio or "16:9"}
        if request.negative_prompt:
            parameters["negativePrompt"] = request.negative_prompt

        body = self._post_json(
            f"{_API_ROOT}/models/{self._model}:predictLongRunning",
            {"instances": [instance], "parameters": parameters},
            headers={"x-goog-api-key": self.api_key},
        )
        operation = body.get("name")
        if not operation:
            raise ProviderError("veo response did not include an operation name")
        logger.info("veo started operation %s", operation)
        return GenerationResult(
            success=True,
            provider=self.name(),
            operation_id=operation,
            cost=_COST_PER_GENERATION_USD,
            estimated_time_sec=_ESTIMATED_TIME_SEC,
        )
