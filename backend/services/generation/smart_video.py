"""SmartVideoService — prepare, optionally auto-edit, then dispatch one generation."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from backend.services.editing.orchestrator import VideoEditingAI
from backend.services.editing.types import AgentAction, VideoPreparationPlan
from backend.services.generation.provider_router import ProviderRouter
from backend.services.generation.types import (
    CostPriority,
    GeneratedVisual,
    GenerationPreferences,
    GenerationRequest,
    GenerationResult,
    Urgency,
)
from backend.services.shared.request_cache import RequestCache

logger = logging.getLogger("clip_studio.generation.smart_video")

DEFAULT_MIN_CONFIDENCE = 0.4

SaveCallback = Callable[[GeneratedVisual], Any]


class OutcomeStatus:
    GENERATED = "generated"
    LOW_CONFIDENCE = "low_confidence"
    ALL_PROVIDERS_FAILED = "all_providers_failed"


@dataclass
class SmartVideoOutcome:
    """Structured result of one smart generation. Never an exception."""
    status: str
    plan: VideoPreparationPlan
    result: Optional[GenerationResult] = None
    primary_error: Optional[str] = None
    used_fallback_generation: bool = False
    actions: List[AgentAction] = field(default_factory=list)
    visual: Optional[GeneratedVisual] = None

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.GENERATED

    def to_dict(self, original_prompt: str = "") -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, "status": self.status}
        if self.result is not None:
            out.update(self.result.to_dict())
            out["success"] = self.success
        if self.status == OutcomeStatus.LOW_CONFIDENCE:
            out["error"] = "Low confidence in video generation success"
            out["details"] = {
                "confidence": self.plan.confidence,
                "suggestions": [s.to_dict() for s in self.plan.suggestions[:3]],
                "recommendation": "Consider refining your prompt or adding more specific details",
            }
        elif self.status == OutcomeStatus.ALL_PROVIDERS_FAILED:
            out["error"] = "All video generation providers failed"
            out["details"] = {
                "primary_error": self.primary_error,
                "fallback_error": self.result.error if self.result else None,
                "recommendation": "Try again in a few minutes or simplify your prompt",
            }
        elif self.used_fallback_generation:
            out["warning"] = "Used fallback generation due to primary provider issues"
        else:
            out["optimizations"] = {
                "prompt_enhanced": self.plan.optimized_prompt != original_prompt,
                "confidence_score": self.plan.confidence,
            }
        out["used_fallback_generation"] = self.used_fallback_generation
        out["actions"] = [a.to_dict() for a in self.actions]
        out["analysis_results"] = self.plan.to_dict()
        if self.visual is not None:
            out["visual_id"] = self.visual.visual_id
        return out


class SmartVideoService:
    """Composes the preparation and dispatch layers for one request.

    Flow:
    1. Prepare a plan (cached per identical request)
    2. Stop with ``LOW_CONFIDENCE`` if ``plan.confidence < min_confidence``
    3. Optionally execute the plan's auto-apply suggestions
    4. Dispatch the optimized prompt with the recommended settings
    5. On failure, retry once with the original prompt, lowest cost, low
       urgency and no required capabilities
    6. Hand successful generations to ``save`` if one was given

    Operation polling for asynchronous providers stays with the caller.
    """

    def __init__(
        self,
        editing_ai: Optional[VideoEditingAI] = None,
        router: Optional[ProviderRouter] = None,
        plan_cache: Optional[RequestCache] = None,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        save: Optional[SaveCallback] = None,
    ):
        self.editing_ai = editing_ai or VideoEditingAI()
        self.router = router or ProviderRouter()
        self._plan_cache = plan_cache if plan_cache is not None else RequestCache(max_size=256)
        self._min_confidence = min_confidence
        self._save = save

    @classmethod
    def from_config(
        cls,
        config,
        editing_ai: Optional[VideoEditingAI] = None,
        router: Optional[ProviderRouter] = None,
        save: Optional[SaveCallback] = None,
    ) -> "SmartVideoService":
        return cls(
            editing_ai=editing_ai or VideoEditingAI.from_config(config),
            router=router or ProviderRouter.from_config(config),
            plan_cache=RequestCache(
                max_size=int(config.get("preparation.plan_cache_size", 256)),
                default_ttl_sec=config.get_float("preparation.plan_cache_ttl_sec", 300.0),
            ),
            min_confidence=config.get_float("preparation.min_confidence", DEFAULT_MIN_CONFIDENCE),
            save=save,
        )

    # ── public ────────────────────────────────────────────────────────────────

    async def prepare(self, request: GenerationRequest) -> VideoPreparationPlan:
        """Return the preparation plan for ``request``, reusing a cached one."""
        key = self._cache_key(request)
        plan = self._plan_cache.get(key)
        if plan is not None:
            logger.debug("Plan cache hit")
            return plan
        plan = await self.editing_ai.prepare_video_generation(request)
        if plan.failed_specialists:
            logger.info("Not caching degraded plan (failed: %s)", plan.failed_specialists)
        else:
            self._plan_cache.set(key, plan)
        return plan

    async def generate(
        self, request: GenerationRequest, auto_apply: bool = False
    ) -> SmartVideoOutcome:
        plan = await self.prepare(request)
        if plan.confidence < self._min_confidence:
            logger.info(
                "Plan confidence %.2f below %.2f; not dispatching",
                plan.confidence, self._min_confidence,
            )
            return SmartVideoOutcome(status=OutcomeStatus.LOW_CONFIDENCE, plan=plan)

        actions: List[AgentAction] = []
        if auto_apply:
            actions = self.editing_ai.execute_editing_plan(plan.auto_apply_suggestions)

        primary = self._primary_request(request, plan)
        result = await asyncio.to_thread(self.router.generate_video, primary)
        if result.success:
            visual = self._store(request.prompt, result)
            return SmartVideoOutcome(
                status=OutcomeStatus.GENERATED, plan=plan, result=result,
                actions=actions, visual=visual,
            )

        logger.warning("Primary generation failed (%s); retrying with fallback", result.error)
        fallback = self._fallback_request(request, primary)
        retry = await asyncio.to_thread(self.router.generate_video, fallback)
        if not retry.success:
            logger.error("Fallback generation failed: %s", retry.error)
            return SmartVideoOutcome(
                status=OutcomeStatus.ALL_PROVIDERS_FAILED, plan=plan, result=retry,
                primary_error=result.error, used_fallback_generation=True, actions=actions,
            )
        visual = self._store(request.prompt, retry)
        return SmartVideoOutcome(
            status=OutcomeStatus.GENERATED, plan=plan, result=retry,
            primary_error=result.error, used_fallback_generation=True,
            actions=actions, visual=visual,
        )

    def status(self) -> Dict[str, Any]:
        providers = self.router.get_available_providers()
        return {
            "system": "Smart AI Video Generation",
            "features": [
                "Offline AI analysis before generation",
                "Multi-provider intelligent routing",
                "Cost optimization and quota management",
                "6 specialized AI agents for enhancement",
                "Automatic fallback and retry logic",
            ],
            "available_providers": [
                {
                    "name": p.name(),
                    "cost_tier": p.cost_tier().value,
                    "capabilities": p.capabilities().enabled(),
                }
                for p in providers
            ],
            "agent_capabilities": {
                key: [c.to_dict() for c in caps]
                for key, caps in self.editing_ai.get_capabilities().items()
            },
            "plan_cache": self._plan_cache.stats(),
            "status": "operational" if providers else "limited",
        }

    # ── internal ──────────────────────────────────────────────────────────────

    @staticmethod
    def _primary_request(
        request: GenerationRequest, plan: VideoPreparationPlan
    ) -> GenerationRequest:
        settings = plan.recommended_settings
        prefs = dataclasses.replace(
            request.preferences,
            cost_priority=CostPriority(settings.cost_priority),
            required_capabilities=frozenset(settings.required_capabilities),
        )
        return dataclasses.replace(
            request,
            prompt=plan.optimized_prompt,
            aspect_ratio=settings.aspect_ratio,
            preferences=prefs,
        )

    @staticmethod
    def _fallback_request(
        original: GenerationRequest, primary: GenerationRequest
    ) -> GenerationRequest:
        prefs = dataclasses.replace(
            original.preferences,
            cost_priority=CostPriority.LOWEST,
            urgency=Urgency.LOW,
            required_capabilities=frozenset(),
        )
        return dataclasses.replace(
            primary, prompt=original.prompt, preferences=prefs,
        )

    def _store(self, prompt: str, result: GenerationResult) -> Optional[GeneratedVisual]:
        if self._save is None:
            return None
        visual = GeneratedVisual(
            visual_id=f"visual_{uuid.uuid4().hex[:12]}",
            prompt=prompt,
            provider=result.provider,
            video_url=result.video_url,
            operation_id=result.operation_id,
            cost=result.cost,
            created_at=time.time(),
        )
        try:
            self._save(visual)
        except Exception:
            logger.exception("save callback failed for %s", visual.visual_id)
            return None
        return visual

    @staticmethod
    def _cache_key(request: GenerationRequest) -> str:
        prefs: GenerationPreferences = request.preferences
        editing = prefs.editing.to_dict() if prefs.editing is not None else None
        return RequestCache.make_key(
            request.prompt,
            request.reference_image.base64 if request.reference_image else None,
            request.aspect_ratio,
            prefs.cost_priority.value,
            prefs.urgency.value,
            sorted(prefs.required_capabilities),
            prefs.budget.value,
            prefs.style,
            editing,
        )
