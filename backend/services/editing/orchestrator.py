"""VideoEditingAI — runs the specialist agents and merges their output into a plan."""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections import deque
from typing import Deque, Dict, List, Optional, Sequence, Tuple

import numpy as np

from backend.services.editing.agents.audio_processing import AudioProcessingAgent
from backend.services.editing.agents.base import VideoAgent
from backend.services.editing.agents.caption import CaptionAgent
from backend.services.editing.agents.content_analysis import (
    ContentAnalysisAgent,
    FootageSource,
)
from backend.services.editing.agents.smart_cutting import SmartCuttingAgent
from backend.services.editing.agents.transition import TransitionAgent
from backend.services.editing.agents.visual_enhancement import VisualEnhancementAgent
from backend.services.editing.footage import FootageSynthesizer
from backend.services.editing.types import (
    AgentAction,
    AgentCapability,
    Analysis,
    EditingPreferences,
    EditingSuggestion,
    RecommendedSettings,
    SuggestionType,
    VideoAnalysis,
    VideoPreparationPlan,
)
from backend.services.generation.cost_estimator import CostEstimator
from backend.services.generation.types import Budget, CostPriority, GenerationRequest

logger = logging.getLogger("clip_studio.editing.orchestrator")

DEFAULT_SPECIALIST_TIMEOUT_SEC = 10.0
DEFAULT_HISTORY_SIZE = 100
DEFAULT_ASPECT_RATIO = "16:9"
MAX_PROMPT_HINTS = 3
PROMPT_HINT_MIN_IMPACT = 0.5

# Which agent executes each suggestion type.
AGENT_FOR_TYPE: Dict[SuggestionType, str] = {
    SuggestionType.CUT: "cutter",
    SuggestionType.ENHANCE: "enhancer",
    SuggestionType.EFFECT: "enhancer",
    SuggestionType.AUDIO: "audio",
    SuggestionType.CAPTION: "caption",
    SuggestionType.TRANSITION: "transition",
}

SpecialistOutput = Tuple[Analysis, List[EditingSuggestion]]


class SpecialistFailure(RuntimeError):
    """A specialist raised or timed out during preparation."""


class VideoEditingAI:
    """Orchestrates the six editing specialists.

    Preparation fans out one worker thread per specialist and waits for all of
    them (each bounded by ``specialist_timeout_sec``). A specialist that raises
    or times out contributes nothing and is listed in
    ``plan.failed_specialists``. Preparation never calls a provider.

    Usage::

        ai = VideoEditingAI()
        plan = asyncio.run(ai.prepare_video_generation(request))
        actions = ai.execute_editing_plan(plan.suggestions)
    """

    def __init__(
        self,
        agents: Optional[Sequence[VideoAgent]] = None,
        synthesizer: Optional[FootageSynthesizer] = None,
        cost_estimator: Optional[CostEstimator] = None,
        specialist_timeout_sec: float = DEFAULT_SPECIALIST_TIMEOUT_SEC,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        self._synthesizer = synthesizer or FootageSynthesizer()
        if agents is None:
            agents = self._default_agents(self._synthesizer)
        self._agents: Dict[str, VideoAgent] = {a.key: a for a in agents}
        self._cost_estimator = cost_estimator or CostEstimator()
        self._timeout_sec = specialist_timeout_sec
        # most recent entries only; the counters below are lifetime totals
        self.action_log: Deque[AgentAction] = deque(maxlen=history_size)
        self.analysis_history: Deque[VideoAnalysis] = deque(maxlen=history_size)
        self._actions_executed = 0
        self._analyses_performed = 0

    @classmethod
    def from_config(cls, config) -> "VideoEditingAI":
        return cls(
            cost_estimator=CostEstimator.from_config(config),
            specialist_timeout_sec=config.get_float(
                "preparation.specialist_timeout_sec", DEFAULT_SPECIALIST_TIMEOUT_SEC
            ),
            history_size=int(config.get("preparation.history_size", DEFAULT_HISTORY_SIZE)),
        )

    @property
    def agent_keys(self) -> List[str]:
        return list(self._agents)

    def get_agent(self, key: str) -> VideoAgent:
        return self._agents[key]

    # ── preparation ───────────────────────────────────────────────────────────

    async def prepare_video_generation(self, request: GenerationRequest) -> VideoPreparationPlan:
        """Run every specialist concurrently and merge the results."""
        editing = request.preferences.editing or EditingPreferences()
        keys = list(self._agents)
        outcomes = await asyncio.gather(
            *(self._run_bounded(key, request, editing) for key in keys),
            return_exceptions=True,
        )

        analyses: List[Analysis] = []
        suggestions: List[EditingSuggestion] = []
        failed: List[str] = []
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Specialist %s contributed nothing: %s", key, outcome)
                failed.append(key)
                continue
            analysis, proposed = outcome
            analyses.append(analysis)
            suggestions.extend(proposed)

        ranked = sort_by_priority(suggestions)
        settings = self._recommended_settings(request, analyses)
        plan = VideoPreparationPlan(
            analysis_results=analyses,
            suggestions=ranked,
            optimized_prompt=self._optimize_prompt(request.prompt, ranked),
            recommended_settings=settings,
            estimated_cost=self._cost_estimator.estimate_plan_cost(
                CostPriority(settings.cost_priority), settings.required_capabilities,
            ),
            confidence=self._confidence(analyses, ranked),
            failed_specialists=failed,
        )
        logger.info(
            "Prepared plan: %d suggestions, confidence %.2f, failed=%s",
            len(ranked), plan.confidence, failed,
        )
        return plan

    async def _run_bounded(
        self, key: str, request: GenerationRequest, editing: EditingPreferences
    ) -> SpecialistOutput:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._run_specialist, key, request, editing),
                timeout=self._timeout_sec,
            )
        except asyncio.TimeoutError as exc:
            raise SpecialistFailure(f"{key} timed out after {self._timeout_sec}s") from exc

    def _run_specialist(
        self, key: str, request: GenerationRequest, editing: EditingPreferences
    ) -> SpecialistOutput:
        # each specialist works on its own footage copy
        footage = self._synthesizer.synthesize(
            request.prompt, has_reference_image=request.has_reference_image,
        )
        agent = self._agents[key]
        return agent.analyze(footage), agent.generate_suggestions(footage, editing)

    # ── analysis / planning / execution ───────────────────────────────────────

    def analyze_video(self, source: FootageSource) -> VideoAnalysis:
        """Full footage analysis from the content analyzer, recorded in history."""
        analyzer = self._agents["analyzer"]
        footage = analyzer.footage_for(source)
        self.analysis_history.append(footage)
        self._analyses_performed += 1
        return footage

    def generate_editing_plan(
        self,
        footage: VideoAnalysis,
        preferences: Optional[EditingPreferences] = None,
    ) -> List[EditingSuggestion]:
        """Collect suggestions from every agent in turn, priority-sorted."""
        preferences = preferences or EditingPreferences()
        suggestions: List[EditingSuggestion] = []
        for key, agent in self._agents.items():
            try:
                suggestions.extend(agent.generate_suggestions(footage, preferences))
            except Exception:
                logger.exception("Agent %s failed while planning", key)
        return sort_by_priority(suggestions)

    def execute_editing_plan(self, suggestions: Sequence[EditingSuggestion]) -> List[AgentAction]:
        """Execute the auto-apply suggestions in order. Never raises.

        Every returned action ends ``completed`` or ``failed``.
        """
        actions: List[AgentAction] = []
        for suggestion in suggestions:
            if not suggestion.auto_apply:
                continue
            key = AGENT_FOR_TYPE.get(suggestion.type, "")
            parameters = dict(suggestion.parameters)
            if suggestion.time_range is not None:
                parameters["time_range"] = suggestion.time_range.to_dict()
            action = AgentAction(
                id=f"action_{uuid.uuid4().hex[:12]}",
                agent=key,
                action=suggestion.type.value,
                parameters=parameters,
            )
            action.start()
            try:
                agent = self._agents.get(key)
                if agent is None:
                    raise SpecialistFailure(f"no agent registered for '{suggestion.type.value}'")
                action.complete(agent.execute_action(action))
            except Exception as exc:
                logger.warning("Action %s (%s) failed: %s", action.id, key, exc)
                action.fail(str(exc))
            actions.append(action)
            self.action_log.append(action)
            self._actions_executed += 1
        return actions

    def get_capabilities(self) -> Dict[str, List[AgentCapability]]:
        return {key: agent.get_capabilities() for key, agent in self._agents.items()}

    def get_status(self) -> Dict:
        return {
            "agents": [
                {
                    "key": key,
                    "name": agent.name,
                    "description": agent.description,
                    "capabilities": len(agent.get_capabilities()),
                    "actions": agent.supported_actions(),
                }
                for key, agent in self._agents.items()
            ],
            "actions_executed": self._actions_executed,
            "analyses_performed": self._analyses_performed,
        }

    # ── aggregation ───────────────────────────────────────────────────────────

    def _recommended_settings(
        self, request: GenerationRequest, analyses: List[Analysis]
    ) -> RecommendedSettings:
        prefs = request.preferences
        capabilities = set(prefs.required_capabilities)
        aspect_hint = None
        duration = None
        for analysis in analyses:
            capabilities.update(analysis.data.get("capability_hints", ()))
            aspect_hint = aspect_hint or analysis.data.get("aspect_ratio_hint")
            if duration is None and analysis.data.get("duration"):
                duration = float(analysis.data["duration"])

        if not capabilities or prefs.budget == Budget.LOW:
            priority = CostPriority.LOWEST
        elif prefs.budget == Budget.HIGH or len(capabilities) > 2:
            priority = CostPriority.QUALITY
        else:
            priority = CostPriority.BALANCED

        return RecommendedSettings(
            cost_priority=priority.value,
            required_capabilities=sorted(capabilities),
            aspect_ratio=request.aspect_ratio or aspect_hint or DEFAULT_ASPECT_RATIO,
            duration_sec=duration or self._synthesizer.default_duration_sec,
            urgency=prefs.urgency.value,
        )

    @staticmethod
    def _optimize_prompt(prompt: str, suggestions: List[EditingSuggestion]) -> str:
        scored = [
            s for s in suggestions
            if s.prompt_hint and s.estimated_impact is not None
            and s.estimated_impact > PROMPT_HINT_MIN_IMPACT
        ]
        # stable: equal impact keeps priority order
        scored.sort(key=lambda s: -s.estimated_impact)
        hints: List[str] = []
        for s in scored:
            if s.prompt_hint not in hints:
                hints.append(s.prompt_hint)
            if len(hints) == MAX_PROMPT_HINTS:
                break
        if not hints:
            return prompt
        return ", ".join([prompt.rstrip(" ,.")] + hints)

    @staticmethod
    def _confidence(analyses: List[Analysis], suggestions: List[EditingSuggestion]) -> float:
        mean = float(np.mean([a.confidence for a in analyses])) if analyses else 0.0
        corroboration = min(1.0, len(suggestions) / 10)
        return round(0.7 * mean + 0.3 * corroboration, 4)

    @staticmethod
    def _default_agents(synthesizer: FootageSynthesizer) -> List[VideoAgent]:
        """Registry in fixed order; ties in the ranked plan follow it."""
        return [
            ContentAnalysisAgent(synthesizer=synthesizer),
            SmartCuttingAgent(),
            VisualEnhancementAgent(),
            AudioProcessingAgent(),
            TransitionAgent(),
            CaptionAgent(),
        ]


def sort_by_priority(suggestions: Sequence[EditingSuggestion]) -> List[EditingSuggestion]:
    """Stable sort, most urgent first."""
    return sorted(suggestions, key=lambda s: -s.priority.rank)
