"""ContentAnalysisAgent — scene, object and motion analysis."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Union

import numpy as np

from backend.services.editing.agents.base import VideoAgent, span
from backend.services.editing.footage import (
    HIGH_MOTION_WORDS,
    PERSON_WORDS,
    FootageSynthesizer,
    tokenize,
)
from backend.services.editing.types import (
    AgentCapability,
    Analysis,
    EditingPreferences,
    EditingSuggestion,
    Priority,
    SceneType,
    SuggestionType,
    VideoAnalysis,
)
from backend.services.generation.types import GenerationRequest

logger = logging.getLogger("clip_studio.editing.agents.content_analysis")

_VERTICAL_WORDS = frozenset({"vertical", "portrait", "story", "stories", "reel", "reels", "tiktok", "shorts"})
_SQUARE_WORDS = frozenset({"square", "feed"})
_WIDE_WORDS = frozenset({"widescreen", "landscape", "cinematic", "youtube"})

FootageSource = Union[VideoAnalysis, GenerationRequest, str]


class ContentAnalysisAgent(VideoAgent):
    """Detects scenes and subjects and derives provider capability hints.

    Capability hints (``data["capability_hints"]``):
    - a person in the prompt        → ``face_enhancement``
    - a high-motion verb            → ``motion_control``
    - a reference image was given   → ``image_to_video``
    """

    key = "analyzer"
    name = "Content Analyzer"
    description = "Analyzes video content to identify scenes, objects, faces, and contextual information"

    def __init__(self, synthesizer: Optional[FootageSynthesizer] = None, **kwargs):
        super().__init__(**kwargs)
        self._synthesizer = synthesizer or FootageSynthesizer()

    def footage_for(self, source: FootageSource) -> VideoAnalysis:
        """Resolve a request, prompt/URL string or ready footage into footage."""
        if isinstance(source, VideoAnalysis):
            return source
        if isinstance(source, GenerationRequest):
            return self._synthesizer.synthesize(
                source.prompt, has_reference_image=source.has_reference_image,
            )
        return self._synthesizer.synthesize(str(source))

    def analyze(self, footage: FootageSource) -> Analysis:
        footage = self.footage_for(footage)
        scenes = footage.scenes
        words = tokenize(footage.prompt)

        type_counts = Counter(s.type.value for s in scenes)
        element_counts = Counter(e.type for e in footage.visual_elements)
        durations = [s.duration for s in scenes]
        motion = [s.motion_intensity for s in scenes]

        hints: List[str] = []
        if words & PERSON_WORDS or element_counts.get("face"):
            hints.append("face_enhancement")
        if words & HIGH_MOTION_WORDS:
            hints.append("motion_control")
        if footage.has_reference_image:
            hints.append("image_to_video")

        data: Dict[str, Any] = {
            "duration": footage.duration,
            "scene_count": len(scenes),
            "scene_types": dict(type_counts),
            "average_scene_duration": float(np.mean(durations)) if durations else 0.0,
            "average_motion": round(float(np.mean(motion)), 3) if motion else 0.0,
            "peak_motion": max(motion) if motion else 0.0,
            "visual_elements": dict(element_counts),
            "subjects": sorted({e.label for e in footage.visual_elements if e.label}),
            "capability_hints": hints,
            "aspect_ratio_hint": self._aspect_ratio_hint(words),
        }
        confidences = [s.confidence for s in scenes] + [
            e.confidence for e in footage.visual_elements
        ]
        confidence = float(np.mean(confidences)) if confidences else 0.5
        return self._analysis(confidence, data)

    def generate_suggestions(
        self, footage: VideoAnalysis, preferences: EditingPreferences
    ) -> List[EditingSuggestion]:
        suggestions: List[EditingSuggestion] = []
        for scene in footage.scenes:
            if scene.confidence < 0.6:
                suggestions.append(self._suggestion(
                    SuggestionType.ENHANCE,
                    Priority.MEDIUM,
                    f"Low quality detected in scene at {scene.start_time:g}s - suggest enhancement",
                    "Scene shows motion blur or instability",
                    time_range=span(scene.start_time, scene.end_time),
                    parameters={
                        "enhancement_type": "stabilization",
                        "confidence_threshold": scene.confidence,
                    },
                    estimated_impact=0.6,
                    prompt_hint="steady camera, sharp focus",
                ))
            if scene.type == SceneType.STATIC and scene.duration > 5:
                suggestions.append(self._suggestion(
                    SuggestionType.CUT,
                    Priority.LOW,
                    "Long static scene detected - consider trimming",
                    "Static scenes longer than 5 seconds may lose viewer attention",
                    time_range=span(scene.start_time + 3, scene.end_time - 1),
                    parameters={"cut_type": "trim", "preserve_length": 3},
                    estimated_impact=0.3,
                ))
        return suggestions

    def get_capabilities(self) -> List[AgentCapability]:
        return [
            AgentCapability(
                name="Scene Detection",
                description="Automatically detect scene boundaries and classify scene types",
                input_types=["video"],
                output_types=["scenes", "timestamps"],
                confidence=0.85,
                complexity="medium",
            ),
            AgentCapability(
                name="Object Recognition",
                description="Identify and track objects, faces, and text in video",
                input_types=["video"],
                output_types=["objects", "bounding_boxes"],
                confidence=0.9,
                complexity="high",
            ),
            AgentCapability(
                name="Motion Analysis",
                description="Analyze camera movement and object motion patterns",
                input_types=["video"],
                output_types=["motion_data", "stability_metrics"],
                confidence=0.8,
                complexity="medium",
            ),
        ]

    # ── actions ───────────────────────────────────────────────────────────────

    def _action_handlers(self):
        return {
            "analyze": self._do_analyze,
            "detect_scenes": self._do_detect_scenes,
            "detect_objects": self._do_detect_objects,
        }

    def _source(self, params: Dict[str, Any]) -> str:
        return params.get("video_url") or params.get("prompt") or ""

    def _do_analyze(self, params: Dict[str, Any]) -> Dict[str, Any]:
        footage = self.footage_for(self._source(params))
        return {"footage": footage.to_dict(), "analysis": self.analyze(footage).to_dict()}

    def _do_detect_scenes(self, params: Dict[str, Any]) -> Dict[str, Any]:
        footage = self.footage_for(self._source(params))
        return {"scenes": footage.to_dict()["scenes"]}

    def _do_detect_objects(self, params: Dict[str, Any]) -> Dict[str, Any]:
        footage = self.footage_for(self._source(params))
        return {"visual_elements": footage.to_dict()["visual_elements"]}

    # ── internal ──────────────────────────────────────────────────────────────

    @staticmethod
    def _aspect_ratio_hint(words) -> Optional[str]:
        if words & _VERTICAL_WORDS:
            return "9:16"
        if words & _SQUARE_WORDS:
            return "1:1"
        if words & _WIDE_WORDS:
            return "16:9"
        return None
