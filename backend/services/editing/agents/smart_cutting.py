"""SmartCuttingAgent — dead space removal, natural cut points and pacing."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

import numpy as np

from backend.services.editing.agents.base import VideoAgent, span
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

logger = logging.getLogger("clip_studio.editing.agents.smart_cutting")

SILENCE_VOLUME = 0.1
AGGRESSIVE_DEAD_SPACE_SEC = 1.5
DEFAULT_DEAD_SPACE_SEC = 3.0
NATURAL_GAP_SEC = 2.0
STATIC_COMPRESS_SEC = 8.0
SLOW_PACING_SEC = 10.0
OPTIMAL_SCENE_RANGE = (3.0, 8.0)


class SmartCuttingAgent(VideoAgent):
    """Finds silence to remove, natural cut points and slow pacing."""

    key = "cutter"
    name = "Smart Cutter"
    description = "Intelligently cuts and trims videos based on content analysis and user preferences"

    def analyze(self, footage: VideoAnalysis) -> Analysis:
        dead_space = self._find_dead_space(footage)
        breaks = self._find_natural_breaks(footage)
        pacing = self._analyze_pacing(footage)
        data = {
            "dead_space": dead_space,
            "natural_breaks": breaks,
            "pacing": pacing,
        }
        confidence = 0.6 + 0.3 * pacing["pacing_score"]
        return self._analysis(confidence, data)

    def generate_suggestions(
        self, footage: VideoAnalysis, preferences: EditingPreferences
    ) -> List[EditingSuggestion]:
        suggestions: List[EditingSuggestion] = []
        threshold = (
            AGGRESSIVE_DEAD_SPACE_SEC if preferences.aggressive_cutting
            else DEFAULT_DEAD_SPACE_SEC
        )

        for audio in footage.audio_levels:
            if audio.volume < SILENCE_VOLUME and audio.duration > threshold:
                suggestions.append(self._suggestion(
                    SuggestionType.CUT,
                    Priority.MEDIUM,
                    f"Remove {audio.duration:.1f}s of silence",
                    "Extended silence detected that may lose viewer attention",
                    time_range=span(audio.start_time + 0.5, audio.end_time - 0.5),
                    parameters={
                        "cut_type": "remove",
                        "fade_in": 0.2,
                        "fade_out": 0.2,
                        "reason": "dead_space",
                    },
                    auto_apply=preferences.auto_remove_dead_space,
                    estimated_impact=0.5,
                ))

        scenes = footage.scenes
        for i, scene in enumerate(scenes):
            if i < len(scenes) - 1:
                nxt = scenes[i + 1]
                gap = nxt.start_time - scene.end_time
                if gap >= NATURAL_GAP_SEC and scene.type != SceneType.TRANSITION:
                    suggestions.append(self._suggestion(
                        SuggestionType.CUT,
                        Priority.LOW,
                        f"Natural cut point between {scene.type.value} and {nxt.type.value} scenes",
                        "Natural break between different scene types",
                        time_range=span(scene.end_time, nxt.start_time),
                        parameters={
                            "cut_type": "transition",
                            "transition_style": "smart_cut",
                            "preserve_flow": True,
                        },
                    ))

            if scene.type == SceneType.STATIC and scene.duration > STATIC_COMPRESS_SEC:
                suggestions.append(self._suggestion(
                    SuggestionType.CUT,
                    Priority.MEDIUM,
                    "Trim repetitive static content to improve pacing",
                    "Long static scenes can reduce engagement",
                    time_range=span(scene.start_time + 2, scene.end_time - 2),
                    parameters={
                        "cut_type": "compress",
                        "target_duration": 4,
                        "original_duration": scene.duration,
                        "preserve_key_moments": True,
                    },
                    auto_apply=preferences.auto_trim_static,
                    estimated_impact=0.55,
                    prompt_hint="tight editing with no lingering shots",
                ))

        if scenes:
            average = float(np.mean([s.duration for s in scenes]))
            if average > SLOW_PACING_SEC:
                suggestions.append(self._suggestion(
                    SuggestionType.CUT,
                    Priority.HIGH,
                    "Video pacing is slow - consider more dynamic cutting",
                    "Faster pacing can improve viewer retention",
                    time_range=span(0.0, footage.duration),
                    parameters={
                        "cut_type": "dynamic_pacing",
                        "target_average_scene": 6,
                        "preserve_important_moments": True,
                    },
                    estimated_impact=0.75,
                    prompt_hint="dynamic pacing with frequent cuts",
                ))
        return suggestions

    def get_capabilities(self) -> List[AgentCapability]:
        return [
            AgentCapability(
                name="Dead Space Removal",
                description="Automatically detect and remove silent or low-energy segments",
                input_types=["video", "audio_analysis"],
                output_types=["trimmed_video", "cut_list"],
                confidence=0.9,
                complexity="low",
            ),
            AgentCapability(
                name="Smart Scene Transitions",
                description="Identify optimal cut points between scenes for smooth flow",
                input_types=["video", "scene_analysis"],
                output_types=["transition_points", "cut_suggestions"],
                confidence=0.85,
                complexity="medium",
            ),
            AgentCapability(
                name="Pacing Optimization",
                description="Adjust video pacing through intelligent cutting for better engagement",
                input_types=["video", "engagement_metrics"],
                output_types=["optimized_cuts", "pacing_analysis"],
                confidence=0.8,
                complexity="high",
            ),
            AgentCapability(
                name="Content Compression",
                description="Compress repetitive or low-value content while preserving key moments",
                input_types=["video", "content_analysis"],
                output_types=["compressed_video", "preserved_segments"],
                confidence=0.75,
                complexity="medium",
            ),
        ]

    # ── actions ───────────────────────────────────────────────────────────────

    def _action_handlers(self):
        return {"cut": self._cut, "trim": self._trim, "compress": self._compress}

    def _cut(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tr = params.get("time_range") or {}
        removed = max(0.0, float(tr.get("end", 0.0)) - float(tr.get("start", 0.0)))
        return {
            "cut_type": params.get("cut_type", "remove"),
            "time_range": tr,
            "estimated_saving_sec": round(removed, 2),
            "processing_time_sec": self._processing_time(0.2, 1.5),
        }

    def _trim(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "original_duration": params.get("original_duration"),
            "new_duration": params.get("target_duration"),
            "processing_time_sec": self._processing_time(0.2, 1.0),
        }

    def _compress(self, params: Dict[str, Any]) -> Dict[str, Any]:
        original = params.get("original_duration") or 0
        target = params.get("target_duration") or 0
        return {
            "compression_ratio": round(target / original, 3) if original else None,
            "preserved_moments": params.get("preserve_key_moments", True),
            "processing_time_sec": self._processing_time(0.5, 2.5),
        }

    # ── analysis helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _find_dead_space(footage: VideoAnalysis) -> List[Dict[str, float]]:
        out = []
        for audio in footage.audio_levels:
            if audio.volume < SILENCE_VOLUME and not audio.has_voice and not audio.has_music:
                if audio.duration > AGGRESSIVE_DEAD_SPACE_SEC:
                    out.append({
                        "start": audio.start_time,
                        "end": audio.end_time,
                        "confidence": round(max(0.1, 0.9 - audio.duration / 10), 3),
                    })
        return out

    @staticmethod
    def _find_natural_breaks(footage: VideoAnalysis) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        scenes = footage.scenes
        for current, nxt in zip(scenes, scenes[1:]):
            if current.type != nxt.type:
                out.append({
                    "timestamp": current.end_time, "confidence": 0.8, "type": "scene_change",
                })
            delta = abs(current.motion_intensity - nxt.motion_intensity)
            if delta > 0.5:
                out.append({
                    "timestamp": current.end_time,
                    "confidence": round(0.6 + delta * 0.2, 3),
                    "type": "motion_change",
                })
        return out

    @staticmethod
    def _analyze_pacing(footage: VideoAnalysis) -> Dict[str, Any]:
        durations = [s.duration for s in footage.scenes]
        if not durations:
            return {"average_scene_duration": 0.0, "pacing_score": 0.0, "recommendations": []}
        average = float(np.mean(durations))
        low, high = OPTIMAL_SCENE_RANGE
        score = 1.0
        if average < low:
            score = average / low
        elif average > high:
            score = high / average

        recommendations = []
        if average > SLOW_PACING_SEC:
            recommendations.append("Consider more frequent cuts to improve pacing")
        if average < 2:
            recommendations.append("Cuts may be too frequent - consider longer scenes for key moments")
        return {
            "average_scene_duration": round(average, 3),
            "pacing_score": round(score, 3),
            "recommendations": recommendations,
        }
