"""TransitionAgent — selects transitions between adjacent scenes."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from backend.services.editing.agents.base import VideoAgent, clamp, span
from backend.services.editing.types import (
    AgentCapability,
    Analysis,
    EditingPreferences,
    EditingSuggestion,
    Priority,
    Scene,
    SceneType,
    SuggestionType,
    VideoAnalysis,
)

logger = logging.getLogger("clip_studio.editing.agents.transition")


class TransitionType(str, enum.Enum):
    """Transition styles the agent can propose."""
    CROSS_FADE = "cross_fade"
    FADE_THROUGH_BLACK = "fade_through_black"
    DYNAMIC_WIPE = "dynamic_wipe"
    IMPACT_ZOOM = "impact_zoom"
    MOTION_MATCH = "motion_match"
    SLIDE = "slide"
    COLOR_MORPH = "color_morph"
    FADE_IN = "fade_in"
    FADE_OUT = "fade_out"
    BEAT_SYNC = "beat_sync"


_REASONS = {
    TransitionType.CROSS_FADE: "Smooth blending maintains flow between similar content",
    TransitionType.MOTION_MATCH: "Follows natural motion for seamless visual continuity",
    TransitionType.IMPACT_ZOOM: "Dynamic zoom enhances energy transition between action scenes",
    TransitionType.FADE_THROUGH_BLACK: "Clean separation provides breathing room between different scene types",
    TransitionType.DYNAMIC_WIPE: "Energy-matching wipe maintains viewer engagement",
    TransitionType.SLIDE: "Directional slide creates smooth spatial transition",
}


@dataclass
class TransitionConfig:
    """Transition chosen for one scene boundary.

    Attributes:
        transition_type: The chosen :class:`TransitionType`.
        duration_sec: Overlap length; shorter for high-energy boundaries.
        easing: Easing curve name.
        direction: Screen direction for directional transitions.
        custom: Type-specific parameters.
    """
    transition_type: TransitionType
    duration_sec: float
    easing: str
    direction: str
    custom: Dict[str, Any] = field(default_factory=dict)


class TransitionAgent(VideoAgent):
    """Chooses a transition for every scene boundary.

    Selection logic, first match wins:
    - both scenes action      → IMPACT_ZOOM if motion delta > 0.3, else MOTION_MATCH
    - same scene type         → CROSS_FADE
    - either scene static     → FADE_THROUGH_BLACK
    - motion delta > 0.5      → DYNAMIC_WIPE
    - otherwise               → SLIDE

    Always adds an opening fade-in and closing fade-out, plus a beat-sync
    pass when any audio segment carries music.
    """

    key = "transition"
    name = "Transition Master"
    description = "Creates intelligent transitions between scenes based on content analysis and pacing"

    # ── selection ─────────────────────────────────────────────────────────────

    def select_transition(self, scene_a: Scene, scene_b: Scene) -> TransitionConfig:
        delta = abs(scene_a.motion_intensity - scene_b.motion_intensity)
        if scene_a.type == SceneType.ACTION and scene_b.type == SceneType.ACTION:
            ttype = TransitionType.IMPACT_ZOOM if delta > 0.3 else TransitionType.MOTION_MATCH
        elif scene_a.type == scene_b.type:
            ttype = TransitionType.CROSS_FADE
        elif SceneType.STATIC in (scene_a.type, scene_b.type):
            ttype = TransitionType.FADE_THROUGH_BLACK
        elif delta > 0.5:
            ttype = TransitionType.DYNAMIC_WIPE
        else:
            ttype = TransitionType.SLIDE

        energy = (scene_a.motion_intensity + scene_b.motion_intensity) / 2
        return TransitionConfig(
            transition_type=ttype,
            duration_sec=round(max(0.2, 0.5 - energy * 0.3), 3),
            easing=self._easing(scene_a, scene_b),
            direction=self._direction(scene_a, scene_b),
            custom=self._custom_parameters(ttype, scene_a, scene_b),
        )

    @staticmethod
    def transition_priority(scene_a: Scene, scene_b: Scene) -> Priority:
        type_change = scene_a.type != scene_b.type
        energy_change = abs(scene_a.motion_intensity - scene_b.motion_intensity) > 0.4
        if type_change and energy_change:
            return Priority.HIGH
        if type_change or energy_change:
            return Priority.MEDIUM
        return Priority.LOW

    # ── VideoAgent ────────────────────────────────────────────────────────────

    def analyze(self, footage: VideoAnalysis) -> Analysis:
        pairs = list(zip(footage.scenes, footage.scenes[1:]))
        points = [
            {
                "timestamp": a.end_time,
                "confidence": round(self._boundary_confidence(a, b), 3),
                "suggested_type": self.select_transition(a, b).transition_type.value,
            }
            for a, b in pairs
        ]
        relationships = [
            {
                "scene_index": i,
                "relationship": self._relationship(a, b),
                "strength": round(self._relationship_strength(a, b), 3),
            }
            for i, (a, b) in enumerate(pairs)
        ]
        data = {
            "transition_opportunities": points,
            "scene_relationships": relationships,
            "pacing_analysis": self._pacing_flow(footage.scenes),
        }
        confidence = float(np.mean([p["confidence"] for p in points])) if points else 0.7
        return self._analysis(confidence, data)

    def generate_suggestions(
        self, footage: VideoAnalysis, preferences: EditingPreferences
    ) -> List[EditingSuggestion]:
        suggestions: List[EditingSuggestion] = []
        scenes = footage.scenes

        for a, b in zip(scenes, scenes[1:]):
            point = a.end_time
            config = self.select_transition(a, b)
            priority = self.transition_priority(a, b)
            suggestions.append(self._suggestion(
                SuggestionType.TRANSITION,
                priority,
                f"Add {config.transition_type.value} transition between "
                f"{a.type.value} and {b.type.value} scenes",
                _REASONS.get(config.transition_type, "Transition chosen from scene content"),
                time_range=span(point - 0.5, min(footage.duration, point + 0.5)),
                parameters={
                    "transition_type": config.transition_type.value,
                    "duration": config.duration_sec,
                    "easing": config.easing,
                    "direction": config.direction,
                    "custom_parameters": config.custom,
                },
                auto_apply=preferences.auto_add_transitions,
                estimated_impact=0.6 if priority == Priority.HIGH else None,
                prompt_hint="seamless transitions between scenes" if priority == Priority.HIGH else None,
            ))

            if SceneType.ACTION in (a.type, b.type):
                suggestions.append(self._suggestion(
                    SuggestionType.TRANSITION,
                    Priority.MEDIUM,
                    "Dynamic motion-based transition for action sequence",
                    "Action scenes benefit from dynamic, motion-aware transitions",
                    time_range=span(point - 0.3, point + 0.3),
                    parameters={
                        "transition_type": TransitionType.MOTION_MATCH.value,
                        "motion_direction": self._motion_vector(a, b),
                        "speed_ramping": True,
                        "motion_blur": 0.4,
                        "energy_level": "high",
                    },
                ))

            if self._strong_color_theme(a) or self._strong_color_theme(b):
                suggestions.append(self._suggestion(
                    SuggestionType.TRANSITION,
                    Priority.LOW,
                    f"Color-based transition using {self._color_method(a, b)}",
                    "Strong color themes allow for visually appealing color-based transitions",
                    time_range=span(point - 0.4, point + 0.4),
                    parameters={
                        "transition_type": TransitionType.COLOR_MORPH.value,
                        "method": self._color_method(a, b),
                        "from_colors": list(a.dominant_colors),
                        "to_colors": list(b.dominant_colors),
                        "duration": 0.8,
                        "smoothness": 0.8,
                    },
                ))

        if scenes:
            end = scenes[-1].end_time
            suggestions.append(self._suggestion(
                SuggestionType.TRANSITION,
                Priority.MEDIUM,
                "Add professional opening transition",
                "Professional opening sets the tone for the video",
                time_range=span(0.0, 1.0),
                parameters={
                    "transition_type": TransitionType.FADE_IN.value,
                    "duration": 1.0,
                    "easing": "ease_out",
                    "overlay": "logo_fade" if preferences.add_branding else "none",
                },
                auto_apply=preferences.auto_add_opening_transition,
            ))
            suggestions.append(self._suggestion(
                SuggestionType.TRANSITION,
                Priority.MEDIUM,
                "Add professional closing transition",
                "Professional closing provides satisfying conclusion",
                time_range=span(end - 1.0, end),
                parameters={
                    "transition_type": TransitionType.FADE_OUT.value,
                    "duration": 1.5,
                    "easing": "ease_in",
                    "overlay": "end_card" if preferences.add_branding else "none",
                },
                auto_apply=preferences.auto_add_closing_transition,
            ))

        if any(a.has_music for a in footage.audio_levels):
            suggestions.append(self._suggestion(
                SuggestionType.TRANSITION,
                Priority.LOW,
                "Sync transitions with music beats for rhythmic flow",
                "Music synchronization creates more engaging rhythm",
                time_range=span(0.0, footage.duration),
                parameters={
                    "transition_type": TransitionType.BEAT_SYNC.value,
                    "beat_detection": True,
                    "sync_threshold": 0.8,
                    "transition_on_beat": True,
                    "musical_phrasing": True,
                },
                estimated_impact=0.55,
                prompt_hint="cuts timed to the music beat",
            ))
        return suggestions

    def get_capabilities(self) -> List[AgentCapability]:
        return [
            AgentCapability(
                name="Smart Scene Transitions",
                description="Automatically select and apply appropriate transitions between scenes",
                input_types=["video", "scene_analysis"],
                output_types=["transitioned_video"],
                confidence=0.85,
                complexity="medium",
            ),
            AgentCapability(
                name="Motion-Aware Transitions",
                description="Transitions that follow and enhance natural motion in the video",
                input_types=["video", "motion_analysis"],
                output_types=["motion_transitioned_video"],
                confidence=0.8,
                complexity="high",
            ),
            AgentCapability(
                name="Beat-Synchronized Transitions",
                description="Sync transitions with music beats for rhythmic editing",
                input_types=["video", "audio_analysis"],
                output_types=["rhythm_synced_video"],
                confidence=0.75,
                complexity="high",
            ),
            AgentCapability(
                name="Color-Based Transitions",
                description="Transitions based on color analysis and thematic matching",
                input_types=["video", "color_analysis"],
                output_types=["color_transitioned_video"],
                confidence=0.8,
                complexity="medium",
            ),
            AgentCapability(
                name="3D Transitions",
                description="Advanced 3D transitions for dramatic scene changes",
                input_types=["video"],
                output_types=["3d_transitioned_video"],
                confidence=0.7,
                complexity="high",
            ),
        ]

    # ── actions ───────────────────────────────────────────────────────────────

    def _action_handlers(self):
        return {
            "transition": self._apply_transition,
            "fade": self._apply_fade,
            "wipe": self._apply_wipe,
            "motion_match": self._apply_motion_match,
        }

    def _apply_transition(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "transition_type": params.get("transition_type"),
            "duration": params.get("duration"),
            "applied_at": params.get("time_range"),
            "quality_impact": "minimal",
            "processing_time_sec": self._processing_time(1.0, 4.0),
        }

    def _apply_fade(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "fade_type": params.get("fade_type", TransitionType.CROSS_FADE.value),
            "duration": params.get("duration"),
            "easing": params.get("easing"),
            "processing_time_sec": self._processing_time(0.5, 1.5),
        }

    def _apply_wipe(self, params: Dict[str, Any]) -> Dict[str, Any]:
        custom = params.get("custom_parameters") or {}
        return {
            "wipe_direction": params.get("direction"),
            "pattern": custom.get("wipe_pattern", "linear"),
            "duration": params.get("duration"),
            "processing_time_sec": self._processing_time(1.0, 3.0),
        }

    def _apply_motion_match(self, params: Dict[str, Any]) -> Dict[str, Any]:
        custom = params.get("custom_parameters") or {}
        return {
            "motion_vector": params.get("motion_direction"),
            "acceleration_curve": custom.get("acceleration_curve", "linear"),
            "motion_blur": params.get("motion_blur", 0),
            "processing_time_sec": self._processing_time(2.0, 6.0),
        }

    # ── internal ──────────────────────────────────────────────────────────────

    @staticmethod
    def _easing(a: Scene, b: Scene) -> str:
        if SceneType.ACTION in (a.type, b.type):
            return "ease_out_back"
        if a.type == SceneType.DIALOGUE and b.type == SceneType.DIALOGUE:
            return "ease_in_out"
        return "ease_out"

    @staticmethod
    def _direction(a: Scene, b: Scene) -> str:
        if b.motion_intensity > a.motion_intensity:
            return "left_to_right"
        if b.motion_intensity < a.motion_intensity:
            return "right_to_left"
        if set(a.dominant_colors) & set(b.dominant_colors):
            return "top_to_bottom"
        return "bottom_to_top"

    @staticmethod
    def _motion_vector(a: Scene, b: Scene) -> str:
        delta = b.motion_intensity - a.motion_intensity
        if delta > 0.3:
            return "divergent"
        if delta < -0.3:
            return "convergent"
        return "horizontal_right" if b.type == SceneType.ACTION else "horizontal_left"

    def _custom_parameters(self, ttype: TransitionType, a: Scene, b: Scene) -> Dict[str, Any]:
        if ttype == TransitionType.MOTION_MATCH:
            return {"motion_vector": self._motion_vector(a, b), "acceleration_curve": "natural"}
        if ttype == TransitionType.IMPACT_ZOOM:
            return {"zoom_center": "action_point", "impact_intensity": 0.8}
        if ttype == TransitionType.DYNAMIC_WIPE:
            return {"wipe_pattern": "organic", "edge_feathering": 0.3}
        return {}

    @staticmethod
    def _strong_color_theme(scene: Scene) -> bool:
        return len(scene.dominant_colors) >= 2 and scene.confidence > 0.7

    @staticmethod
    def _color_method(a: Scene, b: Scene) -> str:
        shared = set(a.dominant_colors) & set(b.dominant_colors)
        if shared:
            return "gradient_blend"
        if len(a.dominant_colors) != len(b.dominant_colors):
            return "saturation_bridge"
        return "hue_shift"

    @staticmethod
    def _boundary_confidence(a: Scene, b: Scene) -> float:
        confidence = 0.5
        if a.type != b.type:
            confidence += 0.2
        confidence += abs(a.motion_intensity - b.motion_intensity) * 0.3
        confidence += (a.confidence + b.confidence) * 0.1
        return clamp(confidence)

    @staticmethod
    def _relationship(a: Scene, b: Scene) -> str:
        if a.type == b.type:
            return "similar_content"
        if abs(a.motion_intensity - b.motion_intensity) > 0.5:
            return "energy_contrast"
        if set(a.dominant_colors) & set(b.dominant_colors):
            return "color_continuity"
        return "content_shift"

    @staticmethod
    def _relationship_strength(a: Scene, b: Scene) -> float:
        strength = 0.3 if a.type == b.type else 0.0
        strength += (1 - abs(a.motion_intensity - b.motion_intensity)) * 0.3
        common = len(set(a.dominant_colors) & set(b.dominant_colors))
        widest = max(len(a.dominant_colors), len(b.dominant_colors))
        if widest:
            strength += common / widest * 0.4
        return strength

    @staticmethod
    def _pacing_flow(scenes: List[Scene]) -> Dict[str, Any]:
        durations = [s.duration for s in scenes]
        if not durations:
            return {"overall_pacing": "medium", "pacing_changes": []}
        average = float(np.mean(durations))
        overall = "medium"
        if average < 3:
            overall = "fast"
        if average > 8:
            overall = "slow"
        changes = []
        for i, (cur, nxt) in enumerate(zip(durations, durations[1:])):
            if nxt > cur * 1.5:
                changes.append({"timestamp": scenes[i].end_time, "change": "deceleration"})
            elif nxt < cur * 0.6:
                changes.append({"timestamp": scenes[i].end_time, "change": "acceleration"})
        return {"overall_pacing": overall, "pacing_changes": changes}
