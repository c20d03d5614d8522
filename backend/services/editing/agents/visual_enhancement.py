"""VisualEnhancementAgent — stabilization, colour, sharpness and effects."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from backend.services.editing.agents.base import VideoAgent, span
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
    VisualElement,
)

logger = logging.getLogger("clip_studio.editing.agents.visual_enhancement")

_WARM = frozenset({"red", "orange", "yellow", "gold", "pink", "brown", "beige"})
_COOL = frozenset({"blue", "green", "teal", "purple", "silver"})
_BRIGHT = frozenset({"white", "yellow", "silver", "pink", "gold", "beige", "neon"})
_DARK = frozenset({"black", "brown", "gray", "grey"})


class VisualEnhancementAgent(VideoAgent):
    """Proposes stabilization, colour correction, quality and stylistic effects.

    Face enhancement is never auto-applied; it changes how people look and
    needs explicit consent.
    """

    key = "enhancer"
    name = "Visual Enhancer"
    description = "Applies AI-powered visual enhancements including stabilization, color correction, and effects"

    def analyze(self, footage: VideoAnalysis) -> Analysis:
        stability = self._stability_issues(footage.scenes)
        color = self._color_issues(footage.scenes)
        sharpness = self._sharpness_issues(footage.scenes)
        exposure = self._exposure_issues(footage.scenes)
        hints = []
        if any(e.type == "face" for e in footage.visual_elements):
            hints.append("face_enhancement")

        data: Dict[str, Any] = {
            "stability_issues": stability,
            "color_problems": color,
            "sharpness_issues": sharpness,
            "exposure_problems": exposure,
            "capability_hints": hints,
        }
        scene_count = max(1, len(footage.scenes))
        flagged = len(stability) + len(sharpness) + len(exposure)
        confidence = 0.9 - 0.2 * min(1.0, flagged / scene_count)
        return self._analysis(confidence, data)

    def generate_suggestions(
        self, footage: VideoAnalysis, preferences: EditingPreferences
    ) -> List[EditingSuggestion]:
        suggestions: List[EditingSuggestion] = []

        for scene in footage.scenes:
            tr = span(scene.start_time, scene.end_time)
            if scene.motion_intensity > 0.7 and scene.type != SceneType.ACTION:
                suggestions.append(self._suggestion(
                    SuggestionType.ENHANCE,
                    Priority.HIGH,
                    "Camera shake detected - apply stabilization",
                    "High motion intensity suggests camera instability",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "stabilization",
                        "strength": 0.8,
                        "preserve_intentional_movement": True,
                        "method": "optical_flow",
                    },
                    auto_apply=preferences.auto_stabilize,
                    estimated_impact=0.8,
                    prompt_hint="smooth stabilized camera movement",
                ))

            if len(scene.dominant_colors) < 3:
                suggestions.append(self._suggestion(
                    SuggestionType.ENHANCE,
                    Priority.MEDIUM,
                    "Limited color range - enhance vibrancy and contrast",
                    "Limited color palette detected, enhancement can improve visual appeal",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "color_correction",
                        "vibrance": 1.2,
                        "saturation": 1.1,
                        "contrast": 1.15,
                        "preserve_skin_tones": True,
                    },
                    auto_apply=preferences.auto_color_correct,
                    estimated_impact=0.6,
                    prompt_hint="vibrant colors with rich contrast",
                ))

            if scene.confidence < 0.7:
                suggestions.append(self._suggestion(
                    SuggestionType.ENHANCE,
                    Priority.MEDIUM,
                    "Low image quality - apply sharpening and noise reduction",
                    "Low confidence score indicates quality issues",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "quality_improvement",
                        "sharpen": 0.6,
                        "denoise": 0.4,
                        "preserve_details": True,
                        "method": "ai_upscale",
                    },
                    auto_apply=preferences.auto_quality_enhance,
                    estimated_impact=0.65,
                    prompt_hint="crisp high-definition detail",
                ))

        for face in footage.visual_elements:
            if face.type == "face" and face.confidence > 0.8:
                suggestions.append(self._suggestion(
                    SuggestionType.ENHANCE,
                    Priority.MEDIUM,
                    "Face detected - apply subtle face enhancement",
                    "Face detected with high confidence, enhancement can improve appearance",
                    time_range=face.time_range,
                    parameters={
                        "enhancement_type": "face_enhancement",
                        "skin_smoothing": 0.3,
                        "eye_brightening": 0.2,
                        "subtle_retouching": True,
                        "preserve_natural_look": True,
                    },
                    auto_apply=False,
                    estimated_impact=0.5,
                    prompt_hint="natural flattering lighting on faces",
                ))

        for scene in footage.scenes:
            if (
                scene.type == SceneType.STATIC
                and scene.confidence > 0.8
                and self._has_subject(scene, footage.visual_elements)
            ):
                suggestions.append(self._suggestion(
                    SuggestionType.EFFECT,
                    Priority.LOW,
                    "Static scene with clear subject - background replacement available",
                    "Static scene with identifiable subject allows for background effects",
                    time_range=span(scene.start_time, scene.end_time),
                    parameters={
                        "effect_type": "background_replacement",
                        "subject_detection": "ai_segmentation",
                        "background_options": ["blur", "gradient", "custom_image", "virtual_background"],
                        "edge_refinement": True,
                    },
                ))

        for scene in footage.scenes:
            if scene.type == SceneType.ACTION:
                suggestions.append(self._suggestion(
                    SuggestionType.EFFECT,
                    Priority.LOW,
                    "Action scene - apply cinematic effects",
                    "Action scenes benefit from cinematic visual treatment",
                    time_range=span(scene.start_time, scene.end_time),
                    parameters={
                        "effect_type": "cinematic_enhancement",
                        "color_grading": "cinematic_teal_orange",
                        "motion_blur": 0.3,
                        "dramatic_contrast": 1.2,
                        "film_grain": 0.1,
                    },
                    estimated_impact=0.55,
                    prompt_hint="cinematic teal and orange color grading",
                ))
        return suggestions

    def get_capabilities(self) -> List[AgentCapability]:
        return [
            AgentCapability(
                name="AI Stabilization",
                description="Advanced camera shake reduction using optical flow analysis",
                input_types=["video"],
                output_types=["stabilized_video"],
                confidence=0.9,
                complexity="high",
            ),
            AgentCapability(
                name="Smart Color Correction",
                description="Automatic color balance, contrast, and vibrancy enhancement",
                input_types=["video"],
                output_types=["color_corrected_video"],
                confidence=0.85,
                complexity="medium",
            ),
            AgentCapability(
                name="AI Upscaling",
                description="Enhance video quality through AI-powered upscaling and sharpening",
                input_types=["video"],
                output_types=["enhanced_video"],
                confidence=0.8,
                complexity="high",
            ),
            AgentCapability(
                name="Face Enhancement",
                description="Subtle facial feature enhancement and skin smoothing",
                input_types=["video", "face_detection"],
                output_types=["enhanced_video"],
                confidence=0.75,
                complexity="medium",
            ),
            AgentCapability(
                name="Background Effects",
                description="AI-powered background replacement and blurring",
                input_types=["video", "subject_segmentation"],
                output_types=["background_replaced_video"],
                confidence=0.8,
                complexity="high",
            ),
            AgentCapability(
                name="Cinematic Effects",
                description="Professional color grading and cinematic visual effects",
                input_types=["video"],
                output_types=["stylized_video"],
                confidence=0.9,
                complexity="medium",
            ),
        ]

    # ── actions ───────────────────────────────────────────────────────────────

    def _action_handlers(self):
        return {
            "enhance": self._enhance,
            "effect": self._effect,
            "color_correct": self._color_correct,
            "stabilize": self._stabilize,
        }

    def _enhance(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "enhancement_type": params.get("enhancement_type"),
            "applied_settings": dict(params),
            "processing_time_sec": self._processing_time(2.0, 7.0),
            "quality_improvement_pct": self._rng.randint(10, 39),
        }

    def _effect(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "effect_type": params.get("effect_type"),
            "applied_settings": dict(params),
            "processing_time_sec": self._processing_time(3.0, 11.0),
        }

    def _color_correct(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "color_adjustments": {
                "vibrance": params.get("vibrance", 1.0),
                "saturation": params.get("saturation", 1.0),
                "contrast": params.get("contrast", 1.0),
            },
            "processing_time_sec": self._processing_time(1.0, 4.0),
        }

    def _stabilize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "stabilization_strength": params.get("strength", 0.8),
            "method": params.get("method", "optical_flow"),
            "shakiness_before": round(self._rng.uniform(0.2, 1.0), 3),
            "shakiness_after": round(self._rng.uniform(0.0, 0.3), 3),
            "processing_time_sec": self._processing_time(5.0, 15.0),
        }

    # ── analysis helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _has_subject(scene: Scene, elements: List[VisualElement]) -> bool:
        return any(
            e.type in ("face", "object")
            and e.time_range.start <= scene.start_time
            and e.time_range.end >= scene.end_time
            for e in elements
        )

    @staticmethod
    def _stability_issues(scenes: List[Scene]) -> List[Dict[str, Any]]:
        return [
            {"start": s.start_time, "end": s.end_time, "severity": min(s.motion_intensity, 1.0)}
            for s in scenes
            if s.motion_intensity > 0.6 and s.type != SceneType.ACTION
        ]

    @staticmethod
    def _color_issues(scenes: List[Scene]) -> List[Dict[str, Any]]:
        out = []
        for s in scenes:
            colors = set(s.dominant_colors)
            if not colors & _WARM and not colors & _COOL:
                out.append({
                    "start": s.start_time, "end": s.end_time,
                    "issue": "monochromatic", "severity": 0.6,
                })
        return out

    @staticmethod
    def _sharpness_issues(scenes: List[Scene]) -> List[Dict[str, Any]]:
        return [
            {"start": s.start_time, "end": s.end_time, "sharpness": s.confidence}
            for s in scenes
            if s.confidence < 0.7
        ]

    @staticmethod
    def _exposure_issues(scenes: List[Scene]) -> List[Dict[str, Any]]:
        out = []
        for s in scenes:
            bright = sum(1 for c in s.dominant_colors if c in _BRIGHT)
            dark = sum(1 for c in s.dominant_colors if c in _DARK)
            exposure = "normal"
            if dark > bright * 2:
                exposure = "underexposed"
            elif bright > dark * 2:
                exposure = "overexposed"
            if exposure != "normal":
                out.append({"start": s.start_time, "end": s.end_time, "exposure": exposure})
        return out
