"""AudioProcessingAgent — levels, speech clarity, mix balance and dynamics."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

import numpy as np

from backend.services.editing.agents.base import VideoAgent, span
from backend.services.editing.types import (
    AgentCapability,
    Analysis,
    AudioSegment,
    EditingPreferences,
    EditingSuggestion,
    Priority,
    SuggestionType,
    VideoAnalysis,
)

logger = logging.getLogger("clip_studio.editing.agents.audio_processing")

LOW_SPEECH_VOLUME = 0.3
LOW_CLARITY = 0.7
HARSH_VOLUME = 0.8
MAX_VOLUME_SPREAD = 0.4
DUCKING_VOICE_VOLUME = 0.6
SILENCE_VOLUME = 0.1
SILENCE_MIN_SEC = 3.0


class AudioProcessingAgent(VideoAgent):
    """Audio level, clarity and mix suggestions.

    Volume statistics use numpy over the segment volumes; the global
    compression suggestion is emitted at most once per run.
    """

    key = "audio"
    name = "Audio Processor"
    description = "Enhances audio quality, removes noise, balances levels, and adds audio effects"

    def analyze(self, footage: VideoAnalysis) -> Analysis:
        segments = footage.audio_levels
        consistency = self._volume_consistency(segments)
        clarity = self._speech_clarity(segments)
        data: Dict[str, Any] = {
            "noise_profile": self._noise_profile(segments),
            "volume_levels": consistency,
            "speech_clarity": clarity,
            "music_balance": self._music_balance(segments),
        }
        voice_clarity = [c["clarity"] for c in clarity]
        base = float(np.mean(voice_clarity)) if voice_clarity else 0.8
        confidence = base - 0.2 * min(1.0, consistency["variation"])
        return self._analysis(confidence, data)

    def generate_suggestions(
        self, footage: VideoAnalysis, preferences: EditingPreferences
    ) -> List[EditingSuggestion]:
        suggestions: List[EditingSuggestion] = []
        segments = footage.audio_levels

        for audio in segments:
            tr = span(audio.start_time, audio.end_time)
            if audio.has_voice and audio.volume < LOW_SPEECH_VOLUME:
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.HIGH,
                    "Low volume speech detected - normalize audio levels",
                    "Low volume speech may be difficult to understand",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "volume_normalization",
                        "target_volume": 0.7,
                        "preserve_dynamics": True,
                        "method": "intelligent_gain",
                    },
                    auto_apply=preferences.auto_normalize_audio,
                    estimated_impact=0.7,
                    prompt_hint="clear, well-balanced dialogue audio",
                ))

            if audio.has_voice and audio.clarity < LOW_CLARITY:
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.HIGH,
                    f"Enhance voice clarity at {audio.start_time:g}s-{audio.end_time:g}s",
                    "Speech clarity is below the intelligibility threshold",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "voice",
                        "target_volume": 0.7,
                        "preserve_dynamics": True,
                        "method": "spectral_subtraction",
                    },
                    estimated_impact=0.8,
                    prompt_hint="crisp voice with minimal background noise",
                ))

            if audio.has_voice and audio.has_music:
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.MEDIUM,
                    "Voice and music competing - balance audio mix",
                    "Voice and background music may compete for attention",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "audio_separation",
                        "voice_boost": 1.2,
                        "music_reduction": 0.7,
                        "intelligibility_mode": True,
                        "preserve_mood_music": True,
                    },
                    auto_apply=preferences.auto_balance_audio,
                ))

            if audio.frequency == "high" and audio.volume > HARSH_VOLUME:
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.MEDIUM,
                    "Harsh high frequencies detected - apply smoothing",
                    "High volume high frequencies can be unpleasant",
                    time_range=tr,
                    parameters={
                        "enhancement_type": "frequency_smoothing",
                        "high_freq_reduction": 0.3,
                        "harshness_taming": 0.4,
                        "preserve_clarity": True,
                    },
                    auto_apply=preferences.auto_smooth_audio,
                ))

        if segments:
            volumes = np.array([a.volume for a in segments])
            spread = float(volumes.max() - volumes.min())
            if spread > MAX_VOLUME_SPREAD:
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.HIGH,
                    "Inconsistent audio levels throughout video - apply compression",
                    "High volume variation can create poor listening experience",
                    time_range=span(0.0, footage.duration),
                    parameters={
                        "enhancement_type": "dynamic_range_compression",
                        "compression_ratio": 3,
                        "threshold_db": -18,
                        "attack_ms": 10,
                        "release_ms": 100,
                        "makeup_gain_db": 2,
                    },
                    auto_apply=preferences.auto_compress_audio,
                    estimated_impact=0.6,
                    prompt_hint="consistent audio levels",
                ))

        for silent in segments:
            if (
                not silent.has_voice
                and not silent.has_music
                and silent.volume < SILENCE_VOLUME
                and silent.duration > SILENCE_MIN_SEC
            ):
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.LOW,
                    "Silent segment - consider adding background music",
                    "Extended silence may benefit from subtle background music",
                    time_range=span(silent.start_time, silent.end_time),
                    parameters={
                        "enhancement_type": "background_music",
                        "music_type": "ambient",
                        "volume": 0.3,
                        "fade_in": 1,
                        "fade_out": 1,
                        "mood_matching": True,
                    },
                    estimated_impact=0.4,
                    prompt_hint="subtle ambient background music",
                ))

        for segment in segments:
            if segment.has_voice and segment.has_music and segment.volume > DUCKING_VOICE_VOLUME:
                suggestions.append(self._suggestion(
                    SuggestionType.AUDIO,
                    Priority.MEDIUM,
                    "Voice over music - apply ducking for clarity",
                    "Audio ducking improves voice intelligibility over music",
                    time_range=span(segment.start_time, segment.end_time),
                    parameters={
                        "enhancement_type": "audio_ducking",
                        "ducking_amount": 0.4,
                        "threshold_db": -20,
                        "attack_ms": 50,
                        "release_ms": 200,
                        "voice_priority": True,
                    },
                    auto_apply=preferences.auto_audio_duck,
                ))
        return suggestions

    def get_capabilities(self) -> List[AgentCapability]:
        return [
            AgentCapability(
                name="AI Noise Reduction",
                description="Advanced noise reduction using AI to preserve speech quality",
                input_types=["audio", "video"],
                output_types=["cleaned_audio"],
                confidence=0.9,
                complexity="high",
            ),
            AgentCapability(
                name="Voice Enhancement",
                description="Improve speech clarity and intelligibility",
                input_types=["audio", "speech_segments"],
                output_types=["enhanced_speech"],
                confidence=0.85,
                complexity="medium",
            ),
            AgentCapability(
                name="Audio Leveling",
                description="Consistent volume levels throughout the video",
                input_types=["audio"],
                output_types=["normalized_audio"],
                confidence=0.95,
                complexity="low",
            ),
            AgentCapability(
                name="Dynamic Range Control",
                description="Intelligent compression and limiting for optimal playback",
                input_types=["audio"],
                output_types=["compressed_audio"],
                confidence=0.9,
                complexity="medium",
            ),
            AgentCapability(
                name="Audio Separation",
                description="Separate and balance voice, music, and effects",
                input_types=["mixed_audio"],
                output_types=["separated_audio_tracks"],
                confidence=0.8,
                complexity="high",
            ),
            AgentCapability(
                name="Spatial Audio",
                description="Create immersive spatial audio experiences",
                input_types=["audio", "scene_analysis"],
                output_types=["spatial_audio"],
                confidence=0.75,
                complexity="high",
            ),
        ]

    # ── actions ───────────────────────────────────────────────────────────────

    def _action_handlers(self):
        return {
            "audio": self._process,
            "normalize": self._normalize,
            "denoise": self._denoise,
            "enhance_speech": self._enhance_speech,
        }

    def _process(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "enhancement_type": params.get("enhancement_type"),
            "applied_settings": dict(params),
            "processing_time_sec": self._processing_time(1.0, 5.0),
            "quality_improvement": {
                "clarity_increase_pct": self._rng.randint(10, 34),
                "noise_reduction_db": self._rng.randint(20, 59),
                "volume_consistency_pct": self._rng.randint(15, 44),
            },
        }

    def _normalize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        target = float(params.get("target_volume", 0.7))
        return {
            "original_peak_db": round(self._rng.uniform(-10.0, 10.0), 2),
            "normalized_peak_db": round(target * 10 - 10, 2),
            "gain_applied_db": round(self._rng.uniform(2.0, 8.0), 2),
            "processing_time_sec": self._processing_time(0.5, 2.5),
        }

    def _denoise(self, params: Dict[str, Any]) -> Dict[str, Any]:
        strength = float(params.get("denoise_strength", 0.5))
        return {
            "noise_reduction_db": round(strength * 40, 1),
            "artifact_level": "minimal" if params.get("preserve_naturalness", True) else "moderate",
            "processing_time_sec": self._processing_time(2.0, 8.0),
        }

    def _enhance_speech(self, params: Dict[str, Any]) -> Dict[str, Any]:
        boost = float(params.get("clarity_boost", 0.5))
        return {
            "clarity_improvement_pct": round(boost * 30, 1),
            "frequency_range": params.get("frequency_range"),
            "naturalness": "preserved" if params.get("preserve_naturalness", True) else "enhanced",
            "processing_time_sec": self._processing_time(2.0, 7.0),
        }

    # ── analysis helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _noise_profile(segments: List[AudioSegment]) -> List[Dict[str, Any]]:
        kinds = {"high": "hiss", "low": "hum"}
        return [
            {
                "start": a.start_time,
                "end": a.end_time,
                "noise_level": a.volume,
                "type": kinds.get(a.frequency, "broadband"),
            }
            for a in segments
            if not a.has_voice and not a.has_music and a.volume > 0.05
        ]

    @staticmethod
    def _volume_consistency(segments: List[AudioSegment]) -> Dict[str, Any]:
        if not segments:
            return {"variation": 0.0, "average_volume": 0.0, "recommendations": []}
        volumes = np.array([a.volume for a in segments], dtype=float)
        average = float(volumes.mean())
        variation = float(volumes.std())
        recommendations = []
        if variation > 0.3:
            recommendations.append("Apply compression to reduce volume variation")
        if average < 0.4:
            recommendations.append("Overall volume is low - consider normalization")
        if average > 0.9:
            recommendations.append("Overall volume is high - reduce to prevent clipping")
        return {
            "variation": round(variation, 4),
            "average_volume": round(average, 4),
            "recommendations": recommendations,
        }

    @staticmethod
    def _speech_clarity(segments: List[AudioSegment]) -> List[Dict[str, Any]]:
        out = []
        for a in segments:
            if not a.has_voice:
                continue
            issues = []
            if a.clarity < LOW_CLARITY:
                issues.append("Low clarity")
            if a.volume < LOW_SPEECH_VOLUME:
                issues.append("Low volume")
            if a.frequency == "high":
                issues.append("Harsh frequencies")
            out.append({"start": a.start_time, "end": a.end_time, "clarity": a.clarity, "issues": issues})
        return out

    @staticmethod
    def _music_balance(segments: List[AudioSegment]) -> List[Dict[str, Any]]:
        return [
            {
                "start": a.start_time,
                "end": a.end_time,
                "balance": 0.5 if a.has_voice else 1.0,
                "has_conflict": a.has_voice and a.volume > DUCKING_VOICE_VOLUME,
            }
            for a in segments
            if a.has_music
        ]
