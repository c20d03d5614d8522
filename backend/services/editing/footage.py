"""FootageSynthesizer — derives plausible footage findings from prompt text.

No frames or audio are decoded here. Scenes, audio segments and visual
elements are inferred from the wording of the request so the specialists have
something shaped like real analysis output to reason over. Output is fully
deterministic for a given prompt.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Set

from backend.services.editing.types import (
    AudioSegment,
    Scene,
    SceneType,
    TimeRange,
    VideoAnalysis,
    VisualElement,
)

logger = logging.getLogger("clip_studio.editing.footage")

DEFAULT_DURATION_SEC = 30.0
MAX_SCENES = 8

# Keyword classes. Matching is on whole lowercase words, with a trailing
# "s"/"ing"/"ed" stripped so "runs", "running" and "jumped" hit their stems.
HIGH_MOTION_WORDS = frozenset({
    "run", "runn", "jump", "race", "rac", "chase", "chas", "fly", "fli", "dance",
    "danc", "fight", "spin", "crash", "explode", "explod", "surf", "skate",
    "skat", "sprint", "gallop", "drift", "battle",
})
MODERATE_MOTION_WORDS = frozenset({
    "walk", "swim", "ride", "rid", "drive", "driv", "climb", "play", "move",
    "mov", "wave", "wav", "roll", "hike", "hik", "stroll",
})
DIALOGUE_WORDS = frozenset({
    "talk", "speak", "say", "interview", "conversation", "explain", "present",
    "presenter", "narrat", "narrator", "discuss", "pitch", "vlog", "podcast",
    "sing", "whisper", "shout", "tell",
})
STATIC_WORDS = frozenset({
    "landscape", "still", "portrait", "product", "logo", "sunset", "sunrise",
    "calm", "quiet", "skyline", "close-up", "closeup", "showcase", "display",
})
TRANSITION_WORDS = frozenset({"fade", "transition", "meanwhile", "montage"})
PERSON_WORDS = frozenset({
    "person", "people", "man", "men", "woman", "women", "boy", "girl", "child",
    "children", "kid", "presenter", "host", "actor", "actress", "dancer",
    "chef", "athlete", "runner", "crowd", "face", "couple", "family",
    "customer", "speaker", "singer", "founder", "model",
})
OBJECT_WORDS = frozenset({
    "dog", "cat", "car", "bike", "bicycle", "phone", "bottle", "cup", "shoe",
    "watch", "laptop", "ball", "product", "horse", "bird", "boat", "plane",
    "drone", "robot", "tree", "building", "house", "guitar", "camera", "food",
})
TEXT_WORDS = frozenset({"text", "title", "sign", "headline", "caption", "subtitle"})
MUSIC_WORDS = frozenset({
    "music", "song", "beat", "soundtrack", "concert", "dj", "band", "melody",
    "sing", "singer", "dance",
})
NOISY_WORDS = frozenset({
    "crowd", "street", "wind", "windy", "rain", "traffic", "noisy", "stadium",
    "busy", "storm",
})
SLOW_WORDS = frozenset({"slow", "slowly", "gentle", "gently", "calm", "peaceful", "serene"})
FAST_WORDS = frozenset({"fast", "quick", "quickly", "rapid", "rapidly", "intense", "frantic"})
LOUD_WORDS = frozenset({"shout", "loud", "yell", "scream", "cheer"})
SOFT_WORDS = frozenset({"whisper", "soft", "softly", "quiet", "murmur"})
COLOR_WORDS = (
    "red", "orange", "yellow", "green", "blue", "purple", "pink", "black",
    "white", "gray", "grey", "gold", "silver", "brown", "teal", "neon",
)

_TYPE_PALETTE = {
    SceneType.ACTION: ["red", "orange", "black"],
    SceneType.DIALOGUE: ["beige", "blue"],
    SceneType.STATIC: ["gray", "white"],
    SceneType.TRANSITION: ["black", "white", "gray"],
}
_TYPE_MOTION = {
    SceneType.ACTION: 0.8,
    SceneType.DIALOGUE: 0.3,
    SceneType.STATIC: 0.1,
    SceneType.TRANSITION: 0.5,
}

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:-\s*)?(?:seconds?|secs?|s)\b", re.IGNORECASE)
_CLAUSE_RE = re.compile(r"[.;,!?]+|\bthen\b|\bafter that\b|\bfollowed by\b", re.IGNORECASE)
_WORD_RE = re.compile(r"[a-z][a-z\-]*")


def tokenize(text: str) -> Set[str]:
    """Lowercase words plus their crude stems."""
    out: Set[str] = set()
    for word in _WORD_RE.findall(text.lower()):
        out.add(word)
        for suffix in ("ing", "ed", "es", "s"):
            if word.endswith(suffix) and len(word) > len(suffix) + 2:
                out.add(word[: -len(suffix)])
    return out


def parse_duration(text: str) -> Optional[float]:
    """Return an explicit "N seconds" duration from ``text``, if any."""
    match = _DURATION_RE.search(text)
    if not match:
        return None
    value = float(match.group(1))
    return value if value > 0 else None


class FootageSynthesizer:
    """Builds a :class:`VideoAnalysis` from a prompt.

    Usage::

        footage = FootageSynthesizer().synthesize("a chef explains a recipe, then plates it")
        footage.scenes[0].type   # SceneType.DIALOGUE
    """

    def __init__(self, default_duration_sec: float = DEFAULT_DURATION_SEC):
        self.default_duration_sec = default_duration_sec

    def synthesize(
        self,
        prompt: str,
        has_reference_image: bool = False,
        duration_sec: Optional[float] = None,
    ) -> VideoAnalysis:
        duration = duration_sec or parse_duration(prompt) or self.default_duration_sec
        clauses = self._clauses(prompt)
        words = tokenize(prompt)
        has_music = bool(words & MUSIC_WORDS)
        noisy = bool(words & NOISY_WORDS)

        span = duration / len(clauses)
        scenes: List[Scene] = []
        audio: List[AudioSegment] = []
        elements: List[VisualElement] = []
        for i, clause in enumerate(clauses):
            start = round(i * span, 3)
            end = round(duration if i == len(clauses) - 1 else (i + 1) * span, 3)
            clause_words = tokenize(clause)
            scene = self._scene(clause, clause_words, start, end)
            scenes.append(scene)
            audio.append(self._audio(scene, clause_words, has_music, noisy))
            elements.extend(self._elements(clause_words, start, end))

        logger.debug(
            "Synthesized %d scenes / %d elements over %.1fs",
            len(scenes), len(elements), duration,
        )
        return VideoAnalysis(
            duration=duration,
            scenes=scenes,
            audio_levels=audio,
            visual_elements=elements,
            prompt=prompt,
            has_reference_image=has_reference_image,
        )

    # ── internal ──────────────────────────────────────────────────────────────

    @staticmethod
    def _clauses(prompt: str) -> List[str]:
        parts = [p.strip() for p in _CLAUSE_RE.split(prompt or "")]
        parts = [p for p in parts if tokenize(p) and not _DURATION_RE.fullmatch(p)]
        if not parts:
            return [prompt or ""]
        return parts[:MAX_SCENES]

    @staticmethod
    def _scene_type(words: Set[str]) -> SceneType:
        if words & TRANSITION_WORDS:
            return SceneType.TRANSITION
        if words & HIGH_MOTION_WORDS or words & MODERATE_MOTION_WORDS:
            return SceneType.ACTION
        if words & DIALOGUE_WORDS:
            return SceneType.DIALOGUE
        return SceneType.STATIC

    def _scene(self, clause: str, words: Set[str], start: float, end: float) -> Scene:
        scene_type = self._scene_type(words)
        motion = _TYPE_MOTION[scene_type]
        if scene_type == SceneType.ACTION and not words & HIGH_MOTION_WORDS:
            motion = 0.6
        if words & FAST_WORDS:
            motion += 0.15
        if words & SLOW_WORDS:
            motion -= 0.2
        motion = round(min(1.0, max(0.05, motion)), 2)

        matched = (
            HIGH_MOTION_WORDS | MODERATE_MOTION_WORDS | DIALOGUE_WORDS
            | STATIC_WORDS | TRANSITION_WORDS
        )
        if words & matched:
            confidence = min(0.95, 0.6 + 0.05 * len(words))
        else:
            confidence = 0.55
        palette = _TYPE_PALETTE[scene_type]
        colors = [c for c in COLOR_WORDS if c in words]
        for c in palette:
            if len(colors) >= len(palette):
                break
            if c not in colors:
                colors.append(c)

        mid = round((start + end) / 2, 3)
        return Scene(
            start_time=start,
            end_time=end,
            type=scene_type,
            confidence=round(confidence, 2),
            motion_intensity=motion,
            keyframes=[f"{start:.1f}s", f"{mid:.1f}s"],
            dominant_colors=colors,
        )

    @staticmethod
    def _audio(
        scene: Scene, words: Set[str], has_music: bool, noisy: bool
    ) -> AudioSegment:
        has_voice = scene.type == SceneType.DIALOGUE or bool(words & DIALOGUE_WORDS)
        if has_voice:
            volume = 0.6
            if words & SOFT_WORDS:
                volume = 0.2
            elif words & LOUD_WORDS:
                volume = 0.9
        elif has_music:
            volume = 0.5
        elif scene.type == SceneType.ACTION:
            volume = 0.35
        else:
            volume = 0.05

        frequency = {
            SceneType.ACTION: "high",
            SceneType.DIALOGUE: "mid",
            SceneType.STATIC: "low",
            SceneType.TRANSITION: "mid",
        }[scene.type]
        return AudioSegment(
            start_time=scene.start_time,
            end_time=scene.end_time,
            volume=volume,
            frequency=frequency,
            has_voice=has_voice,
            has_music=has_music,
            clarity=0.6 if noisy else 0.85,
        )

    @staticmethod
    def _elements(words: Set[str], start: float, end: float) -> List[VisualElement]:
        span = TimeRange(start, end)
        out: List[VisualElement] = []
        people = sorted(words & PERSON_WORDS)
        if people:
            distant = "crowd" in words or "distant" in words
            out.append(VisualElement(
                type="face",
                confidence=0.7 if distant else 0.9,
                time_range=span,
                label=people[0],
                bounding_box=(0.35, 0.15, 0.3, 0.4),
            ))
        for label in sorted(words & OBJECT_WORDS)[:2]:
            out.append(VisualElement(
                type="object",
                confidence=0.85,
                time_range=span,
                label=label,
                bounding_box=(0.2, 0.4, 0.4, 0.4),
            ))
        if words & TEXT_WORDS:
            out.append(VisualElement(
                type="text", confidence=0.8, time_range=span, label="on-screen text",
                bounding_box=(0.1, 0.8, 0.8, 0.15),
            ))
        if "logo" in words or "brand" in words:
            out.append(VisualElement(
                type="logo", confidence=0.8, time_range=span, label="logo",
                bounding_box=(0.8, 0.05, 0.15, 0.1),
            ))
        return out

