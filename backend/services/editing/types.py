"""Data types for the Clip Studio editing (preparation) layer."""
from __future__ import annotations

import enum
import re
import time
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Sort weight; higher means more urgent."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}


class SuggestionType(str, enum.Enum):
    CUT = "cut"
    ENHANCE = "enhance"
    EFFECT = "effect"
    AUDIO = "audio"
    CAPTION = "caption"
    TRANSITION = "transition"


class SceneType(str, enum.Enum):
    ACTION = "action"
    DIALOGUE = "dialogue"
    TRANSITION = "transition"
    STATIC = "static"


class ActionStatus(str, enum.Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class InvalidTimeRange(ValueError):
    """A time range ends before it starts."""


class InvalidActionTransition(ValueError):
    """An AgentAction was moved out of order (e.g. completed twice)."""


@dataclass(frozen=True)
class TimeRange:
    start: float
    end: float

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidTimeRange(f"start {self.start} is after end {self.end}")

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, float]:
        return {"start": self.start, "end": self.end}


# ── footage findings ─────────────────────────────────────────────────────────


@dataclass
class Scene:
    start_time: float
    end_time: float
    type: SceneType
    confidence: float
    motion_intensity: float
    keyframes: List[str] = field(default_factory=list)
    dominant_colors: List[str] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class AudioSegment:
    start_time: float
    end_time: float
    volume: float
    frequency: str = "mid"          # low | mid | high
    has_voice: bool = False
    has_music: bool = False
    clarity: float = 1.0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class VisualElement:
    type: str                       # face | object | text | logo | scene
    confidence: float
    time_range: TimeRange
    label: str = ""
    bounding_box: Tuple[float, float, float, float] = (0.0, 0.0, 1.0, 1.0)


@dataclass
class VideoAnalysis:
    """Synthesized footage findings every specialist reads."""
    duration: float
    scenes: List[Scene] = field(default_factory=list)
    audio_levels: List[AudioSegment] = field(default_factory=list)
    visual_elements: List[VisualElement] = field(default_factory=list)
    prompt: str = ""
    has_reference_image: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


# ── specialist output ────────────────────────────────────────────────────────


@dataclass
class Analysis:
    """One specialist's findings for one request."""
    type: str
    confidence: float
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class EditingSuggestion:
    id: str
    type: SuggestionType
    priority: Priority
    description: str
    reasoning: str
    time_range: Optional[TimeRange] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    auto_apply: bool = False
    estimated_impact: Optional[float] = None
    prompt_hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EditingSuggestion":
        """Build from a snake_case or camelCase mapping (e.g. a JSON body)."""
        d = {_snake(k): v for k, v in data.items()}
        tr = d.get("time_range")
        time_range = TimeRange(float(tr["start"]), float(tr["end"])) if tr else None
        impact = d.get("estimated_impact")
        return cls(
            id=str(d["id"]),
            type=SuggestionType(d["type"]),
            priority=Priority(d.get("priority", "medium")),
            description=d.get("description", ""),
            reasoning=d.get("reasoning", ""),
            time_range=time_range,
            parameters=dict(d.get("parameters") or {}),
            auto_apply=bool(d.get("auto_apply", False)),
            estimated_impact=None if impact is None else float(impact),
            prompt_hint=d.get("prompt_hint"),
        )


@dataclass
class AgentCapability:
    name: str
    description: str
    input_types: List[str]
    output_types: List[str]
    confidence: float
    complexity: str                 # low | medium | high

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AgentAction:
    """Tracked execution of one suggestion.

    Moves ``pending → executing → completed | failed`` through
    :meth:`start`, :meth:`complete` and :meth:`fail`. Anything else raises
    :class:`InvalidActionTransition`.
    """
    id: str
    agent: str
    action: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    status: ActionStatus = ActionStatus.PENDING
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ActionStatus.COMPLETED, ActionStatus.FAILED)

    def start(self) -> None:
        self._move(ActionStatus.PENDING, ActionStatus.EXECUTING)

    def complete(self, result: Optional[Dict[str, Any]] = None) -> None:
        self._move(ActionStatus.EXECUTING, ActionStatus.COMPLETED)
        self.result = result

    def fail(self, error: str) -> None:
        self._move(ActionStatus.EXECUTING, ActionStatus.FAILED)
        self.error = error

    def _move(self, expected: ActionStatus, target: ActionStatus) -> None:
        if self.status != expected:
            raise InvalidActionTransition(
                f"action {self.id}: cannot go {self.status.value} -> {target.value}"
            )
        self.status = target

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


# ── user preferences ─────────────────────────────────────────────────────────


@dataclass
class EditingPreferences:
    """Per-specialist toggles. All auto-apply switches default to off."""
    aggressive_cutting: bool = False
    auto_remove_dead_space: bool = False
    auto_trim_static: bool = False
    auto_stabilize: bool = False
    auto_color_correct: bool = False
    auto_quality_enhance: bool = False
    auto_normalize_audio: bool = False
    auto_balance_audio: bool = False
    auto_smooth_audio: bool = False
    auto_compress_audio: bool = False
    auto_audio_duck: bool = False
    auto_add_transitions: bool = False
    auto_add_opening_transition: bool = False
    auto_add_closing_transition: bool = False
    add_branding: bool = False
    auto_generate_captions: bool = False
    auto_enhanced_captions: bool = False
    language: str = "en"
    identify_speakers: bool = False
    highlight_words: bool = False
    multi_language_support: bool = False
    target_languages: List[str] = field(default_factory=list)
    highlight_keywords: bool = False
    auto_highlight_keywords: bool = False
    use_color_coding: bool = False
    auto_audio_descriptions: bool = False
    base_font_size: int = 24
    font_scaling: float = 1.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "EditingPreferences":
        """Build from a snake_case or camelCase mapping. Unknown keys are ignored."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _snake(key)
            if name in known:
                kwargs[name] = list(value) if name == "target_languages" else value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── plan ─────────────────────────────────────────────────────────────────────


@dataclass
class RecommendedSettings:
    cost_priority: str
    required_capabilities: List[str]
    aspect_ratio: str
    duration_sec: float
    urgency: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class VideoPreparationPlan:
    """Aggregated result of one preparation run. Treat as read-only."""
    analysis_results: List[Analysis]
    suggestions: List[EditingSuggestion]
    optimized_prompt: str
    recommended_settings: RecommendedSettings
    estimated_cost: float
    confidence: float
    failed_specialists: List[str] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)

    @property
    def auto_apply_suggestions(self) -> List[EditingSuggestion]:
        return [s for s in self.suggestions if s.auto_apply]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis_results": [a.to_dict() for a in self.analysis_results],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "optimized_prompt": self.optimized_prompt,
            "recommended_settings": self.recommended_settings.to_dict(),
            "estimated_cost": self.estimated_cost,
            "confidence": self.confidence,
            "failed_specialists": list(self.failed_specialists),
            "created_at": self.created_at,
        }


# ── helpers ──────────────────────────────────────────────────────────────────

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _jsonable(value: Any) -> Any:
    """Turn enums and tuples from ``asdict`` output into JSON-friendly values."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
