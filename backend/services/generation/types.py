"""Data types for the Clip Studio generation (dispatch) layer."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple


class CostPriority(str, enum.Enum):
    LOWEST = "lowest"
    BALANCED = "balanced"
    QUALITY = "quality"


class Urgency(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Budget(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CostTier(str, enum.Enum):
    """Relative price band of a provider, cheapest first."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {CostTier.LOW: 1, CostTier.MEDIUM: 2, CostTier.HIGH: 3}

# Capability name → ProviderCapabilities attribute. camelCase aliases are
# accepted so payloads from the web client route without translation.
CAPABILITY_FIELDS: Dict[str, str] = {
    "image_to_video": "image_to_video",
    "text_to_video": "text_to_video",
    "custom_styles": "custom_styles",
    "face_enhancement": "face_enhancement",
    "motion_control": "motion_control",
    "imageToVideo": "image_to_video",
    "textToVideo": "text_to_video",
    "customStyles": "custom_styles",
    "faceEnhancement": "face_enhancement",
    "motionControl": "motion_control",
}


def normalize_capability(name: str) -> str:
    """Map a capability name (snake_case or camelCase) to its canonical form."""
    return CAPABILITY_FIELDS.get(name, name)


def normalize_capabilities(names: Iterable[str]) -> FrozenSet[str]:
    return frozenset(normalize_capability(n) for n in names if n)


@dataclass(frozen=True)
class ReferenceImage:
    """Reference image passed to image-to-video providers."""
    base64: str
    mime_type: str = "image/png"

    @classmethod
    def from_data_url(cls, value: str) -> "ReferenceImage":
        """Accept ``data:<mime>;base64,<payload>`` or a bare base64 string."""
        if value.startswith("data:") and "," in value:
            header, payload = value.split(",", 1)
            mime = header[len("data:"):].split(";")[0] or "image/png"
            return cls(base64=payload, mime_type=mime)
        return cls(base64=value)

    def as_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


@dataclass(frozen=True)
class GenerationPreferences:
    """User preferences attached to one generation request."""
    cost_priority: CostPriority = CostPriority.BALANCED
    urgency: Urgency = Urgency.MEDIUM
    required_capabilities: FrozenSet[str] = frozenset()
    budget: Budget = Budget.MEDIUM
    style: str = ""
    # EditingPreferences; typed loosely to keep this module free of editing imports
    editing: Any = None

    def __post_init__(self):
        object.__setattr__(
            self, "required_capabilities", normalize_capabilities(self.required_capabilities)
        )


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable input for one user action. Never mutated after creation."""
    prompt: str
    reference_image: Optional[ReferenceImage] = None
    preferences: GenerationPreferences = field(default_factory=GenerationPreferences)
    aspect_ratio: Optional[str] = None
    negative_prompt: Optional[str] = None

    @property
    def has_reference_image(self) -> bool:
        return self.reference_image is not None


@dataclass(frozen=True)
class ProviderCapabilities:
    """Static capability flags advertised by one provider."""
    max_duration_sec: float
    aspect_ratios: FrozenSet[str]
    image_to_video: bool = False
    text_to_video: bool = True
    custom_styles: bool = False
    face_enhancement: bool = False
    motion_control: bool = False

    def supports(self, capability: str) -> bool:
        """True if the capability flag is set. Unknown capabilities pass."""
        attr = CAPABILITY_FIELDS.get(capability)
        if attr is None:
            return True
        return bool(getattr(self, attr))

    def enabled(self) -> List[str]:
        return [
            name for name in ("image_to_video", "text_to_video", "custom_styles",
                              "face_enhancement", "motion_control")
            if getattr(self, name)
        ]


@dataclass
class QuotaStatus:
    """Live quota state of a provider. Owned by the router's registry entry."""
    available: bool = True
    requests_remaining: Optional[int] = None
    reset_time: Optional[float] = None   # epoch seconds


@dataclass(frozen=True)
class ProviderSelection:
    """Outcome of provider selection.

    ``used_fallback`` is True when no provider satisfied every required
    capability and the first available provider was chosen anyway;
    ``missing_capabilities`` lists what the chosen provider lacks.
    """
    provider: Any   # VideoProvider
    used_fallback: bool = False
    missing_capabilities: Tuple[str, ...] = ()

    @property
    def provider_name(self) -> str:
        return self.provider.name()


@dataclass
class GenerationResult:
    """Structured result of a dispatch. Failures never raise."""
    success: bool
    provider: str
    operation_id: Optional[str] = None
    video_url: Optional[str] = None
    cost: Optional[float] = None
    error: Optional[str] = None
    estimated_time_sec: Optional[float] = None
    used_fallback: bool = False
    missing_capabilities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, "provider": self.provider}
        for key in ("operation_id", "video_url", "cost", "error", "estimated_time_sec"):
            val = getattr(self, key)
            if val is not None:
                out[key] = val
        out["used_fallback"] = self.used_fallback
        if self.missing_capabilities:
            out["missing_capabilities"] = list(self.missing_capabilities)
        return out


@dataclass(frozen=True)
class GeneratedVisual:
    """What gets handed to the external storage collaborator after success."""
    visual_id: str
    prompt: str
    provider: str
    video_url: Optional[str]
    operation_id: Optional[str]
    cost: Optional[float]
    created_at: float
