"""Abstract VideoAgent interface — every editing specialist implements this."""
from __future__ import annotations

import random
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from backend.services.editing.types import (
    AgentAction,
    AgentCapability,
    Analysis,
    EditingPreferences,
    EditingSuggestion,
    Priority,
    SuggestionType,
    TimeRange,
    VideoAnalysis,
)


class ActionExecutionFailure(RuntimeError):
    """An agent could not carry out an action."""


class VideoAgent(ABC):
    """Abstract base for all editing specialists.

    A specialist looks at synthesized footage, reports what it found
    (``analyze``), proposes changes (``generate_suggestions``) and simulates
    carrying one out (``execute_action``).

    Specialists are responsible for:
    - Keeping suggestion output deterministic for the same footage/preferences
    - Never touching another specialist's state
    - Raising ``ActionExecutionFailure`` for actions they do not handle

    Only ``execute_action`` results are randomized (processing times and
    quality deltas); pass ``rng`` to make them reproducible.
    """

    #: Registry key used by the orchestrator (e.g. "cutter").
    key: str = ""
    #: Human readable name.
    name: str = ""
    description: str = ""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    @abstractmethod
    def analyze(self, footage: VideoAnalysis) -> Analysis:
        """Report findings for ``footage``. Must not depend on other agents."""

    @abstractmethod
    def generate_suggestions(
        self, footage: VideoAnalysis, preferences: EditingPreferences
    ) -> List[EditingSuggestion]:
        """Propose edits for ``footage``."""

    @abstractmethod
    def get_capabilities(self) -> List[AgentCapability]:
        """Static self-description used for discovery."""

    def supported_actions(self) -> List[str]:
        return list(self._action_handlers())

    def execute_action(self, action: AgentAction) -> Dict[str, Any]:
        """Simulate ``action`` and return a structured result.

        Raises:
            ActionExecutionFailure: If the action name is not handled here.
        """
        handler = self._action_handlers().get(action.action)
        if handler is None:
            raise ActionExecutionFailure(
                f"{self.name} cannot perform action '{action.action}'"
            )
        result = handler(action.parameters)
        result.setdefault("success", True)
        result.setdefault("processed_at", time.time())
        return result

    # ── helpers for subclasses ────────────────────────────────────────────────

    def _action_handlers(self) -> Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]]:
        return {}

    def _suggestion(
        self,
        type: SuggestionType,
        priority: Priority,
        description: str,
        reasoning: str,
        time_range: Optional[TimeRange] = None,
        parameters: Optional[Dict[str, Any]] = None,
        auto_apply: bool = False,
        estimated_impact: Optional[float] = None,
        prompt_hint: Optional[str] = None,
    ) -> EditingSuggestion:
        return EditingSuggestion(
            id=f"{self.key}_{uuid.uuid4().hex[:12]}",
            type=type,
            priority=priority,
            description=description,
            reasoning=reasoning,
            time_range=time_range,
            parameters=parameters or {},
            auto_apply=bool(auto_apply),
            estimated_impact=estimated_impact,
            prompt_hint=prompt_hint,
        )

    def _analysis(self, confidence: float, data: Dict[str, Any]) -> Analysis:
        return Analysis(type=self.key, confidence=round(clamp(confidence), 3), data=data)

    def _processing_time(self, low: float, high: float) -> float:
        return round(self._rng.uniform(low, high), 2)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def span(start: float, end: float) -> TimeRange:
    """TimeRange with ``start`` clamped to zero and ``end`` never before it."""
    start = max(0.0, start)
    return TimeRange(start, max(start, end))

