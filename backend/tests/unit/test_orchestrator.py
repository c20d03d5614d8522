"""Tests for VideoEditingAI — preparation fan-out, planning and execution."""
import asyncio
import time

import pytest

from backend.services.editing.agents.base import VideoAgent
from backend.services.editing.agents.smart_cutting import SmartCuttingAgent
from backend.services.editing.orchestrator import VideoEditingAI, sort_by_priority
from backend.services.editing.types import (
    ActionStatus,
    Analysis,
    EditingPreferences,
    EditingSuggestion,
    Priority,
    SuggestionType,
    TimeRange,
)
from backend.services.generation.types import (
    Budget,
    GenerationPreferences,
    GenerationRequest,
    ReferenceImage,
)
from backend.tests.factories import make_footage, make_scene


class BrokenAgent(VideoAgent):
    key = "broken"
    name = "Broken"

    def analyze(self, footage):
        raise RuntimeError("sensor offline")

    def generate_suggestions(self, footage, preferences):
        return []

    def get_capabilities(self):
        return []


class SlowAgent(VideoAgent):
    key = "slow"
    name = "Slow"

    def analyze(self, footage):
        time.sleep(0.3)
        return Analysis(type="slow", confidence=1.0)

    def generate_suggestions(self, footage, preferences):
        return []

    def get_capabilities(self):
        return []


def _suggestion(sid, priority, impact=None, hint=None, auto_apply=False,
                stype=SuggestionType.CUT):
    return EditingSuggestion(
        id=sid, type=stype, priority=priority, description="d", reasoning="r",
        time_range=TimeRange(0, 1), auto_apply=auto_apply,
        estimated_impact=impact, prompt_hint=hint,
    )


def _request(prompt, budget=Budget.MEDIUM, image=False, aspect_ratio=None):
    return GenerationRequest(
        prompt=prompt,
        reference_image=ReferenceImage(base64="AAAA") if image else None,
        aspect_ratio=aspect_ratio,
        preferences=GenerationPreferences(budget=budget),
    )


@pytest.fixture
def ai():
    return VideoEditingAI()


class TestPreparation:
    def test_all_specialists_contribute(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(_request("a chef explains a recipe")))
        assert {a.type for a in plan.analysis_results} == set(ai.agent_keys)
        assert plan.failed_specialists == []
        assert 0.0 <= plan.confidence <= 1.0

    def test_suggestions_sorted(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(
            _request("a woman runs through a busy street, then talks to a friend")
        ))
        ranks = [s.priority.rank for s in plan.suggestions]
        assert ranks == sorted(ranks, reverse=True)

    def test_failing_specialist_is_isolated(self):
        ai = VideoEditingAI(agents=[SmartCuttingAgent(), BrokenAgent()])
        plan = asyncio.run(ai.prepare_video_generation(_request("a dog runs")))
        assert plan.failed_specialists == ["broken"]
        assert [a.type for a in plan.analysis_results] == ["cutter"]

    def test_slow_specialist_times_out(self):
        ai = VideoEditingAI(agents=[SmartCuttingAgent(), SlowAgent()], specialist_timeout_sec=0.05)
        plan = asyncio.run(ai.prepare_video_generation(_request("a dog runs")))
        assert plan.failed_specialists == ["slow"]

    def test_no_specialists_zero_confidence(self):
        ai = VideoEditingAI(agents=[BrokenAgent()])
        plan = asyncio.run(ai.prepare_video_generation(_request("a dog runs")))
        assert plan.confidence == 0.0
        assert plan.suggestions == []


class TestRecommendedSettings:
    def test_no_capabilities_lowest(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(_request("mountain landscape")))
        settings = plan.recommended_settings
        assert settings.cost_priority == "lowest"
        assert settings.required_capabilities == []
        assert settings.aspect_ratio == "16:9"
        assert plan.estimated_cost == 0.05

    def test_two_capabilities_balanced(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(_request("a woman runs")))
        settings = plan.recommended_settings
        assert settings.required_capabilities == ["face_enhancement", "motion_control"]
        assert settings.cost_priority == "balanced"
        assert plan.estimated_cost == pytest.approx(0.35)

    def test_many_capabilities_quality(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(_request("a woman runs", image=True)))
        assert plan.recommended_settings.cost_priority == "quality"

    def test_low_budget_wins(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(
            _request("a woman runs", budget=Budget.LOW, image=True)
        ))
        assert plan.recommended_settings.cost_priority == "lowest"

    def test_high_budget_quality(self, ai):
        plan = asyncio.run(ai.prepare_video_generation(_request("a woman walks", budget=Budget.HIGH)))
        assert plan.recommended_settings.cost_priority == "quality"

    def test_aspect_ratio_sources(self, ai):
        explicit = asyncio.run(ai.prepare_video_generation(
            _request("a vertical reel of a cat", aspect_ratio="1:1")
        ))
        hinted = asyncio.run(ai.prepare_video_generation(_request("a vertical reel of a cat")))
        assert explicit.recommended_settings.aspect_ratio == "1:1"
        assert hinted.recommended_settings.aspect_ratio == "9:16"


class TestPromptAndConfidence:
    def test_optimize_prompt_uses_top_hints(self):
        suggestions = [
            _suggestion("a", Priority.HIGH, 0.75, "dynamic pacing"),
            _suggestion("b", Priority.HIGH, 0.8, "stabilized camera"),
            _suggestion("c", Priority.MEDIUM, 0.6, "vibrant colors"),
            _suggestion("d", Priority.MEDIUM, 0.55, "ignored: fourth"),
            _suggestion("e", Priority.LOW, 0.4, "ignored: low impact"),
        ]
        prompt = VideoEditingAI._optimize_prompt("a dog runs.", suggestions)
        assert prompt == "a dog runs, stabilized camera, dynamic pacing, vibrant colors"

    def test_optimize_prompt_dedupes_hints(self):
        suggestions = [
            _suggestion("a", Priority.HIGH, 0.8, "same hint"),
            _suggestion("b", Priority.HIGH, 0.7, "same hint"),
        ]
        assert VideoEditingAI._optimize_prompt("cat", suggestions) == "cat, same hint"

    def test_optimize_prompt_dedupes_before_taking_top_three(self):
        suggestions = [
            _suggestion("a", Priority.HIGH, 0.9, "steady camera"),
            _suggestion("b", Priority.HIGH, 0.9, "steady camera"),
            _suggestion("c", Priority.HIGH, 0.8, "steady camera"),
            _suggestion("d", Priority.MEDIUM, 0.7, "vibrant colors"),
            _suggestion("e", Priority.MEDIUM, 0.6, "crisp voice"),
        ]
        prompt = VideoEditingAI._optimize_prompt("a chef cooks", suggestions)
        assert prompt == "a chef cooks, steady camera, vibrant colors, crisp voice"

    def test_optimize_prompt_unchanged_without_hints(self):
        suggestions = [_suggestion("a", Priority.HIGH, 0.9)]
        assert VideoEditingAI._optimize_prompt("cat.", suggestions) == "cat."

    def test_confidence_formula(self):
        analyses = [Analysis(type="a", confidence=0.8), Analysis(type="b", confidence=0.6)]
        suggestions = [_suggestion(str(i), Priority.LOW) for i in range(5)]
        assert VideoEditingAI._confidence(analyses, suggestions) == pytest.approx(0.7 * 0.7 + 0.3 * 0.5)

    def test_confidence_corroboration_caps(self):
        analyses = [Analysis(type="a", confidence=1.0)]
        suggestions = [_suggestion(str(i), Priority.LOW) for i in range(25)]
        assert VideoEditingAI._confidence(analyses, suggestions) == 1.0


class TestPlanningAndExecution:
    def test_analyze_video_records_history(self, ai):
        footage = ai.analyze_video("a dog runs")
        assert footage.scenes
        assert list(ai.analysis_history) == [footage]

    def test_history_is_bounded_but_counts_are_totals(self):
        ai = VideoEditingAI(history_size=3)
        for i in range(10):
            ai.analyze_video(f"clip {i}: a dog runs")
        assert len(ai.analysis_history) == 3
        assert ai.analysis_history[-1].prompt == "clip 9: a dog runs"
        assert ai.get_status()["analyses_performed"] == 10

    def test_action_log_is_bounded(self):
        ai = VideoEditingAI(history_size=2)
        suggestions = [
            _suggestion(f"cutter_{i}", Priority.HIGH, auto_apply=True) for i in range(5)
        ]
        actions = ai.execute_editing_plan(suggestions)
        assert list(ai.action_log) == actions[-2:]
        assert ai.get_status()["actions_executed"] == 5

    def test_generate_editing_plan_sorted(self, ai):
        footage = make_footage(24, scenes=[make_scene(0, 12), make_scene(12, 24)])
        plan = ai.generate_editing_plan(footage, EditingPreferences())
        assert plan
        assert plan[0].priority == Priority.HIGH

    def test_execute_only_auto_apply(self, ai):
        suggestions = [
            _suggestion("cutter_1", Priority.HIGH, auto_apply=True),
            _suggestion("cutter_2", Priority.LOW, auto_apply=False),
        ]
        actions = ai.execute_editing_plan(suggestions)
        assert len(actions) == 1
        action = actions[0]
        assert action.status == ActionStatus.COMPLETED
        assert action.agent == "cutter"
        assert action.action == "cut"
        assert action.parameters["time_range"] == {"start": 0, "end": 1}
        assert action.id.startswith("action_")
        assert list(ai.action_log) == actions

    def test_missing_agent_fails_action(self):
        ai = VideoEditingAI(agents=[SmartCuttingAgent()])
        actions = ai.execute_editing_plan([
            _suggestion("caption_1", Priority.HIGH, auto_apply=True, stype=SuggestionType.CAPTION),
        ])
        assert actions[0].status == ActionStatus.FAILED
        assert "no agent registered" in actions[0].error

    def test_every_action_terminal(self, ai):
        suggestions = [
            _suggestion(f"s{i}", Priority.MEDIUM, auto_apply=True, stype=stype)
            for i, stype in enumerate(SuggestionType)
        ]
        actions = ai.execute_editing_plan(suggestions)
        assert len(actions) == len(SuggestionType)
        assert all(a.is_terminal for a in actions)

    def test_status_and_capabilities(self, ai):
        status = ai.get_status()
        assert len(status["agents"]) == 6
        caps = ai.get_capabilities()
        assert set(caps) == {"analyzer", "cutter", "enhancer", "audio", "transition", "caption"}

    def test_capabilities_are_idempotent(self, ai):
        first = ai.get_capabilities()
        second = ai.get_capabilities()
        assert first == second
        assert {k: [c.to_dict() for c in v] for k, v in first.items()} == {
            k: [c.to_dict() for c in v] for k, v in second.items()
        }


class TestSortByPriority:
    def test_stable_within_priority(self):
        items = [
            _suggestion("low", Priority.LOW),
            _suggestion("high1", Priority.HIGH),
            _suggestion("med", Priority.MEDIUM),
            _suggestion("high2", Priority.HIGH),
        ]
        assert [s.id for s in sort_by_priority(items)] == ["high1", "high2", "med", "low"]
