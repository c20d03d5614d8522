"""Tests for the TransitionAgent."""
import pytest

from backend.services.editing.agents.transition import TransitionAgent, TransitionType
from backend.services.editing.types import (
    AgentAction,
    EditingPreferences,
    Priority,
    SceneType,
)
from backend.tests.factories import make_audio, make_footage, make_scene


@pytest.fixture
def agent(seeded_rng):
    return TransitionAgent(rng=seeded_rng)


def _by_type(suggestions, ttype):
    return [s for s in suggestions if s.parameters.get("transition_type") == ttype.value]


class TestSelection:
    def test_action_to_action_high_delta(self, agent):
        a = make_scene(0, 4, SceneType.ACTION, motion=0.9)
        b = make_scene(4, 8, SceneType.ACTION, motion=0.4)
        assert agent.select_transition(a, b).transition_type == TransitionType.IMPACT_ZOOM

    def test_action_to_action_low_delta(self, agent):
        a = make_scene(0, 4, SceneType.ACTION, motion=0.8)
        b = make_scene(4, 8, SceneType.ACTION, motion=0.7)
        assert agent.select_transition(a, b).transition_type == TransitionType.MOTION_MATCH

    def test_same_type(self, agent):
        a, b = make_scene(0, 4), make_scene(4, 8)
        assert agent.select_transition(a, b).transition_type == TransitionType.CROSS_FADE

    def test_static_involved(self, agent):
        a = make_scene(0, 4)
        b = make_scene(4, 8, SceneType.STATIC, motion=0.1)
        assert agent.select_transition(a, b).transition_type == TransitionType.FADE_THROUGH_BLACK

    def test_large_energy_change(self, agent):
        a = make_scene(0, 4, motion=0.1)
        b = make_scene(4, 8, SceneType.ACTION, motion=0.9)
        assert agent.select_transition(a, b).transition_type == TransitionType.DYNAMIC_WIPE

    def test_otherwise_slide(self, agent):
        a = make_scene(0, 4, motion=0.3)
        b = make_scene(4, 8, SceneType.TRANSITION, motion=0.5)
        assert agent.select_transition(a, b).transition_type == TransitionType.SLIDE

    def test_selection_is_deterministic(self, agent):
        a = make_scene(0, 4, motion=0.1)
        b = make_scene(4, 8, SceneType.ACTION, motion=0.9)
        assert agent.select_transition(a, b) == agent.select_transition(a, b)

    def test_priority(self, agent):
        calm = make_scene(0, 4, motion=0.1)
        busy = make_scene(4, 8, SceneType.ACTION, motion=0.9)
        assert agent.transition_priority(calm, busy) == Priority.HIGH
        assert agent.transition_priority(calm, make_scene(4, 8, SceneType.ACTION, motion=0.2)) == Priority.MEDIUM
        assert agent.transition_priority(calm, make_scene(4, 8, motion=0.2)) == Priority.LOW


class TestSuggestions:
    def test_opening_and_closing(self, agent, prefs):
        footage = make_footage(8, scenes=[make_scene(0, 8)])
        suggestions = agent.generate_suggestions(footage, prefs)
        opening = _by_type(suggestions, TransitionType.FADE_IN)
        closing = _by_type(suggestions, TransitionType.FADE_OUT)
        assert (opening[0].time_range.start, opening[0].time_range.end) == (0, 1)
        assert (closing[0].time_range.start, closing[0].time_range.end) == (7, 8)
        assert opening[0].priority == Priority.MEDIUM

    def test_one_boundary_suggestion_per_pair(self, agent, prefs):
        footage = make_footage(12, scenes=[make_scene(0, 4), make_scene(4, 8), make_scene(8, 12)])
        fades = _by_type(agent.generate_suggestions(footage, prefs), TransitionType.CROSS_FADE)
        assert len(fades) == 2
        assert (fades[0].time_range.start, fades[0].time_range.end) == (3.5, 4.5)

    def test_branding_overlay(self, agent):
        footage = make_footage(8, scenes=[make_scene(0, 8)])
        suggestions = agent.generate_suggestions(footage, EditingPreferences(add_branding=True))
        assert _by_type(suggestions, TransitionType.FADE_IN)[0].parameters["overlay"] == "logo_fade"

    def test_beat_sync_with_music(self, agent, prefs):
        footage = make_footage(8, scenes=[make_scene(0, 8)], audio=[make_audio(0, 8, has_music=True)])
        assert len(_by_type(agent.generate_suggestions(footage, prefs), TransitionType.BEAT_SYNC)) == 1

    def test_no_scenes(self, agent, prefs):
        assert agent.generate_suggestions(make_footage(5), prefs) == []


class TestActions:
    def test_fade_action(self, agent):
        action = AgentAction(
            id="a1", agent="transition", action="fade",
            parameters={"duration": 1.0, "easing": "ease_out"},
        )
        result = agent.execute_action(action)
        assert result["fade_type"] == "cross_fade"
        assert result["duration"] == 1.0

    def test_supported_actions(self, agent):
        assert set(agent.supported_actions()) == {"transition", "fade", "wipe", "motion_match"}
