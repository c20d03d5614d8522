"""Tests for SmartVideoService — prepare, dispatch and fallback generation."""
import asyncio
from unittest.mock import MagicMock

import pytest

from backend.services.editing.agents.base import VideoAgent
from backend.services.editing.agents.content_analysis import ContentAnalysisAgent
from backend.services.editing.orchestrator import VideoEditingAI
from backend.services.editing.types import ActionStatus, EditingPreferences
from backend.services.generation.provider_router import ProviderRouter
from backend.services.generation.providers.base import ProviderError
from backend.services.generation.providers.mock import MockProvider
from backend.services.generation.smart_video import OutcomeStatus, SmartVideoService
from backend.services.generation.types import (
    CostPriority,
    GeneratedVisual,
    GenerationPreferences,
    GenerationRequest,
    Urgency,
)
from backend.services.shared.config import Config
from backend.tests.factories import FakeProvider


class FlakyProvider(FakeProvider):
    """Fails the first ``failures`` calls, then succeeds."""

    def __init__(self, failures=1, **kwargs):
        super().__init__(**kwargs)
        self._failures = failures

    def generate(self, request):
        if len(self.calls) < self._failures:
            self.calls.append(request)
            raise ProviderError("primary exploded")
        return super().generate(request)


class OfflineAgent(VideoAgent):
    key = "offline"
    name = "Offline"

    def analyze(self, footage):
        raise RuntimeError("model unavailable")

    def generate_suggestions(self, footage, preferences):
        return []

    def get_capabilities(self):
        return []


def _service(providers, **kwargs):
    return SmartVideoService(
        editing_ai=VideoEditingAI(),
        router=ProviderRouter(providers=providers),
        **kwargs,
    )


def _request(prompt="a woman runs through the park", editing=None, **prefs):
    return GenerationRequest(
        prompt=prompt,
        preferences=GenerationPreferences(editing=editing, **prefs),
    )


class TestPrepare:
    def test_plan_is_cached(self):
        service = _service([MockProvider()])
        request = _request()
        first = asyncio.run(service.prepare(request))
        second = asyncio.run(service.prepare(request))
        assert first is second

    def test_degraded_plan_not_cached(self):
        service = SmartVideoService(
            editing_ai=VideoEditingAI(agents=[ContentAnalysisAgent(), OfflineAgent()]),
            router=ProviderRouter(providers=[MockProvider()]),
        )
        request = _request()
        first = asyncio.run(service.prepare(request))
        second = asyncio.run(service.prepare(request))
        assert first.failed_specialists == ["offline"]
        assert first is not second
        assert service.status()["plan_cache"]["size"] == 0

    def test_different_preferences_not_shared(self):
        service = _service([MockProvider()])
        a = asyncio.run(service.prepare(_request(cost_priority=CostPriority.LOWEST)))
        b = asyncio.run(service.prepare(_request(cost_priority=CostPriority.QUALITY)))
        assert a is not b

    def test_prepare_never_calls_provider(self):
        provider = FakeProvider("p")
        asyncio.run(_service([provider]).prepare(_request()))
        assert provider.calls == []


class TestGenerate:
    def test_generated_with_optimized_prompt(self):
        provider = FakeProvider("p")
        outcome = asyncio.run(_service([provider]).generate(_request()))
        assert outcome.status == OutcomeStatus.GENERATED
        assert outcome.success is True
        assert outcome.used_fallback_generation is False
        sent = provider.calls[0]
        assert sent.prompt == outcome.plan.optimized_prompt
        settings = outcome.plan.recommended_settings
        assert sent.preferences.cost_priority == CostPriority(settings.cost_priority)
        assert sorted(sent.preferences.required_capabilities) == settings.required_capabilities

    def test_low_confidence_stops_before_dispatch(self):
        provider = FakeProvider("p")
        outcome = asyncio.run(_service([provider], min_confidence=1.01).generate(_request()))
        assert outcome.status == OutcomeStatus.LOW_CONFIDENCE
        assert provider.calls == []
        body = outcome.to_dict("a woman runs through the park")
        assert body["success"] is False
        assert body["error"] == "Low confidence in video generation success"
        assert len(body["details"]["suggestions"]) <= 3

    def test_fallback_uses_original_prompt_and_lowest_cost(self):
        provider = FlakyProvider(name="p", failures=1)
        request = _request(urgency=Urgency.HIGH, required_capabilities=frozenset({"motion_control"}))
        outcome = asyncio.run(_service([provider]).generate(request))
        assert outcome.status == OutcomeStatus.GENERATED
        assert outcome.used_fallback_generation is True
        assert outcome.primary_error == "primary exploded"
        retry = provider.calls[1]
        assert retry.prompt == request.prompt
        assert retry.preferences.cost_priority == CostPriority.LOWEST
        assert retry.preferences.urgency == Urgency.LOW
        assert retry.preferences.required_capabilities == frozenset()
        assert outcome.to_dict()["warning"].startswith("Used fallback generation")

    def test_all_providers_failed(self):
        provider = FlakyProvider(name="p", failures=2)
        outcome = asyncio.run(_service([provider]).generate(_request()))
        assert outcome.status == OutcomeStatus.ALL_PROVIDERS_FAILED
        body = outcome.to_dict()
        assert body["success"] is False
        assert body["details"]["primary_error"] == "primary exploded"
        assert body["details"]["fallback_error"] == "primary exploded"

    def test_no_providers(self):
        outcome = asyncio.run(_service([]).generate(_request()))
        assert outcome.status == OutcomeStatus.ALL_PROVIDERS_FAILED
        assert outcome.result.provider == "none"

    def test_auto_apply_executes_actions(self):
        editing = EditingPreferences(auto_normalize_audio=True, auto_generate_captions=True)
        outcome = asyncio.run(_service([MockProvider()]).generate(
            _request("a girl whispers", editing=editing), auto_apply=True,
        ))
        assert outcome.actions
        assert len(outcome.actions) == len(outcome.plan.auto_apply_suggestions)
        assert all(a.status == ActionStatus.COMPLETED for a in outcome.actions)

    def test_no_actions_without_auto_apply(self):
        editing = EditingPreferences(auto_normalize_audio=True)
        outcome = asyncio.run(_service([MockProvider()]).generate(
            _request("a girl whispers", editing=editing),
        ))
        assert outcome.actions == []


class TestSaveCallback:
    def test_visual_stored(self):
        save = MagicMock()
        outcome = asyncio.run(_service([FakeProvider("p")], save=save).generate(_request()))
        save.assert_called_once()
        visual = save.call_args[0][0]
        assert isinstance(visual, GeneratedVisual)
        assert visual.provider == "p"
        assert visual.prompt == "a woman runs through the park"
        assert outcome.visual is visual
        assert outcome.to_dict()["visual_id"] == visual.visual_id

    def test_failing_save_does_not_fail_generation(self):
        save = MagicMock(side_effect=IOError("disk full"))
        outcome = asyncio.run(_service([FakeProvider("p")], save=save).generate(_request()))
        assert outcome.status == OutcomeStatus.GENERATED
        assert outcome.visual is None


class TestStatusAndConfig:
    def test_status(self):
        status = _service([MockProvider()]).status()
        assert status["status"] == "operational"
        assert status["available_providers"][0]["name"] == "mock"
        assert len(status["agent_capabilities"]) == 6

    def test_status_limited_without_providers(self):
        assert _service([]).status()["status"] == "limited"

    def test_from_config_shares_instances(self, sample_settings):
        router = ProviderRouter(providers=[MockProvider()])
        service = SmartVideoService.from_config(Config(str(sample_settings)), router=router)
        assert service.router is router
