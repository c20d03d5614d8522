"""FastAPI backend — unit tests for router structure and endpoint contracts.

Tests verify:
- Every router is importable and exposes a .router attribute
- main.py app is importable and mounts every router at its prefix
- Request bodies convert into the service-layer request types
"""
from __future__ import annotations

import importlib

import pytest

from backend.services.generation.types import Budget, CostPriority, Urgency


ROUTER_MODULES = [
    "backend.routers.agents",
    "backend.routers.smart_video",
    "backend.routers.providers",
    "backend.routers.system",
]


# ═══════════════════════════════════════════════════════════════════════════════
# Router import checks
# ═══════════════════════════════════════════════════════════════════════════════


class TestRouterImports:
    @pytest.mark.parametrize("module_path", ROUTER_MODULES)
    def test_router_module_importable(self, module_path: str):
        mod = importlib.import_module(module_path)
        assert mod is not None

    @pytest.mark.parametrize("module_path", ROUTER_MODULES)
    def test_router_is_fastapi_router(self, module_path: str):
        from fastapi import APIRouter
        mod = importlib.import_module(module_path)
        assert isinstance(mod.router, APIRouter), (
            f"{module_path}.router must be an APIRouter instance"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# main.py app
# ═══════════════════════════════════════════════════════════════════════════════


class TestMainApp:
    def test_app_is_fastapi_instance(self):
        from fastapi import FastAPI
        mod = importlib.import_module("backend.main")
        assert isinstance(mod.app, FastAPI)

    def test_all_routers_mounted(self):
        mod = importlib.import_module("backend.main")
        route_paths = set(mod.app.openapi()["paths"])
        for path in (
            "/api/ai-agents",
            "/api/ai-agents/capabilities",
            "/api/ai-agents/analyze",
            "/api/ai-agents/plan",
            "/api/ai-agents/execute",
            "/api/smart-video/prepare",
            "/api/smart-video/generate",
            "/api/smart-video/status",
            "/api/providers",
            "/api/providers/available",
            "/api/system/health",
        ):
            assert path in route_paths, f"{path} not mounted in backend/main.py"

    def test_app_title(self):
        mod = importlib.import_module("backend.main")
        assert mod.app.title == "Clip Studio"

    def test_cors_middleware_configured(self):
        mod = importlib.import_module("backend.main")
        cors_present = any(
            "cors" in str(getattr(m, "cls", "")).lower() for m in mod.app.user_middleware
        )
        assert cors_present, "CORS middleware must be configured in main.py"


# ═══════════════════════════════════════════════════════════════════════════════
# Request bodies
# ═══════════════════════════════════════════════════════════════════════════════


class TestGenerationBody:
    def test_defaults(self):
        from backend.routers.dependencies import GenerationBody
        request = GenerationBody(prompt="a cat").to_request()
        assert request.prompt == "a cat"
        assert request.reference_image is None
        assert request.preferences.cost_priority == CostPriority.BALANCED
        assert request.preferences.editing is not None

    def test_full_body(self):
        from backend.routers.dependencies import GenerationBody
        body = GenerationBody(
            prompt="a cat",
            reference_image="data:image/jpeg;base64,QUJD",
            aspect_ratio="9:16",
            preferences={
                "cost_priority": "quality",
                "urgency": "high",
                "budget": "low",
                "required_capabilities": ["faceEnhancement"],
                "editing": {"autoNormalizeAudio": True},
            },
        )
        request = body.to_request()
        assert request.reference_image.mime_type == "image/jpeg"
        assert request.reference_image.base64 == "QUJD"
        prefs = request.preferences
        assert prefs.cost_priority == CostPriority.QUALITY
        assert prefs.urgency == Urgency.HIGH
        assert prefs.budget == Budget.LOW
        assert prefs.required_capabilities == frozenset({"face_enhancement"})
        assert prefs.editing.auto_normalize_audio is True

    def test_empty_prompt_rejected(self):
        from pydantic import ValidationError
        from backend.routers.dependencies import GenerationBody
        with pytest.raises(ValidationError):
            GenerationBody(prompt="")

    def test_bad_priority_rejected(self):
        from pydantic import ValidationError
        from backend.routers.dependencies import GenerationBody
        with pytest.raises(ValidationError):
            GenerationBody(prompt="a cat", preferences={"cost_priority": "free"})


# ═══════════════════════════════════════════════════════════════════════════════
# Endpoint responses
# ═══════════════════════════════════════════════════════════════════════════════


class TestAgentsEndpoints:
    def test_status(self, api_client):
        body = api_client.get("/api/ai-agents").json()
        assert body["status"] == "operational"
        assert len(body["agents"]) == 6
        assert body["total_capabilities"] > 0

    def test_capabilities(self, api_client):
        body = api_client.get("/api/ai-agents/capabilities").json()
        assert set(body["capabilities"]) == {
            "analyzer", "cutter", "enhancer", "audio", "transition", "caption",
        }

    def test_analyze(self, api_client):
        resp = api_client.post("/api/ai-agents/analyze", json={"video_url": "a dog runs, then sleeps"})
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["analysis"]["scenes"]) == 2
        assert body["summary"]["type"] == "analyzer"

    def test_analyze_requires_url(self, api_client):
        assert api_client.post("/api/ai-agents/analyze", json={}).status_code == 422

    def test_plan_sorted(self, api_client):
        resp = api_client.post(
            "/api/ai-agents/plan",
            json={"video_url": "a girl whispers", "preferences": {"autoNormalizeAudio": True}},
        )
        body = resp.json()
        order = {"critical": 4, "high": 3, "medium": 2, "low": 1}
        ranks = [order[s["priority"]] for s in body["suggestions"]]
        assert ranks == sorted(ranks, reverse=True)
        assert body["auto_apply_count"] >= 1

    def test_execute(self, api_client):
        suggestion = {
            "id": "audio_1",
            "type": "audio",
            "priority": "high",
            "description": "normalize",
            "reasoning": "quiet",
            "timeRange": {"start": 0, "end": 4},
            "parameters": {"enhancement_type": "volume_normalization"},
            "autoApply": True,
        }
        body = api_client.post("/api/ai-agents/execute", json={"suggestions": [suggestion]}).json()
        assert body["completed"] == 1
        assert body["failed"] == 0
        assert body["actions"][0]["status"] == "completed"

    def test_execute_invalid_suggestion(self, api_client):
        resp = api_client.post(
            "/api/ai-agents/execute", json={"suggestions": [{"id": "x", "type": "teleport"}]},
        )
        assert resp.status_code == 422


class TestSmartVideoEndpoints:
    def test_prepare(self, api_client):
        resp = api_client.post("/api/smart-video/prepare", json={"prompt": "a woman runs"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["recommended_settings"]["cost_priority"] == "balanced"
        assert len(body["analysis_results"]) == 6

    def test_generate_with_mock(self, api_client):
        resp = api_client.post("/api/smart-video/generate", json={"prompt": "a woman runs"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["provider"] == "mock"
        assert "optimizations" in body

    def test_generate_low_confidence(self, api_client, offline_services):
        offline_services._min_confidence = 1.01
        resp = api_client.post("/api/smart-video/generate", json={"prompt": "a woman runs"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Low confidence in video generation success"

    def test_generate_all_failed(self, api_client, offline_services):
        offline_services.router.report_failure("mock")
        resp = api_client.post("/api/smart-video/generate", json={"prompt": "a woman runs"})
        assert resp.status_code == 503
        assert resp.json()["error"] == "All video generation providers failed"

    def test_status(self, api_client):
        body = api_client.get("/api/smart-video/status").json()
        assert body["status"] == "operational"
        assert [p["name"] for p in body["available_providers"]] == ["mock"]


class TestProvidersEndpoints:
    def test_list(self, api_client):
        body = api_client.get("/api/providers").json()
        assert body["total"] == 1
        assert body["providers"][0]["simulated"] is True

    def test_available_after_failure(self, api_client, offline_services):
        offline_services.router.report_failure("mock")
        assert api_client.get("/api/providers/available").json() == {"available": [], "total": 0}


class TestSystemEndpoints:
    def test_health(self, api_client):
        assert api_client.get("/api/system/health").json() == {"status": "ok", "version": "1.0.0"}
