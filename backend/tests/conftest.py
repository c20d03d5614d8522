"""Shared test fixtures for Clip Studio."""
import random
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
import yaml

from backend.services.editing.types import EditingPreferences
from backend.tests.factories import FakeClock


@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).parent.parent.parent


@pytest.fixture
def tmp_dir() -> Generator[Path, None, None]:
    d = Path(tempfile.mkdtemp())
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def sample_settings(tmp_dir: Path) -> Path:
    """Write a minimal settings.yaml to a temp dir and return its path."""
    settings = {
        "logging": {"level": "DEBUG", "file": str(tmp_dir / "test.log")},
        "providers": {
            "backoff_sec": 120,
            "balanced_preference": ["fal"],
            "mock_latency_sec": 0.0,
            "http_timeout_sec": 5.0,
        },
        "preparation": {
            "specialist_timeout_sec": 2.0,
            "min_confidence": 0.4,
            "plan_cache_size": 8,
            "plan_cache_ttl_sec": 60,
        },
        "cost": {
            "base": {"lowest": 0.1, "balanced": 0.2, "quality": 0.6},
            "per_capability": 0.05,
        },
    }
    cfg_path = tmp_dir / "settings.yaml"
    cfg_path.write_text(yaml.dump(settings))
    return cfg_path


@pytest.fixture
def prefs() -> EditingPreferences:
    return EditingPreferences()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_provider_keys(monkeypatch):
    """Make sure real providers are never discovered from the environment."""
    for name in ("GEMINI_API_KEY", "FAL_API_KEY", "RUNWAY_API_KEY"):
        monkeypatch.delenv(name, raising=False)


# ─────────────────────────────────────────────────────────────────────────────
# FastAPI TestClient
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def offline_services():
    """Install services backed only by the mock provider, then restore."""
    from backend.routers.dependencies import reset_services, set_services
    from backend.services.editing.orchestrator import VideoEditingAI
    from backend.services.generation.provider_router import ProviderRouter
    from backend.services.generation.providers.mock import MockProvider
    from backend.services.generation.smart_video import SmartVideoService

    editing_ai = VideoEditingAI()
    router = ProviderRouter(providers=[MockProvider()])
    service = SmartVideoService(editing_ai=editing_ai, router=router)
    set_services(editing_ai, router, service)
    yield service
    reset_services()


@pytest.fixture
def api_client(offline_services):
    """FastAPI TestClient wired to offline services."""
    from fastapi.testclient import TestClient
    from backend.main import app
    with TestClient(app) as c:
        yield c
