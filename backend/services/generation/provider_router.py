"""ProviderRouter — picks and invokes one video generation provider."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from backend.services.generation.cost_estimator import CostEstimator
from backend.services.generation.providers.base import (
    ProviderError,
    QuotaExceededError,
    VideoProvider,
)
from backend.services.generation.providers.fal import FalProvider
from backend.services.generation.providers.mock import MockProvider
from backend.services.generation.providers.runway import RunwayProvider
from backend.services.generation.providers.veo import VeoProvider
from backend.services.generation.types import (
    CostPriority,
    GenerationRequest,
    GenerationResult,
    ProviderSelection,
    QuotaStatus,
)

logger = logging.getLogger("clip_studio.generation.provider_router")

DEFAULT_BACKOFF_SEC = 3600.0
DEFAULT_BALANCED_PREFERENCE = ("fal",)
NO_PROVIDER_ERROR = "No available providers with sufficient quota"


@dataclass
class ProviderEntry:
    """One registry slot. The quota state lives here, not on the provider."""
    provider: VideoProvider
    quota: QuotaStatus
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    request_budget: Optional[int] = None

    def __post_init__(self):
        if self.request_budget is None:
            self.request_budget = self.quota.requests_remaining

    def disable(self, until: float) -> None:
        with self.lock:
            self.quota.available = False
            self.quota.reset_time = until

    def refresh(self, now: float) -> bool:
        """Re-enable if the back-off has elapsed. Returns current availability."""
        with self.lock:
            if (
                not self.quota.available
                and self.quota.reset_time is not None
                and now >= self.quota.reset_time
            ):
                self.quota.available = True
                self.quota.reset_time = None
                if self.request_budget is not None:
                    self.quota.requests_remaining = self.request_budget
                logger.info("Provider %s re-enabled after back-off", self.provider.name())
            return self.quota.available

    def snapshot(self) -> QuotaStatus:
        with self.lock:
            return QuotaStatus(
                available=self.quota.available,
                requests_remaining=self.quota.requests_remaining,
                reset_time=self.quota.reset_time,
            )


class ProviderRouter:
    """Selects the best available provider for a request and calls it.

    Selection logic:
    1. Re-enable providers whose back-off has elapsed, drop unavailable ones
    2. Keep providers that satisfy every required capability
    3. If none do, fall back to the first available provider and flag it
    4. Rank by cost priority; simulated providers always rank last
       - lowest:   ascending cost tier
       - quality:  descending cost tier
       - balanced: preferred provider names first
       Ties keep registration order.

    Usage::

        router = ProviderRouter()
        selection = router.select_best_provider(request)
        result = router.generate_video(request)
    """

    def __init__(
        self,
        providers: Optional[Sequence[VideoProvider]] = None,
        backoff_sec: float = DEFAULT_BACKOFF_SEC,
        balanced_preference: Sequence[str] = DEFAULT_BALANCED_PREFERENCE,
        clock: Callable[[], float] = time.time,
        mock_latency_sec: float = 0.0,
        http_timeout_sec: float = 60.0,
        cost_estimator: Optional[CostEstimator] = None,
    ):
        if providers is None:
            providers = self._discover_providers(mock_latency_sec, http_timeout_sec)
        self._entries: List[ProviderEntry] = [
            ProviderEntry(provider=p, quota=p.initial_quota()) for p in providers
        ]
        self._by_name: Dict[str, ProviderEntry] = {
            e.provider.name(): e for e in self._entries
        }
        self._backoff_sec = backoff_sec
        self._balanced_preference = tuple(balanced_preference)
        self._clock = clock
        self._cost_estimator = cost_estimator or CostEstimator()
        logger.info(
            "ProviderRouter registry: %s", [e.provider.name() for e in self._entries]
        )

    @classmethod
    def from_config(cls, config) -> "ProviderRouter":
        """Build the default registry using settings from a Config instance."""
        return cls(
            backoff_sec=config.get_float("providers.backoff_sec", DEFAULT_BACKOFF_SEC),
            balanced_preference=config.get(
                "providers.balanced_preference", list(DEFAULT_BALANCED_PREFERENCE)
            ),
            mock_latency_sec=config.get_float("providers.mock_latency_sec", 0.0),
            http_timeout_sec=config.get_float("providers.http_timeout_sec", 60.0),
            cost_estimator=CostEstimator.from_config(config),
        )

    # ── public ────────────────────────────────────────────────────────────────

    def get_available_providers(self) -> List[VideoProvider]:
        """Return providers whose quota is currently available, in registry order."""
        now = self._clock()
        return [e.provider for e in self._entries if e.refresh(now)]

    def select_best_provider(self, request: GenerationRequest) -> Optional[ProviderSelection]:
        """Choose a provider for ``request``.

        Returns:
            A ProviderSelection, or None when no provider is available.
        """
        available = self.get_available_providers()
        if not available:
            return None

        prefs = request.preferences
        required = sorted(prefs.required_capabilities)
        capable = [
            p for p in available
            if all(p.capabilities().supports(cap) for cap in required)
        ]

        if not capable:
            fallback = available[0]
            missing = tuple(
                cap for cap in required if not fallback.capabilities().supports(cap)
            )
            logger.warning(
                "No provider satisfies %s; falling back to %s (missing %s)",
                required, fallback.name(), list(missing),
            )
            return ProviderSelection(
                provider=fallback, used_fallback=True, missing_capabilities=missing,
            )

        ranked = self._rank(capable, prefs.cost_priority)
        return ProviderSelection(provider=ranked[0])

    def generate_video(self, request: GenerationRequest) -> GenerationResult:
        """Select a provider and call it. Never raises."""
        selection = self.select_best_provider(request)
        if selection is None:
            return GenerationResult(success=False, provider="none", error=NO_PROVIDER_ERROR)

        provider = selection.provider
        name = provider.name()
        logger.info(
            "Dispatching to %s (priority=%s, fallback=%s)",
            name, request.preferences.cost_priority.value, selection.used_fallback,
        )
        try:
            result = provider.generate(request)
        except QuotaExceededError as exc:
            self.report_failure(name, exc.retry_after)
            result = GenerationResult(success=False, provider=name, error=str(exc))
        except ProviderError as exc:
            logger.error("Provider %s failed: %s", name, exc)
            result = GenerationResult(success=False, provider=name, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error from provider %s", name)
            result = GenerationResult(success=False, provider=name, error=str(exc))
        else:
            if result.success:
                self._consume_request(name)

        result.used_fallback = selection.used_fallback
        result.missing_capabilities = list(selection.missing_capabilities)
        return result

    def report_failure(self, name: str, retry_after: Optional[float] = None) -> None:
        """Disable ``name`` until ``now + retry_after`` (or the default back-off).

        Raises:
            KeyError: If no provider with that name is registered.
        """
        entry = self._by_name[name]
        delay = self._backoff_sec if retry_after is None else retry_after
        entry.disable(self._clock() + delay)
        logger.warning("Provider %s disabled for %.0fs", name, delay)

    def quota_status(self, name: str) -> QuotaStatus:
        """Return a copy of a provider's quota state."""
        return self._by_name[name].snapshot()

    def provider_names(self) -> List[str]:
        return [e.provider.name() for e in self._entries]

    def describe_providers(self) -> List[Dict]:
        """Registry summary for the providers endpoint."""
        now = self._clock()
        out = []
        for entry in self._entries:
            p = entry.provider
            entry.refresh(now)
            quota = entry.snapshot()
            caps = p.capabilities()
            out.append({
                "name": p.name(),
                "cost_tier": p.cost_tier().value,
                "simulated": p.is_simulated(),
                "estimated_cost": self._cost_estimator.estimate_provider_cost(p),
                "capabilities": {
                    "max_duration_sec": caps.max_duration_sec,
                    "aspect_ratios": sorted(caps.aspect_ratios),
                    "enabled": caps.enabled(),
                },
                "quota": {
                    "available": quota.available,
                    "requests_remaining": quota.requests_remaining,
                    "reset_time": quota.reset_time,
                },
            })
        return out

    # ── internal ──────────────────────────────────────────────────────────────

    def _rank(
        self, providers: List[VideoProvider], priority: CostPriority
    ) -> List[VideoProvider]:
        def sort_key(item):
            index, provider = item
            if priority == CostPriority.LOWEST:
                middle = provider.cost_tier().rank
            elif priority == CostPriority.QUALITY:
                middle = -provider.cost_tier().rank
            else:
                middle = 0 if provider.name() in self._balanced_preference else 1
            return (provider.is_simulated(), middle, index)

        return [p for _, p in sorted(enumerate(providers), key=sort_key)]

    def _consume_request(self, name: str) -> None:
        entry = self._by_name[name]
        with entry.lock:
            if entry.quota.requests_remaining is not None:
                entry.quota.requests_remaining = max(0, entry.quota.requests_remaining - 1)
                if entry.quota.requests_remaining == 0:
                    entry.quota.available = False
                    entry.quota.reset_time = self._clock() + self._backoff_sec
                    logger.warning("Provider %s exhausted its request quota", name)

    @staticmethod
    def _discover_providers(
        mock_latency_sec: float = 0.0, http_timeout_sec: float = 60.0
    ) -> List[VideoProvider]:
        """Instantiate known providers in registration order.

        Real providers are registered only when their API key is set; the mock
        provider is always present.
        """
        real: List[VideoProvider] = [
            VeoProvider(timeout_sec=http_timeout_sec),      # Highest quality, tight daily quota
            FalProvider(timeout_sec=http_timeout_sec),      # Balanced cost
            RunwayProvider(timeout_sec=http_timeout_sec),   # Premium
        ]
        providers = [p for p in real if p.is_configured()]
        skipped = [p.name() for p in real if not p.is_configured()]
        if skipped:
            logger.info("Providers without API keys skipped: %s", skipped)
        providers.append(MockProvider(latency_sec=mock_latency_sec))
        return providers
