"""Abstract VideoProvider interface — every generation backend implements this."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from backend.services.generation.types import (
    CostTier,
    GenerationRequest,
    GenerationResult,
    ProviderCapabilities,
    QuotaStatus,
)


class ProviderError(RuntimeError):
    """A provider call failed for a reason other than rate limiting."""


class QuotaExceededError(ProviderError):
    """The provider signalled rate limiting / quota exhaustion (HTTP 429).

    Attributes:
        retry_after: Seconds the provider asked us to wait, when it said so.
    """

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class VideoProvider(ABC):
    """Abstract base for all video generation providers.

    Each provider wraps one external (or simulated) generation service and
    exposes a uniform interface so the ProviderRouter can filter, rank and
    invoke them without knowing which service is behind them.

    Providers are responsible for:
    - Declaring their cost tier and capability flags
    - Reporting whether they are configured (API key present)
    - Calling their service in ``generate()`` and raising
      ``QuotaExceededError`` on rate limiting, ``ProviderError`` otherwise

    Providers never hold quota state; the router's registry owns it.
    """

    @abstractmethod
    def name(self) -> str:
        """Short identifier for this provider (e.g. "fal")."""

    @abstractmethod
    def cost_tier(self) -> CostTier:
        """Relative price band used for cost-priority ranking."""

    @abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        """Static capability flags."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True if the provider can be registered (e.g. API key set)."""

    @abstractmethod
    def estimated_cost(self) -> float:
        """Estimated USD cost of one generation."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Submit one generation request.

        Returns:
            A successful GenerationResult carrying ``video_url`` and/or
            ``operation_id`` (asynchronous services are polled by the host).

        Raises:
            QuotaExceededError: The service is rate limiting us.
            ProviderError: Any other service failure.
        """

    def is_simulated(self) -> bool:
        """True for local/mock providers that produce no real media."""
        return False

    def initial_quota(self) -> QuotaStatus:
        """Quota state the registry starts from."""
        return QuotaStatus(available=True)
