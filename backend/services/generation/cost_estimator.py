"""CostEstimator — plan-level and provider-level generation cost estimates."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from backend.services.generation.providers.base import VideoProvider
from backend.services.generation.types import CostPriority

logger = logging.getLogger("clip_studio.generation.cost_estimator")

DEFAULT_BASE_COST: Dict[CostPriority, float] = {
    CostPriority.LOWEST: 0.05,
    CostPriority.BALANCED: 0.15,
    CostPriority.QUALITY: 0.50,
}
DEFAULT_PER_CAPABILITY = 0.10


class CostEstimator:
    """Estimates the USD cost of one generation.

    Plan estimates are a base cost for the cost-priority tier plus a fixed
    increment per required capability. Provider estimates defer to the
    provider's own figure.

    Usage::

        est = CostEstimator()
        est.estimate_plan_cost(CostPriority.BALANCED, ["face_enhancement"])  # 0.25
    """

    def __init__(
        self,
        base_cost: Optional[Mapping] = None,
        per_capability: float = DEFAULT_PER_CAPABILITY,
    ):
        self._base_cost: Dict[CostPriority, float] = dict(DEFAULT_BASE_COST)
        for key, value in (base_cost or {}).items():
            self._base_cost[CostPriority(key)] = float(value)
        self._per_capability = per_capability

    @classmethod
    def from_config(cls, config) -> "CostEstimator":
        return cls(
            base_cost=config.get("cost.base", {}),
            per_capability=config.get_float("cost.per_capability", DEFAULT_PER_CAPABILITY),
        )

    def estimate_plan_cost(
        self,
        cost_priority: CostPriority,
        required_capabilities: Iterable[str] = (),
    ) -> float:
        """Base cost for the tier plus the per-capability increment."""
        count = len(set(required_capabilities))
        return round(self._base_cost[cost_priority] + self._per_capability * count, 4)

    def estimate_provider_cost(self, provider: VideoProvider, num_clips: int = 1) -> float:
        """Estimated cost of ``num_clips`` generations on ``provider``. Simulated is free."""
        if provider.is_simulated():
            return 0.0
        return round(provider.estimated_cost() * num_clips, 4)
