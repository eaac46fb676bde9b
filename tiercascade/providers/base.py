"""Abstract base class for tier invokers.

Defines the TierInvoker interface the cascade controller consumes. The
controller interacts exclusively through ``invoke()`` and never calls a
provider SDK directly or branches on provider identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tiercascade.schemas.cascade import CascadeConfig
from tiercascade.schemas.outcome import Outcome
from tiercascade.schemas.tiers import TierBackend, TierMap


class TierInvoker(ABC):
    """Performs one call against a tier's backend and classifies the result.

    Initialized from the resolved TierMap and the cascade config (for
    per-tier timeouts).
    """

    def __init__(self, tier_map: TierMap, config: CascadeConfig | None = None) -> None:
        self._tier_map = tier_map
        self._config = config or CascadeConfig(tier_count=tier_map.tier_count)

    @property
    def tier_map(self) -> TierMap:
        return self._tier_map

    def backend_for(self, tier: int) -> TierBackend:
        """Return the backend for ``tier``.

        Raises:
            ValueError: If ``tier`` is not in the tier map.
        """
        if tier not in self._tier_map:
            raise ValueError(
                f"Tier {tier} is outside 1..{self._tier_map.tier_count}"
            )
        return self._tier_map[tier]

    def timeout_for(self, tier: int) -> float:
        """Timeout in seconds for one invocation at ``tier``."""
        return self._config.timeout_for(tier)

    @abstractmethod
    async def invoke(self, tier: int, task: str) -> Outcome:
        """Invoke ``tier``'s backend with ``task`` and return its Outcome.

        Ordinary transport and provider errors (timeouts, non-2xx,
        malformed or empty bodies, rate limits) must be returned as
        ``Failed``, never raised.

        Raises:
            ValueError: If ``tier`` is not in the tier map.
        """
