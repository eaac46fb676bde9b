"""tiercascade schema definitions.

Pydantic v2 models for the tier map, invocation outcomes, and cascade
sessions.
"""

from tiercascade.schemas.cascade import (
    AttemptRecord,
    CascadeConfig,
    CascadeResult,
    CascadeStrategy,
)
from tiercascade.schemas.outcome import (
    Completed,
    Deferred,
    Failed,
    Outcome,
    OutcomeKind,
)
from tiercascade.schemas.tiers import TierBackend, TierConfigError, TierMap

__all__ = [
    "AttemptRecord",
    "CascadeConfig",
    "CascadeResult",
    "CascadeStrategy",
    "Completed",
    "Deferred",
    "Failed",
    "Outcome",
    "OutcomeKind",
    "TierBackend",
    "TierConfigError",
    "TierMap",
]
