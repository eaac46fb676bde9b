"""Cascade controller configuration and result schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from tiercascade.schemas.outcome import OutcomeKind


class CascadeStrategy(StrEnum):
    """Transition policy used by the cascade controller.

    ZIGZAG retreats once from the requested tier and then climbs.
    SWEEP walks the whole tier range, retreating on failure and probing for
    the nearest unvisited tier.
    """

    ZIGZAG = "zigzag"
    SWEEP = "sweep"


class CascadeConfig(BaseModel):
    """Controller and invoker settings, loaded from the ``[cascade]`` table."""

    tier_count: int = Field(default=10, ge=1, le=100, description="Number of tiers (N)")
    strategy: CascadeStrategy = Field(
        default=CascadeStrategy.ZIGZAG, description="Transition policy"
    )
    max_attempts: int | None = Field(
        default=None, ge=1, description="Hard cap on invocations per session (None = no cap)"
    )
    base_timeout: float = Field(
        default=15.0, gt=0.0, description="Per-invocation timeout in seconds at tier 1"
    )
    timeout_step: float = Field(
        default=0.0, ge=0.0, description="Extra timeout seconds per tier above 1"
    )
    rate_limit_cooldown: float = Field(
        default=1.0, ge=0.0, description="Initial delay in seconds after a rate-limited failure"
    )
    max_cooldown: float = Field(
        default=8.0, ge=0.0, description="Upper bound for a single cooldown delay"
    )

    def timeout_for(self, tier: int) -> float:
        """Timeout budget for one invocation at ``tier``."""
        return self.base_timeout + self.timeout_step * (max(tier, 1) - 1)

    def cooldown_for(self, consecutive: int) -> float:
        """Delay after the ``consecutive``-th rate-limited failure in a row."""
        if consecutive <= 0 or self.rate_limit_cooldown <= 0:
            return 0.0
        return min(self.rate_limit_cooldown * 2 ** (consecutive - 1), self.max_cooldown)


class AttemptRecord(BaseModel):
    """Structured record of one invocation, for debugging escalation paths."""

    tier: int = Field(ge=1, description="Tier that was invoked")
    provider: str = Field(description="Provider of the tier's backend")
    model: str = Field(description="Model of the tier's backend")
    outcome_kind: OutcomeKind = Field(description="Classified outcome")
    reason: str = Field(default="", description="Deferral or failure reason")
    rate_limited: bool = Field(default=False, description="Failure was rate-limit classified")
    latency_ms: int = Field(default=0, ge=0, description="Wall-clock duration of the call")
    cooldown_s: float = Field(
        default=0.0, ge=0.0, description="Cooldown applied after this attempt"
    )


class CascadeResult(BaseModel):
    """Successful end of a cascade session."""

    requested_tier: int = Field(description="Tier as supplied by the caller, before clamping")
    start_tier: int = Field(ge=1, description="Clamped tier the session started at")
    strategy: CascadeStrategy = Field(description="Transition policy used")
    tier: int = Field(ge=1, description="Tier whose backend completed the task")
    package: Any = Field(description="Payload of the first Completed outcome")
    attempts: list[AttemptRecord] = Field(
        default_factory=list, description="Every invocation in order"
    )

    @property
    def path(self) -> list[int]:
        """Tiers invoked, in order."""
        return [a.tier for a in self.attempts]

    @property
    def total_cooldown(self) -> float:
        return sum(a.cooldown_s for a in self.attempts)
