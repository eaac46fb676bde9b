"""Session-level errors raised by the cascade controller.

Per-invocation failures never surface here: the invoker classifies them
as ``Failed`` outcomes and the controller turns them into retreat or climb
decisions. Only exhaustion of the whole session crosses the boundary.
"""

from __future__ import annotations

from tiercascade.schemas.cascade import AttemptRecord


class CascadeError(Exception):
    """Base for cascade session errors."""


class CascadeExhaustedError(CascadeError):
    """No tier produced a completion before the session terminated.

    Raised when the walk runs out of tiers or the retry budget is spent.
    Carries the attempt records so callers can report the escalation path.
    """

    def __init__(
        self,
        start_tier: int,
        attempts: list[AttemptRecord],
        *,
        budget_spent: bool = False,
    ) -> None:
        self.start_tier = start_tier
        self.attempts = attempts
        self.budget_spent = budget_spent
        path = " -> ".join(str(a.tier) for a in attempts) or "none"
        cause = "retry budget spent" if budget_spent else "all tiers failed"
        super().__init__(
            f"Cascade from tier {start_tier} exhausted ({cause}); tried: {path}"
        )

    @property
    def path(self) -> list[int]:
        return [a.tier for a in self.attempts]
