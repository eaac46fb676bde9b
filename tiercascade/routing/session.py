"""Per-task cascade session state.

A session is created by ``CascadeController.run()`` and dropped when it
returns. Nothing in it is shared across concurrent sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tiercascade.schemas.cascade import AttemptRecord


@dataclass
class CascadeSession:
    """Mutable state of one cascade walk.

    ``cursor`` and ``climbing`` belong to the sweep policy, ``pending`` to
    the zig-zag policy.
    """

    start_tier: int
    tier_count: int
    max_attempts: int | None = None
    cursor: int = 0
    climbing: bool = False
    pending: list[int] = field(default_factory=list)
    visited: set[int] = field(default_factory=set)
    attempts: list[AttemptRecord] = field(default_factory=list)
    consecutive_rate_limited: int = 0
    pending_cooldown: float = 0.0
    cooldown_total: float = 0.0

    @property
    def invocations(self) -> int:
        return len(self.attempts)

    @property
    def remaining_attempts(self) -> int | None:
        """Invocations left under the retry budget (None = uncapped)."""
        if self.max_attempts is None:
            return None
        return max(self.max_attempts - self.invocations, 0)

    @property
    def budget_spent(self) -> bool:
        return self.remaining_attempts == 0

    def in_range(self, tier: int) -> bool:
        return 1 <= tier <= self.tier_count

    def visit(self, tier: int) -> None:
        if tier in self.visited:
            raise RuntimeError(f"Tier {tier} already invoked in this session")
        self.visited.add(tier)
