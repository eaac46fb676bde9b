"""Tier cascade controller.

Runs one task against the tier map: invokes the start tier, interprets the
outcome, and asks the configured transition policy for the next tier until
a backend completes the task or the walk is exhausted. Invocations are
strictly sequential within a session; independent sessions may run
concurrently against the same controller.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable

from tiercascade.providers.base import TierInvoker
from tiercascade.routing.errors import CascadeExhaustedError
from tiercascade.routing.session import CascadeSession
from tiercascade.routing.strategies import TransitionPolicy, policy_for
from tiercascade.schemas.cascade import (
    AttemptRecord,
    CascadeConfig,
    CascadeResult,
    CascadeStrategy,
)
from tiercascade.schemas.outcome import Completed, Failed, Outcome
from tiercascade.schemas.tiers import TierMap

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[object]]
AttemptHook = Callable[[AttemptRecord], object]


def safe_tier(tier: int, tier_count: int = 10) -> int:
    """Clamp caller-supplied tier input into ``[1, tier_count]``.

    Negative values fold to their absolute value, zero becomes 1, and
    anything above ``tier_count`` saturates at ``tier_count``.
    """
    value = abs(int(tier))
    if value == 0:
        value = 1
    return min(max(value, 1), tier_count)


class CascadeController:
    """Escalation/de-escalation controller over a fixed tier map.

    The tier map, invoker and config are read-only once the controller is
    built; all per-task state lives in a ``CascadeSession`` created by
    ``run()``.
    """

    def __init__(
        self,
        tier_map: TierMap,
        invoker: TierInvoker,
        config: CascadeConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_attempt: AttemptHook | None = None,
    ) -> None:
        self._tier_map = tier_map
        self._invoker = invoker
        self._config = config or CascadeConfig(tier_count=tier_map.tier_count)
        self._sleep = sleep
        self._on_attempt = on_attempt

    @property
    def tier_map(self) -> TierMap:
        return self._tier_map

    @property
    def config(self) -> CascadeConfig:
        return self._config

    @property
    def tier_count(self) -> int:
        return self._tier_map.tier_count

    async def run(
        self,
        start_tier: int,
        task: str,
        *,
        strategy: CascadeStrategy | None = None,
        max_attempts: int | None = None,
    ) -> CascadeResult:
        """Run one cascade session for ``task`` starting near ``start_tier``.

        Args:
            start_tier: Requested tier; clamped with ``safe_tier`` first.
            task: The task payload handed to every invocation.
            strategy: Override the configured transition policy.
            max_attempts: Override the configured retry budget.

        Returns:
            CascadeResult carrying the first Completed payload.

        Raises:
            CascadeExhaustedError: If no tier completed the task.
        """
        effective = CascadeStrategy(strategy or self._config.strategy)
        policy = policy_for(effective)
        budget = max_attempts if max_attempts is not None else self._config.max_attempts

        session = CascadeSession(
            start_tier=safe_tier(start_tier, self.tier_count),
            tier_count=self.tier_count,
            max_attempts=budget,
        )
        policy.begin(session)

        logger.info(
            "Cascade start: requested tier %s -> tier %d (%s, budget=%s)",
            start_tier, session.start_tier, effective.value,
            budget if budget is not None else "none",
        )

        completed = await self._walk(session, policy, task)
        if completed is None:
            logger.warning(
                "Cascade exhausted after %d invocation(s), %.1fs cooling down: %s",
                session.invocations,
                session.cooldown_total,
                [a.tier for a in session.attempts],
            )
            raise CascadeExhaustedError(
                session.start_tier,
                session.attempts,
                budget_spent=session.budget_spent,
            )

        tier, outcome = completed
        return CascadeResult(
            requested_tier=start_tier,
            start_tier=session.start_tier,
            strategy=effective,
            tier=tier,
            package=outcome.package,
            attempts=session.attempts,
        )

    async def _walk(
        self,
        session: CascadeSession,
        policy: TransitionPolicy,
        task: str,
    ) -> tuple[int, Completed] | None:
        """Loop invoke/advance until a completion or exhaustion."""
        while not session.budget_spent:
            tier = policy.next_tier(session)
            if tier is None:
                return None

            await self._cool_down(session)

            session.visit(tier)
            outcome = await self._invoke(session, tier, task)

            if isinstance(outcome, Completed):
                return tier, outcome

            self._schedule_cooldown(session, outcome)
            policy.advance(session, tier, outcome)

        logger.info("Retry budget of %s invocation(s) spent", session.max_attempts)
        return None

    async def _invoke(
        self, session: CascadeSession, tier: int, task: str,
    ) -> Outcome:
        """Invoke one tier and record the attempt."""
        backend = self._tier_map[tier]
        started = time.monotonic()
        outcome = await self._invoker.invoke(tier, task)
        latency_ms = int((time.monotonic() - started) * 1000)

        record = AttemptRecord(
            tier=tier,
            provider=backend.provider,
            model=backend.model,
            outcome_kind=outcome.kind,
            reason=getattr(outcome, "reason", ""),
            rate_limited=isinstance(outcome, Failed) and outcome.rate_limited,
            latency_ms=latency_ms,
        )
        session.attempts.append(record)

        logger.info(
            "[Tier %d] %s -> %s%s",
            tier, backend.label, outcome.kind.value,
            f" ({record.reason})" if record.reason else "",
            extra={
                "tier": tier,
                "provider": backend.provider,
                "model": backend.model,
                "outcome": outcome.kind.value,
            },
        )

        if self._on_attempt is not None:
            result = self._on_attempt(record)
            if inspect.isawaitable(result):
                await result

        return outcome

    def _schedule_cooldown(self, session: CascadeSession, outcome: Outcome) -> None:
        """Arm a cooldown after a rate-limited failure; reset it otherwise."""
        if isinstance(outcome, Failed) and outcome.rate_limited:
            session.consecutive_rate_limited += 1
            session.pending_cooldown = self._config.cooldown_for(
                session.consecutive_rate_limited,
            )
        else:
            session.consecutive_rate_limited = 0
            session.pending_cooldown = 0.0

    async def _cool_down(self, session: CascadeSession) -> None:
        """Take the armed cooldown before the next invocation, if any."""
        delay = session.pending_cooldown
        if delay <= 0:
            return
        session.pending_cooldown = 0.0
        session.cooldown_total += delay
        if session.attempts:
            session.attempts[-1].cooldown_s = delay
        logger.info("Rate limited; cooling down %.1fs before next tier", delay)
        await self._sleep(delay)
