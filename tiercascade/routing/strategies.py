"""Transition policies for the cascade controller.

A policy decides which tier to invoke next given the session state, and
updates that state after each non-completing outcome. ``Completed`` never
reaches a policy: the controller ends the session on the first one.

Two policies are available and are never mixed within a session:

- ``ZigZagPolicy``: one retreat below the requested tier when it fails,
  then a monotonic climb. Order is ``[start, start-1?, start+1, ..., N]``.
- ``SweepPolicy``: walks the whole range, climbing on deferral and
  retreating on failure, probing for the nearest unvisited tier when the
  cursor lands on one already tried.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tiercascade.routing.session import CascadeSession
from tiercascade.schemas.cascade import CascadeStrategy
from tiercascade.schemas.outcome import Deferred, Failed


class TransitionPolicy(ABC):
    """Interface shared by the tier transition policies."""

    strategy: CascadeStrategy

    @abstractmethod
    def begin(self, session: CascadeSession) -> None:
        """Seed the session at its start tier."""

    @abstractmethod
    def next_tier(self, session: CascadeSession) -> int | None:
        """Return the next tier to invoke, or None when the walk is over."""

    @abstractmethod
    def advance(
        self, session: CascadeSession, tier: int, outcome: Deferred | Failed,
    ) -> None:
        """Update the session after ``tier`` deferred or failed."""


class ZigZagPolicy(TransitionPolicy):
    """Depth-first retreat-then-climb walk over an explicit pending stack.

    The stack holds the branches still to explore, most recent on top. A
    failure at the start tier pushes the climb (``start + 1``) underneath
    the single retreat (``start - 1``), so the retreat runs first and the
    climb resumes once the retreat branch dies. Branches that land outside
    the range or on a visited tier are dropped when popped. The stack never
    holds more than two entries.
    """

    strategy = CascadeStrategy.ZIGZAG

    def begin(self, session: CascadeSession) -> None:
        session.pending = [session.start_tier]

    def next_tier(self, session: CascadeSession) -> int | None:
        while session.pending:
            tier = session.pending.pop()
            if session.in_range(tier) and tier not in session.visited:
                return tier
        return None

    def advance(
        self, session: CascadeSession, tier: int, outcome: Deferred | Failed,
    ) -> None:
        if isinstance(outcome, Deferred):
            if tier < session.tier_count:
                session.pending.append(tier + 1)
            return

        if tier == session.start_tier and tier > 1:
            session.pending.append(tier + 1)
            session.pending.append(tier - 1)
        else:
            session.pending.append(tier + 1)


class SweepPolicy(TransitionPolicy):
    """Full sweep: every tier is tried at most once, all N eventually.

    Deferral below the top tier climbs; failure (or deferral at the top)
    retreats. The cursor is clamped into range at the head of each step.
    When the cursor lands on a visited tier, a climb probes upward only
    (a deferral never leads to a lower tier) while a retreat probes
    ``-1, +1, -2, +2, ...`` around it.
    """

    strategy = CascadeStrategy.SWEEP

    def begin(self, session: CascadeSession) -> None:
        session.cursor = session.start_tier
        session.climbing = False

    def next_tier(self, session: CascadeSession) -> int | None:
        if len(session.visited) >= session.tier_count:
            return None
        tier = min(max(session.cursor, 1), session.tier_count)
        if tier in session.visited:
            if session.climbing:
                tier = next_unvisited_above(tier, session.tier_count, session.visited)
            else:
                tier = nearest_unvisited(tier, session.tier_count, session.visited)
            if tier is None:
                return None
        session.cursor = tier
        return tier

    def advance(
        self, session: CascadeSession, tier: int, outcome: Deferred | Failed,
    ) -> None:
        if isinstance(outcome, Deferred) and tier < session.tier_count:
            session.cursor = tier + 1
            session.climbing = True
        else:
            session.cursor = tier - 1
            session.climbing = False


def nearest_unvisited(center: int, tier_count: int, visited: set[int]) -> int | None:
    """Probe ``center-1, center+1, center-2, center+2, ...`` for a free tier.

    Lower tiers win ties. Returns None when every tier in ``[1, tier_count]``
    has been visited.
    """
    for offset in range(1, tier_count):
        for candidate in (center - offset, center + offset):
            if 1 <= candidate <= tier_count and candidate not in visited:
                return candidate
    return None


def next_unvisited_above(tier: int, tier_count: int, visited: set[int]) -> int | None:
    """First unvisited tier strictly above ``tier``, or None."""
    for candidate in range(tier + 1, tier_count + 1):
        if candidate not in visited:
            return candidate
    return None


_POLICIES: dict[CascadeStrategy, type[TransitionPolicy]] = {
    CascadeStrategy.ZIGZAG: ZigZagPolicy,
    CascadeStrategy.SWEEP: SweepPolicy,
}


def policy_for(strategy: CascadeStrategy | str) -> TransitionPolicy:
    """Instantiate the transition policy for a strategy name."""
    return _POLICIES[CascadeStrategy(strategy)]()
