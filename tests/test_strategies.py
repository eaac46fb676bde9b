"""Tests for tiercascade.routing.strategies: transition policies."""

import pytest

from tiercascade.routing.session import CascadeSession
from tiercascade.routing.strategies import (
    SweepPolicy,
    ZigZagPolicy,
    nearest_unvisited,
    next_unvisited_above,
    policy_for,
)
from tiercascade.schemas.cascade import CascadeStrategy
from tiercascade.schemas.outcome import Deferred, Failed


def _session(start: int, tier_count: int = 10, **kwargs) -> CascadeSession:
    return CascadeSession(start_tier=start, tier_count=tier_count, **kwargs)


class TestNearestUnvisited:
    def test_prefers_lower_on_tie(self):
        assert nearest_unvisited(5, 10, {5}) == 4

    def test_alternates_outward(self):
        assert nearest_unvisited(5, 10, {3, 4, 5}) == 6
        assert nearest_unvisited(5, 10, {3, 4, 5, 6, 7}) == 2

    def test_skips_out_of_range(self):
        assert nearest_unvisited(1, 10, {1, 2}) == 3
        assert nearest_unvisited(10, 10, {9, 10}) == 8

    def test_none_when_all_visited(self):
        assert nearest_unvisited(5, 10, set(range(1, 11))) is None

    def test_reaches_far_end(self):
        visited = set(range(2, 11))
        assert nearest_unvisited(10, 10, visited) == 1


class TestNextUnvisitedAbove:
    def test_first_free_above(self):
        assert next_unvisited_above(4, 10, {5, 6}) == 7

    def test_none_at_top(self):
        assert next_unvisited_above(10, 10, set()) is None
        assert next_unvisited_above(8, 10, {9, 10}) is None


class TestPolicyFor:
    def test_by_enum(self):
        assert isinstance(policy_for(CascadeStrategy.ZIGZAG), ZigZagPolicy)
        assert isinstance(policy_for(CascadeStrategy.SWEEP), SweepPolicy)

    def test_by_string(self):
        assert isinstance(policy_for("sweep"), SweepPolicy)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            policy_for("random")

    def test_fresh_instance_each_call(self):
        assert policy_for("zigzag") is not policy_for("zigzag")


class TestZigZagPolicy:
    def test_begins_at_start(self):
        policy = ZigZagPolicy()
        session = _session(6)
        policy.begin(session)
        assert policy.next_tier(session) == 6

    def test_failure_at_start_queues_retreat_before_climb(self):
        policy = ZigZagPolicy()
        session = _session(6)
        policy.begin(session)
        tier = policy.next_tier(session)
        session.visit(tier)
        policy.advance(session, tier, Failed(reason="x"))

        assert session.pending == [7, 5]
        assert policy.next_tier(session) == 5

    def test_stack_stays_small(self):
        policy = ZigZagPolicy()
        session = _session(6)
        policy.begin(session)
        while (tier := policy.next_tier(session)) is not None:
            session.visit(tier)
            policy.advance(session, tier, Failed(reason="x"))
            assert len(session.pending) <= 2

    def test_deferral_at_top_leaves_nothing(self):
        policy = ZigZagPolicy()
        session = _session(10)
        policy.begin(session)
        tier = policy.next_tier(session)
        session.visit(tier)
        policy.advance(session, tier, Deferred())

        assert policy.next_tier(session) is None


class TestSweepPolicy:
    def test_cursor_clamped_on_loop_head(self):
        policy = SweepPolicy()
        session = _session(1)
        policy.begin(session)
        session.visit(policy.next_tier(session))
        policy.advance(session, 1, Failed(reason="x"))

        assert session.cursor == 0
        assert policy.next_tier(session) == 2

    def test_stops_once_every_tier_visited(self):
        policy = SweepPolicy()
        session = _session(3, tier_count=3, visited={1, 2, 3})
        assert policy.next_tier(session) is None

    def test_deferral_sets_climbing(self):
        policy = SweepPolicy()
        session = _session(2)
        policy.begin(session)
        session.visit(policy.next_tier(session))
        policy.advance(session, 2, Deferred())

        assert session.climbing is True
        assert policy.next_tier(session) == 3


class TestSessionState:
    def test_visit_twice_is_an_error(self):
        session = _session(1)
        session.visit(1)
        with pytest.raises(RuntimeError):
            session.visit(1)

    def test_remaining_attempts(self):
        session = _session(1, max_attempts=2)
        assert session.remaining_attempts == 2
        assert session.budget_spent is False

    def test_uncapped_session(self):
        session = _session(1)
        assert session.remaining_attempts is None
        assert session.budget_spent is False
