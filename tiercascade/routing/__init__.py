"""Tier cascade controller.

Picks the next tier after each invocation outcome using one of two
transition policies: zig-zag (default) or full sweep.
"""

from tiercascade.routing.engine import CascadeController, safe_tier
from tiercascade.routing.errors import CascadeError, CascadeExhaustedError
from tiercascade.routing.strategies import (
    SweepPolicy,
    TransitionPolicy,
    ZigZagPolicy,
    nearest_unvisited,
    next_unvisited_above,
    policy_for,
)

__all__ = [
    "CascadeController",
    "CascadeError",
    "CascadeExhaustedError",
    "SweepPolicy",
    "TransitionPolicy",
    "ZigZagPolicy",
    "nearest_unvisited",
    "next_unvisited_above",
    "policy_for",
    "safe_tier",
]
