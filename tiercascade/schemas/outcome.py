"""Invocation outcome schemas.

Every call against a tier's backend is classified into exactly one of
three outcomes. The cascade controller only ever sees these; it never
looks at provider-specific response shapes or HTTP status codes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field


class OutcomeKind(StrEnum):
    """Tag for the three invocation outcomes."""

    COMPLETED = "completed"
    DEFERRED = "deferred"
    FAILED = "failed"


class Completed(BaseModel):
    """The backend produced a final answer."""

    kind: Literal[OutcomeKind.COMPLETED] = OutcomeKind.COMPLETED
    package: Any = Field(description="Opaque answer payload returned to the caller")


class Deferred(BaseModel):
    """The backend declined: the task needs a more capable tier."""

    kind: Literal[OutcomeKind.DEFERRED] = OutcomeKind.DEFERRED
    reason: str = Field(default="need higher level", description="Deferral message from the model")


class Failed(BaseModel):
    """Transport or provider failure (timeout, bad body, non-2xx, rate limit)."""

    kind: Literal[OutcomeKind.FAILED] = OutcomeKind.FAILED
    reason: str = Field(description="Short, human-readable failure reason")
    rate_limited: bool = Field(
        default=False, description="Whether the provider signalled rate limiting or overload"
    )


Outcome = Completed | Deferred | Failed
