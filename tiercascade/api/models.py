"""Pydantic schemas for the tiercascade HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from tiercascade.schemas.cascade import AttemptRecord


class AskRequest(BaseModel):
    """A task submitted to the cascade."""

    secret: str = Field(default="", description="Shared secret (MY_APP_SECRET)")
    complexity: int = Field(description="Requested tier; clamped into the tier range")
    prompt: str = Field(description="The task handed to each tier's backend")


class PackageEnvelope(BaseModel):
    """Wrapper around the completing tier's payload."""

    package: Any = Field(description="Payload of the first Completed outcome")


class AskResponse(BaseModel):
    """Successful cascade session."""

    state: str = "complete"
    package: PackageEnvelope
    tier: int = Field(description="Tier whose backend completed the task")
    attempts: list[AttemptRecord] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Failure envelope for unauthorized requests and exhausted sessions."""

    state: str = "error"
    content: str
    attempts: list[AttemptRecord] = Field(default_factory=list)
