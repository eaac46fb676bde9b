"""Tier map schemas.

A tier is an integer in ``[1, N]`` naming the backend expected to handle a
task of that difficulty. The TierMap binds every tier to a provider/model
pair and is read-only once built.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TierConfigError(ValueError):
    """A tier in range has no resolvable backend identity."""


class TierBackend(BaseModel):
    """Backend identity for a single tier."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(min_length=1, description="Provider identifier (e.g. 'groq', 'gemini')")
    model: str = Field(min_length=1, description="Provider-side model name")

    @classmethod
    def parse(cls, value: str) -> TierBackend:
        """Parse the ``provider:model`` string form used in configuration.

        Only the first colon separates provider from model, so model names
        that contain colons survive intact.
        """
        provider, sep, model = value.strip().partition(":")
        if not sep or not provider.strip() or not model.strip():
            raise TierConfigError(
                f"Invalid backend '{value}': expected 'provider:model'"
            )
        return cls(provider=provider.strip().lower(), model=model.strip())

    @property
    def litellm_model(self) -> str:
        """LiteLLM routing identifier (``provider/model``)."""
        return f"{self.provider}/{self.model}"

    @property
    def label(self) -> str:
        return f"{self.provider}:{self.model}"


class TierMap(BaseModel):
    """Ordered, immutable table of tier -> backend.

    Every tier in ``[1, tier_count]`` must have an entry; anything else is
    a startup-time configuration error.
    """

    model_config = ConfigDict(frozen=True)

    tier_count: int = Field(default=10, ge=1, description="Number of tiers (N)")
    backends: dict[int, TierBackend] = Field(description="Backend per tier number")

    @model_validator(mode="after")
    def _check_complete(self) -> TierMap:
        missing = [t for t in range(1, self.tier_count + 1) if t not in self.backends]
        if missing:
            raise TierConfigError(
                f"No backend configured for tier(s): {', '.join(map(str, missing))}"
            )
        extra = sorted(t for t in self.backends if not 1 <= t <= self.tier_count)
        if extra:
            raise TierConfigError(
                f"Tier(s) outside 1..{self.tier_count}: {', '.join(map(str, extra))}"
            )
        return self

    def __getitem__(self, tier: int) -> TierBackend:
        return self.backends[tier]

    def __contains__(self, tier: object) -> bool:
        return tier in self.backends

    def tiers(self) -> list[int]:
        """Tier numbers in ascending order."""
        return list(range(1, self.tier_count + 1))

    def entries(self) -> list[tuple[int, TierBackend]]:
        return [(t, self.backends[t]) for t in self.tiers()]
