"""tiercascade invoker layer.

Every backend call goes through a TierInvoker; the LiteLLM invoker is the
only one that talks to providers.
"""

from tiercascade.providers.base import TierInvoker
from tiercascade.providers.litellm_provider import LiteLLMInvoker, parse_envelope
from tiercascade.providers.registry import load_cascade_config, load_tier_map

__all__ = [
    "LiteLLMInvoker",
    "TierInvoker",
    "load_cascade_config",
    "load_tier_map",
    "parse_envelope",
]
