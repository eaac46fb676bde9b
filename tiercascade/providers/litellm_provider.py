"""LiteLLM tier invoker.

Sends one task to a tier's backend via LiteLLM's unified API and
normalizes whatever comes back into the shared Outcome set. Provider
response shapes (Gemini candidates, OpenAI-style choices) are flattened by
LiteLLM; this module only handles the JSON envelope the model is asked to
reply with, timeouts, and error classification.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from tiercascade.keys import api_key_for
from tiercascade.providers.base import TierInvoker
from tiercascade.schemas.outcome import Completed, Deferred, Failed, Outcome

logger = logging.getLogger(__name__)

# The package value a model returns when it wants a stronger tier
DEFER_SENTINEL = "need higher level"

# Providers whose chat endpoint rejects response_format=json_object
_NO_JSON_MODE = frozenset({"cerebras"})

# Fenced ```json blocks, for models that wrap the envelope in markdown
_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)


def build_system_prompt(tier: int, tier_count: int) -> str:
    """Tier identity preface telling the model how to complete or defer."""
    return (
        f"[IDENTITY: Tier {tier}/{tier_count} Intelligence]\n"
        "[PROTOCOL: JSON-ONLY]\n"
        '- If you can handle this task, return: {"state": "complete", "package": "YOUR_RESPONSE"}\n'
        "- If this task requires higher intelligence, return: "
        f'{{"state": "error", "package": "{DEFER_SENTINEL}"}}\n'
        "- Respond ONLY with raw JSON. No markdown formatting."
    )


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error.

    Maps error types and status codes to concise descriptions instead
    of dumping full JSON error payloads.
    """
    error_str = str(error).lower()
    if isinstance(error, litellm.AuthenticationError):
        return "authentication failed"
    if isinstance(error, litellm.BadRequestError):
        return "bad request"
    if "rate limit" in error_str or "ratelimit" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    # Fallback: first 80 chars of the error
    return str(error)[:80] or type(error).__name__


def _is_rate_limited(error: Exception) -> bool:
    """Whether an error means the provider is throttling or overloaded."""
    if isinstance(error, (litellm.RateLimitError, litellm.ServiceUnavailableError)):
        return True
    status = getattr(error, "status_code", None)
    if status in (429, 503, 529):
        return True
    return _short_error_reason(error) in ("rate limit", "overloaded")


def parse_envelope(content: str) -> Outcome:
    """Classify a model's raw reply into an Outcome.

    The reply must be a JSON object with ``state`` and ``package`` keys.
    A ``state`` of ``"error"`` or the deferral sentinel as ``package``
    means the model declined the task.
    """
    if not content or not content.strip():
        return Failed(reason="empty response")

    data = _load_json(content)
    if not isinstance(data, dict):
        return Failed(reason="malformed body")

    package = data.get("package")
    if data.get("state") == "error" or package == DEFER_SENTINEL:
        reason = package if isinstance(package, str) and package else DEFER_SENTINEL
        return Deferred(reason=reason)

    if package is None or package == "":
        return Failed(reason="empty payload")
    return Completed(package=package)


def _load_json(content: str) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    json_match = _JSON_BLOCK_RE.search(content)
    if json_match:
        try:
            return json.loads(json_match.group(1))
        except json.JSONDecodeError:
            pass
    return None


class LiteLLMInvoker(TierInvoker):
    """Tier invoker powered by litellm.acompletion().

    One call per invocation, no internal retries: retrying elsewhere is
    the cascade controller's job. Every transport or provider error is
    returned as a Failed outcome.
    """

    async def invoke(self, tier: int, task: str) -> Outcome:
        backend = self.backend_for(tier)
        timeout = self.timeout_for(tier)
        kwargs = self._build_completion_kwargs(tier, task, timeout)

        try:
            response = await asyncio.wait_for(
                litellm.acompletion(**kwargs), timeout=timeout,
            )
        except (TimeoutError, litellm.Timeout):
            logger.debug("Tier %d (%s) timed out after %.1fs", tier, backend.label, timeout)
            return Failed(reason="timeout")
        except Exception as e:
            reason = _short_error_reason(e)
            logger.debug("Tier %d (%s) failed: %s", tier, backend.label, e)
            return Failed(reason=reason, rate_limited=_is_rate_limited(e))

        content = self._extract_content(response)
        return parse_envelope(content)

    def _build_completion_kwargs(self, tier: int, task: str, timeout: float) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        backend = self.backend_for(tier)
        kwargs: dict = {
            "model": backend.litellm_model,
            "messages": [
                {"role": "system", "content": build_system_prompt(tier, self._tier_map.tier_count)},
                {"role": "user", "content": f"USER_TASK: {task}"},
            ],
            "timeout": float(timeout),
        }

        api_key = api_key_for(backend.provider)
        if api_key:
            kwargs["api_key"] = api_key

        if backend.provider not in _NO_JSON_MODE:
            kwargs["response_format"] = {"type": "json_object"}

        return kwargs

    def _extract_content(self, response: Any) -> str:
        """Extract text content from a LiteLLM response."""
        choices = getattr(response, "choices", None)
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return (message.content or "") if message else ""
