"""API key and secret loading for tiercascade.

Provider keys and the shared request secret are read from the environment,
which is populated at startup with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.tiercascade/keys.env (user-level keys)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Directory for user-level configuration
TIERCASCADE_HOME = Path.home() / ".tiercascade"
KEYS_FILE = TIERCASCADE_HOME / "keys.env"

# Provider definitions: (provider, primary env var, LiteLLM fallback env var, display name)
PROVIDERS = [
    ("gemini", "GEMINI_KEY", "GEMINI_API_KEY", "Google (Gemini)"),
    ("groq", "GROQ_KEY", "GROQ_API_KEY", "Groq"),
    ("mistral", "MISTRAL_KEY", "MISTRAL_API_KEY", "Mistral"),
    ("cerebras", "CEREBRAS_KEY", "CEREBRAS_API_KEY", "Cerebras"),
]

# Shared secret callers must present to the HTTP endpoint
APP_SECRET_ENV = "MY_APP_SECRET"


def load_keys_env() -> None:
    """Load keys from ~/.tiercascade/keys.env and .env into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over
    later ones.
    """
    files = [KEYS_FILE, Path.cwd() / ".env"]
    for env_file in files:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def api_key_for(provider: str) -> str:
    """Return the API key for a provider, or "" when none is configured.

    The provider's own variable (e.g. ``GROQ_KEY``) wins over the LiteLLM
    standard name (``GROQ_API_KEY``). Unknown providers fall back to
    ``<PROVIDER>_API_KEY``.
    """
    provider = provider.lower()
    for name, primary, fallback, _ in PROVIDERS:
        if name == provider:
            return os.environ.get(primary) or os.environ.get(fallback, "")
    return os.environ.get(f"{provider.upper()}_API_KEY", "")


def get_configured_keys() -> dict[str, bool]:
    """Return provider -> whether a key is available."""
    return {name: bool(api_key_for(name)) for name, _, _, _ in PROVIDERS}


def app_secret() -> str:
    """The shared request secret, or "" when unset."""
    return os.environ.get(APP_SECRET_ENV, "")
