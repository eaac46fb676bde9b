"""Tier map and cascade configuration loader.

Loads tier defaults and cascade settings from defaults.toml and applies
``TIER_<n>`` environment overrides. Everything is resolved once at startup;
a tier in range without a usable backend is a startup error.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError

from tiercascade.schemas.cascade import CascadeConfig
from tiercascade.schemas.tiers import TierBackend, TierConfigError, TierMap

# Default config directory relative to the tiercascade package
_CONFIG_DIR = Path(__file__).parent.parent / "config"

# Environment variable prefix for per-tier overrides (TIER_1 .. TIER_N)
TIER_ENV_PREFIX = "TIER_"


def _read_toml(config_path: Path | None) -> tuple[Path, dict]:
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Tier config not found: {path}")

    with open(path, "rb") as f:
        return path, tomllib.load(f)


def load_cascade_config(config_path: Path | None = None) -> CascadeConfig:
    """Load cascade settings from the ``[cascade]`` table.

    Args:
        config_path: Path to a TOML file. Defaults to tiercascade/config/defaults.toml.

    Returns:
        CascadeConfig with values from the file (defaults for missing keys).

    Raises:
        FileNotFoundError: If the config file does not exist.
        TierConfigError: If a value is out of range or of the wrong type.
    """
    path, raw = _read_toml(config_path)
    section = raw.get("cascade", {})
    if not isinstance(section, dict):
        raise TierConfigError(f"[cascade] in {path} must be a table")
    try:
        return CascadeConfig(**section)
    except ValidationError as e:
        raise TierConfigError(f"Invalid [cascade] settings in {path}: {e}") from e


def load_tier_map(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    tier_count: int | None = None,
) -> TierMap:
    """Build the tier map from TOML defaults and ``TIER_<n>`` overrides.

    Args:
        config_path: Path to a TOML file. Defaults to tiercascade/config/defaults.toml.
        environ: Environment to read overrides from (defaults to os.environ).
        tier_count: Number of tiers. Defaults to ``[cascade].tier_count``.

    Returns:
        A complete, read-only TierMap.

    Raises:
        FileNotFoundError: If the config file does not exist.
        TierConfigError: If any tier in range lacks a parsable backend.
    """
    path, raw = _read_toml(config_path)
    env = os.environ if environ is None else environ

    if tier_count is None:
        cascade_section = raw.get("cascade", {})
        tier_count = int(cascade_section.get("tier_count", 10))

    tiers_section = raw.get("tiers", {})
    if not isinstance(tiers_section, dict):
        raise TierConfigError(f"[tiers] in {path} must be a table")

    defaults: dict[int, str] = {}
    for key, value in tiers_section.items():
        try:
            tier = int(key)
        except ValueError:
            raise TierConfigError(f"Tier key '{key}' in {path} is not a number") from None
        if not isinstance(value, str):
            raise TierConfigError(f"Tier {tier} in {path} must be a 'provider:model' string")
        defaults[tier] = value

    backends: dict[int, TierBackend] = {}
    missing: list[int] = []
    for tier in range(1, tier_count + 1):
        spec = env.get(f"{TIER_ENV_PREFIX}{tier}") or defaults.get(tier)
        if not spec:
            missing.append(tier)
            continue
        backends[tier] = TierBackend.parse(spec)

    if missing:
        raise TierConfigError(
            f"No backend configured for tier(s): {', '.join(map(str, missing))}"
        )

    try:
        return TierMap(tier_count=tier_count, backends=backends)
    except ValidationError as e:
        raise TierConfigError(str(e)) from e
