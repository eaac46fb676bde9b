"""Tests for the tiercascade CLI.

Commands run through CliRunner with the controller factory patched, so
no provider is ever contacted.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from tiercascade import __version__
from tiercascade.cli import app
from tiercascade.providers.base import TierInvoker
from tiercascade.routing.engine import CascadeController
from tiercascade.schemas.cascade import CascadeConfig, CascadeStrategy
from tiercascade.schemas.outcome import Completed, Deferred, Failed
from tiercascade.schemas.tiers import TierBackend, TierConfigError, TierMap

# NO_COLOR=1 keeps Rich from injecting ANSI codes; COLUMNS=200 prevents
# wrapping that could split values across lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})

_LOADER = "tiercascade.cli._load_controller"


class ScriptedInvoker(TierInvoker):
    def __init__(self, tier_map, script=None, default=Failed(reason="boom")):
        super().__init__(tier_map)
        self.script = script or {}
        self.default = default

    async def invoke(self, tier, task):
        return self.script.get(tier, self.default)


def _make_controller(script=None, default=Failed(reason="boom"), **config_overrides):
    tier_map = TierMap(
        tier_count=10,
        backends={t: TierBackend(provider="groq", model=f"model-{t}") for t in range(1, 11)},
    )
    config = CascadeConfig(**config_overrides)
    return CascadeController(tier_map, ScriptedInvoker(tier_map, script, default), config)


# ── --version / --help ───────────────────────────────────────


class TestVersionAndHelp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"tiercascade {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("ask", "tiers", "config", "serve"):
            assert command in result.output


# ── ask ──────────────────────────────────────────────────────


class TestAsk:
    def test_completed(self):
        controller = _make_controller({2: Deferred(), 3: Completed(package="forty-two")})
        with patch(_LOADER, return_value=controller):
            result = runner.invoke(app, ["ask", "meaning of life", "--tier", "2"])

        assert result.exit_code == 0
        assert "Escalation Path" in result.output
        assert "forty-two" in result.output
        assert "Tier 3 (groq)" in result.output
        assert "deferred" in result.output

    def test_json_output(self):
        controller = _make_controller({4: Completed(package={"answer": 42})})
        with patch(_LOADER, return_value=controller):
            result = runner.invoke(app, ["ask", "q", "-t", "4", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["tier"] == 4
        assert data["package"] == {"answer": 42}
        assert [a["tier"] for a in data["attempts"]] == [4]

    def test_exhausted_exits_nonzero(self):
        controller = _make_controller()
        with patch(_LOADER, return_value=controller):
            result = runner.invoke(app, ["ask", "q", "-t", "9"])

        assert result.exit_code == 1
        assert "All tiers failed" in result.output

    def test_exhausted_json(self):
        controller = _make_controller()
        with patch(_LOADER, return_value=controller):
            result = runner.invoke(app, ["ask", "q", "-t", "10", "--json"])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["state"] == "error"
        assert [a["tier"] for a in data["attempts"]] == [10, 9]

    def test_max_attempts(self):
        controller = _make_controller()
        with patch(_LOADER, return_value=controller):
            result = runner.invoke(app, ["ask", "q", "--max-attempts", "2", "--json"])

        assert result.exit_code == 1
        assert len(json.loads(result.output)["attempts"]) == 2

    def test_strategy_passed_to_loader(self):
        controller = _make_controller({1: Completed(package="ok")})
        loader = MagicMock(return_value=controller)
        with patch(_LOADER, loader):
            result = runner.invoke(app, ["ask", "q", "--strategy", "sweep"])

        assert result.exit_code == 0
        loader.assert_called_once_with(CascadeStrategy.SWEEP)

    def test_default_strategy_from_config(self):
        controller = _make_controller({1: Completed(package="ok")})
        loader = MagicMock(return_value=controller)
        with patch(_LOADER, loader):
            runner.invoke(app, ["ask", "q"])

        loader.assert_called_once_with(None)

    def test_invalid_strategy(self):
        result = runner.invoke(app, ["ask", "q", "--strategy", "random"])
        assert result.exit_code != 0

    def test_config_error(self):
        with patch(
            "tiercascade.cli.load_cascade_config",
            side_effect=TierConfigError("tier 4 has no backend"),
        ):
            result = runner.invoke(app, ["ask", "q"])

        assert result.exit_code == 1
        assert "Error loading tier config" in result.output


# ── tiers / config ───────────────────────────────────────────


class TestTiers:
    def test_lists_tier_map(self):
        with patch(_LOADER, return_value=_make_controller()):
            result = runner.invoke(app, ["tiers"])

        assert result.exit_code == 0
        assert "Tier Map" in result.output
        assert "model-1" in result.output
        assert "model-10" in result.output

    def test_marks_env_override(self):
        with patch(_LOADER, return_value=_make_controller()):
            result = runner.invoke(app, ["tiers"], env={"TIER_3": "groq:model-3"})

        assert result.exit_code == 0
        assert "3 *" in result.output


class TestConfigCommand:
    def test_shows_defaults(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Cascade Configuration" in result.output
        assert "zigzag" in result.output
        assert "unlimited" in result.output

    def test_config_error(self):
        with patch(
            "tiercascade.cli.load_cascade_config",
            side_effect=FileNotFoundError("defaults.toml"),
        ):
            result = runner.invoke(app, ["config"])

        assert result.exit_code == 1
        assert "Error loading config" in result.output
