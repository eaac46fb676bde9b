"""Tests for tiercascade.keys: env file loading and key lookup."""

import os
from unittest.mock import patch

from tiercascade import keys


class TestLoadEnvFile:
    def test_sets_missing_vars(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\nGROQ_KEY='gsk-1'\n\nnot a pair\nMY_APP_SECRET=\"s3cret\"\n",
            encoding="utf-8",
        )
        with patch.dict(os.environ, {}, clear=True):
            keys._load_env_file(env_file)
            assert os.environ["GROQ_KEY"] == "gsk-1"
            assert os.environ["MY_APP_SECRET"] == "s3cret"

    def test_does_not_overwrite(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GROQ_KEY=from-file\n", encoding="utf-8")
        with patch.dict(os.environ, {"GROQ_KEY": "from-shell"}, clear=True):
            keys._load_env_file(env_file)
            assert os.environ["GROQ_KEY"] == "from-shell"

    def test_load_keys_env_reads_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("CEREBRAS_KEY=csk\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(keys, "KEYS_FILE", tmp_path / "missing.env")
        with patch.dict(os.environ, {}, clear=True):
            keys.load_keys_env()
            assert os.environ["CEREBRAS_KEY"] == "csk"


class TestApiKeyFor:
    def test_primary_name_wins(self):
        env = {"GROQ_KEY": "primary", "GROQ_API_KEY": "fallback"}
        with patch.dict(os.environ, env, clear=True):
            assert keys.api_key_for("groq") == "primary"

    def test_litellm_name_fallback(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "g"}, clear=True):
            assert keys.api_key_for("Gemini") == "g"

    def test_unknown_provider(self):
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk"}, clear=True):
            assert keys.api_key_for("openai") == "sk"
            assert keys.api_key_for("xai") == ""

    def test_configured_keys(self):
        with patch.dict(os.environ, {"MISTRAL_KEY": "m"}, clear=True):
            configured = keys.get_configured_keys()
        assert configured["mistral"] is True
        assert configured["groq"] is False

    def test_app_secret(self):
        with patch.dict(os.environ, {"MY_APP_SECRET": "abc"}, clear=True):
            assert keys.app_secret() == "abc"
        with patch.dict(os.environ, {}, clear=True):
            assert keys.app_secret() == ""
