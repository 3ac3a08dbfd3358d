"""Tests for configuration parsing and validation."""

from __future__ import annotations

import os

import pytest
from pydantic import ValidationError

import cine_prompt.config as cfg_mod
from cine_prompt.config import DEFAULT_ALLOWED_ORIGINS, ServerConfig, get_config


class TestFromEnv:
    def test_defaults(self, monkeypatch):
        for var in ("CINE_PROMPT_ALLOWED_ORIGINS", "CINE_PROMPT_ENV", "CINE_PROMPT_GATEWAY_TIMEOUT"):
            monkeypatch.delenv(var, raising=False)
        cfg = ServerConfig.from_env()
        assert cfg.gemini_api_key == "test-key-not-real"
        assert cfg.gateway_timeout_seconds == 30.0
        assert cfg.max_prompt_chars == 10_000
        assert cfg.allowed_origins == list(DEFAULT_ALLOWED_ORIGINS)
        assert cfg.development_mode is False

    def test_origin_list_is_split_and_trimmed(self, monkeypatch):
        monkeypatch.setenv("CINE_PROMPT_ALLOWED_ORIGINS", " https://a.example/ , ,http://localhost:3000")
        cfg = ServerConfig.from_env()
        assert cfg.allowed_origins == ["https://a.example", "http://localhost:3000"]

    @pytest.mark.parametrize("value, expected", [
        ("development", True),
        ("DEV", True),
        ("production", False),
        ("", False),
    ])
    def test_development_mode(self, monkeypatch, value, expected):
        monkeypatch.setenv("CINE_PROMPT_ENV", value)
        assert ServerConfig.from_env().development_mode is expected

    def test_missing_key_is_empty_not_error(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert ServerConfig.from_env().gemini_api_key == ""


class TestValidators:
    def test_rejects_unknown_thinking_level(self):
        with pytest.raises(ValidationError, match="Invalid thinking level"):
            ServerConfig(default_thinking_level="extreme")

    def test_blank_thinking_level_allowed(self):
        assert ServerConfig(default_thinking_level="  ").default_thinking_level == ""

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            ServerConfig(gateway_timeout_seconds=0)

    def test_rejects_zero_prompt_limit(self):
        with pytest.raises(ValidationError):
            ServerConfig(max_prompt_chars=0)


class TestSingleton:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reset_config(self, monkeypatch):
        first = get_config()
        cfg_mod.reset_config()
        monkeypatch.setenv("GEMINI_MODEL", "gemini-custom")
        second = get_config()
        assert second is not first
        assert second.default_model == "gemini-custom"

    def test_loads_dotenv_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("CINE_PROMPT_GATEWAY_MODEL=gemini-from-file\n")
        monkeypatch.delenv("CINE_PROMPT_GATEWAY_MODEL", raising=False)
        monkeypatch.setattr("cine_prompt.dotenv.DEFAULT_ENV_PATH", env_file)
        try:
            assert get_config().gateway_model == "gemini-from-file"
        finally:
            os.environ.pop("CINE_PROMPT_GATEWAY_MODEL", None)
